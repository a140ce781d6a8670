# -*- coding: utf-8 -*-
"""
配置验证模块

功能：
- 验证已启用产品所需的字段是否齐全
"""

from typing import Optional, Tuple

from config.loader import Config


def validate_config(config: Config) -> Tuple[bool, Optional[str]]:
    """
    验证配置对象

    Args:
        config: 配置对象（已合并命令行参数）

    Returns:
        (is_valid, error_message) 元组
    """
    if config.products.cdn and not config.token:
        return False, "启用 CDN 时必须提供 token（--token 或配置文件中的 token）"

    if config.products.object_storage:
        storage = config.object_storage
        if not storage.access_key or not storage.secret_key:
            return False, "启用 Object Storage 时必须提供 object_storage.access_key 和 object_storage.secret_key"
        if not storage.endpoint.startswith(('http://', 'https://')):
            return False, f"object_storage.endpoint 必须以 http:// 或 https:// 开头: {storage.endpoint}"

    return True, None
