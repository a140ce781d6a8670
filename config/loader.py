# -*- coding: utf-8 -*-
"""
Exporter 配置加载模块

功能：
- 从 YAML 文件加载 exporter 配置
- 定义清晰的数据结构（Config / Products / ObjectStorageConfig）
- 合并命令行参数（命令行优先）
- 读取失败时抛出 ConfigError
"""

import math
import os
import re
from dataclasses import dataclass, field, replace
from typing import IO, Optional, Union

import yaml

# Arvancloud Object Storage 默认 endpoint（S3 兼容）
DEFAULT_OBJECT_STORAGE_ENDPOINT = 'https://s3.ir-thr-at1.arvanstorage.ir'
DEFAULT_OBJECT_STORAGE_REGION = 'ir-thr-at1'


class ConfigError(ValueError):
    """配置无效或无法读取"""


@dataclass
class Products:
    """启用的产品"""
    cdn: bool = False
    object_storage: bool = False


@dataclass
class ObjectStorageConfig:
    """Object Storage 连接配置"""
    endpoint: str = DEFAULT_OBJECT_STORAGE_ENDPOINT
    region: str = DEFAULT_OBJECT_STORAGE_REGION
    access_key: str = ''
    secret_key: str = field(default='', repr=False)


@dataclass
class Config:
    """配置的根数据结构"""
    token: str = field(default='', repr=False)
    products: Products = field(default_factory=Products)
    object_storage: ObjectStorageConfig = field(default_factory=ObjectStorageConfig)


def load_config(stream: Union[str, bytes, IO]) -> Config:
    """
    从 YAML 内容加载配置

    Args:
        stream: YAML 字符串或文件对象

    Returns:
        Config 对象

    Raises:
        ConfigError: YAML 解析失败或字段类型错误
    """
    try:
        data = yaml.safe_load(stream)
    except yaml.YAMLError as e:
        raise ConfigError(f"YAML 解析失败: {e}")

    # 空文件等价于默认配置
    if data is None:
        return Config()

    if not isinstance(data, dict):
        raise ConfigError("配置格式错误: 顶层必须是字典类型")

    token = data.get('token') or ''
    if not isinstance(token, str):
        raise ConfigError("配置格式错误: 'token' 必须是字符串")

    products = _parse_products(data.get('products') or {})
    object_storage = _parse_object_storage(data.get('object_storage') or {})

    return Config(token=token.strip(), products=products, object_storage=object_storage)


def load_config_file(path: str) -> Config:
    """
    从 YAML 文件加载配置

    Args:
        path: 配置文件路径

    Raises:
        ConfigError: 文件不存在、无法读取或内容无效
    """
    if not os.path.exists(path):
        raise ConfigError(f"配置文件不存在: {path}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            content = f.read()
    except OSError as e:
        raise ConfigError(f"无法读取配置文件 {path}: {e}")

    return load_config(content)


def _parse_products(products_dict) -> Products:
    if not isinstance(products_dict, dict):
        raise ConfigError("配置格式错误: 'products' 必须是字典类型")

    products = Products()
    for key in ('cdn', 'object_storage'):
        value = products_dict.get(key, False)
        if not isinstance(value, bool):
            raise ConfigError(f"配置格式错误: 'products.{key}' 必须是布尔值")
        setattr(products, key, value)

    return products


def _parse_object_storage(storage_dict) -> ObjectStorageConfig:
    if not isinstance(storage_dict, dict):
        raise ConfigError("配置格式错误: 'object_storage' 必须是字典类型")

    storage = ObjectStorageConfig()
    for key in ('endpoint', 'region', 'access_key', 'secret_key'):
        if key not in storage_dict or storage_dict[key] is None:
            continue
        value = storage_dict[key]
        if not isinstance(value, str):
            raise ConfigError(f"配置格式错误: 'object_storage.{key}' 必须是字符串")
        setattr(storage, key, value.strip())

    return storage


def merge_flags(config: Config,
                token: Optional[str] = None,
                with_cdn: bool = False,
                with_object: bool = False) -> Config:
    """
    合并命令行参数

    - token：命令行不为空时覆盖配置文件
    - 产品：命令行或配置文件任意一方启用即启用

    Returns:
        新的 Config 对象（不修改传入的 config）
    """
    products = Products(
        cdn=with_cdn or config.products.cdn,
        object_storage=with_object or config.products.object_storage,
    )
    return replace(config, token=token or config.token, products=products)


_DURATION_PART = re.compile(r'(\d+(?:\.\d*)?|\.\d+)(ms|s|m|h)')
_DURATION_UNITS = {'ms': 0.001, 's': 1.0, 'm': 60.0, 'h': 3600.0}


def parse_duration(value: str) -> float:
    """
    解析时长字符串，返回秒数

    支持 "5s"、"500ms"、"1m30s"、"2.5"（无单位按秒）

    Raises:
        ConfigError: 格式错误，或不是有限的正数（nan、inf）
    """
    text = str(value).strip()
    try:
        seconds = float(text)
    except ValueError:
        if not text or _DURATION_PART.sub('', text):
            raise ConfigError(f"无效的时长: {value!r}")
        seconds = sum(float(num) * _DURATION_UNITS[unit] for num, unit in _DURATION_PART.findall(text))

    if not math.isfinite(seconds) or seconds <= 0:
        raise ConfigError(f"时长必须是有限的正数: {value!r}")
    return seconds
