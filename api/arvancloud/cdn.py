# -*- coding: utf-8 -*-
"""
Arvancloud CDN API 客户端模块

功能：
- 封装 CDN API 调用（域名列表、流量报表）
- 返回标准化的数据
"""

import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = 'https://napi.arvancloud.ir/cdn/4.0'


class ArvancloudAPIError(Exception):
    """Arvancloud API 调用失败（网络错误、鉴权失败、响应格式错误）"""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class CDNClient:
    """
    CDN API 客户端

    功能：
    - 调用 CDN API 获取域名和流量数据
    - 所有请求使用同一个 API Key 和超时
    """

    def __init__(self, token: str, timeout: float = 5.0, base_url: str = DEFAULT_BASE_URL):
        """
        初始化 CDN 客户端

        Args:
            token: API Key（控制台复制的完整值，如 "Apikey xxxx"）
            timeout: 请求超时（秒）
            base_url: API 地址
        """
        self.token = token
        self.timeout = timeout
        self.base_url = base_url.rstrip('/')

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        发送 GET 请求并解析 JSON

        Raises:
            ArvancloudAPIError: 请求失败或响应不是 JSON 对象
        """
        url = f"{self.base_url}{path}"
        if params:
            url = f"{url}?{urllib.parse.urlencode(params)}"

        request = urllib.request.Request(url, headers={
            'Authorization': self.token,
            'Accept': 'application/json',
        })

        logger.debug(f"调用 CDN API: GET {url}")
        try:
            with urllib.request.urlopen(request, timeout=self.timeout) as response:
                body = response.read().decode('utf-8')
        except urllib.error.HTTPError as e:
            logger.error(f"CDN API 调用失败: GET {path} -> HTTP {e.code}")
            raise ArvancloudAPIError(f"GET {path}: HTTP {e.code} {e.reason}", status=e.code)
        except (urllib.error.URLError, OSError) as e:
            logger.error(f"CDN API 调用失败: GET {path}: {e}")
            raise ArvancloudAPIError(f"GET {path}: {e}")

        try:
            payload = json.loads(body)
        except ValueError as e:
            raise ArvancloudAPIError(f"GET {path}: 响应不是有效的 JSON: {e}")

        if not isinstance(payload, dict):
            raise ArvancloudAPIError(f"GET {path}: 响应格式错误")
        return payload

    def list_domains(self, per_page: int = 100) -> List[Dict[str, Any]]:
        """
        获取所有 CDN 域名（支持分页）

        Returns:
            域名列表，每个域名是一个字典（包含 name、status 等）
        """
        all_domains = []
        page = 1

        while True:
            payload = self._get('/domains', {'page': page, 'per_page': per_page})

            items = payload.get('data') or []
            if not isinstance(items, list):
                raise ArvancloudAPIError("GET /domains: 'data' 必须是列表")
            all_domains.extend(items)

            meta = payload.get('meta') or {}
            if not isinstance(meta, dict):
                raise ArvancloudAPIError("GET /domains: 'meta' 必须是对象")
            last_page = meta.get('last_page') or page
            if not isinstance(last_page, int) or isinstance(last_page, bool):
                raise ArvancloudAPIError(f"GET /domains: 'last_page' 必须是整数: {last_page!r}")
            if page >= last_page:
                break
            page += 1

        logger.debug(f"CDN 域名列表获取完成，共 {len(all_domains)} 个域名")
        return all_domains

    def get_traffic_report(self, domain: str, period: str = '1h') -> Dict[str, float]:
        """
        获取域名的流量报表

        Args:
            domain: 域名
            period: 统计周期（如 "1h", "24h"）

        Returns:
            {'traffic': ..., 'traffic_saved': ..., 'requests': ..., 'requests_saved': ...}
        """
        path = f"/domains/{urllib.parse.quote(domain)}/reports/traffics"
        payload = self._get(path, {'period': period})

        data = payload.get('data') or {}
        statistics = _as_dict(path, 'data', data).get('statistics') or {}
        statistics = _as_dict(path, 'statistics', statistics)
        traffics = _as_dict(path, 'traffics', statistics.get('traffics') or {})
        requests = _as_dict(path, 'requests', statistics.get('requests') or {})

        try:
            return {
                'traffic': float(traffics.get('total') or 0),
                'traffic_saved': float(traffics.get('saved') or 0),
                'requests': float(requests.get('total') or 0),
                'requests_saved': float(requests.get('saved') or 0),
            }
        except (TypeError, ValueError) as e:
            raise ArvancloudAPIError(f"GET {path}: 流量数据格式错误: {e}")


def _as_dict(path: str, field: str, value: Any) -> Dict[str, Any]:
    """校验响应中的字段是对象，否则抛出 ArvancloudAPIError"""
    if not isinstance(value, dict):
        raise ArvancloudAPIError(f"GET {path}: '{field}' 必须是对象")
    return value
