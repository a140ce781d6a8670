# -*- coding: utf-8 -*-
"""
Arvancloud 产品 Usage Collector 实现

功能：
- CDNUsageCollector：CDN 域名和流量指标
- ObjectStorageUsageCollector：Object Storage bucket 容量指标
"""

import logging
from typing import Callable, List

from api.arvancloud.cdn import CDNClient
from api.arvancloud.object_storage import ObjectStorageClient
from collector.base import ArvancloudCollector
from collector.context import CollectorContext
from collector.descriptors import NAMESPACE, MetricDescriptor, build_fqname
from config.loader import ObjectStorageConfig

logger = logging.getLogger(__name__)


class CDNUsageCollector(ArvancloudCollector):
    """
    CDN Usage Collector

    功能：
    - 获取账号下所有 CDN 域名
    - 按域名输出流量和请求数（最近一个统计周期）
    """

    def __init__(self, client_factory: Callable[..., CDNClient] = CDNClient, period: str = '1h'):
        """
        Args:
            client_factory: 根据 (token, timeout) 创建 CDN 客户端
            period: 流量报表统计周期
        """
        self.client_factory = client_factory
        self.period = period

        self.domain_info_desc = MetricDescriptor(
            build_fqname(NAMESPACE, 'cdn', 'domain_info'),
            'arvancloud: CDN domain, value is always 1',
            ['domain', 'status'],
        )
        self.traffic_desc = MetricDescriptor(
            build_fqname(NAMESPACE, 'cdn', 'traffic_bytes'),
            'arvancloud: CDN traffic in bytes during the report period',
            ['domain'],
        )
        self.traffic_saved_desc = MetricDescriptor(
            build_fqname(NAMESPACE, 'cdn', 'traffic_saved_bytes'),
            'arvancloud: CDN traffic served from cache in bytes during the report period',
            ['domain'],
        )
        self.requests_desc = MetricDescriptor(
            build_fqname(NAMESPACE, 'cdn', 'requests'),
            'arvancloud: CDN requests during the report period',
            ['domain'],
        )
        self.requests_saved_desc = MetricDescriptor(
            build_fqname(NAMESPACE, 'cdn', 'requests_saved'),
            'arvancloud: CDN requests served from cache during the report period',
            ['domain'],
        )

    def describe(self) -> List[MetricDescriptor]:
        return [
            self.domain_info_desc,
            self.traffic_desc,
            self.traffic_saved_desc,
            self.requests_desc,
            self.requests_saved_desc,
        ]

    def collect(self, ctx: CollectorContext):
        client = self.client_factory(ctx.token, ctx.timeout)

        domains = client.list_domains()
        logger.debug(f"开始收集 CDN 指标，共 {len(domains)} 个域名")

        for domain in domains:
            name = domain.get('name')
            if not name:
                logger.warning(f"CDN 域名缺少 name 字段，跳过: {domain}")
                continue

            ctx.gauge(self.domain_info_desc, 1, name, domain.get('status') or 'unknown')

            report = client.get_traffic_report(name, self.period)
            ctx.gauge(self.traffic_desc, report['traffic'], name)
            ctx.gauge(self.traffic_saved_desc, report['traffic_saved'], name)
            ctx.gauge(self.requests_desc, report['requests'], name)
            ctx.gauge(self.requests_saved_desc, report['requests_saved'], name)

    def get_collector_type(self) -> str:
        return "cdn"


class ObjectStorageUsageCollector(ArvancloudCollector):
    """
    Object Storage Usage Collector

    功能：
    - 获取所有 bucket
    - 按 bucket 输出对象数量和容量
    """

    def __init__(self,
                 storage_config: ObjectStorageConfig,
                 client_factory: Callable[..., ObjectStorageClient] = ObjectStorageClient):
        """
        Args:
            storage_config: endpoint 和 Access Key / Secret Key
            client_factory: 创建 Object Storage 客户端，参数同 ObjectStorageClient
        """
        self.storage_config = storage_config
        self.client_factory = client_factory

        self.buckets_desc = MetricDescriptor(
            build_fqname(NAMESPACE, 'object_storage', 'buckets'),
            'arvancloud: number of object storage buckets',
        )
        self.bucket_objects_desc = MetricDescriptor(
            build_fqname(NAMESPACE, 'object_storage', 'bucket_objects'),
            'arvancloud: number of objects in a bucket',
            ['bucket'],
        )
        self.bucket_size_desc = MetricDescriptor(
            build_fqname(NAMESPACE, 'object_storage', 'bucket_size_bytes'),
            'arvancloud: total size of objects in a bucket in bytes',
            ['bucket'],
        )

    def describe(self) -> List[MetricDescriptor]:
        return [self.buckets_desc, self.bucket_objects_desc, self.bucket_size_desc]

    def collect(self, ctx: CollectorContext):
        cfg = self.storage_config
        client = self.client_factory(
            endpoint=cfg.endpoint,
            region=cfg.region,
            access_key=cfg.access_key,
            secret_key=cfg.secret_key,
            timeout=ctx.timeout,
        )

        buckets = client.list_buckets()
        ctx.gauge(self.buckets_desc, len(buckets))

        for bucket in buckets:
            object_count, size_bytes = client.get_bucket_usage(bucket)
            ctx.gauge(self.bucket_objects_desc, object_count, bucket)
            ctx.gauge(self.bucket_size_desc, size_bytes, bucket)

    def get_collector_type(self) -> str:
        return "object_storage"
