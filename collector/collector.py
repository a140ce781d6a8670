# -*- coding: utf-8 -*-
"""
Prometheus Collector 实现模块

功能：
- 管理已启用产品的 collector 列表（启动时通过 option 注册）
- 每次抓取时依次调用各 collector，统计耗时和是否成功
- 输出 exporter 自身的元指标
"""

import logging
import math
import time
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from prometheus_client.metrics_core import Metric
from prometheus_client.registry import Collector

from collector.base import ArvancloudCollector
from collector.context import DEFAULT_TIMEOUT, CollectorContext, MetricSink
from collector.descriptors import SCRAPE_DURATION_DESC, SCRAPE_SUCCESS_DESC, MetricDescriptor, ValueType
from config.loader import Config, ObjectStorageConfig
from provider.arvancloud.usage_collector import CDNUsageCollector, ObjectStorageUsageCollector

logger = logging.getLogger(__name__)


Option = Callable[['ArvancloudExporterCollector'], None]


def with_cdn() -> Option:
    """启用 CDN 指标"""
    def apply(c: 'ArvancloudExporterCollector'):
        c._collectors.append(CDNUsageCollector())
    return apply


def with_object(storage_config: Optional[ObjectStorageConfig] = None) -> Option:
    """启用 Object Storage 指标"""
    def apply(c: 'ArvancloudExporterCollector'):
        c._collectors.append(ObjectStorageUsageCollector(storage_config or ObjectStorageConfig()))
    return apply


def with_collector(collector: ArvancloudCollector) -> Option:
    """注册任意 ArvancloudCollector 实现"""
    def apply(c: 'ArvancloudExporterCollector'):
        c._collectors.append(collector)
    return apply


def with_timeout(seconds: float) -> Option:
    """设置连接上游 API 的超时（秒）"""
    def apply(c: 'ArvancloudExporterCollector'):
        c._timeout = float(seconds)
    return apply


class ArvancloudExporterCollector(Collector):
    """
    Arvancloud 指标收集器（注册到 CollectorRegistry）

    功能：
    - describe：输出两个元指标描述符，再按注册顺序输出各 collector 的描述符
    - collect：执行一次完整采集，遇到第一个失败的 collector 立即停止
    """

    def __init__(self, cfg: Config, *options: Option):
        """
        初始化收集器

        Args:
            cfg: 配置（token）
            options: with_cdn() / with_object() / with_timeout() 等

        Raises:
            ValueError: timeout 不是有限的正数
        """
        logger.info("Setting up collector for products")

        self._token = cfg.token
        self._timeout = DEFAULT_TIMEOUT
        self._collectors: Sequence[ArvancloudCollector] = []

        for option in options:
            option(self)

        if not math.isfinite(self._timeout) or self._timeout <= 0:
            raise ValueError(f"timeout 必须是有限的正数: {self._timeout}")

        # 启动后不再允许注册
        self._collectors = tuple(self._collectors)

        logger.info(f"已启用 {len(self._collectors)} 个 collector: "
                    f"{[co.get_collector_type() for co in self._collectors]}")

    @property
    def collectors(self) -> Tuple[ArvancloudCollector, ...]:
        return self._collectors

    @property
    def timeout(self) -> float:
        return self._timeout

    def describe_into(self, sink: List[MetricDescriptor]):
        """把所有描述符写入 sink"""
        sink.append(SCRAPE_DURATION_DESC)
        sink.append(SCRAPE_SUCCESS_DESC)

        for co in self._collectors:
            sink.extend(co.describe())

    def describe(self) -> Iterable[Metric]:
        descs: List[MetricDescriptor] = []
        self.describe_into(descs)
        return [desc.describe() for desc in descs]

    def collect(self) -> Iterable[Metric]:
        sink = MetricSink()
        self.collect_into(sink)
        return sink.families()

    def collect_into(self, sink: MetricSink):
        """
        执行一次完整采集

        collector 的异常不会继续向上抛出，只体现在
        arvancloud_scrape_collector_success 和日志中。

        Args:
            sink: 本次采集的输出通道
        """
        begin = time.monotonic()

        err = None
        try:
            self._connect_and_collect(sink)
        except Exception as e:
            err = e

        duration = time.monotonic() - begin
        if err is not None:
            logger.error(f"ERROR: collector failed after {duration:f}s: {err}")
            success = 0.0
        else:
            logger.debug(f"OK: collector succeeded after {duration:f}s.")
            success = 1.0

        sink.add(SCRAPE_DURATION_DESC, ValueType.GAUGE, duration)
        sink.add(SCRAPE_SUCCESS_DESC, ValueType.GAUGE, success)

    def _connect_and_collect(self, sink: MetricSink):
        ctx = CollectorContext(sink=sink, token=self._token, timeout=self._timeout)

        # 第一个失败的 collector 之后的 collector 不再执行
        # TODO: 各产品互不依赖，可以改为全部执行后汇总错误
        for co in self._collectors:
            try:
                co.collect(ctx)
            except Exception as e:
                logger.warning(f"[{co.get_collector_type()}] 采集失败: {e}")
                raise
