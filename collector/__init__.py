# -*- coding: utf-8 -*-
"""
Prometheus Collector 模块

功能：
- 定义产品 collector 接口和采集上下文
- 定义元指标描述符
- ArvancloudExporterCollector 见 collector.collector
"""

from .descriptors import MetricDescriptor, ValueType, SCRAPE_DURATION_DESC, SCRAPE_SUCCESS_DESC
from .context import DEFAULT_TIMEOUT, CollectorContext, MetricSink
from .base import ArvancloudCollector
