# -*- coding: utf-8 -*-
"""
指标描述符定义模块

功能：
- 定义 MetricDescriptor（指标名称、帮助文本、标签）
- 定义 exporter 自身的元指标（采集耗时、采集是否成功）
"""

from dataclasses import dataclass
from enum import Enum
from typing import Sequence, Tuple

from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily
from prometheus_client.metrics_core import Metric

NAMESPACE = 'arvancloud'


class ValueType(Enum):
    """样本值类型"""
    GAUGE = "gauge"
    COUNTER = "counter"


def build_fqname(namespace: str, subsystem: str, name: str) -> str:
    """
    拼接完整指标名称，空的部分会被忽略

    Args:
        namespace: 命名空间，如 "arvancloud"
        subsystem: 子系统，如 "scrape"
        name: 指标名称

    Returns:
        如 "arvancloud_scrape_collector_success"
    """
    if not name:
        return ''
    return '_'.join(part for part in (namespace, subsystem, name) if part)


@dataclass(frozen=True)
class MetricDescriptor:
    """
    指标描述符

    只描述指标本身（名称、帮助文本、标签名、值类型），不携带任何值。
    创建后不可修改。
    """
    name: str
    documentation: str
    label_names: Tuple[str, ...] = ()
    value_type: ValueType = ValueType.GAUGE

    def __post_init__(self):
        # 允许传入 list，统一存为 tuple
        object.__setattr__(self, 'label_names', tuple(self.label_names))

    def describe(self) -> Metric:
        """返回不含样本的指标族，用于 describe 阶段"""
        return self.new_family()

    def new_family(self) -> Metric:
        """
        按声明的值类型创建空的指标族

        Returns:
            GaugeMetricFamily 或 CounterMetricFamily
        """
        if self.value_type == ValueType.COUNTER:
            return CounterMetricFamily(self.name, self.documentation, labels=list(self.label_names))
        return GaugeMetricFamily(self.name, self.documentation, labels=list(self.label_names))

    def check_sample(self, value_type: ValueType, label_values: Sequence[str]):
        """
        校验样本的值类型和标签值数量

        Raises:
            ValueError: 值类型与声明不一致，或标签值数量与标签名数量不一致
        """
        if value_type != self.value_type:
            raise ValueError(
                f"{self.name}: 声明为 {self.value_type.value}，不能作为 {value_type.value} 写入"
            )
        if len(label_values) != len(self.label_names):
            raise ValueError(
                f"{self.name}: inconsistent label cardinality: "
                f"expected {len(self.label_names)} label values but got {len(label_values)}"
            )


# Exporter 自身指标
SCRAPE_DURATION_DESC = MetricDescriptor(
    build_fqname(NAMESPACE, 'scrape', 'collector_duration_seconds'),
    'arvancloud: duration of a collector scrape',
)

SCRAPE_SUCCESS_DESC = MetricDescriptor(
    build_fqname(NAMESPACE, 'scrape', 'collector_success'),
    'arvancloud: whether a collector succeeded',
)
