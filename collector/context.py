# -*- coding: utf-8 -*-
"""
采集上下文模块

功能：
- MetricSink：一次采集中所有样本的输出通道（只写）
- CollectorContext：一次采集只创建一个，传给每个 collector
"""

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from prometheus_client.metrics_core import Metric

from collector.descriptors import MetricDescriptor, ValueType


# 连接上游 API 的默认超时（秒）
DEFAULT_TIMEOUT = 5.0


class MetricSink:
    """
    指标输出通道

    同一个描述符的样本合并到同一个指标族中，按第一次写入的顺序输出。
    """

    def __init__(self):
        self._families: Dict[str, Tuple[MetricDescriptor, Metric]] = {}

    def add(self, desc: MetricDescriptor, value_type: ValueType, value: float, *label_values: str):
        """
        写入一个样本

        Args:
            desc: 指标描述符
            value_type: 样本值类型，必须与 desc.value_type 一致
            value: 样本值
            label_values: 标签值，顺序与 desc.label_names 一致

        Raises:
            ValueError: 值类型或标签值数量错误，或同名指标来自不同的描述符
        """
        desc.check_sample(value_type, label_values)

        entry = self._families.get(desc.name)
        if entry is None:
            entry = (desc, desc.new_family())
            self._families[desc.name] = entry
        elif entry[0] != desc:
            raise ValueError(f"{desc.name}: 同名指标已由另一个描述符写入")

        entry[1].add_metric([str(v) for v in label_values], float(value))

    def families(self) -> List[Metric]:
        """返回已写入的指标族"""
        return [family for _, family in self._families.values()]

    def __len__(self):
        return len(self._families)


@dataclass
class CollectorContext:
    """
    单次采集的上下文

    sink 归本次采集独占；token 和 timeout 只读。
    timeout 只是建议值，由各 collector 自行用于上游请求。
    """
    sink: MetricSink = field(repr=False)
    token: str = field(default='', repr=False)
    timeout: float = DEFAULT_TIMEOUT

    def emit(self, desc: MetricDescriptor, value_type: ValueType, value: float, *label_values: str):
        """向 sink 写入一个样本"""
        self.sink.add(desc, value_type, value, *label_values)

    def gauge(self, desc: MetricDescriptor, value: float, *label_values: str):
        self.emit(desc, ValueType.GAUGE, value, *label_values)

    def counter(self, desc: MetricDescriptor, value: float, *label_values: str):
        self.emit(desc, ValueType.COUNTER, value, *label_values)
