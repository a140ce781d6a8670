# -*- coding: utf-8 -*-
"""
Collector 接口定义

功能：
- 定义 ArvancloudCollector 接口（每个产品一个实现）
- 主流程只依赖接口，不关心具体实现
"""

from abc import ABC, abstractmethod
from typing import List

from collector.context import CollectorContext
from collector.descriptors import MetricDescriptor


class ArvancloudCollector(ABC):
    """
    产品指标收集器接口

    功能：
    - describe：声明该 collector 可能输出的所有指标
    - collect：调用上游 API 一次，把样本写入上下文的 sink
    """

    @abstractmethod
    def describe(self) -> List[MetricDescriptor]:
        """
        返回该 collector 的所有指标描述符

        不能调用上游 API，不能有副作用，每次返回的内容必须相同。

        Returns:
            MetricDescriptor 列表
        """
        pass

    @abstractmethod
    def collect(self, ctx: CollectorContext):
        """
        执行一次采集

        失败时直接抛出异常。已写入 sink 的样本不会被撤回。

        Args:
            ctx: 本次采集的上下文（sink、token、timeout）
        """
        pass

    def get_collector_type(self) -> str:
        """
        获取 Collector 类型（用于日志和标识）

        Returns:
            类型名称，如 "cdn", "object_storage"
        """
        return self.__class__.__name__
