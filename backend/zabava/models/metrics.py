"""
聚合指标模型模块
"""
from __future__ import annotations

from .base import CamelModel
from .visit import Number


class Metrics(CamelModel):
    """
    到访账本的聚合指标

    每次请求重新计算，从不持久化。
    不变量：unused = count - used，not_visited = count - visited；
    count 为 0 时平均值为 0。
    """
    count: int = 0
    used: int = 0
    unused: int = 0
    visited: int = 0
    not_visited: int = 0
    revenue: Number = 0
    points: Number = 0
    bonus_redemptions: int = 0
    average_revenue: int = 0
    average_points: int = 0


# 空账本对应的零值指标
EMPTY_METRICS = Metrics()
