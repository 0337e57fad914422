"""
合作伙伴账本模型模块
"""
from __future__ import annotations

from pydantic import Field

from .base import CamelModel
from .metrics import EMPTY_METRICS, Metrics
from .records import FetchWarning
from .visit import Visit


class PartnerLedger(CamelModel):
    """
    合作伙伴维度的查询结果

    - partner_id: 调用方传入的原始标识
    - submissions: 按创建时间倒序的规范到访列表
    - metrics: 聚合指标
    - partner_label: 从到访记录中找到的第一个合作伙伴名称
    - warnings: 读取失败的键（默认不返回给终端用户，仅供运维诊断）
    """
    partner_id: str | None = None
    submissions: list[Visit] = Field(default_factory=list)
    metrics: Metrics = Field(default_factory=EMPTY_METRICS.model_copy)
    partner_label: str | None = None
    warnings: list[FetchWarning] = Field(default_factory=list, exclude=True)

    @classmethod
    def empty(cls, partner_id: str | None) -> PartnerLedger:
        """无数据时的结果：空列表 + 零值指标"""
        return cls(partner_id=partner_id)
