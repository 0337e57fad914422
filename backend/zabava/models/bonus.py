"""
积分门户模型模块

用户维度的查询结果：积分余额、到访统计、积分历史、兑换记录和可兑换奖励。
"""
from __future__ import annotations

from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from zabava.enums import BonusVisitStatus, PointsHistoryType

from .base import CamelModel
from .records import FetchWarning
from .visit import Number


class UserPointsBalance(CamelModel):
    """用户积分概况"""
    email: str
    total_points: Number = 0  # 已确认到访获得的积分
    redeemed_points: Number = 0  # 兑换奖励消耗的积分
    available_points: Number = 0  # 可用积分，不小于 0


class PartnerVisitSummary(CamelModel):
    """单个合作伙伴的到访汇总"""
    partner_id: str
    partner_name: str
    total_visits: int = 0
    pending_visits: int = 0
    total_points: Number = 0  # 已确认积分
    pending_points: Number = 0  # 待确认的预估积分


class UserStatistics(CamelModel):
    total_visits: int = 0  # 已确认到访次数
    pending_visits: int = 0
    total_partners: int = 0
    total_redemptions: int = 0
    visits_by_partner: list[PartnerVisitSummary] = Field(default_factory=list)


class BonusVisit(CamelModel):
    """
    积分门户展示用的到访记录

    在规范 Visit 之上补齐展示字段，其余 payload 字段原样透传。
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    partner_id: str
    partner_name: str
    visit_id: str | None = None
    visit_date: str | None = None  # 没有任何日期字段时为空，历史中排在最后
    confirmed_date: str | None = None
    points_earned: Number = 0
    status: BonusVisitStatus
    ticket_type: str = "Standard"
    total_price: Number = 0


class PointsHistoryEntry(CamelModel):
    type: PointsHistoryType
    points: Number
    timestamp: str | None = None
    reward_name: str | None = None
    partner_id: str | None = None
    partner_name: str | None = None
    ticket_type: str | None = None
    status: str | None = None  # pending / confirmed


class Redemption(CamelModel):
    """兑换记录（redemption:<id> 哈希）"""
    id: str
    reward_id: str | None = None
    reward_name: str = ""
    points_spent: Number = 0
    redeemed_at: str | None = None
    status: str | None = None
    expires_at: str | None = None
    code: str | None = None


class Reward(CamelModel):
    """奖励目录条目（reward:<id> 哈希）"""
    id: str
    name: str = ""
    description: str = ""
    points_cost: Number = 0
    category: str = ""
    image_url: str | None = None
    available_for: list[str] = Field(default_factory=list)  # 限定的合作伙伴，空表示不限
    active: bool = True
    can_redeem: bool = False


class UserBonusSummary(CamelModel):
    """用户维度的查询结果"""
    user: UserPointsBalance
    statistics: UserStatistics = Field(default_factory=UserStatistics)
    visits: list[BonusVisit] = Field(default_factory=list)
    points_history: list[PointsHistoryEntry] = Field(default_factory=list)
    redemptions: list[Redemption] = Field(default_factory=list)
    available_rewards: list[Reward] = Field(default_factory=list)
    warnings: list[FetchWarning] = Field(default_factory=list, exclude=True)

    @classmethod
    def empty(cls, email: str) -> UserBonusSummary:
        return cls(user=UserPointsBalance(email=email))

