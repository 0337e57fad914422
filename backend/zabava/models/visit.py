"""
到访模型模块

Visit 是账本中的规范实体：一个客户与一个合作伙伴的一次互动。
除规范字段外，解码后的 payload 中的其他字段（票种、人数、城市等）
原样保留为额外字段，供仪表盘展示。
"""
from __future__ import annotations

from typing import Any

from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from .base import CamelModel

Number = int | float

BONUS_REWARD_TICKET = "BonusReward"  # 兑换奖励生成的到访在写入时使用的票种标记


class Visit(CamelModel):
    """
    规范到访记录

    字段说明：
    - partner_id: 规范化后的合作伙伴 ID（去空白、小写），用于查找和聚合
    - partner_display_id: 保留原始大小写的合作伙伴 ID，用于展示
    - visit_id: 稳定的到访 ID，旧版记录可能没有
    - total_price: 非负金额，解析失败时为 0
    - points_awarded: 合作伙伴确认后发放的积分，存在时优先于 estimated_points
    - estimated_points: 登记时的预估积分
    - used / visited: 独立推导的两个状态标志
    - status: 旧版自由文本状态，仅用于审计
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    partner_id: str
    partner_display_id: str = ""
    email: str = ""
    visit_id: str | None = None
    qr_key: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    scanned_at: str | None = None
    visited_at: str | None = None
    total_price: Number = Field(default=0, ge=0)
    points_awarded: Number = 0
    estimated_points: Number = 0
    used: bool = False
    visited: bool = False
    status: str | None = None
    original_payload: dict[str, Any] = Field(default_factory=dict)

    @property
    def effective_points(self) -> Number:
        """计入聚合的积分：points_awarded 非零时取之，否则取 estimated_points"""
        return self.points_awarded or self.estimated_points

    @property
    def ticket_type(self) -> str:
        extra = self.model_extra or {}
        value = extra.get("ticket") or extra.get("ticketType") or ""
        return str(value)

    def extra(self, name: str, default: Any = None) -> Any:
        """读取透传的 payload 字段"""
        return (self.model_extra or {}).get(name, default)

    @property
    def identity(self) -> tuple[str, str, str | None]:
        """去重键：(email, partner_id, visit_id)，无 visit_id 时用创建时间代替"""
        return (
            self.email.strip().lower(),
            self.partner_id,
            self.visit_id if self.visit_id else f"created:{self.created_at}",
        )


# 规范字段的所有名称（属性名 + 别名），透传 payload 时需要跳过
RESERVED_FIELD_NAMES = frozenset(
    name
    for field_name, info in Visit.model_fields.items()
    for name in (field_name, info.alias or field_name)
)
