"""
数据模型定义模块

模型按功能拆分：
- records.py: 键值存储中的原始记录（新旧两种方案）
- visit.py: 规范到访实体
- metrics.py: 聚合指标
- ledger.py: 合作伙伴账本结果
- bonus.py: 用户积分门户结果
"""
from .base import CamelModel
from .bonus import (
    BonusVisit,
    PartnerVisitSummary,
    PointsHistoryEntry,
    Redemption,
    Reward,
    UserBonusSummary,
    UserPointsBalance,
    UserStatistics,
)
from .ledger import PartnerLedger
from .metrics import EMPTY_METRICS, Metrics
from .records import (
    FetchWarning,
    LegacyEmailRecord,
    LoadedRecord,
    VisitKeyContext,
    VisitSetRecord,
)
from .visit import BONUS_REWARD_TICKET, Visit

__all__ = [
    "CamelModel",
    "Visit",
    "BONUS_REWARD_TICKET",
    "Metrics",
    "EMPTY_METRICS",
    "PartnerLedger",
    "FetchWarning",
    "VisitKeyContext",
    "VisitSetRecord",
    "LegacyEmailRecord",
    "LoadedRecord",
    "UserBonusSummary",
    "UserPointsBalance",
    "UserStatistics",
    "PartnerVisitSummary",
    "BonusVisit",
    "PointsHistoryEntry",
    "Redemption",
    "Reward",
]
