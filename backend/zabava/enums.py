"""
枚举类型定义模块

定义到访账本中使用的所有枚举类型。
所有枚举都继承自 str 和 Enum，这样既可以用作字符串，又具有枚举的特性。
"""
from enum import Enum  # 枚举类型，用于定义固定的选项集合


class UsageStatus(str, Enum):
    """
    票券/奖励使用状态

    - used: 已使用（已兑换、已完成）
    - not_used: 未使用
    """
    used = "used"
    not_used = "not_used"


class VisitStatus(str, Enum):
    """
    到访确认状态

    - visited: 合作伙伴已确认客户到店
    - not_visited: 尚未确认
    """
    visited = "visited"
    not_visited = "not_visited"


class RecordSource(str, Enum):
    """
    原始记录的存储方案

    - visit_set: 新方案，partner:visits:<id> 集合 + qr:<email>:<partnerId>:<visitId> 哈希
    - legacy_email: 旧方案，partner:<id> 邮箱集合 + qr:email:<email> 哈希（每个邮箱一条）
    """
    visit_set = "visit_set"
    legacy_email = "legacy_email"


class BonusVisitStatus(str, Enum):
    """
    积分门户中展示的到访状态

    - visited: 已确认，积分已入账
    - pending: 待确认，积分为预估值
    """
    visited = "visited"
    pending = "pending"


class PointsHistoryType(str, Enum):
    """
    积分历史条目类型

    - earned: 到访确认获得积分
    - pending: 待确认的预估积分
    - redemption: 兑换奖励消耗积分
    """
    earned = "earned"
    pending = "pending"
    redemption = "redemption"
