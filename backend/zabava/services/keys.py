"""
存储键解析

根据合作伙伴 ID 或用户邮箱，列出所有可能存放相关数据的键。
历史上的写入方对大小写并不一致，所以同一个合作伙伴会探测多个大小写变体。

键名约定（必须与已有数据保持一致）：
- partner:visits:<partnerId>          新方案：到访键集合
- qr:<email>:<partnerId>:<visitId>    新方案：单次到访哈希
- qr:email:<email>                    旧方案：每个邮箱一条哈希
- partner:<partnerId>                 旧方案：邮箱集合
- user:visits:<email>                 用户维度的到访键集合
- user:redemptions:<email>            用户兑换记录 ID 集合
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from zabava.models import VisitKeyContext

VISIT_KEY_PREFIX = "qr:"
PARTNER_VISITS_PREFIX = "partner:visits:"
PARTNER_LEGACY_PREFIX = "partner:"
LEGACY_RECORD_PREFIX = "qr:email:"
USER_VISITS_PREFIX = "user:visits:"
USER_REDEMPTIONS_PREFIX = "user:redemptions:"

# visitId 允许包含冒号，email 和 partnerId 不允许
_VISIT_KEY_RE = re.compile(r"^qr:([^:]+):([^:]+):(.+)$")


@dataclass(frozen=True)
class PartnerKeys:
    """合作伙伴查询需要探测的键"""
    normalized_id: str = ""
    visit_set_keys: tuple[str, ...] = ()
    legacy_set_keys: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.visit_set_keys and not self.legacy_set_keys


@dataclass(frozen=True)
class UserKeys:
    """用户查询需要探测的键"""
    email: str = ""
    visit_set_keys: tuple[str, ...] = ()
    legacy_record_key: str | None = None
    redemption_set_key: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.email


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def normalize_partner_id(partner_id: Any) -> str:
    """规范化合作伙伴 ID：去空白、小写"""
    return _text(partner_id).strip().lower()


def normalize_email(email: Any) -> str:
    return _text(email).strip().lower()


def _ordered_unique(values: list[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(v for v in values if v))


def resolve_partner_keys(partner_id: Any) -> PartnerKeys:
    """
    解析合作伙伴查询的候选键

    到访集合键：原始值、规范值、原始值小写、原始值大写、规范值大写（各自去空白、去重、保序）。
    旧版集合键：partner:<规范值>，以及与规范值不同时的 partner:<原始值>。

    空标识返回空结果，调用方按"无数据"处理。
    """
    original = _text(partner_id)
    normalized = normalize_partner_id(partner_id)
    if not normalized:
        return PartnerKeys()

    variants = [
        original.strip(),
        normalized,
        original.lower().strip(),
        original.upper().strip(),
        normalized.upper(),
    ]
    visit_set_keys = _ordered_unique([f"{PARTNER_VISITS_PREFIX}{v}" for v in variants if v])

    legacy = [f"{PARTNER_LEGACY_PREFIX}{normalized}"]
    if original and original != normalized:
        legacy.append(f"{PARTNER_LEGACY_PREFIX}{original}")

    return PartnerKeys(
        normalized_id=normalized,
        visit_set_keys=visit_set_keys,
        legacy_set_keys=_ordered_unique(legacy),
    )


def resolve_user_keys(email: Any) -> UserKeys:
    """
    解析用户查询的候选键

    邮箱规范化为去空白小写；到访集合键同时探测原始拼写和规范拼写。
    合作伙伴集合要等读到旧版记录里的 partnerId 后才能确定，由加载器完成。
    """
    original = _text(email).strip()
    normalized = normalize_email(email)
    if not normalized:
        return UserKeys()

    variants = _ordered_unique([original, normalized])
    return UserKeys(
        email=normalized,
        visit_set_keys=tuple(f"{USER_VISITS_PREFIX}{v}" for v in variants),
        legacy_record_key=legacy_record_key(normalized),
        redemption_set_key=f"{USER_REDEMPTIONS_PREFIX}{normalized}",
    )


def legacy_record_key(email: str) -> str:
    return f"{LEGACY_RECORD_PREFIX}{email}"


def is_visit_member(member: Any) -> bool:
    """到访集合成员必须是以 qr: 开头的非空字符串"""
    return isinstance(member, str) and member.startswith(VISIT_KEY_PREFIX)


def parse_visit_key(key: str) -> VisitKeyContext | None:
    """解析 qr:<email>:<partnerId>:<visitId>，不匹配时返回 None"""
    match = _VISIT_KEY_RE.match(key)
    if match is None:
        return None
    email, partner_id, visit_id = match.groups()
    return VisitKeyContext(email=email, partner_id=partner_id, visit_id=visit_id or None)


def visit_key_identity(key: str) -> tuple[str, ...]:
    """
    到访键的去重标识

    同一次到访的大小写变体（如 qr:a@x.com:LZ001:v1 与 qr:a@x.com:lz001:v1）
    归为同一组；无法解析的键各自成组。
    """
    context = parse_visit_key(key)
    if context is None:
        return ("key", key)
    return (
        normalize_email(context.email),
        normalize_partner_id(context.partner_id),
        context.visit_id or "",
    )
