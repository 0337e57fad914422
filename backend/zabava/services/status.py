"""
状态词表解析

存储中的 used / visited / status 字段由不同时期的写入方产生，
取值可能是布尔、数字或各种字符串。这里集中维护词表，
并独立推导"已使用"和"已到访"两个标志。

注意："completed"、"redeemed" 等同时出现在两个词表中，
会同时置位两个标志，这是现有行为，需要产品确认后才能收紧。
"""
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from zabava.enums import UsageStatus, VisitStatus

USED_TOKENS = frozenset(
    {"true", "used", "redeemed", "completed", "yes", "awarded", "1"}
)

VISITED_TOKENS = frozenset(
    {
        "true",
        "visited",
        "completed",
        "redeemed",
        "checkedin",
        "checked-in",
        "checked_in",
        "approved",
        "yes",
        "1",
    }
)


@dataclass(frozen=True)
class RawStatus:
    usage: UsageStatus = UsageStatus.not_used
    visit: VisitStatus = VisitStatus.not_visited

    @property
    def used(self) -> bool:
        return self.usage is UsageStatus.used

    @property
    def visited(self) -> bool:
        return self.visit is VisitStatus.visited


def status_token(value: Any) -> str | None:
    """把任意字段值转成比较用的词：去空白、小写；None 返回 None"""
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip().lower()


def _matches(values: Iterable[Any], vocabulary: frozenset[str]) -> bool:
    return any(token in vocabulary for token in map(status_token, values) if token is not None)


def parse_raw_status(
    *,
    used_candidates: Iterable[Any],
    visited_candidates: Iterable[Any],
    visited_at: Iterable[Any] = (),
) -> RawStatus:
    """
    推导使用状态和到访状态

    Args:
        used_candidates: record.used, payload.used, record.status, payload.status
        visited_candidates: record.visited, payload.visited, record.status, payload.status
        visited_at: record.visitedAt, payload.visitedAt；任一非空即视为已到访

    Returns:
        RawStatus
    """
    used = _matches(used_candidates, USED_TOKENS)
    visited = _matches(visited_candidates, VISITED_TOKENS) or any(bool(v) for v in visited_at)
    return RawStatus(
        usage=UsageStatus.used if used else UsageStatus.not_used,
        visit=VisitStatus.visited if visited else VisitStatus.not_visited,
    )
