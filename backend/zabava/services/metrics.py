"""
指标聚合

账本先按创建时间倒序排序（缺失或无法解析的时间按纪元 0 处理，排在最后），
再折叠成 Metrics。
"""
from __future__ import annotations

import math
import re
from collections.abc import Iterable, Sequence
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any

from zabava.models import BONUS_REWARD_TICKET, EMPTY_METRICS, Metrics, Visit
from zabava.models.visit import Number

_NUMERIC_RE = re.compile(r"^-?\d+(\.\d+)?$")


def parse_timestamp(value: Any) -> float:
    """
    解析时间戳为毫秒数，无法解析时返回 0

    支持 ISO-8601 字符串（含 Z 后缀、仅日期）、毫秒时间戳数字、RFC 2822 字符串。
    不带时区的时间按 UTC 处理。
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, int | float):
        return float(value) if math.isfinite(value) else 0.0
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if not text:
            return 0.0
        if _NUMERIC_RE.match(text):
            return float(text)
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            try:
                parsed = parsedate_to_datetime(text)
            except (TypeError, ValueError):
                return 0.0
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp() * 1000


def sort_visits(visits: Iterable[Visit]) -> list[Visit]:
    """按 created_at 倒序的稳定排序"""
    return sorted(visits, key=lambda v: parse_timestamp(v.created_at), reverse=True)


def round_half_up(value: float) -> int:
    """与仪表盘一致的四舍五入（.5 向上取整）"""
    return math.floor(value + 0.5)


def _clean(number: Number) -> Number:
    if isinstance(number, float) and number.is_integer():
        return int(number)
    return number


def aggregate_metrics(visits: Sequence[Visit]) -> Metrics:
    """
    把到访账本折叠成聚合指标

    - revenue: total_price 之和
    - points: 有效积分之和（points_awarded 非零时取之，否则 estimated_points）
    - bonus_redemptions: 票种严格等于 BonusReward 的到访数
    - 平均值四舍五入为整数，count 为 0 时为 0
    """
    count = len(visits)
    if count == 0:
        return EMPTY_METRICS.model_copy()

    revenue: Number = 0
    points: Number = 0
    used = 0
    visited = 0
    bonus_redemptions = 0
    for visit in visits:
        revenue += visit.total_price
        points += visit.effective_points
        if visit.used:
            used += 1
        if visit.visited:
            visited += 1
        if visit.ticket_type == BONUS_REWARD_TICKET:
            bonus_redemptions += 1

    return Metrics(
        count=count,
        used=used,
        unused=count - used,
        visited=visited,
        not_visited=count - visited,
        revenue=_clean(revenue),
        points=_clean(points),
        bonus_redemptions=bonus_redemptions,
        average_revenue=round_half_up(revenue / count),
        average_points=round_half_up(points / count),
    )
