"""
到访规范化

把一条合并后的原始记录（及其解码后的 payload、键名上下文）
转换成一个规范的 Visit。各字段按固定的优先顺序取值。
"""
from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from typing import Any

from zabava.models import Visit, VisitKeyContext
from zabava.models.visit import RESERVED_FIELD_NAMES, Number
from zabava.services.keys import normalize_partner_id
from zabava.services.payload import decode_payload
from zabava.services.status import parse_raw_status


def first_present(*values: Any) -> Any:
    """返回第一个不为 None 的值（空字符串、0 也算存在）"""
    for value in values:
        if value is not None:
            return value
    return None


def first_truthy(*values: Any) -> Any:
    for value in values:
        if value:
            return value
    return None


def to_number(value: Any) -> Number:
    """
    转成数字，无法解析或非有限值时返回 0

    整数值返回 int，保证 JSON 输出为 500 而不是 500.0。
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        number = value
    else:
        text = str(value).strip()
        if not text:
            return 0
        try:
            number = float(text)
        except ValueError:
            return 0
    if not math.isfinite(number):
        return 0
    return int(number) if number.is_integer() else number


def _as_text(value: Any) -> str | None:
    if value is None or value == "":
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value)


def _canonical_partner(candidates: Iterable[Any]) -> tuple[str, str]:
    """返回 (规范 ID, 展示 ID)，都取第一个非空候选"""
    canonical = ""
    display = ""
    for candidate in candidates:
        if candidate is None:
            continue
        if not canonical:
            canonical = normalize_partner_id(candidate)
        if not display:
            display = str(candidate).strip()
        if canonical and display:
            break
    return canonical, display


def normalize_visit(
    record: Mapping[str, Any],
    *,
    payload: Mapping[str, Any] | None = None,
    context: VisitKeyContext | None = None,
    requested_partner_id: Any = None,
    source_key: str | None = None,
) -> Visit:
    """
    生成规范 Visit

    Args:
        record: 合并后的原始哈希记录
        payload: 已解码的 payload，None 时从 record 解码
        context: 从来源键名解析出的 email / partnerId / visitId
        requested_partner_id: 调用方查询时传入的合作伙伴标识
        source_key: 记录来源键

    Returns:
        Visit
    """
    if payload is None:
        payload = decode_payload(record)
    context = context or VisitKeyContext()

    total_price = to_number(
        first_present(
            payload.get("totalPrice"),
            payload.get("price"),
            record.get("totalPrice"),
            record.get("price"),
        )
    )
    estimated_points = to_number(
        first_present(
            payload.get("estimatedPoints"),
            payload.get("points"),
            record.get("estimatedPoints"),
        )
    )
    points_awarded = to_number(
        first_present(record.get("pointsAwarded"), payload.get("pointsAwarded"))
    )

    status = parse_raw_status(
        used_candidates=(
            record.get("used"),
            payload.get("used"),
            record.get("status"),
            payload.get("status"),
        ),
        visited_candidates=(
            record.get("visited"),
            payload.get("visited"),
            record.get("status"),
            payload.get("status"),
        ),
        visited_at=(record.get("visitedAt"), payload.get("visitedAt")),
    )

    partner_id, partner_display_id = _canonical_partner(
        (
            record.get("partnerId"),
            context.partner_id or None,
            normalize_partner_id(requested_partner_id) or None,
            requested_partner_id,
        )
    )

    email = first_truthy(
        record.get("email"),
        payload.get("email"),
        context.email,
        record.get("normalizedEmail"),
    )

    created_at = first_truthy(
        record.get("createdAt"),
        payload.get("createdAt"),
        record.get("updatedAt"),
        payload.get("updatedAt"),
        record.get("visitedAt"),
        payload.get("visitedAt"),
    )

    passthrough = {k: v for k, v in payload.items() if k not in RESERVED_FIELD_NAMES}

    return Visit.model_validate(
        {
            **passthrough,
            "partnerId": partner_id,
            "partnerDisplayId": partner_display_id,
            "email": str(email or ""),
            # 到访集合记录以键名中的 visitId 为准，合并进来的旧版字段不能改变到访身份
            "visitId": _as_text(
                first_truthy(context.visit_id, record.get("visitId"), payload.get("visitId"))
            ),
            "qrKey": source_key,
            "createdAt": _as_text(created_at),
            "updatedAt": _as_text(first_truthy(record.get("updatedAt"), payload.get("updatedAt"))),
            "scannedAt": _as_text(first_truthy(record.get("scannedAt"), payload.get("scannedAt"))),
            "visitedAt": _as_text(first_truthy(record.get("visitedAt"), payload.get("visitedAt"))),
            "totalPrice": max(total_price, 0),
            "pointsAwarded": points_awarded,
            "estimatedPoints": estimated_points,
            "used": status.used,
            "visited": status.visited,
            "status": _as_text(first_truthy(record.get("status"), payload.get("status"))),
            "originalPayload": dict(payload),
        }
    )


def partner_label(visits: Iterable[Visit]) -> str | None:
    """按账本顺序找到的第一个合作伙伴名称，找不到返回 None"""
    for visit in visits:
        original = visit.original_payload
        label = first_truthy(
            visit.extra("partnerName"),
            visit.extra("attractionName"),
            original.get("partnerName"),
            original.get("attractionName"),
            original.get("partnerLabel"),
        )
        if label:
            return str(label)
    return None


def merge_visits(primary: Visit, duplicate: Visit) -> Visit:
    """同一到访的两条结果合并：primary 优先，duplicate 只补充缺失（None）的字段"""
    merged = duplicate.model_dump(by_alias=True)
    for name, value in primary.model_dump(by_alias=True).items():
        if value is not None or name not in merged:
            merged[name] = value
    return Visit.model_validate(merged)


def dedupe_visits(visits: Iterable[Visit]) -> list[Visit]:
    """按 (email, partnerId, visitId) 去重，保持首次出现的顺序"""
    by_identity: dict[tuple[str, str, str | None], Visit] = {}
    for visit in visits:
        existing = by_identity.get(visit.identity)
        by_identity[visit.identity] = merge_visits(existing, visit) if existing else visit
    return list(by_identity.values())
