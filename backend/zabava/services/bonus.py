"""
用户积分门户

与合作伙伴账本对称：按用户邮箱重建到访账本，再推导积分余额、
按合作伙伴的到访统计、积分历史，并结合兑换记录和奖励目录给出可兑换奖励。
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from zabava import crud
from zabava.core.redis_client import KeyValueStore
from zabava.enums import BonusVisitStatus, PointsHistoryType
from zabava.models import (
    BonusVisit,
    PartnerVisitSummary,
    PointsHistoryEntry,
    Redemption,
    Reward,
    UserBonusSummary,
    UserPointsBalance,
    UserStatistics,
    Visit,
)
from zabava.services.keys import normalize_partner_id, resolve_user_keys
from zabava.services.loader import RecordLoader
from zabava.services.metrics import parse_timestamp
from zabava.services.normalizer import first_truthy
from zabava.services.partner_ledger import build_ledger
from zabava.services.status import status_token

logger = logging.getLogger(__name__)

UNKNOWN_PARTNER = "unknown-partner"
DEFAULT_TICKET_TYPE = "Standard"
PENDING_REDEMPTION_STATUSES = frozenset({"pending", "awaiting", "in review", "applied"})

_BONUS_VISIT_NAMES = frozenset(
    name
    for field_name, info in BonusVisit.model_fields.items()
    for name in (field_name, info.alias or field_name)
)


def _optional_text(value: object) -> str | None:
    return str(value) if value else None


def to_bonus_visit(visit: Visit) -> BonusVisit:
    """把规范 Visit 补齐成积分门户展示用的记录"""
    partner_id = visit.partner_id or UNKNOWN_PARTNER
    partner_name = first_truthy(
        visit.extra("partnerName"),
        visit.extra("attractionName"),
        (visit.partner_display_id or partner_id).upper(),
    )
    visit_date = first_truthy(
        visit.extra("visitDate"),
        visit.extra("confirmedDate"),
        visit.extra("preferredDateTime"),
        visit.created_at,
        visit.scanned_at,
    )

    data = visit.model_dump(by_alias=True, exclude={"original_payload"})
    passthrough = {k: v for k, v in data.items() if k not in _BONUS_VISIT_NAMES}
    return BonusVisit.model_validate(
        {
            **passthrough,
            "partnerId": partner_id,
            "partnerName": str(partner_name),
            "visitId": visit.visit_id,
            "visitDate": _optional_text(visit_date),
            "confirmedDate": _optional_text(
                first_truthy(visit.extra("confirmedDate"), visit.visited_at)
            ),
            "pointsEarned": visit.effective_points,
            "status": BonusVisitStatus.visited if visit.visited else BonusVisitStatus.pending,
            "ticketType": str(
                first_truthy(visit.extra("ticketType"), visit.extra("ticket")) or DEFAULT_TICKET_TYPE
            ),
            "totalPrice": visit.total_price,
        }
    )


def summarize_partners(visits: Sequence[BonusVisit]) -> list[PartnerVisitSummary]:
    """按合作伙伴汇总，已确认积分多的排前面"""
    by_partner: dict[str, PartnerVisitSummary] = {}
    for visit in visits:
        summary = by_partner.get(visit.partner_id)
        if summary is None:
            summary = PartnerVisitSummary(
                partner_id=visit.partner_id,
                partner_name=visit.partner_name,
            )
            by_partner[visit.partner_id] = summary
        summary.total_visits += 1
        if visit.status is BonusVisitStatus.visited:
            summary.total_points += visit.points_earned
        else:
            summary.pending_visits += 1
            summary.pending_points += visit.points_earned
    return sorted(by_partner.values(), key=lambda s: s.total_points, reverse=True)


def build_points_history(
    visits: Sequence[BonusVisit], redemptions: Sequence[Redemption]
) -> list[PointsHistoryEntry]:
    entries = []
    for visit in visits:
        confirmed = visit.status is BonusVisitStatus.visited
        entries.append(
            PointsHistoryEntry(
                type=PointsHistoryType.earned if confirmed else PointsHistoryType.pending,
                points=visit.points_earned,
                timestamp=(visit.confirmed_date or visit.visit_date) if confirmed else visit.visit_date,
                partner_id=visit.partner_id,
                partner_name=visit.partner_name,
                ticket_type=visit.ticket_type,
                status="confirmed" if confirmed else "pending",
            )
        )
    for redemption in redemptions:
        token = status_token(redemption.status)
        entries.append(
            PointsHistoryEntry(
                type=PointsHistoryType.redemption,
                points=redemption.points_spent,
                timestamp=redemption.redeemed_at,
                reward_name=redemption.reward_name,
                status="pending" if token in PENDING_REDEMPTION_STATUSES else "confirmed",
            )
        )
    return sorted(entries, key=lambda e: parse_timestamp(e.timestamp), reverse=True)


def mark_redeemable(
    rewards: Sequence[Reward], available_points: float, visited_partners: set[str]
) -> list[Reward]:
    """
    计算每个奖励是否可兑换

    条件：奖励启用、可用积分足够、且（不限合作伙伴 或 用户到访过其中之一）。
    未启用的奖励不返回。
    """
    result = []
    for reward in rewards:
        if not reward.active:
            continue
        allowed = {normalize_partner_id(p) for p in reward.available_for}
        eligible = not allowed or bool(allowed & visited_partners)
        can_redeem = eligible and available_points >= reward.points_cost
        result.append(reward.model_copy(update={"can_redeem": can_redeem}))
    return result


async def load_user_bonus(
    store: KeyValueStore,
    email: str | None,
    *,
    concurrency: int | None = None,
) -> UserBonusSummary:
    """
    读取用户的积分门户数据

    Raises:
        AppError: 存储整体不可达时
    """
    keys = resolve_user_keys(email)
    if keys.is_empty:
        return UserBonusSummary.empty(str(email or ""))

    loader = RecordLoader(store, concurrency=concurrency)
    await loader.ensure_reachable()
    records, redemptions, rewards = await asyncio.gather(
        loader.load_user_records(keys),
        crud.list_redemptions(loader, keys.redemption_set_key),
        crud.list_rewards(loader),
    )

    visits = [to_bonus_visit(v) for v in build_ledger(records)]
    confirmed = [v for v in visits if v.status is BonusVisitStatus.visited]
    pending = [v for v in visits if v.status is BonusVisitStatus.pending]

    total_points = sum(v.points_earned for v in confirmed)
    redeemed_points = sum(r.points_spent for r in redemptions)
    available_points = max(0, total_points - redeemed_points)
    visited_partners = {v.partner_id for v in confirmed}

    if loader.warnings:
        logger.warning(
            f"Bonus summary for {keys.email} built with {len(loader.warnings)} failed fetches"
        )

    return UserBonusSummary(
        user=UserPointsBalance(
            email=keys.email,
            total_points=total_points,
            redeemed_points=redeemed_points,
            available_points=available_points,
        ),
        statistics=UserStatistics(
            total_visits=len(confirmed),
            pending_visits=len(pending),
            total_partners=len({v.partner_id for v in visits}),
            total_redemptions=len(redemptions),
            visits_by_partner=summarize_partners(visits),
        ),
        visits=visits,
        points_history=build_points_history(visits, redemptions),
        redemptions=redemptions,
        available_rewards=mark_redeemable(rewards, available_points, visited_partners),
        warnings=loader.warnings,
    )
