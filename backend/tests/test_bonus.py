from __future__ import annotations

import asyncio
import json

import pytest

from zabava.api.errors import AppError
from zabava.enums import BonusVisitStatus, PointsHistoryType
from zabava.services.bonus import load_user_bonus

EMAIL = "anna@example.com"


@pytest.fixture
def seeded(store):
    store.sadd(
        f"user:visits:{EMAIL}",
        f"qr:{EMAIL}:LZ001:v1",
        f"qr:{EMAIL}:KV002:v2",
    )
    store.hset(
        f"qr:{EMAIL}:LZ001:v1",
        email=EMAIL,
        partnerId="LZ001",
        visitId="v1",
        createdAt="2024-03-01T10:00:00Z",
        visited="true",
        visitedAt="2024-03-02T12:00:00Z",
        pointsAwarded="25",
        payload=json.dumps({"ticket": "Family", "partnerName": "Laser Zone", "estimatedPoints": 20}),
    )
    store.hset(
        f"qr:{EMAIL}:KV002:v2",
        email=EMAIL,
        partnerId="KV002",
        createdAt="2024-03-05T09:00:00Z",
        payload=json.dumps({"ticket": "VIP", "estimatedPoints": 50, "totalPrice": 5000}),
    )
    store.sadd(f"user:redemptions:{EMAIL}", "r-1")
    store.hset(
        "redemption:r-1",
        rewardName="Free drink",
        pointsSpent="10",
        redeemedAt="2024-03-03T08:00:00Z",
        status="active",
    )
    store.sadd("rewards", "drink", "vip", "kv-only", "old")
    store.hset("reward:drink", name="Free drink", pointsCost="10", category="freebie")
    store.hset("reward:vip", name="VIP pass", pointsCost="100", category="experience")
    store.hset("reward:kv-only", name="Kart lap", pointsCost="5", availableFor=json.dumps(["KV002"]))
    store.hset("reward:old", name="Retired", pointsCost="1", active="false")
    return store


def test_user_bonus_summary(seeded):
    summary = asyncio.run(load_user_bonus(seeded, " Anna@Example.com "))

    assert summary.user.email == EMAIL
    assert summary.user.total_points == 25
    assert summary.user.redeemed_points == 10
    assert summary.user.available_points == 15

    stats = summary.statistics
    assert stats.total_visits == 1
    assert stats.pending_visits == 1
    assert stats.total_partners == 2
    assert stats.total_redemptions == 1
    assert [(s.partner_id, s.total_points, s.pending_points) for s in stats.visits_by_partner] == [
        ("lz001", 25, 0),
        ("kv002", 0, 50),
    ]


def test_user_bonus_visits_view(seeded):
    summary = asyncio.run(load_user_bonus(seeded, EMAIL))
    pending, confirmed = summary.visits

    assert confirmed.status is BonusVisitStatus.visited
    assert confirmed.partner_name == "Laser Zone"
    assert confirmed.points_earned == 25
    assert confirmed.ticket_type == "Family"
    assert confirmed.confirmed_date == "2024-03-02T12:00:00Z"
    assert confirmed.visit_date == "2024-03-01T10:00:00Z"

    assert pending.status is BonusVisitStatus.pending
    assert pending.partner_name == "KV002"
    assert pending.points_earned == 50
    assert pending.ticket_type == "VIP"
    assert pending.total_price == 5000
    assert pending.confirmed_date is None


def test_user_points_history_and_rewards(seeded):
    summary = asyncio.run(load_user_bonus(seeded, EMAIL))

    assert [e.type for e in summary.points_history] == [
        PointsHistoryType.pending,
        PointsHistoryType.redemption,
        PointsHistoryType.earned,
    ]
    assert summary.points_history[1].reward_name == "Free drink"
    assert summary.points_history[1].status == "confirmed"

    rewards = {r.id: r.can_redeem for r in summary.available_rewards}
    assert rewards == {"kv-only": False, "drink": True, "vip": False}


def test_user_visits_found_through_partner_sets(store):
    store.hset("qr:email:bob@example.com", email="bob@example.com", partnerId="LZ001", totalPrice="100")
    store.sadd(
        "partner:visits:LZ001",
        "qr:bob@example.com:LZ001:v9",
        "qr:carol@example.com:LZ001:v3",
    )
    store.hset("qr:bob@example.com:LZ001:v9", visited="true", estimatedPoints="15")
    store.hset("qr:carol@example.com:LZ001:v3", visited="true", estimatedPoints="99")

    summary = asyncio.run(load_user_bonus(store, "bob@example.com"))
    assert len(summary.visits) == 1
    visit = summary.visits[0]
    assert visit.partner_id == "lz001"
    assert visit.total_price == 100
    assert visit.status is BonusVisitStatus.visited
    assert summary.user.total_points == 15


def test_user_with_only_legacy_record(store):
    store.hset(
        "qr:email:old@example.com",
        email="old@example.com",
        status="pending",
        payload=json.dumps({"estimatedPoints": 30, "preferredDateTime": "2024-01-10T11:00"}),
    )

    summary = asyncio.run(load_user_bonus(store, "old@example.com"))
    assert len(summary.visits) == 1
    assert summary.visits[0].visit_date == "2024-01-10T11:00"
    assert summary.visits[0].partner_id == "unknown-partner"
    assert summary.user.total_points == 0
    assert summary.statistics.pending_visits == 1


def test_undated_visit_sorts_last_in_history(store):
    store.sadd("user:visits:d@x.com", "qr:d@x.com:P1:v1", "qr:d@x.com:P1:v2")
    store.hset("qr:d@x.com:P1:v1", estimatedPoints="5")
    store.hset("qr:d@x.com:P1:v2", estimatedPoints="7", createdAt="2024-01-01T00:00:00Z")

    summary = asyncio.run(load_user_bonus(store, "d@x.com"))
    undated = next(v for v in summary.visits if v.visit_id == "v1")
    assert undated.visit_date is None
    assert [e.points for e in summary.points_history] == [7, 5]
    assert summary.points_history[-1].timestamp is None


def test_unknown_user_is_empty(store):
    summary = asyncio.run(load_user_bonus(store, "nobody@example.com"))
    assert summary.visits == []
    assert summary.user.available_points == 0
    assert summary.available_rewards == []


def test_bonus_store_unreachable(store):
    store.down = True
    with pytest.raises(AppError):
        asyncio.run(load_user_bonus(store, EMAIL))


def test_available_points_never_negative(seeded):
    seeded.hset("redemption:r-1", pointsSpent="500")
    summary = asyncio.run(load_user_bonus(seeded, EMAIL))
    assert summary.user.available_points == 0
    assert all(not r.can_redeem for r in summary.available_rewards)
