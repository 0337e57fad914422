"""奖励目录与兑换记录读取"""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from pydantic import ValidationError

from zabava.models import Redemption, Reward
from zabava.services.loader import RecordLoader
from zabava.services.metrics import parse_timestamp
from zabava.services.normalizer import to_number

logger = logging.getLogger(__name__)

REWARDS_SET_KEY = "rewards"
REWARD_KEY_PREFIX = "reward:"
REDEMPTION_KEY_PREFIX = "redemption:"

_FALSE_TOKENS = frozenset({"false", "0", "no", "inactive", "disabled"})


def _text(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _parse_list(value: Any) -> list[str]:
    """availableFor 可能是列表、JSON 字符串或逗号分隔字符串"""
    if value is None or value == "":
        return []
    if isinstance(value, list):
        return [str(v).strip() for v in value if str(v).strip()]
    text = str(value).strip()
    if text.startswith("["):
        try:
            parsed = json.loads(text)
        except ValueError:
            parsed = None
        if isinstance(parsed, list):
            return [str(v).strip() for v in parsed if str(v).strip()]
    return [part.strip() for part in text.strip("[]").split(",") if part.strip()]


def _parse_flag(value: Any, default: bool = True) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() not in _FALSE_TOKENS


async def list_rewards(loader: RecordLoader) -> list[Reward]:
    """读取奖励目录；单条奖励无法解析时跳过"""
    reward_ids = (await loader.smembers(REWARDS_SET_KEY)).value
    fetched = await asyncio.gather(
        *(loader.hgetall(f"{REWARD_KEY_PREFIX}{reward_id}") for reward_id in reward_ids)
    )
    rewards = []
    for reward_id, result in zip(reward_ids, fetched):
        fields = result.value
        if not fields:
            continue
        try:
            reward = Reward(
                id=str(fields.get("id") or reward_id),
                name=str(fields.get("name") or ""),
                description=str(fields.get("description") or ""),
                points_cost=to_number(fields.get("pointsCost")),
                category=str(fields.get("category") or ""),
                image_url=_text(fields.get("imageUrl")),
                available_for=_parse_list(fields.get("availableFor")),
                active=_parse_flag(fields.get("active")),
            )
        except ValidationError as e:
            logger.warning(f"Skipping malformed reward {reward_id}: {e}")
            continue
        rewards.append(reward)
    rewards.sort(key=lambda r: (r.points_cost, r.name))
    return rewards


async def list_redemptions(loader: RecordLoader, redemption_set_key: str) -> list[Redemption]:
    """读取用户的兑换记录，按兑换时间由新到旧"""
    redemption_ids = (await loader.smembers(redemption_set_key)).value
    fetched = await asyncio.gather(
        *(loader.hgetall(f"{REDEMPTION_KEY_PREFIX}{rid}") for rid in redemption_ids)
    )
    redemptions = []
    for redemption_id, result in zip(redemption_ids, fetched):
        fields = result.value
        if not fields:
            continue
        redemptions.append(
            Redemption(
                id=str(fields.get("id") or redemption_id),
                reward_id=_text(fields.get("rewardId")),
                reward_name=str(fields.get("rewardName") or ""),
                points_spent=to_number(fields.get("pointsSpent")),
                redeemed_at=_text(fields.get("redeemedAt")),
                status=_text(fields.get("status")),
                expires_at=_text(fields.get("expiresAt")),
                code=_text(fields.get("code")),
            )
        )
    redemptions.sort(key=lambda r: parse_timestamp(r.redeemed_at), reverse=True)
    return redemptions
