"""
积分门户路由模块

客户输入邮箱查看积分、到访记录、兑换记录和可兑换奖励。
"""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query

from zabava.api.deps import StoreDep
from zabava.api.schemas import ApiEnvelope
from zabava.services.bonus import load_user_bonus

router = APIRouter(prefix="/bonus", tags=["bonus"])


@router.get("/user-points", response_model=ApiEnvelope)
async def user_points(
    store: StoreDep,
    email: str = Query(min_length=1, max_length=320),  # 用户邮箱，必填
    diagnostics: bool = Query(default=False),
) -> ApiEnvelope:
    """
    获取用户积分概况

    请求路径: GET /api/v1/bonus/user-points?email=a@x.com

    Returns:
        ApiEnvelope: data 为 {user, statistics, visits, pointsHistory, redemptions, availableRewards}
    """
    summary = await load_user_bonus(store, email)
    data: dict[str, Any] = summary.model_dump(by_alias=True, mode="json")
    if diagnostics:
        data["warnings"] = [w.model_dump(mode="json") for w in summary.warnings]
    return ApiEnvelope(data=data)
