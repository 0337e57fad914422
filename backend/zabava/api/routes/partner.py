"""
合作伙伴路由模块

合作伙伴仪表盘读取自己的到访账本和聚合指标。
认证由外层网关处理，这里只负责数据输出。
"""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query

from zabava.api.deps import StoreDep
from zabava.api.schemas import ApiEnvelope
from zabava.services.partner_ledger import load_partner_data

router = APIRouter(prefix="/partner", tags=["partner"])


@router.get("/{partner_id}", response_model=ApiEnvelope)
async def partner_ledger(
    partner_id: str,
    store: StoreDep,
    diagnostics: bool = Query(default=False),  # 是否附带读取失败的键
) -> ApiEnvelope:
    """
    获取合作伙伴到访账本

    请求路径: GET /api/v1/partner/{partner_id}?diagnostics=false

    合作伙伴 ID 大小写、首尾空白不敏感。没有数据时返回空列表和零值指标，
    前端按"暂无数据"展示，而不是报错。

    Returns:
        ApiEnvelope: data 为 {partnerId, submissions, metrics, partnerLabel[, warnings]}
    """
    ledger = await load_partner_data(store, partner_id)
    data: dict[str, Any] = ledger.model_dump(by_alias=True, mode="json")
    if diagnostics:
        data["warnings"] = [w.model_dump(mode="json") for w in ledger.warnings]
    return ApiEnvelope(data=data)
