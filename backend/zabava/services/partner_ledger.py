"""
合作伙伴账本

流程：解析候选键 -> 加载并合并原始记录 -> 解码 payload -> 规范化为 Visit
-> 去重 -> 按创建时间倒序 -> 聚合指标。
每次请求从头计算，不做缓存。
"""
from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from zabava.core.redis_client import KeyValueStore
from zabava.models import LoadedRecord, PartnerLedger, Visit
from zabava.services.keys import normalize_partner_id, resolve_partner_keys
from zabava.services.loader import RecordLoader
from zabava.services.metrics import aggregate_metrics, sort_visits
from zabava.services.normalizer import dedupe_visits, normalize_visit, partner_label
from zabava.services.payload import decode_payload

logger = logging.getLogger(__name__)


def build_ledger(records: Iterable[LoadedRecord], requested_partner_id: Any = None) -> list[Visit]:
    """把加载好的原始记录规范化、去重并排序"""
    visits = [
        normalize_visit(
            record.fields,
            payload=decode_payload(record.fields),
            context=record.context,
            requested_partner_id=requested_partner_id,
            source_key=record.key,
        )
        for record in records
    ]
    return sort_visits(dedupe_visits(visits))


async def load_partner_data(
    store: KeyValueStore,
    partner_id: str | None,
    *,
    concurrency: int | None = None,
) -> PartnerLedger:
    """
    读取合作伙伴的完整到访账本

    Args:
        store: 键值存储
        partner_id: 合作伙伴标识（大小写、空白不敏感）
        concurrency: 单次请求内的最大并发读取数，默认取配置

    Returns:
        PartnerLedger；标识为空或没有数据时为空账本 + 零值指标

    Raises:
        AppError: 存储整体不可达时
    """
    keys = resolve_partner_keys(partner_id)
    if keys.is_empty:
        return PartnerLedger.empty(partner_id)

    loader = RecordLoader(store, concurrency=concurrency)
    await loader.ensure_reachable()
    records = await loader.load_partner_records(keys)
    submissions = build_ledger(records, requested_partner_id=partner_id)

    if loader.warnings:
        logger.warning(
            f"Partner {normalize_partner_id(partner_id)} ledger built with "
            f"{len(loader.warnings)} failed fetches"
        )

    return PartnerLedger(
        partner_id=partner_id,
        submissions=submissions,
        metrics=aggregate_metrics(submissions),
        partner_label=partner_label(submissions),
        warnings=loader.warnings,
    )
