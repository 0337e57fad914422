"""
记录加载

从键值存储读取候选记录，合并同一到访的新旧两种表示，输出带标签的原始记录。

读取策略：
1. 并发读取所有到访集合，汇总以 qr: 开头的成员键并去重
2. 同一到访的大小写变体键归为一组
3. 并发读取每组的主记录和对应的旧版 qr:email:<email> 记录；
   主记录缺失时用旧版记录代替，主记录存在时把旧版记录合并在下面
4. 到访集合没有产出任何记录时，回退到旧方案：partner:<id> 邮箱集合

失败策略：单个键读取失败只记录 FetchWarning，不中断加载；
只有存储整体不可达（ping 失败）才抛出 store_unavailable()。
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from redis.exceptions import RedisError

from zabava.api.errors import store_unavailable
from zabava.core.config import settings
from zabava.core.redis_client import KeyValueStore
from zabava.models import (
    FetchWarning,
    LegacyEmailRecord,
    LoadedRecord,
    VisitKeyContext,
    VisitSetRecord,
)
from zabava.services.keys import (
    PartnerKeys,
    UserKeys,
    is_visit_member,
    legacy_record_key,
    normalize_email,
    parse_visit_key,
    resolve_partner_keys,
    visit_key_identity,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# 视为"单个键暂时读取失败"的异常
FETCH_ERRORS: tuple[type[BaseException], ...] = (RedisError, OSError, asyncio.TimeoutError)


@dataclass
class Fetched(Generic[T]):
    """单个键的读取结果：成功时 warning 为 None"""
    key: str
    value: T
    warning: FetchWarning | None = None

    @property
    def ok(self) -> bool:
        return self.warning is None


def merge_legacy_into_current(
    current: Mapping[str, Any], legacy: Mapping[str, Any] | None
) -> dict[str, Any]:
    """
    把旧版记录合并到新记录下面

    新记录的字段在冲突时胜出；只存在于旧版记录中的字段被保留（合并而不是替换）。
    用于找回新的部分写入可能丢掉的字段（如较早的 totalPrice）。
    """
    merged = dict(legacy or {})
    merged.update(current)
    return merged


def _fill_missing(records: Iterable[Mapping[str, Any]]) -> dict[str, Any]:
    """按顺序合并多条记录，先出现的字段优先"""
    merged: dict[str, Any] = {}
    for record in records:
        for name, value in record.items():
            merged.setdefault(name, value)
    return merged


class RecordLoader:
    """
    单次请求内的记录加载器

    无共享可变状态：每个请求创建一个实例，读取过程中收集 warnings。
    同一个键在一次加载中只读取一次（例如多个到访共享同一条旧版记录）。
    """

    def __init__(self, store: KeyValueStore, *, concurrency: int | None = None) -> None:
        self.store = store
        self.warnings: list[FetchWarning] = []
        self._semaphore = asyncio.Semaphore(concurrency or settings.LEDGER_FETCH_CONCURRENCY)
        self._hash_reads: dict[str, asyncio.Task[Fetched[dict[str, Any]]]] = {}

    async def ensure_reachable(self) -> None:
        """
        检查存储是否可达

        Raises:
            AppError: 存储整体不可达时（503001）
        """
        try:
            reachable = await self.store.ping()
        except FETCH_ERRORS as e:
            logger.error(f"Key-value store ping failed: {e}")
            raise store_unavailable(str(e)) from e
        if not reachable:
            raise store_unavailable()

    # ========================================================================
    # 单键读取
    # ========================================================================

    async def _guarded(
        self,
        operation: str,
        key: str,
        call: Callable[[], Awaitable[T]],
        default: T,
    ) -> Fetched[T]:
        async with self._semaphore:
            try:
                value = await call()
            except FETCH_ERRORS as e:
                warning = FetchWarning(key=key, operation=operation, error=str(e) or type(e).__name__)
                logger.warning(f"Failed to {operation} {key}: {warning.error}")
                self.warnings.append(warning)
                return Fetched(key=key, value=default, warning=warning)
        return Fetched(key=key, value=value if value is not None else default)

    async def smembers(self, key: str) -> Fetched[list[str]]:
        fetched = await self._guarded("smembers", key, lambda: self.store.smembers(key), [])
        if not isinstance(fetched.value, list):
            fetched.value = list(fetched.value or [])
        return fetched

    async def hgetall(self, key: str) -> Fetched[dict[str, Any]]:
        """读取哈希记录；同一加载过程中重复的键复用第一次读取"""
        task = self._hash_reads.get(key)
        if task is None:
            task = asyncio.ensure_future(
                self._guarded("hgetall", key, lambda: self.store.hgetall(key), {})
            )
            self._hash_reads[key] = task
        return await task

    # ========================================================================
    # 新方案：到访集合
    # ========================================================================

    async def collect_visit_members(self, set_keys: Iterable[str]) -> list[str]:
        """读取所有到访集合，返回去重排序后的 qr: 成员键"""
        results = await asyncio.gather(*(self.smembers(key) for key in set_keys))
        members = {m for fetched in results for m in fetched.value if is_visit_member(m)}
        return sorted(members)

    async def _load_visit_group(self, member_keys: list[str]) -> VisitSetRecord | None:
        primary_key = member_keys[0]
        context = parse_visit_key(primary_key) or VisitKeyContext()
        legacy_key = legacy_record_key(context.email) if context.email else None

        reads = [self.hgetall(key) for key in member_keys]
        if legacy_key:
            reads.append(self.hgetall(legacy_key))
        results = await asyncio.gather(*reads)

        primary_results = results[: len(member_keys)]
        legacy = results[len(member_keys)].value if legacy_key else {}
        current = _fill_missing(r.value for r in primary_results if r.value)

        if current:
            return VisitSetRecord(
                key=primary_key,
                fields=merge_legacy_into_current(current, legacy),
                context=context,
            )
        if legacy:
            return VisitSetRecord(
                key=primary_key,
                fields=dict(legacy),
                context=context,
            )
        return None

    async def load_visit_records(self, member_keys: Iterable[str]) -> list[VisitSetRecord]:
        """按到访标识分组后并发加载，保持分组的首次出现顺序"""
        groups: dict[tuple[str, ...], list[str]] = {}
        for key in member_keys:
            groups.setdefault(visit_key_identity(key), []).append(key)

        loaded = await asyncio.gather(*(self._load_visit_group(keys) for keys in groups.values()))
        return [record for record in loaded if record is not None]

    # ========================================================================
    # 旧方案：邮箱集合
    # ========================================================================

    async def load_legacy_partner_records(self, set_keys: Iterable[str]) -> list[LegacyEmailRecord]:
        """读取 partner:<id> 邮箱集合，再逐个读取 qr:email:<email>；缺少 email 字段的记录跳过"""
        results = await asyncio.gather(*(self.smembers(key) for key in set_keys))
        emails = list(
            dict.fromkeys(
                m for fetched in results for m in fetched.value if isinstance(m, str) and m
            )
        )
        if not emails:
            return []

        fetched_records = await asyncio.gather(
            *(self.hgetall(legacy_record_key(email)) for email in emails)
        )
        records = []
        for email, fetched in zip(emails, fetched_records):
            if not fetched.value or not fetched.value.get("email"):
                continue
            records.append(
                LegacyEmailRecord(
                    key=fetched.key,
                    fields=dict(fetched.value),
                    context=VisitKeyContext(email=email),
                )
            )
        return records

    # ========================================================================
    # 入口
    # ========================================================================

    async def load_partner_records(self, keys: PartnerKeys) -> list[LoadedRecord]:
        """合作伙伴维度：先走到访集合，没有产出时回退到旧方案"""
        if keys.is_empty:
            return []
        members = await self.collect_visit_members(keys.visit_set_keys)
        records: list[LoadedRecord] = list(await self.load_visit_records(members))
        if records:
            return records
        logger.info(
            f"No visit-set records for partner {keys.normalized_id}, "
            "falling back to legacy email set"
        )
        return list(await self.load_legacy_partner_records(keys.legacy_set_keys))

    async def load_user_records(self, keys: UserKeys) -> list[LoadedRecord]:
        """
        用户维度

        1. 并发读取 user:visits:<email> 集合和旧版 qr:email:<email> 记录
        2. 旧版记录中的 partnerId 指出用户可能所属的合作伙伴，
           探测这些合作伙伴的到访集合，挑出属于该用户的成员键
        3. 没有任何到访记录时，旧版记录本身作为唯一一条记录
        """
        if keys.is_empty:
            return []

        user_sets, legacy = await asyncio.gather(
            self.collect_visit_members(keys.visit_set_keys),
            self.hgetall(keys.legacy_record_key or legacy_record_key(keys.email)),
        )
        members = set(user_sets)

        partner_hint = legacy.value.get("partnerId") if legacy.value else None
        if partner_hint:
            partner_members = await self.collect_visit_members(
                resolve_partner_keys(partner_hint).visit_set_keys
            )
            for member in partner_members:
                context = parse_visit_key(member)
                if context is not None and normalize_email(context.email) == keys.email:
                    members.add(member)

        records: list[LoadedRecord] = list(await self.load_visit_records(sorted(members)))
        if records:
            return records
        if legacy.value:
            return [
                LegacyEmailRecord(
                    key=legacy.key,
                    fields=dict(legacy.value),
                    context=VisitKeyContext(email=keys.email),
                )
            ]
        return []
