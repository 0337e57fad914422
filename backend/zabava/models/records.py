"""
原始记录模型模块

键值存储中同一次到访可能以两种方案存在，这里用带标签的联合类型
`VisitSetRecord | LegacyEmailRecord` 显式表示，避免依赖字典合并顺序。
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel

from zabava.enums import RecordSource


@dataclass(frozen=True)
class VisitKeyContext:
    """从 qr:<email>:<partnerId>:<visitId> 键名中解析出的上下文"""
    email: str = ""
    partner_id: str = ""
    visit_id: str | None = None


@dataclass
class VisitSetRecord:
    """
    新方案记录

    字段说明：
    - key: 主记录键（同一到访的多个大小写变体中的第一个）
    - fields: 合并后的哈希字段（主记录优先，旧版记录只补充缺失字段）
    - context: 键名解析结果
    """
    key: str
    fields: dict[str, Any]
    context: VisitKeyContext
    source: RecordSource = field(default=RecordSource.visit_set, init=False)


@dataclass
class LegacyEmailRecord:
    """旧方案记录：qr:email:<email>，每个邮箱只有一条"""
    key: str
    fields: dict[str, Any]
    context: VisitKeyContext
    source: RecordSource = field(default=RecordSource.legacy_email, init=False)


LoadedRecord = VisitSetRecord | LegacyEmailRecord


class FetchWarning(BaseModel):
    """单个键读取失败的诊断信息，附加在账本响应上"""
    key: str
    operation: str
    error: str
