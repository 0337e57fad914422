"""
Payload 解码

存储中的 payload 字段可能是：缺失、已经是结构化字典、JSON 字符串，
或者 JSON 字符串里再嵌套一个 JSON 字符串 data 字段（历史迁移遗留的双重编码）。
这里统一解成一个扁平字典，永不抛异常。
"""
from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

logger = logging.getLogger(__name__)


def _loads_object(text: str) -> dict[str, Any]:
    value = json.loads(text)
    if not isinstance(value, dict):
        raise ValueError(f"expected a JSON object, got {type(value).__name__}")
    return value


def decode_payload(record: Mapping[str, Any]) -> dict[str, Any]:
    """
    解码一条原始记录的 payload

    规则：
    1. payload 缺失（或为空）-> {}
    2. 已是字典 -> 原样使用（浅拷贝）
    3. 字符串 -> JSON 解析；失败时返回 {"rawPayload": 原字符串}
    4. 结果中 data 为字符串时再解析一次，并浅合并进外层（外层键优先）；
       内层解析失败则忽略，直接使用外层

    Args:
        record: 原始哈希记录

    Returns:
        扁平的属性字典
    """
    raw = record.get("payload")
    if not raw:
        return {}

    if isinstance(raw, Mapping):
        payload = dict(raw)
    elif isinstance(raw, str):
        try:
            payload = _loads_object(raw)
        except ValueError as e:
            # json.JSONDecodeError 是 ValueError 的子类
            logger.debug(f"Failed to parse payload: {e}")
            return {"rawPayload": raw}
    else:
        return {"rawPayload": raw}

    nested = payload.get("data")
    if isinstance(nested, str):
        try:
            inner = _loads_object(nested)
        except ValueError as e:
            logger.debug(f"Failed to parse nested payload: {e}")
        else:
            payload = {**inner, **payload}

    return payload
