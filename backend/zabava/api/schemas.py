"""
API 响应数据模型（Schema）

领域模型（Visit、Metrics、PartnerLedger 等）定义在 zabava.models 中，
这里只定义 API 层的统一响应格式。
"""
from __future__ import annotations

from typing import Any  # 任意类型

from pydantic import BaseModel


class ApiEnvelope(BaseModel):
    """
    API 统一响应格式

    - code: 状态码（0 表示成功，非 0 表示错误）
    - message: 消息（成功时为 "success"，错误时为错误描述）
    - data: 数据（成功时返回业务数据，错误时为 None）

    示例响应：
        {"code": 0, "message": "success", "data": {...}}
        {"code": 503001, "message": "Key-value store unavailable", "data": None}
    """
    code: int = 0  # 默认成功
    message: str = "success"  # 默认成功消息
    data: Any | None = None  # 业务数据（可选）
