"""存储读取操作模块"""
from .rewards import list_redemptions, list_rewards

__all__ = [
    "list_redemptions",
    "list_rewards",
]
