"""
Redis 键值存储客户端

为到访账本引擎提供只读的键值接口：
- ping: 检查存储是否可达
- smembers: 读取集合成员（合作伙伴到访集合 / 旧版邮箱集合）
- hgetall: 读取哈希记录

与缓存类封装不同，这里的读取失败不在客户端内部吞掉，
而是抛给调用方，由账本加载器记录为 FetchWarning。
"""
from __future__ import annotations

import logging
from typing import Any, Protocol

from redis.asyncio import Redis as AsyncRedis

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """账本引擎依赖的最小存储接口"""

    async def ping(self) -> bool: ...

    async def smembers(self, key: str) -> list[str]: ...

    async def hgetall(self, key: str) -> dict[str, Any]: ...


class RedisStore:
    """基于 redis.asyncio 的 KeyValueStore 实现"""

    def __init__(self, client: AsyncRedis) -> None:
        """
        初始化存储

        Args:
            client: 已配置好的异步 Redis 客户端（decode_responses=True）
        """
        self.client = client

    async def ping(self) -> bool:
        """
        测试连接

        Returns:
            是否连接成功

        Raises:
            redis.RedisError: 连接失败时
        """
        return bool(await self.client.ping())

    async def smembers(self, key: str) -> list[str]:
        """读取集合成员，按字典序返回以保证结果稳定"""
        members = await self.client.smembers(key)
        return sorted(m for m in members if isinstance(m, str))

    async def hgetall(self, key: str) -> dict[str, Any]:
        """读取哈希所有字段，不存在时返回空字典"""
        return dict(await self.client.hgetall(key) or {})

    async def close(self) -> None:
        """关闭连接"""
        await self.client.aclose()
        logger.info("Redis store closed")
