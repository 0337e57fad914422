"""
Redis 连接模块

管理异步 Redis 客户端连接，使用单例模式确保全局只有一个连接实例。
Redis 在本项目中是到访记录、合作伙伴集合和奖励目录的唯一数据源。

使用 @lru_cache 装饰器实现单例模式，避免重复创建连接池。
"""
from __future__ import annotations

from functools import lru_cache  # 缓存装饰器，用于实现单例模式

from redis.asyncio import Redis  # 异步 Redis 客户端

from zabava.core.config import settings


@lru_cache(maxsize=1)
def get_redis() -> Redis:
    """
    获取异步 Redis 客户端实例（单例模式）

    配置说明：
    - decode_responses=True: 自动将字节响应解码为字符串
    - 设置了 REDIS_URL 时优先使用连接串（支持 TLS 的托管 Redis）
    """
    if settings.REDIS_URL:
        return Redis.from_url(settings.REDIS_URL, decode_responses=True)
    return Redis(
        host=settings.REDIS_HOST,  # Redis 服务器地址
        port=settings.REDIS_PORT,  # Redis 端口
        db=settings.REDIS_DB,  # Redis 数据库编号（0-15）
        password=settings.REDIS_PASSWORD,  # Redis 密码（可选）
        decode_responses=True,  # 自动解码响应为字符串（而不是字节）
    )
