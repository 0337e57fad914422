"""
FastAPI 依赖注入模块

提供可复用的依赖项，用于路由处理函数中。
测试中通过 app.dependency_overrides[get_store] 替换为内存实现。
"""
from typing import Annotated  # 类型注解，用于依赖注入

from fastapi import Depends

from zabava.core.redis import get_redis
from zabava.core.redis_client import KeyValueStore, RedisStore


def get_store() -> KeyValueStore:
    """
    获取键值存储（依赖注入）

    底层 Redis 客户端是进程级单例，这里只做一层只读接口包装。
    """
    return RedisStore(get_redis())


# 类型别名，简化依赖注入的写法
StoreDep = Annotated[KeyValueStore, Depends(get_store)]
