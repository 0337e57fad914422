"""
应用启动前检查脚本

在应用启动前检查 Redis 是否可达。
主要用于 Docker Compose 环境，确保键值存储已启动后再启动应用。

执行流程：
1. 脚本在应用启动前被调用
2. 不断重试 ping，直到成功或超时
"""
import asyncio
import logging  # 日志记录

from tenacity import (  # 重试库，用于实现重试机制
    after_log,  # 重试后的日志记录
    before_log,  # 重试前的日志记录
    retry,  # 重试装饰器
    stop_after_attempt,  # 停止条件：达到最大尝试次数
    wait_fixed,  # 等待策略：固定间隔
)

from zabava.core.redis import get_redis
from zabava.core.redis_client import KeyValueStore, RedisStore
from zabava.services.loader import RecordLoader

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# 重试配置
max_tries = 60 * 5  # 最大尝试次数：300 次（5 分钟，每秒一次）
wait_seconds = 1  # 每次重试间隔：1 秒


@retry(
    stop=stop_after_attempt(max_tries),
    wait=wait_fixed(wait_seconds),
    before=before_log(logger, logging.INFO),
    after=after_log(logger, logging.WARN),
)
async def init(store: KeyValueStore) -> None:
    """
    检查存储连接

    ping 失败时抛出 AppError(503001)，由 tenacity 重试，
    达到最大重试次数仍失败则抛出 RetryError。
    """
    try:
        await RecordLoader(store).ensure_reachable()
    except Exception as e:
        logger.error(e)
        raise e


def main() -> None:
    logger.info("Initializing service")
    asyncio.run(init(RedisStore(get_redis())))
    logger.info("Service finished initializing")


if __name__ == "__main__":  # pragma: no cover
    main()
