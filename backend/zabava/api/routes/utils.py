"""
工具路由模块

提供系统工具类的 API 端点，如健康检查等。
"""
from fastapi import APIRouter

from zabava.api.deps import StoreDep
from zabava.services.loader import RecordLoader

router = APIRouter(prefix="/utils", tags=["utils"])


@router.get("/health-check/")
async def health_check() -> bool:
    """
    健康检查端点

    请求路径: GET /api/v1/utils/health-check/

    Returns:
        bool: 总是返回 True，表示服务进程正常
    """
    return True


@router.get("/store-check/")
async def store_check(store: StoreDep) -> bool:
    """
    存储连通性检查

    请求路径: GET /api/v1/utils/store-check/

    存储不可达时返回 503（code 503001）。
    """
    await RecordLoader(store).ensure_reachable()
    return True
