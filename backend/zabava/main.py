"""
FastAPI 应用主入口

这是应用的启动文件，负责：
1. 创建 FastAPI 应用实例
2. 配置全局中间件（CORS、Sentry）和日志
3. 注册全局异常处理器
4. 注册 API 路由

运行方式：
    uvicorn zabava.main:app --reload  # 开发模式
"""
import logging
from typing import Any

import sentry_sdk  # Sentry 错误监控
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError  # 请求验证错误
from fastapi.middleware.cors import CORSMiddleware  # CORS 中间件
from fastapi.responses import JSONResponse  # JSON 响应
from fastapi.routing import APIRoute  # 路由类型

from zabava.api.errors import AppError
from zabava.api.main import api_router
from zabava.core.config import settings

logging.basicConfig(level=settings.LOG_LEVEL)


def custom_generate_unique_id(route: APIRoute) -> str:
    """
    自定义 OpenAPI 操作 ID 生成函数

    格式：{tag}-{route_name}，例如 "partner-partner_ledger"
    """
    return f"{route.tags[0]}-{route.name}"


# 初始化 Sentry 错误监控（仅在非本地环境）
if settings.SENTRY_DSN and settings.ENVIRONMENT != "local":  # pragma: no cover
    sentry_sdk.init(dsn=str(settings.SENTRY_DSN), enable_tracing=True)

app = FastAPI(
    title=settings.PROJECT_NAME,  # API 文档标题
    openapi_url=f"{settings.API_V1_STR}/openapi.json",  # OpenAPI 规范 URL
    generate_unique_id_function=custom_generate_unique_id,  # 自定义操作 ID
)


@app.exception_handler(AppError)
async def app_error_handler(_: Request, exc: AppError) -> JSONResponse:
    """捕获所有 AppError 异常，返回统一的错误响应格式"""
    return JSONResponse(
        status_code=exc.status_code,
        content={"code": exc.code, "message": exc.message, "data": None},
    )


@app.exception_handler(HTTPException)
async def http_error_handler(_: Request, exc: HTTPException) -> JSONResponse:
    """
    HTTP 异常处理器

    支持两种格式的 detail：
    1. 字典格式：{"code": 123, "message": "错误消息"}
    2. 字符串格式：自动生成错误码（状态码 * 1000）
    """
    payload: dict[str, Any]
    if isinstance(exc.detail, dict) and {"code", "message"} <= set(exc.detail.keys()):
        payload = {"code": exc.detail.get("code"), "message": exc.detail.get("message")}
    else:
        payload = {"code": exc.status_code * 1000, "message": str(exc.detail)}
    return JSONResponse(
        status_code=exc.status_code,
        content={"code": payload["code"], "message": payload["message"], "data": None},
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    """去掉错误详情中不可 JSON 序列化的 ctx 字段"""
    return [{k: v for k, v in error.items() if k != "ctx"} for error in exc.errors()]


@app.exception_handler(RequestValidationError)
async def validation_error_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    """请求验证错误处理器（如缺少 email 查询参数）"""
    return JSONResponse(
        status_code=422,  # 422 Unprocessable Entity
        content={
            "code": 422000,
            "message": "Validation error",
            "data": {"errors": jsonable_errors(exc)},
        },
    )


# 配置 CORS（跨域资源共享）中间件：各角色的仪表盘部署在不同域名下
if settings.all_cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.all_cors_origins,  # 允许的源（域名列表）
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

# 所有路由都会添加 /api/v1 前缀
app.include_router(api_router, prefix=settings.API_V1_STR)
