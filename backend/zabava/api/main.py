"""
API 路由聚合模块

路由模块说明：
- partner: 合作伙伴到访账本
- bonus: 用户积分门户
- utils: 健康检查
"""
from fastapi import APIRouter

from zabava.api.routes import (
    bonus,  # 积分门户路由
    partner,  # 合作伙伴路由
    utils,  # 工具路由
)

# 创建主 API 路由器
api_router = APIRouter()

api_router.include_router(partner.router)  # /partner/*
api_router.include_router(bonus.router)  # /bonus/*
api_router.include_router(utils.router)  # /utils/*
