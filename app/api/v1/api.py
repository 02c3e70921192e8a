"""
API v1路由汇总
"""

from fastapi import APIRouter

from app.api.v1.endpoints import webhook, ai_providers

api_router = APIRouter()

api_router.include_router(webhook.router, prefix="/webhook", tags=["webhook"])
api_router.include_router(ai_providers.router, prefix="/ai", tags=["ai"])
