from fastapi import APIRouter

from voicegate.api.v1 import admin, assessments, health, redeem

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(health.router)
api_router.include_router(assessments.router)
api_router.include_router(redeem.router)
api_router.include_router(admin.router)
