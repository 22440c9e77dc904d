from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from voicegate.api.deps import get_admin_identity, get_db
from voicegate.core.response import success
from voicegate.core.security import Identity
from voicegate.models.enums import AssessmentTier
from voicegate.schemas.auth_code import AuthCodeGenerateRequest, AuthCodeGenerateResponse, AuthCodeItem
from voicegate.schemas.provider import ProviderConfigItem, ProviderListResponse
from voicegate.services.auth_code_service import generate_codes
from voicegate.services.provider_selector import list_providers, set_default_provider

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/providers")
async def get_providers(
    tier: Optional[AssessmentTier] = Query(default=None),
    db: AsyncSession = Depends(get_db),
    admin: Identity = Depends(get_admin_identity),
) -> JSONResponse:
    providers = await list_providers(db, tier)
    response = ProviderListResponse(
        items=[ProviderConfigItem.model_validate(item) for item in providers]
    )
    return success(data=jsonable_encoder(response))


@router.put("/providers/{provider_id}/default")
async def make_default_provider(
    provider_id: str,
    db: AsyncSession = Depends(get_db),
    admin: Identity = Depends(get_admin_identity),
) -> JSONResponse:
    """设为默认服务商（同一额度池内其他配置取消默认）"""
    provider = await set_default_provider(db, provider_id)
    return success(data=jsonable_encoder(ProviderConfigItem.model_validate(provider)))


@router.post("/auth-codes")
async def create_auth_codes(
    payload: AuthCodeGenerateRequest,
    db: AsyncSession = Depends(get_db),
    admin: Identity = Depends(get_admin_identity),
) -> JSONResponse:
    records = await generate_codes(db, payload.code_type, payload.count, payload.expires_days)
    response = AuthCodeGenerateResponse(items=[AuthCodeItem.model_validate(item) for item in records])
    return success(data=jsonable_encoder(response), status_code=201)
