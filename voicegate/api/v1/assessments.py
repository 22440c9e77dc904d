from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Header
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from voicegate.api.deps import get_db, get_identity_provider, get_locale, get_secrets
from voicegate.core.response import raw
from voicegate.core.secrets import SecretResolver
from voicegate.core.security import IdentityProvider
from voicegate.models.enums import AssessmentTier
from voicegate.schemas.assessment import AssessmentCreateRequest, AssessmentResponse
from voicegate.services.assessment_gateway import AssessmentGateway, AssessmentRequest

router = APIRouter(prefix="/assessments", tags=["assessments"])


async def _run(
    tier: AssessmentTier,
    payload: AssessmentCreateRequest,
    authorization: Optional[str],
    db: AsyncSession,
    identity_provider: IdentityProvider,
    secrets: SecretResolver,
    locale: str,
) -> JSONResponse:
    gateway = AssessmentGateway(
        db,
        tier,
        identity_provider=identity_provider,
        secrets=secrets,
        locale=locale,
    )
    result = await gateway.assess(
        authorization,
        AssessmentRequest(
            original_text=payload.original_text,
            audio_base64=payload.audio_base64,
            language=payload.language,
            model_id=payload.model_id,
        ),
    )
    return raw(result.status_code, result.body)


@router.post("/voice", responses={200: {"model": AssessmentResponse}})
async def assess_voice(
    payload: AssessmentCreateRequest,
    authorization: Optional[str] = Header(default=None),
    db: AsyncSession = Depends(get_db),
    identity_provider: IdentityProvider = Depends(get_identity_provider),
    secrets: SecretResolver = Depends(get_secrets),
    locale: str = Depends(get_locale),
) -> JSONResponse:
    """普通语音评测（标准额度池）"""
    return await _run(AssessmentTier.STANDARD, payload, authorization, db, identity_provider, secrets, locale)


@router.post("/professional", responses={200: {"model": AssessmentResponse}})
async def assess_professional(
    payload: AssessmentCreateRequest,
    authorization: Optional[str] = Header(default=None),
    db: AsyncSession = Depends(get_db),
    identity_provider: IdentityProvider = Depends(get_identity_provider),
    secrets: SecretResolver = Depends(get_secrets),
    locale: str = Depends(get_locale),
) -> JSONResponse:
    """专业发音评测（专业额度池）"""
    return await _run(
        AssessmentTier.PROFESSIONAL, payload, authorization, db, identity_provider, secrets, locale
    )
