"""评测网关

单次请求的处理流程：

    认证 -> 额度检查 -> 参数校验 -> 选择服务商 -> 评测 -> 扣费 -> 写记录 -> 响应

两个失败出口都不扣费：
1. 额度不足（402）：不调用任何服务商，音频不离开系统
2. 评测失败（500）：写入 is_billed=false 的记录，billing_error 为失败原因

扣费失败时仍返回评测分数，但 billed=false 并带上 billing_error，供人工对账。
所有失败响应都带 billed=false，客户端不会误以为已经扣费。
"""

from __future__ import annotations

import base64
import binascii
import logging
import math
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from voicegate.config import Settings, settings as default_settings
from voicegate.core.exceptions import BusinessError, ProviderError
from voicegate.core.i18n import DEFAULT_LOCALE, get_message
from voicegate.core.secrets import SecretResolver, get_secret_resolver
from voicegate.core.security import Identity, IdentityProvider, JWTIdentityProvider
from voicegate.i18n.codes import ErrorCode
from voicegate.models.assessment_record import AssessmentRecord
from voicegate.models.enums import AssessmentTier
from voicegate.services import provider_selector, quota_service
from voicegate.services.providers import adapter_metadata, create_adapter
from voicegate.services.providers.base import AssessmentScores

logger = logging.getLogger("voicegate.services.assessment_gateway")


@dataclass(frozen=True)
class AssessmentRequest:
    original_text: Optional[str]
    audio_base64: Optional[str] = None
    language: str = "en-US"
    model_id: Optional[str] = None


@dataclass(frozen=True)
class GatewayResponse:
    status_code: int
    body: dict[str, Any] = field(default_factory=dict)

    @property
    def billed(self) -> bool:
        return bool(self.body.get("billed"))


@dataclass(frozen=True)
class _ProviderRef:
    id: Optional[str]
    name: str


def decode_audio(audio_base64: Optional[str]) -> bytes:
    """解码 base64 音频，兼容 data URL 前缀"""
    if not audio_base64:
        return b""
    data = audio_base64.strip()
    if data.startswith("data:") and "," in data:
        data = data.split(",", 1)[1]
    return base64.b64decode(data, validate=True)


def billing_duration(elapsed_seconds: float, recording_overhead: int) -> int:
    """处理耗时向上取整，加上估计的录音时长（客户端不上报真实录音时长）"""
    return math.ceil(max(0.0, elapsed_seconds)) + recording_overhead


class AssessmentGateway:
    def __init__(
        self,
        session: AsyncSession,
        tier: AssessmentTier,
        *,
        identity_provider: Optional[IdentityProvider] = None,
        secrets: Optional[SecretResolver] = None,
        app_settings: Optional[Settings] = None,
        clock: Callable[[], float] = time.monotonic,
        locale: str = DEFAULT_LOCALE,
    ) -> None:
        self._session = session
        self._tier = tier
        self._identity_provider = identity_provider or JWTIdentityProvider()
        self._secrets = secrets or get_secret_resolver()
        self._settings = app_settings or default_settings
        self._clock = clock
        self._locale = locale

    def _message(self, code: ErrorCode, **kwargs: str) -> str:
        return get_message(code, self._locale, **kwargs)

    def _insufficient_code(self) -> ErrorCode:
        if self._tier == AssessmentTier.PROFESSIONAL:
            return ErrorCode.INSUFFICIENT_PROFESSIONAL_MINUTES
        return ErrorCode.INSUFFICIENT_STANDARD_MINUTES

    def _reject(self, code: ErrorCode, **kwargs: str) -> GatewayResponse:
        return GatewayResponse(
            status_code=code.http_status,
            body={"error": self._message(code, **kwargs), "billed": False},
        )

    async def assess(self, authorization: Optional[str], request: AssessmentRequest) -> GatewayResponse:
        try:
            identity = self._identity_provider.resolve(authorization)
        except BusinessError as exc:
            return GatewayResponse(
                status_code=401,
                body={"error": self._message(exc.code, **exc.kwargs), "billed": False},
            )

        return await self._assess_for(identity, request)

    async def _assess_for(self, identity: Identity, request: AssessmentRequest) -> GatewayResponse:
        user_id = identity.user_id
        reference_text = (request.original_text or "").strip()

        try:
            await quota_service.get_or_create_quota(self._session, user_id)
            balance = await quota_service.get_balance(self._session, user_id, self._tier)
        except SQLAlchemyError:
            await self._session.rollback()
            logger.exception("Failed to load quota for user %s", user_id)
            return self._reject(ErrorCode.QUOTA_LOOKUP_FAILED)
        logger.info("User %s has %s %s minute(s) remaining", user_id, balance, self._tier.value)
        if balance <= 0:
            message = self._message(self._insufficient_code())
            await self._record(
                user_id=user_id,
                provider=None,
                reference_text=reference_text,
                billing_error=message,
            )
            return GatewayResponse(
                status_code=402,
                body={"error": message, "remaining_minutes": 0, "billed": False},
            )

        if not reference_text:
            return self._reject(ErrorCode.INVALID_PARAMETER, detail="original_text")

        try:
            config = await provider_selector.resolve_provider(self._session, self._tier, request.model_id)
        except SQLAlchemyError:
            await self._session.rollback()
            logger.exception("Failed to load provider configuration for tier %s", self._tier.value)
            return self._reject(ErrorCode.INTERNAL_SERVER_ERROR)
        # 回滚会使 ORM 对象过期，后续只使用这里取出的值
        provider = _ProviderRef(id=config.id, name=config.name)
        metadata = adapter_metadata(config)
        requires_audio = metadata.requires_audio if metadata is not None else True

        try:
            audio = decode_audio(request.audio_base64)
        except (binascii.Error, ValueError):
            return self._reject(ErrorCode.INVALID_PARAMETER, detail="audio_base64")
        if requires_audio and not audio:
            return self._reject(ErrorCode.INVALID_PARAMETER, detail="audio_base64")

        logger.info("Assessing with provider %s (%s)", config.name, config.provider_type)
        started = self._clock()
        try:
            adapter = create_adapter(config, self._secrets, self._settings)
            scores = await adapter.assess(audio, reference_text, request.language or "en-US")
        except ProviderError as exc:
            logger.warning("Assessment failed for user %s: %s", user_id, exc)
            return await self._failed(user_id, provider, reference_text, balance, self._message(exc.code, **exc.kwargs))
        except Exception as exc:
            logger.exception("Unexpected assessment failure for user %s", user_id)
            return await self._failed(user_id, provider, reference_text, balance, str(exc) or type(exc).__name__)

        duration = billing_duration(self._clock() - started, self._settings.ESTIMATED_RECORDING_SECONDS)
        billed = False
        billing_error: Optional[str] = None
        minutes_used = 0
        remaining = balance
        try:
            charge = await quota_service.charge(self._session, user_id, self._tier, duration)
        except (BusinessError, SQLAlchemyError) as exc:
            await self._session.rollback()
            logger.error("Billing failed for user %s after successful assessment: %s", user_id, exc)
            billing_error = self._message(ErrorCode.BILLING_FAILED)
        else:
            billed = True
            minutes_used = charge.minutes_charged
            remaining = charge.new_balance

        await self._record(
            user_id=user_id,
            provider=provider,
            reference_text=reference_text,
            scores=scores,
            duration_seconds=duration,
            minutes_charged=minutes_used,
            is_billed=billed,
            billing_error=billing_error,
        )

        body: dict[str, Any] = {
            "overall_score": scores.overall_score,
            "pronunciation_score": scores.pronunciation_score,
            "accuracy_score": scores.accuracy_score,
            "fluency_score": scores.fluency_score,
            "completeness_score": scores.completeness_score,
            "feedback": scores.feedback,
            "words_result": [word.to_dict() for word in scores.words],
            "is_simulated": scores.is_simulated,
            "provider": provider.name,
            "remaining_minutes": remaining,
            "minutes_used": minutes_used,
            "billed": billed,
            "billing_error": billing_error,
        }
        if scores.transcribed_text is not None:
            body["transcribed_text"] = scores.transcribed_text
        return GatewayResponse(status_code=200, body=body)

    async def _failed(
        self,
        user_id: str,
        provider: _ProviderRef,
        reference_text: str,
        balance: int,
        reason: str,
    ) -> GatewayResponse:
        await self._record(
            user_id=user_id,
            provider=provider,
            reference_text=reference_text,
            billing_error=reason,
        )
        return GatewayResponse(
            status_code=500,
            body={
                "error": reason,
                "message": self._message(ErrorCode.ASSESSMENT_NOT_CHARGED),
                "remaining_minutes": balance,
                "billed": False,
            },
        )

    async def _record(
        self,
        *,
        user_id: str,
        provider: Optional[_ProviderRef],
        reference_text: str,
        scores: Optional[AssessmentScores] = None,
        duration_seconds: int = 0,
        minutes_charged: int = 0,
        is_billed: bool = False,
        billing_error: Optional[str] = None,
    ) -> None:
        record = AssessmentRecord(
            user_id=user_id,
            tier=self._tier.value,
            provider_id=provider.id if provider is not None else None,
            provider_name=provider.name if provider is not None else None,
            reference_text=reference_text,
            duration_seconds=duration_seconds,
            minutes_charged=minutes_charged,
            is_billed=is_billed,
            billing_error=billing_error[:500] if billing_error else None,
            words_result=[],
            is_simulated=False,
        )
        if scores is not None:
            record.overall_score = scores.overall_score
            record.pronunciation_score = scores.pronunciation_score
            record.accuracy_score = scores.accuracy_score
            record.fluency_score = scores.fluency_score
            record.completeness_score = scores.completeness_score
            record.feedback = scores.feedback
            record.words_result = [word.to_dict() for word in scores.words]
            record.transcribed_text = scores.transcribed_text
            record.is_simulated = scores.is_simulated
            record.raw_response = _audit_payload(scores.raw_response)

        self._session.add(record)
        try:
            await self._session.commit()
        except SQLAlchemyError:
            await self._session.rollback()
            logger.exception("Failed to save assessment record for user %s", user_id)


def _audit_payload(raw: Any) -> Optional[dict]:
    if raw is None:
        return None
    if isinstance(raw, dict):
        return raw
    return {"value": raw}
