"""授权码兑换

流程：规范化授权码 -> 查找未使用的记录 -> 检查过期 -> 增加额度 -> 条件更新标记已使用。
标记已使用没有命中行（被并发兑换）或执行失败时，撤销已增加的额度。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from voicegate.config import settings
from voicegate.core.exceptions import (
    BusinessError,
    CodeExpired,
    InvalidOrUsedCode,
    RedemptionFailed,
)
from voicegate.i18n.codes import ErrorCode
from voicegate.models.authorization_code import AuthorizationCode
from voicegate.models.enums import AssessmentTier, CodeType
from voicegate.services import quota_service

logger = logging.getLogger("voicegate.services.redemption_service")


@dataclass(frozen=True)
class RedemptionResult:
    minutes_added: int
    new_balance: int
    tier: AssessmentTier


def normalize_code(code: Optional[str]) -> str:
    return (code or "").strip().upper()


def tier_for_code_type(code_type: str) -> AssessmentTier:
    try:
        return CodeType(code_type).tier
    except ValueError:
        return AssessmentTier.PROFESSIONAL if code_type.startswith("pro_") else AssessmentTier.STANDARD


def _as_utc(value: datetime) -> datetime:
    # SQLite 返回不带时区的时间
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


async def _revert_credit(
    session: AsyncSession, user_id: str, tier: AssessmentTier, minutes: int
) -> None:
    try:
        await quota_service.debit(session, user_id, tier, minutes)
    except (SQLAlchemyError, BusinessError):
        logger.exception("Failed to revert %s minute(s) credited to user %s", minutes, user_id)


async def redeem_code(
    session: AsyncSession,
    user_id: str,
    code: Optional[str],
    now: Optional[datetime] = None,
) -> RedemptionResult:
    normalized = normalize_code(code)
    if not normalized:
        raise BusinessError(ErrorCode.CODE_REQUIRED)

    result = await session.execute(
        select(AuthorizationCode).where(
            AuthorizationCode.code == normalized,
            AuthorizationCode.is_used.is_(False),
        )
    )
    record = result.scalar_one_or_none()
    if record is None:
        raise InvalidOrUsedCode()

    current = now or datetime.now(timezone.utc)
    if record.expires_at is not None and _as_utc(record.expires_at) < current:
        raise CodeExpired()

    code_id = record.id
    tier = tier_for_code_type(record.code_type)
    minutes = record.minutes_amount or settings.DEFAULT_CODE_MINUTES

    try:
        new_balance = await quota_service.credit(session, user_id, tier, minutes)
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error("Failed to credit %s minute(s) to user %s: %s", minutes, user_id, exc)
        raise RedemptionFailed() from exc

    try:
        marked = await session.execute(
            update(AuthorizationCode)
            .where(AuthorizationCode.id == code_id, AuthorizationCode.is_used.is_(False))
            .values(is_used=True, used_by=user_id, used_at=current)
            .execution_options(synchronize_session=False)
        )
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error("Failed to mark code %s as used: %s", code_id, exc)
        await _revert_credit(session, user_id, tier, minutes)
        raise RedemptionFailed() from exc

    if (marked.rowcount or 0) == 0:
        logger.warning("Code %s was redeemed concurrently, reverting credit for user %s", code_id, user_id)
        await _revert_credit(session, user_id, tier, minutes)
        raise InvalidOrUsedCode()

    logger.info("User %s redeemed code %s: +%s %s minute(s)", user_id, code_id, minutes, tier.value)
    return RedemptionResult(minutes_added=minutes, new_balance=new_balance, tier=tier)


def success_message(result: RedemptionResult) -> str:
    label = "专业评测" if result.tier == AssessmentTier.PROFESSIONAL else "语音评测"
    return f"成功充值 {result.minutes_added} 分钟{label}时间"
