"""评测额度服务

管理用户在两个额度池中的剩余分钟数。

扣费使用乐观并发控制：读取当前余额后执行
    UPDATE ... SET minutes = :new WHERE user_id = :uid AND minutes = :observed
若没有命中任何行说明并发写入已改变余额，重新读取后重试，重试次数由 QUOTA_WRITE_ATTEMPTS 限制。
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from voicegate.config import settings
from voicegate.core.exceptions import InsufficientBalance, QuotaConflict
from voicegate.i18n.codes import ErrorCode
from voicegate.models.enums import AssessmentTier
from voicegate.models.user_quota import UserQuota, minutes_column

logger = logging.getLogger("voicegate.services.quota_service")


@dataclass(frozen=True)
class ChargeResult:
    minutes_charged: int
    previous_balance: int
    new_balance: int


def minutes_for_duration(duration_seconds: float) -> int:
    """按分钟向上取整，至少 1 分钟"""
    return max(1, math.ceil(duration_seconds / 60))


def _insufficient_code(tier: AssessmentTier) -> ErrorCode:
    if tier == AssessmentTier.PROFESSIONAL:
        return ErrorCode.INSUFFICIENT_PROFESSIONAL_MINUTES
    return ErrorCode.INSUFFICIENT_STANDARD_MINUTES


async def _load(session: AsyncSession, user_id: str) -> Optional[UserQuota]:
    result = await session.execute(select(UserQuota).where(UserQuota.user_id == user_id))
    return result.scalar_one_or_none()


async def _read_minutes(session: AsyncSession, user_id: str, tier: AssessmentTier) -> Optional[int]:
    column = minutes_column(tier)
    result = await session.execute(select(column).where(UserQuota.user_id == user_id))
    value = result.scalar_one_or_none()
    return None if value is None else int(value)


async def get_or_create_quota(session: AsyncSession, user_id: str) -> UserQuota:
    """首次见到的用户按默认分钟数建档"""
    quota = await _load(session, user_id)
    if quota is not None:
        return quota

    quota = UserQuota(
        user_id=user_id,
        standard_minutes=settings.DEFAULT_STANDARD_MINUTES,
        professional_minutes=settings.DEFAULT_PROFESSIONAL_MINUTES,
    )
    session.add(quota)
    try:
        await session.commit()
    except IntegrityError:
        # 并发请求已经创建
        await session.rollback()
        quota = await _load(session, user_id)
        if quota is None:
            raise
        return quota
    logger.info("Created quota for user %s", user_id)
    return quota


async def get_balance(session: AsyncSession, user_id: str, tier: AssessmentTier) -> int:
    minutes = await _read_minutes(session, user_id, tier)
    return minutes or 0


async def ensure_balance(session: AsyncSession, user_id: str, tier: AssessmentTier) -> int:
    balance = await get_balance(session, user_id, tier)
    if balance <= 0:
        raise InsufficientBalance(_insufficient_code(tier))
    return balance


async def _compare_and_set(
    session: AsyncSession,
    user_id: str,
    tier: AssessmentTier,
    observed: int,
    new_value: int,
) -> bool:
    column = minutes_column(tier)
    result = await session.execute(
        update(UserQuota)
        .where(UserQuota.user_id == user_id, column == observed)
        .values({column.key: new_value})
        .execution_options(synchronize_session=False)
    )
    await session.commit()
    return (result.rowcount or 0) > 0


async def charge(
    session: AsyncSession,
    user_id: str,
    tier: AssessmentTier,
    duration_seconds: float,
) -> ChargeResult:
    """扣除一次评测的分钟数，余额最低为 0"""
    minutes = minutes_for_duration(duration_seconds)
    attempts = max(1, settings.QUOTA_WRITE_ATTEMPTS)
    for attempt in range(1, attempts + 1):
        observed = await _read_minutes(session, user_id, tier)
        if observed is None:
            raise InsufficientBalance(_insufficient_code(tier))
        new_balance = max(0, observed - minutes)
        if await _compare_and_set(session, user_id, tier, observed, new_balance):
            logger.info(
                "Charged %s minute(s) from %s quota of user %s: %s -> %s",
                minutes,
                tier.value,
                user_id,
                observed,
                new_balance,
            )
            return ChargeResult(minutes_charged=minutes, previous_balance=observed, new_balance=new_balance)
        logger.warning(
            "Quota write conflict for user %s (%s), attempt %s/%s",
            user_id,
            tier.value,
            attempt,
            attempts,
        )
    raise QuotaConflict()


async def credit(session: AsyncSession, user_id: str, tier: AssessmentTier, minutes: int) -> int:
    """增加分钟数并返回新余额

    使用相对更新 minutes = minutes + :n，与并发扣费不会互相覆盖。
    """
    await get_or_create_quota(session, user_id)
    column = minutes_column(tier)
    await session.execute(
        update(UserQuota)
        .where(UserQuota.user_id == user_id)
        .values({column.key: column + minutes})
        .execution_options(synchronize_session=False)
    )
    await session.commit()
    return await get_balance(session, user_id, tier)


async def debit(session: AsyncSession, user_id: str, tier: AssessmentTier, minutes: int) -> int:
    """撤销一次 credit，余额最低为 0"""
    column = minutes_column(tier)
    attempts = max(1, settings.QUOTA_WRITE_ATTEMPTS)
    for _ in range(attempts):
        observed = await _read_minutes(session, user_id, tier)
        if observed is None:
            return 0
        new_balance = max(0, observed - minutes)
        if await _compare_and_set(session, user_id, tier, observed, new_balance):
            return new_balance
    logger.error("Failed to debit %s minute(s) from user %s (%s)", minutes, user_id, column.key)
    raise QuotaConflict()
