"""评测服务商选择

选择顺序：
1. 请求显式指定且属于该额度池的启用配置
2. 该额度池的启用配置，按 is_default 降序、priority 降序取第一个
3. 都没有时使用零配置的通用 AI 兜底（不落库，id 为 None）
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from voicegate.config import settings
from voicegate.core.exceptions import BusinessError
from voicegate.i18n.codes import ErrorCode
from voicegate.models.enums import AssessmentTier, ProviderType
from voicegate.models.provider_config import ProviderConfig

logger = logging.getLogger("voicegate.services.provider_selector")

FALLBACK_PROVIDER_NAME = "AI 模拟评测"


async def select_provider(
    session: AsyncSession,
    tier: AssessmentTier,
    provider_id: Optional[str] = None,
) -> Optional[ProviderConfig]:
    if provider_id:
        result = await session.execute(
            select(ProviderConfig).where(
                ProviderConfig.id == provider_id,
                ProviderConfig.tier == tier.value,
                ProviderConfig.is_active.is_(True),
            )
        )
        explicit = result.scalar_one_or_none()
        if explicit is not None:
            return explicit
        logger.info("Requested provider %s is not an active %s provider, using default", provider_id, tier.value)

    result = await session.execute(
        select(ProviderConfig)
        .where(ProviderConfig.tier == tier.value, ProviderConfig.is_active.is_(True))
        .order_by(ProviderConfig.is_default.desc(), ProviderConfig.priority.desc())
        .limit(1)
    )
    return result.scalars().first()


def fallback_provider(tier: AssessmentTier) -> ProviderConfig:
    return ProviderConfig(
        id=None,
        name=FALLBACK_PROVIDER_NAME,
        tier=tier.value,
        provider_type=ProviderType.GENERIC_AI.value,
        api_endpoint=settings.AI_GATEWAY_BASE_URL,
        api_key_secret_name=settings.AI_GATEWAY_API_KEY_NAME,
        model_identifier=settings.AI_GATEWAY_MODEL,
        config_json={},
        is_active=True,
        is_default=False,
        priority=0,
    )


async def resolve_provider(
    session: AsyncSession,
    tier: AssessmentTier,
    provider_id: Optional[str] = None,
) -> ProviderConfig:
    config = await select_provider(session, tier, provider_id)
    if config is None:
        logger.info("No %s provider configured, falling back to generic AI", tier.value)
        return fallback_provider(tier)
    return config


async def set_default_provider(session: AsyncSession, provider_id: str) -> ProviderConfig:
    """设为默认：先清除同池其他配置的默认标记并提交，再设置目标

    两步之间失败时该池没有默认配置，但不会出现两个默认。
    """
    target = await session.get(ProviderConfig, provider_id)
    if target is None:
        raise BusinessError(ErrorCode.PROVIDER_NOT_FOUND)

    await session.execute(
        update(ProviderConfig)
        .where(ProviderConfig.tier == target.tier, ProviderConfig.id != target.id)
        .values(is_default=False)
        .execution_options(synchronize_session=False)
    )
    await session.commit()

    await session.execute(
        update(ProviderConfig)
        .where(ProviderConfig.id == target.id)
        .values(is_default=True)
        .execution_options(synchronize_session=False)
    )
    await session.commit()
    await session.refresh(target)
    logger.info("Provider %s is now the default %s provider", target.id, target.tier)
    return target


async def list_providers(session: AsyncSession, tier: Optional[AssessmentTier] = None) -> list[ProviderConfig]:
    stmt = select(ProviderConfig).order_by(
        ProviderConfig.tier, ProviderConfig.is_default.desc(), ProviderConfig.priority.desc()
    )
    if tier is not None:
        stmt = stmt.where(ProviderConfig.tier == tier.value)
    result = await session.execute(stmt)
    return list(result.scalars().all())
