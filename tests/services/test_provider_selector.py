from __future__ import annotations

import pytest
from sqlalchemy import select

from voicegate.core.exceptions import BusinessError
from voicegate.i18n.codes import ErrorCode
from voicegate.models.enums import AssessmentTier, ProviderType
from voicegate.models.provider_config import ProviderConfig
from voicegate.services import provider_selector


async def _add(db, name: str, priority: int, **overrides: object) -> ProviderConfig:
    values: dict[str, object] = {
        "name": name,
        "tier": AssessmentTier.PROFESSIONAL.value,
        "provider_type": ProviderType.AZURE.value,
        "priority": priority,
        "is_active": True,
        "is_default": False,
        "config_json": {},
    }
    values.update(overrides)
    config = ProviderConfig(**values)
    db.add(config)
    await db.commit()
    return config


@pytest.mark.asyncio
async def test_highest_priority_wins_without_default(db) -> None:
    await _add(db, "p5", 5)
    await _add(db, "p10", 10)
    await _add(db, "p1", 1)

    selected = await provider_selector.select_provider(db, AssessmentTier.PROFESSIONAL)

    assert selected.name == "p10"


@pytest.mark.asyncio
async def test_default_beats_priority(db) -> None:
    await _add(db, "p5", 5)
    await _add(db, "p10", 10)
    await _add(db, "p1", 1, is_default=True)

    selected = await provider_selector.select_provider(db, AssessmentTier.PROFESSIONAL)

    assert selected.name == "p1"


@pytest.mark.asyncio
async def test_inactive_and_other_tier_rows_are_ignored(db) -> None:
    await _add(db, "inactive", 100, is_active=False)
    await _add(db, "standard", 50, tier=AssessmentTier.STANDARD.value)
    await _add(db, "active", 1)

    selected = await provider_selector.select_provider(db, AssessmentTier.PROFESSIONAL)

    assert selected.name == "active"


@pytest.mark.asyncio
async def test_empty_table_returns_none(db) -> None:
    assert await provider_selector.select_provider(db, AssessmentTier.STANDARD) is None


@pytest.mark.asyncio
async def test_explicit_provider_id(db) -> None:
    await _add(db, "p10", 10, is_default=True)
    wanted = await _add(db, "p1", 1)

    selected = await provider_selector.select_provider(db, AssessmentTier.PROFESSIONAL, wanted.id)

    assert selected.id == wanted.id


@pytest.mark.asyncio
async def test_explicit_provider_of_other_tier_is_ignored(db) -> None:
    other = await _add(db, "standard", 1, tier=AssessmentTier.STANDARD.value)
    await _add(db, "professional", 1)

    selected = await provider_selector.select_provider(db, AssessmentTier.PROFESSIONAL, other.id)

    assert selected.name == "professional"


@pytest.mark.asyncio
async def test_resolve_falls_back_to_generic_ai(db) -> None:
    config = await provider_selector.resolve_provider(db, AssessmentTier.STANDARD)

    assert config.id is None
    assert config.provider_type == ProviderType.GENERIC_AI.value
    assert config.tier == AssessmentTier.STANDARD.value
    assert (await db.execute(select(ProviderConfig))).scalars().all() == []


@pytest.mark.asyncio
async def test_set_default_clears_other_defaults_in_tier(db) -> None:
    old_default = await _add(db, "old", 1, is_default=True)
    target = await _add(db, "new", 2)
    other_tier = await _add(db, "standard", 1, tier=AssessmentTier.STANDARD.value, is_default=True)

    updated = await provider_selector.set_default_provider(db, target.id)

    assert updated.is_default is True
    rows = {
        row.id: row.is_default
        for row in (await db.execute(select(ProviderConfig).execution_options(populate_existing=True))).scalars()
    }
    assert rows == {old_default.id: False, target.id: True, other_tier.id: True}


@pytest.mark.asyncio
async def test_set_default_unknown_provider(db) -> None:
    with pytest.raises(BusinessError) as exc_info:
        await provider_selector.set_default_provider(db, "missing")

    assert exc_info.value.code == ErrorCode.PROVIDER_NOT_FOUND


@pytest.mark.asyncio
async def test_list_providers_by_tier(db) -> None:
    await _add(db, "pro", 1)
    await _add(db, "std", 1, tier=AssessmentTier.STANDARD.value)

    names = [item.name for item in await provider_selector.list_providers(db, AssessmentTier.STANDARD)]

    assert names == ["std"]
