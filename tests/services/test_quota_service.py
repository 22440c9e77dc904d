from __future__ import annotations

import pytest
from sqlalchemy import select, update

from voicegate.config import settings
from voicegate.core.exceptions import InsufficientBalance, QuotaConflict
from voicegate.i18n.codes import ErrorCode
from voicegate.models.enums import AssessmentTier
from voicegate.models.user_quota import UserQuota
from voicegate.services import quota_service
from voicegate.services.quota_service import minutes_for_duration


async def _set_balance(db, user_id: str, standard: int, professional: int = 0) -> None:
    await quota_service.get_or_create_quota(db, user_id)
    await db.execute(
        update(UserQuota)
        .where(UserQuota.user_id == user_id)
        .values(standard_minutes=standard, professional_minutes=professional)
    )
    await db.commit()


@pytest.mark.parametrize(
    ("seconds", "minutes"),
    [(0, 1), (1, 1), (59, 1), (60, 1), (61, 2), (75, 2), (120, 2), (121, 3), (3600, 60)],
)
def test_minutes_for_duration(seconds: int, minutes: int) -> None:
    assert minutes_for_duration(seconds) == minutes


@pytest.mark.asyncio
async def test_quota_is_created_with_defaults(db) -> None:
    settings.DEFAULT_STANDARD_MINUTES = 7

    quota = await quota_service.get_or_create_quota(db, "user-1")
    again = await quota_service.get_or_create_quota(db, "user-1")

    assert quota.id == again.id
    assert await quota_service.get_balance(db, "user-1", AssessmentTier.STANDARD) == 7
    assert await quota_service.get_balance(db, "user-1", AssessmentTier.PROFESSIONAL) == 0
    rows = (await db.execute(select(UserQuota))).scalars().all()
    assert len(rows) == 1


@pytest.mark.asyncio
async def test_unknown_user_has_zero_balance(db) -> None:
    assert await quota_service.get_balance(db, "ghost", AssessmentTier.STANDARD) == 0


@pytest.mark.asyncio
async def test_ensure_balance_raises_per_tier(db) -> None:
    await _set_balance(db, "user-1", standard=0, professional=0)

    with pytest.raises(InsufficientBalance) as standard_exc:
        await quota_service.ensure_balance(db, "user-1", AssessmentTier.STANDARD)
    with pytest.raises(InsufficientBalance) as professional_exc:
        await quota_service.ensure_balance(db, "user-1", AssessmentTier.PROFESSIONAL)

    assert standard_exc.value.code == ErrorCode.INSUFFICIENT_STANDARD_MINUTES
    assert professional_exc.value.code == ErrorCode.INSUFFICIENT_PROFESSIONAL_MINUTES
    assert standard_exc.value.http_status == 402


@pytest.mark.asyncio
async def test_charge_75_seconds_from_3_minutes(db) -> None:
    await _set_balance(db, "user-1", standard=3)

    result = await quota_service.charge(db, "user-1", AssessmentTier.STANDARD, 75)

    assert result.minutes_charged == 2
    assert result.previous_balance == 3
    assert result.new_balance == 1
    assert await quota_service.get_balance(db, "user-1", AssessmentTier.STANDARD) == 1


@pytest.mark.asyncio
async def test_charge_never_goes_negative(db) -> None:
    await _set_balance(db, "user-1", standard=1)

    result = await quota_service.charge(db, "user-1", AssessmentTier.STANDARD, 600)

    assert result.minutes_charged == 10
    assert result.new_balance == 0
    assert await quota_service.get_balance(db, "user-1", AssessmentTier.STANDARD) == 0


@pytest.mark.asyncio
async def test_charge_only_touches_its_tier(db) -> None:
    await _set_balance(db, "user-1", standard=5, professional=5)

    await quota_service.charge(db, "user-1", AssessmentTier.PROFESSIONAL, 30)

    assert await quota_service.get_balance(db, "user-1", AssessmentTier.STANDARD) == 5
    assert await quota_service.get_balance(db, "user-1", AssessmentTier.PROFESSIONAL) == 4


@pytest.mark.asyncio
async def test_charge_retries_after_lost_race(db, monkeypatch: pytest.MonkeyPatch) -> None:
    await _set_balance(db, "user-1", standard=10)
    original = quota_service._compare_and_set
    calls = {"count": 0}

    async def _racing_compare_and_set(session, user_id, tier, observed, new_value):
        calls["count"] += 1
        if calls["count"] == 1:
            # 另一个请求抢先扣了 3 分钟
            await session.execute(
                update(UserQuota).where(UserQuota.user_id == user_id).values(standard_minutes=7)
            )
            await session.commit()
        return await original(session, user_id, tier, observed, new_value)

    monkeypatch.setattr(quota_service, "_compare_and_set", _racing_compare_and_set)

    result = await quota_service.charge(db, "user-1", AssessmentTier.STANDARD, 30)

    assert calls["count"] == 2
    assert result.previous_balance == 7
    assert result.new_balance == 6


@pytest.mark.asyncio
async def test_charge_gives_up_after_attempts(db, monkeypatch: pytest.MonkeyPatch) -> None:
    await _set_balance(db, "user-1", standard=10)
    settings.QUOTA_WRITE_ATTEMPTS = 2
    calls = {"count": 0}

    async def _always_conflict(session, user_id, tier, observed, new_value):
        calls["count"] += 1
        return False

    monkeypatch.setattr(quota_service, "_compare_and_set", _always_conflict)

    with pytest.raises(QuotaConflict):
        await quota_service.charge(db, "user-1", AssessmentTier.STANDARD, 30)

    assert calls["count"] == 2
    assert await quota_service.get_balance(db, "user-1", AssessmentTier.STANDARD) == 10


@pytest.mark.asyncio
async def test_credit_and_debit(db) -> None:
    await _set_balance(db, "user-1", standard=2)

    assert await quota_service.credit(db, "user-1", AssessmentTier.STANDARD, 30) == 32
    assert await quota_service.debit(db, "user-1", AssessmentTier.STANDARD, 30) == 2
    assert await quota_service.debit(db, "user-1", AssessmentTier.STANDARD, 30) == 0


@pytest.mark.asyncio
async def test_credit_creates_missing_quota(db) -> None:
    settings.DEFAULT_PROFESSIONAL_MINUTES = 0

    balance = await quota_service.credit(db, "new-user", AssessmentTier.PROFESSIONAL, 60)

    assert balance == 60
