"""授权码生成（管理员）"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from voicegate.core.exceptions import BusinessError
from voicegate.i18n.codes import ErrorCode
from voicegate.models.authorization_code import AuthorizationCode
from voicegate.models.enums import CodeType

logger = logging.getLogger("voicegate.services.auth_code_service")

# 去掉了 I、O、0、1 等容易混淆的字符
CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
CODE_GROUPS = 3
CODE_GROUP_SIZE = 4
MAX_BATCH_SIZE = 500


def generate_code() -> str:
    groups = [
        "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_GROUP_SIZE))
        for _ in range(CODE_GROUPS)
    ]
    return "-".join(groups)


async def generate_codes(
    session: AsyncSession,
    code_type: CodeType,
    count: int,
    expires_days: Optional[int] = 30,
    now: Optional[datetime] = None,
) -> list[AuthorizationCode]:
    if count <= 0 or count > MAX_BATCH_SIZE:
        raise BusinessError(ErrorCode.INVALID_PARAMETER, detail="count")
    if expires_days is not None and expires_days <= 0:
        raise BusinessError(ErrorCode.INVALID_PARAMETER, detail="expires_days")

    current = now or datetime.now(timezone.utc)
    expires_at = current + timedelta(days=expires_days) if expires_days is not None else None

    codes: set[str] = set()
    while len(codes) < count:
        codes.add(generate_code())

    # 与已有授权码冲突的重新生成
    result = await session.execute(select(AuthorizationCode.code).where(AuthorizationCode.code.in_(codes)))
    existing = set(result.scalars().all())
    while existing & codes:
        codes -= existing
        while len(codes) < count:
            candidate = generate_code()
            if candidate not in existing:
                codes.add(candidate)
        result = await session.execute(select(AuthorizationCode.code).where(AuthorizationCode.code.in_(codes)))
        existing = set(result.scalars().all())

    records = [
        AuthorizationCode(
            code=code,
            code_type=code_type.value,
            minutes_amount=code_type.default_minutes,
            is_used=False,
            expires_at=expires_at,
        )
        for code in sorted(codes)
    ]
    session.add_all(records)
    await session.commit()
    logger.info("Generated %s authorization code(s) of type %s", len(records), code_type.value)
    return records
