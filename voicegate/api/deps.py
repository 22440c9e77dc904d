from __future__ import annotations

from typing import AsyncGenerator, Optional

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from voicegate.core.exceptions import BusinessError
from voicegate.core.i18n import DEFAULT_LOCALE
from voicegate.core.secrets import SecretResolver, get_secret_resolver
from voicegate.core.security import Identity, IdentityProvider, JWTIdentityProvider
from voicegate.db import get_db_session
from voicegate.i18n.codes import ErrorCode


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async for session in get_db_session():
        yield session


def get_identity_provider() -> IdentityProvider:
    return JWTIdentityProvider()


def get_secrets() -> SecretResolver:
    return get_secret_resolver()


def get_locale(request: Request) -> str:
    return getattr(request.state, "locale", DEFAULT_LOCALE)


async def get_current_identity(
    authorization: Optional[str] = Header(default=None),
    identity_provider: IdentityProvider = Depends(get_identity_provider),
) -> Identity:
    return identity_provider.resolve(authorization)


async def get_admin_identity(identity: Identity = Depends(get_current_identity)) -> Identity:
    if not identity.is_admin:
        raise BusinessError(ErrorCode.PERMISSION_DENIED)
    return identity
