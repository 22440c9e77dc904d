from __future__ import annotations

from typing import AsyncGenerator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from voicegate.api.deps import get_db, get_secrets
from voicegate.core.secrets import MappingSecretResolver
from voicegate.main import app

# 在 fake_http 替换 httpx.AsyncClient 之前绑定真实的客户端类
_RealAsyncClient = AsyncClient

TEST_SECRETS = {"LOVABLE_API_KEY": "gateway-key", "AZURE_SPEECH_KEY": "azure-key"}


@pytest_asyncio.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncClient, None]:
    async def _get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_secrets] = lambda: MappingSecretResolver(TEST_SECRETS)
    transport = ASGITransport(app=app)
    async with _RealAsyncClient(transport=transport, base_url="http://testserver") as http_client:
        yield http_client
    app.dependency_overrides.clear()
