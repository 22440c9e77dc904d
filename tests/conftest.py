from __future__ import annotations

from typing import Any, AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from voicegate.config import settings
from voicegate.core.monitoring import collector
from voicegate.models.base import Base
import voicegate.models  # noqa: F401
import voicegate.services.providers  # noqa: F401

_INVALID_JSON = object()


class FakeResponse:
    def __init__(self, payload: Any = None, status_code: int = 200, text: str = "") -> None:
        self._payload = payload
        self.status_code = status_code
        self.text = text

    @classmethod
    def invalid_json(cls, text: str = "<html>bad gateway</html>") -> "FakeResponse":
        return cls(payload=_INVALID_JSON, text=text)

    def json(self) -> Any:
        if self._payload is _INVALID_JSON:
            raise ValueError("not json")
        return self._payload


class FakeHTTP:
    """替换 httpx.AsyncClient，按顺序返回预设响应并记录请求"""

    def __init__(self) -> None:
        self.responses: list[FakeResponse] = []
        self.requests: list[dict[str, Any]] = []
        self.error: Exception | None = None

    def queue(self, payload: Any = None, status_code: int = 200, text: str = "") -> None:
        self.responses.append(FakeResponse(payload, status_code, text))

    def queue_invalid_json(self, status_code: int = 200) -> None:
        self.responses.append(FakeResponse.invalid_json())
        self.responses[-1].status_code = status_code

    @property
    def calls(self) -> int:
        return len(self.requests)

    def client_class(self) -> type:
        owner = self

        class _Client:
            def __init__(self, *args: object, **kwargs: object) -> None:
                pass

            async def __aenter__(self) -> "_Client":
                return self

            async def __aexit__(
                self, exc_type: type[BaseException] | None, exc: BaseException | None, tb: object | None
            ) -> bool:
                return False

            async def post(self, url: str, **kwargs: Any) -> FakeResponse:
                owner.requests.append({"url": url, **kwargs})
                if owner.error is not None:
                    raise owner.error
                if not owner.responses:
                    raise RuntimeError("response is not set")
                return owner.responses.pop(0)

        return _Client


@pytest.fixture
def fake_http(monkeypatch: pytest.MonkeyPatch) -> FakeHTTP:
    fake = FakeHTTP()
    monkeypatch.setattr(httpx, "AsyncClient", fake.client_class())
    return fake


@pytest.fixture(autouse=True)
def _test_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "JWT_SECRET", "test-jwt-secret")
    monkeypatch.setattr(settings, "JWT_ALGORITHM", "HS256")
    monkeypatch.setattr(settings, "ADMIN_USER_IDS", "admin-1")
    monkeypatch.setattr(settings, "DEFAULT_STANDARD_MINUTES", 10)
    monkeypatch.setattr(settings, "DEFAULT_PROFESSIONAL_MINUTES", 0)
    monkeypatch.setattr(settings, "ESTIMATED_RECORDING_SECONDS", 10)
    monkeypatch.setattr(settings, "QUOTA_WRITE_ATTEMPTS", 3)
    monkeypatch.setattr(settings, "DEFAULT_CODE_MINUTES", 10)
    collector.reset()


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session
