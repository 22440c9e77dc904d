from __future__ import annotations

from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    APP_ENV: Literal["development", "staging", "production"] = Field(
        default="development"
    )
    DEBUG: bool = Field(default=True)

    DATABASE_URL: Optional[str] = Field(default=None)

    JWT_SECRET: Optional[str] = Field(default=None)
    JWT_ALGORITHM: Optional[str] = Field(default="HS256")
    # 逗号分隔的管理员用户 ID
    ADMIN_USER_IDS: Optional[str] = Field(default=None)

    # 新用户初始分钟数
    DEFAULT_STANDARD_MINUTES: int = Field(default=10, ge=0)
    DEFAULT_PROFESSIONAL_MINUTES: int = Field(default=0, ge=0)

    # 计费
    ESTIMATED_RECORDING_SECONDS: int = Field(default=10, ge=0)
    QUOTA_WRITE_ATTEMPTS: int = Field(default=3, ge=1)

    # 授权码
    DEFAULT_CODE_MINUTES: int = Field(default=10, ge=0)

    # 评测服务商
    PROVIDER_HTTP_TIMEOUT: float = Field(default=60.0, gt=0)
    AI_GATEWAY_BASE_URL: str = Field(default="https://ai.gateway.lovable.dev/v1")
    AI_GATEWAY_MODEL: str = Field(default="google/gemini-2.5-flash")
    AI_GATEWAY_API_KEY_NAME: str = Field(default="LOVABLE_API_KEY")

    def admin_user_ids(self) -> set[str]:
        if not self.ADMIN_USER_IDS:
            return set()
        return {item.strip() for item in self.ADMIN_USER_IDS.split(",") if item.strip()}


settings = Settings()
