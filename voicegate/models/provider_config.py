from __future__ import annotations

from typing import Optional

from sqlalchemy import Boolean, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from voicegate.models.base import BaseRecord, JSONType


class ProviderConfig(BaseRecord):
    """评测服务商配置

    凭证字段只保存环境变量中的密钥名称，不保存密钥本身。
    同一额度池内最多一个 is_default=True，由 provider_selector.set_default_provider 维护。
    """

    __tablename__ = "provider_configs"
    __table_args__ = (
        Index("idx_provider_configs_tier_active", "tier", "is_active"),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    tier: Mapped[str] = mapped_column(String(20), nullable=False)
    provider_type: Mapped[str] = mapped_column(String(50), nullable=False)
    api_endpoint: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    api_key_secret_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    api_secret_key_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    region: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    model_identifier: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    config_json: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=text("true"))
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=text("false"))
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=text("0"))
