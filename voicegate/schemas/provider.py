from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ProviderConfigItem(BaseModel):
    """服务商配置（只返回密钥名称，不返回密钥值）"""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    tier: str
    provider_type: str
    api_endpoint: Optional[str] = None
    api_key_secret_name: Optional[str] = None
    api_secret_key_name: Optional[str] = None
    region: Optional[str] = None
    model_identifier: Optional[str] = None
    config_json: dict[str, Any] = Field(default_factory=dict)
    is_active: bool
    is_default: bool
    priority: int
    created_at: Optional[datetime] = None


class ProviderListResponse(BaseModel):
    items: list[ProviderConfigItem] = Field(default_factory=list)
