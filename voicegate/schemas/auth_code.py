from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from voicegate.models.enums import CodeType


class AuthCodeGenerateRequest(BaseModel):
    code_type: CodeType = CodeType.PRO_10MIN
    count: int = Field(default=1, ge=1, le=500)
    expires_days: Optional[int] = Field(default=30, ge=1)


class AuthCodeItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    code: str
    code_type: str
    minutes_amount: Optional[int] = None
    is_used: bool
    expires_at: Optional[datetime] = None


class AuthCodeGenerateResponse(BaseModel):
    items: list[AuthCodeItem] = Field(default_factory=list)
