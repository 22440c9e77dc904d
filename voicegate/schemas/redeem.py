from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class RedeemRequest(BaseModel):
    code: Optional[str] = None


class RedeemResponse(BaseModel):
    success: bool = True
    minutes_added: int
    total_minutes: int
    tier: str
    message: str
