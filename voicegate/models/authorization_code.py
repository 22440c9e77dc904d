from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Index, Integer, String, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column

from voicegate.models.base import BaseRecord


class AuthorizationCode(BaseRecord):
    """一次性授权码

    is_used 只能从 false 变为 true 一次，由带条件的 UPDATE（WHERE is_used = false）保证。
    """

    __tablename__ = "authorization_codes"
    __table_args__ = (
        UniqueConstraint("code", name="uk_authorization_codes_code"),
        Index("idx_authorization_codes_used", "is_used"),
    )

    code: Mapped[str] = mapped_column(String(32), nullable=False)
    code_type: Mapped[str] = mapped_column(String(30), nullable=False)
    minutes_amount: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    is_used: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    used_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    used_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
