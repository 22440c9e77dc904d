from __future__ import annotations

from typing import Optional

from sqlalchemy import Boolean, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from voicegate.models.base import BaseRecord, JSONType


class AssessmentRecord(BaseRecord):
    """评测记录表（只追加的审计日志）

    每次评测尝试写入一条，无论成功或失败：
    1. 成功：完整分数、扣费分钟数
    2. 失败：is_billed=false，billing_error 记录失败原因
    3. 扣费失败但评测成功：保留分数，is_billed=false，billing_error 便于人工对账
    """

    __tablename__ = "assessment_records"
    __table_args__ = (
        Index("idx_assessment_records_user", "user_id"),
        Index("idx_assessment_records_provider", "provider_id"),
        Index("idx_assessment_records_created_at", "created_at"),
    )

    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    tier: Mapped[str] = mapped_column(String(20), nullable=False)

    # 合成的兜底配置没有 ID
    provider_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    provider_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    reference_text: Mapped[str] = mapped_column(Text, nullable=False)
    transcribed_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # 分数（0-100），失败时为空
    pronunciation_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    accuracy_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    fluency_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    completeness_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    overall_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    feedback: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    words_result: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    is_simulated: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )

    # 计费
    duration_seconds: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )
    minutes_charged: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )
    is_billed: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    billing_error: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    raw_response: Mapped[Optional[dict]] = mapped_column(JSONType, nullable=True)
