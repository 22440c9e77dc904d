"""用户评测额度模型"""

from __future__ import annotations

from sqlalchemy import CheckConstraint, Integer, String, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column

from voicegate.models.base import BaseRecord
from voicegate.models.enums import AssessmentTier


class UserQuota(BaseRecord):
    """用户剩余评测分钟数

    两个额度池互相独立：普通评测（standard）与专业评测（professional）。
    只有成功且完成的评测才会扣减；授权码兑换会增加。
    """

    __tablename__ = "user_quotas"
    __table_args__ = (
        UniqueConstraint("user_id", name="uk_user_quotas_user"),
        CheckConstraint("standard_minutes >= 0", name="ck_user_quotas_standard_non_negative"),
        CheckConstraint("professional_minutes >= 0", name="ck_user_quotas_professional_non_negative"),
    )

    # 身份服务提供的用户 ID
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)

    standard_minutes: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )
    professional_minutes: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )

    def minutes_for(self, tier: AssessmentTier) -> int:
        return int(getattr(self, minutes_column(tier).key) or 0)


def minutes_column(tier: AssessmentTier):
    if tier == AssessmentTier.PROFESSIONAL:
        return UserQuota.professional_minutes
    return UserQuota.standard_minutes
