from __future__ import annotations

from enum import Enum
from typing import Optional


class AssessmentTier(str, Enum):
    """两个相互独立的额度池"""

    STANDARD = "standard"
    PROFESSIONAL = "professional"


class ProviderType(str, Enum):
    AZURE = "azure"
    TENCENT_SOE = "tencent_soe"
    IFLY = "ifly"
    TENCENT_ASR = "tencent_asr"
    OPENAI_COMPATIBLE = "openai_compatible"
    GENERIC_AI = "generic_ai"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["ProviderType"]:
        """解析数据库中的 provider_type，兼容旧的别名；未知类型返回 None"""
        if not value:
            return None
        normalized = value.strip().lower()
        normalized = _ALIASES.get(normalized, normalized)
        try:
            return cls(normalized)
        except ValueError:
            return None


_ALIASES = {
    "tencent": ProviderType.TENCENT_ASR.value,
    "openai": ProviderType.OPENAI_COMPATIBLE.value,
    "lovable": ProviderType.GENERIC_AI.value,
}


class CodeType(str, Enum):
    PRO_10MIN = "pro_10min"
    PRO_30MIN = "pro_30min"
    PRO_60MIN = "pro_60min"
    REGISTRATION = "registration"
    # 旧数据
    LEGACY_10MIN = "10min"
    LEGACY_60MIN = "60min"

    @property
    def tier(self) -> AssessmentTier:
        if self.value.startswith("pro_"):
            return AssessmentTier.PROFESSIONAL
        return AssessmentTier.STANDARD

    @property
    def default_minutes(self) -> int:
        return _CODE_MINUTES[self]


_CODE_MINUTES = {
    CodeType.PRO_10MIN: 10,
    CodeType.PRO_30MIN: 30,
    CodeType.PRO_60MIN: 60,
    CodeType.REGISTRATION: 0,
    CodeType.LEGACY_10MIN: 10,
    CodeType.LEGACY_60MIN: 60,
}
