from __future__ import annotations

from voicegate.services.providers.azure import AzureSpeechAdapter
from voicegate.services.providers.base import AssessmentAdapter, AssessmentScores, PhonemeScore, WordScore
from voicegate.services.providers.factory import adapter_metadata, create_adapter
from voicegate.services.providers.generic_ai import GenericAIAdapter
from voicegate.services.providers.ifly import IFlyAdapter
from voicegate.services.providers.openai_compatible import OpenAICompatibleAdapter
from voicegate.services.providers.tencent_asr import TencentASRAdapter
from voicegate.services.providers.tencent_soe import TencentSOEAdapter

__all__ = [
    "AssessmentAdapter",
    "AssessmentScores",
    "PhonemeScore",
    "WordScore",
    "AzureSpeechAdapter",
    "TencentSOEAdapter",
    "IFlyAdapter",
    "TencentASRAdapter",
    "OpenAICompatibleAdapter",
    "GenericAIAdapter",
    "adapter_metadata",
    "create_adapter",
]
