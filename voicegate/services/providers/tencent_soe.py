from __future__ import annotations

import base64
import logging
import uuid
from typing import Any, Optional

from voicegate.core.exceptions import MalformedResponse
from voicegate.core.monitoring import monitor
from voicegate.core.registry import AdapterMetadata, register_adapter
from voicegate.models.enums import ProviderType
from voicegate.services.providers.base import (
    AssessmentAdapter,
    INSERTION,
    AssessmentScores,
    PhonemeScore,
    WordScore,
    clamp_score,
)
from voicegate.services.providers.feedback import oral_feedback
from voicegate.services.providers.tencent_cloud import TencentCloudClient

logger = logging.getLogger("voicegate.services.providers.tencent_soe")

SERVICE = "soe"
ACTION = "TransmitOralProcess"
VERSION = "2018-07-24"
DEFAULT_REGION = "ap-guangzhou"
DEFAULT_SECRET_ID_NAME = "TENCENT_SOE_SECRET_ID"
DEFAULT_SECRET_KEY_NAME = "TENCENT_SOE_SECRET_KEY"

# 0 匹配 1 多读 2 漏读 3 错读 4 未录入
MATCH_TAGS = {
    0: "None",
    1: INSERTION,
    2: "Omission",
    3: "Mispronunciation",
    4: "UnknownWord",
}


def _ratio_to_hundred(value: Any) -> Optional[float]:
    """PronFluency / PronCompletion 以 0-1 的比例返回"""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if 0 <= value <= 1:
        return float(value) * 100
    return float(value)


def _parse_words(raw_words: Any) -> list[WordScore]:
    words: list[WordScore] = []
    if not isinstance(raw_words, list):
        return words
    for item in raw_words:
        if not isinstance(item, dict):
            continue
        word = str(item.get("Word") or "").strip()
        # 标点符号等无评分的单词
        if not word or item.get("PronAccuracy") is None:
            continue
        error_type = MATCH_TAGS.get(item.get("MatchTag"), "None")
        # 多读的单词不在原文中，只保留在 raw_response 里
        if error_type == INSERTION:
            continue
        phonemes = None
        raw_phones = item.get("PhoneInfos")
        if isinstance(raw_phones, list):
            phonemes = [
                PhonemeScore(phoneme=str(phone.get("Phone", "")), score=clamp_score(phone.get("PronAccuracy")))
                for phone in raw_phones
                if isinstance(phone, dict)
            ]
        words.append(
            WordScore(
                word=word,
                accuracy_score=clamp_score(item.get("PronAccuracy")),
                error_type=error_type,
                phonemes=phonemes,
            )
        )
    return words


@register_adapter(
    ProviderType.TENCENT_SOE,
    metadata=AdapterMetadata(
        display_name="腾讯智聆口语评测",
        description="腾讯云 SOE 句子模式评测",
    ),
)
class TencentSOEAdapter(AssessmentAdapter):
    def _client(self) -> TencentCloudClient:
        secret_id = self._require_secret(
            self.config.api_key_secret_name or DEFAULT_SECRET_ID_NAME, "secret id"
        )
        secret_key = self._require_secret(
            self.config.api_secret_key_name or DEFAULT_SECRET_KEY_NAME, "secret key"
        )
        return TencentCloudClient(
            service=SERVICE,
            version=VERSION,
            region=self.config.region or DEFAULT_REGION,
            secret_id=secret_id,
            secret_key=secret_key,
            provider=self.provider,
            timeout=self._timeout(),
        )

    def _payload(self, audio: bytes, reference_text: str, language: str) -> dict[str, Any]:
        return {
            "SeqId": 1,
            "IsEnd": 1,
            "SessionId": str(uuid.uuid4()),
            "VoiceFileType": self._option("voice_file_type", 3),
            "VoiceEncodeType": 1,
            "UserVoiceData": base64.b64encode(audio).decode("ascii"),
            "RefText": reference_text,
            "WorkMode": 0,
            "EvalMode": self._option("eval_mode", 2),
            "ScoreCoeff": self._option("score_coeff", 1.0),
            "ServerType": 1 if language.lower().startswith("zh") else 0,
        }

    @monitor("assessment")
    async def assess(self, audio: bytes, reference_text: str, language: str) -> AssessmentScores:
        client = self._client()
        result = await client.call(ACTION, self._payload(audio, reference_text, language))

        accuracy = result.get("PronAccuracy")
        if accuracy is None:
            raise MalformedResponse("missing PronAccuracy", provider=self.provider)

        fluency = _ratio_to_hundred(result.get("PronFluency"))
        completion = _ratio_to_hundred(result.get("PronCompletion"))
        suggested = result.get("SuggestedScore")
        overall = suggested if suggested is not None else accuracy
        words = _parse_words(result.get("Words"))

        return AssessmentScores(
            overall_score=clamp_score(overall),
            pronunciation_score=clamp_score(accuracy),
            accuracy_score=clamp_score(accuracy),
            fluency_score=clamp_score(fluency),
            completeness_score=clamp_score(completion),
            feedback=oral_feedback(suggested if isinstance(suggested, (int, float)) else None, words),
            words=words,
            raw_response=result,
        )
