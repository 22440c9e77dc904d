from __future__ import annotations

import base64
import json
import logging
from typing import Any

import httpx

from voicegate.core.exceptions import MalformedResponse, ProviderUnavailable
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
from voicegate.services.providers.feedback import speech_feedback

logger = logging.getLogger("voicegate.services.providers.azure")

DEFAULT_REGION = "eastasia"
DEFAULT_KEY_NAME = "AZURE_SPEECH_KEY"
_ENDPOINT = "https://{region}.stt.speech.microsoft.com/speech/recognition/conversation/cognitiveservices/v1"


def _assessment_header(reference_text: str) -> str:
    config = {
        "ReferenceText": reference_text,
        "GradingSystem": "HundredMark",
        "Granularity": "Phoneme",
        "Dimension": "Comprehensive",
        "EnableMiscue": True,
    }
    raw = json.dumps(config, ensure_ascii=False).encode("utf-8")
    return base64.b64encode(raw).decode("ascii")


def _parse_words(raw_words: Any) -> list[WordScore]:
    words: list[WordScore] = []
    if not isinstance(raw_words, list):
        return words
    for item in raw_words:
        if not isinstance(item, dict) or not item.get("Word"):
            continue
        assessment = item.get("PronunciationAssessment") or {}
        # 多读的单词不在原文中，只保留在 raw_response 里
        if assessment.get("ErrorType") == INSERTION:
            continue
        phonemes = None
        raw_phonemes = item.get("Phonemes")
        if isinstance(raw_phonemes, list):
            phonemes = [
                PhonemeScore(
                    phoneme=str(phone.get("Phoneme", "")),
                    score=clamp_score((phone.get("PronunciationAssessment") or {}).get("AccuracyScore")),
                )
                for phone in raw_phonemes
                if isinstance(phone, dict)
            ]
        words.append(
            WordScore(
                word=str(item["Word"]),
                accuracy_score=clamp_score(assessment.get("AccuracyScore")),
                error_type=assessment.get("ErrorType"),
                phonemes=phonemes,
            )
        )
    return words


@register_adapter(
    ProviderType.AZURE,
    metadata=AdapterMetadata(
        display_name="Azure 发音评测",
        description="Azure Speech 发音评估，音素级评分",
    ),
)
class AzureSpeechAdapter(AssessmentAdapter):
    def _url(self) -> str:
        endpoint = self.config.api_endpoint
        if not endpoint:
            endpoint = _ENDPOINT.format(region=self.config.region or DEFAULT_REGION)
        return endpoint

    @monitor("assessment")
    async def assess(self, audio: bytes, reference_text: str, language: str) -> AssessmentScores:
        subscription_key = self._require_secret(
            self.config.api_key_secret_name or DEFAULT_KEY_NAME, "subscription key"
        )
        headers = {
            "Ocp-Apim-Subscription-Key": subscription_key,
            "Content-Type": self._option("content_type", "audio/wav"),
            "Pronunciation-Assessment": _assessment_header(reference_text),
            "Accept": "application/json",
        }
        params = {
            "language": "zh-CN" if language == "zh-CN" else "en-US",
            "format": "detailed",
        }

        logger.info("Calling Azure pronunciation assessment: region=%s", self.config.region or DEFAULT_REGION)
        try:
            async with httpx.AsyncClient(timeout=self._timeout()) as client:
                response = await client.post(
                    self._url(), params=params, content=audio, headers=headers
                )
        except httpx.HTTPError as exc:
            raise ProviderUnavailable(str(exc) or type(exc).__name__, provider=self.provider) from exc

        self._raise_for_status(response)
        data = self._json(response)

        n_best = data.get("NBest") if isinstance(data, dict) else None
        best = n_best[0] if isinstance(n_best, list) and n_best else None
        assessment = best.get("PronunciationAssessment") if isinstance(best, dict) else None
        if not isinstance(assessment, dict):
            status = data.get("RecognitionStatus") if isinstance(data, dict) else None
            raise MalformedResponse(
                f"missing NBest[0].PronunciationAssessment (status={status})", provider=self.provider
            )

        words = _parse_words(best.get("Words"))
        pron_score = clamp_score(assessment.get("PronScore"))
        return AssessmentScores(
            overall_score=pron_score,
            pronunciation_score=pron_score,
            accuracy_score=clamp_score(assessment.get("AccuracyScore")),
            fluency_score=clamp_score(assessment.get("FluencyScore")),
            completeness_score=clamp_score(assessment.get("CompletenessScore")),
            feedback=speech_feedback(
                assessment.get("AccuracyScore"),
                assessment.get("FluencyScore"),
                assessment.get("CompletenessScore"),
                words,
            ),
            words=words,
            transcribed_text=best.get("Display") or data.get("DisplayText"),
            raw_response=data,
        )
