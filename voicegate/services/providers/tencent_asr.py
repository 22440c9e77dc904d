from __future__ import annotations

import base64
import logging

from voicegate.core.exceptions import AuthenticationFailed, MalformedResponse
from voicegate.core.monitoring import monitor
from voicegate.core.registry import AdapterMetadata, register_adapter
from voicegate.models.enums import AssessmentTier, ProviderType
from voicegate.services.providers.base import AssessmentAdapter, AssessmentScores
from voicegate.services.providers.chat_scoring import (
    chat_completions_url,
    request_completion,
    scores_from_completion,
)
from voicegate.services.providers.prompts import EVALUATION_SYSTEM_PROMPT, evaluation_user_prompt
from voicegate.services.providers.tencent_cloud import TencentCloudClient

logger = logging.getLogger("voicegate.services.providers.tencent_asr")

SERVICE = "asr"
ACTION = "SentenceRecognition"
VERSION = "2019-06-14"
DEFAULT_REGION = "ap-shanghai"
DEFAULT_SECRET_ID_NAME = "TENCENT_SECRET_ID"
DEFAULT_SECRET_KEY_NAME = "TENCENT_SECRET_KEY"
EVALUATION_TEMPERATURE = 0.3


@register_adapter(
    ProviderType.TENCENT_ASR,
    metadata=AdapterMetadata(
        display_name="腾讯云语音识别 + AI 评分",
        description="一句话识别转写后由大模型对比原文打分",
        tiers=(AssessmentTier.STANDARD,),
    ),
)
class TencentASRAdapter(AssessmentAdapter):
    async def transcribe(self, audio: bytes, language: str) -> str:
        client = TencentCloudClient(
            service=SERVICE,
            version=VERSION,
            region=self.config.region or DEFAULT_REGION,
            secret_id=self._require_secret(
                self.config.api_key_secret_name or DEFAULT_SECRET_ID_NAME, "secret id"
            ),
            secret_key=self._require_secret(
                self.config.api_secret_key_name or DEFAULT_SECRET_KEY_NAME, "secret key"
            ),
            provider=self.provider,
            timeout=self._timeout(),
        )
        payload = {
            "ProjectId": 0,
            "SubServiceType": 2,
            "EngSerViceType": "16k_zh" if language == "zh-CN" else "16k_en",
            "SourceType": 1,
            "VoiceFormat": self._option("voice_format", "webm"),
            "Data": base64.b64encode(audio).decode("ascii"),
            "DataLen": len(audio),
        }
        result = await client.call(ACTION, payload)
        text = result.get("Result")
        if not isinstance(text, str):
            raise MalformedResponse("missing Result", provider=self.provider)
        return text.strip()

    @monitor("assessment")
    async def assess(self, audio: bytes, reference_text: str, language: str) -> AssessmentScores:
        # 评分调用依赖 AI 网关密钥，先检查，避免识别成功后才发现无法打分
        api_key = self._secrets.get(self._settings.AI_GATEWAY_API_KEY_NAME)
        if not api_key:
            raise AuthenticationFailed("missing credential ai gateway key", provider=self.provider)

        transcribed = await self.transcribe(audio, language)
        logger.info("Tencent ASR transcript length=%s", len(transcribed))

        content = await request_completion(
            url=chat_completions_url(self._settings.AI_GATEWAY_BASE_URL),
            api_key=api_key,
            model=self._settings.AI_GATEWAY_MODEL,
            system_prompt=EVALUATION_SYSTEM_PROMPT,
            user_prompt=evaluation_user_prompt(reference_text, transcribed),
            temperature=EVALUATION_TEMPERATURE,
            timeout=self._timeout(),
            provider=self.provider,
        )
        return scores_from_completion(
            content,
            reference_text=reference_text,
            provider=self.provider,
            is_simulated=False,
            transcribed_text=transcribed,
        )
