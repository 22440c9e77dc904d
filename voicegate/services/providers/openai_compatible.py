from __future__ import annotations

from voicegate.core.exceptions import Unsupported
from voicegate.core.monitoring import monitor
from voicegate.core.registry import AdapterMetadata, register_adapter
from voicegate.models.enums import ProviderType
from voicegate.services.providers.base import AssessmentAdapter, AssessmentScores
from voicegate.services.providers.chat_scoring import (
    chat_completions_url,
    request_completion,
    scores_from_completion,
)
from voicegate.services.providers.prompts import OPENAI_SYSTEM_PROMPT, openai_user_prompt

DEFAULT_MODEL = "gpt-4"
TEMPERATURE = 0.3


@register_adapter(
    ProviderType.OPENAI_COMPATIBLE,
    metadata=AdapterMetadata(
        display_name="OpenAI 兼容接口",
        description="任意 chat-completions 兼容接口，仅根据原文评分",
        requires_audio=False,
    ),
)
class OpenAICompatibleAdapter(AssessmentAdapter):
    @monitor("assessment")
    async def assess(self, audio: bytes, reference_text: str, language: str) -> AssessmentScores:
        if not self.config.api_endpoint:
            raise Unsupported("api_endpoint is not configured", provider=self.provider)
        api_key = self._require_secret(self.config.api_key_secret_name, "api key")

        content = await request_completion(
            url=chat_completions_url(self.config.api_endpoint),
            api_key=api_key,
            model=self.config.model_identifier or DEFAULT_MODEL,
            system_prompt=OPENAI_SYSTEM_PROMPT,
            user_prompt=openai_user_prompt(reference_text),
            temperature=float(self._option("temperature", TEMPERATURE)),
            timeout=self._timeout(),
            provider=self.provider,
        )
        return scores_from_completion(
            content,
            reference_text=reference_text,
            provider=self.provider,
            is_simulated=True,
        )
