"""通用 AI 兜底评测

没有任何服务商配置时使用。只根据原文让大模型模拟一组合理的分数和中文建议，
不分析音频，结果标记为 is_simulated。
"""

from __future__ import annotations

from voicegate.core.monitoring import monitor
from voicegate.core.registry import AdapterMetadata, register_adapter
from voicegate.models.enums import ProviderType
from voicegate.services.providers.base import AssessmentAdapter, AssessmentScores
from voicegate.services.providers.chat_scoring import (
    chat_completions_url,
    request_completion,
    scores_from_completion,
)
from voicegate.services.providers.prompts import SIMULATION_SYSTEM_PROMPT, simulation_user_prompt

SIMULATION_TEMPERATURE = 0.5


@register_adapter(
    ProviderType.GENERIC_AI,
    metadata=AdapterMetadata(
        display_name="AI 模拟评测",
        description="根据原文难度模拟评分，不分析音频",
        requires_audio=False,
    ),
)
class GenericAIAdapter(AssessmentAdapter):
    @monitor("assessment")
    async def assess(self, audio: bytes, reference_text: str, language: str) -> AssessmentScores:
        api_key = self._require_secret(
            self.config.api_key_secret_name or self._settings.AI_GATEWAY_API_KEY_NAME,
            "ai gateway key",
        )
        content = await request_completion(
            url=chat_completions_url(self.config.api_endpoint or self._settings.AI_GATEWAY_BASE_URL),
            api_key=api_key,
            model=self.config.model_identifier or self._settings.AI_GATEWAY_MODEL,
            system_prompt=SIMULATION_SYSTEM_PROMPT,
            user_prompt=simulation_user_prompt(reference_text),
            temperature=SIMULATION_TEMPERATURE,
            timeout=self._timeout(),
            provider=self.provider,
        )
        return scores_from_completion(
            content,
            reference_text=reference_text,
            provider=self.provider,
            is_simulated=True,
        )
