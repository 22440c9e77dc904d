from __future__ import annotations

import logging

from voicegate.core.exceptions import Unsupported
from voicegate.core.monitoring import monitor
from voicegate.core.registry import AdapterMetadata, register_adapter
from voicegate.models.enums import ProviderType
from voicegate.services.providers.base import AssessmentAdapter, AssessmentScores

logger = logging.getLogger("voicegate.services.providers.ifly")


@register_adapter(
    ProviderType.IFLY,
    metadata=AdapterMetadata(
        display_name="讯飞语音评测",
        description="需要 WebSocket 流式协议，暂不支持",
    ),
)
class IFlyAdapter(AssessmentAdapter):
    @monitor("assessment")
    async def assess(self, audio: bytes, reference_text: str, language: str) -> AssessmentScores:
        logger.warning("iFlytek assessment requested but streaming protocol is not supported")
        raise Unsupported("streaming websocket protocol is not supported", provider=self.provider)
