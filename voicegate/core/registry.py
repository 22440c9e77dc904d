"""评测适配器注册中心

每种 ProviderType 对应一个适配器实现，适配器模块通过装饰器在导入时自动注册。
注册表只在导入期写入，请求处理期间只读；适配器实例按请求创建，不做缓存。

使用示例：
    @register_adapter(
        ProviderType.AZURE,
        metadata=AdapterMetadata(display_name="Azure 发音评测", requires_audio=True),
    )
    class AzureSpeechAdapter(AssessmentAdapter):
        ...

    adapter_cls = AdapterRegistry.get(ProviderType.AZURE)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Callable, Dict, List, Type

from voicegate.models.enums import AssessmentTier, ProviderType

logger = logging.getLogger(__name__)


@dataclass
class AdapterMetadata:
    """适配器元数据

    Attributes:
        display_name: 用户友好的显示名称
        description: 描述
        requires_audio: 是否必须上传音频（纯文本模拟评测为 False）
        tiers: 可以服务的额度池
    """

    display_name: str = ""
    description: str = ""
    requires_audio: bool = True
    tiers: tuple[AssessmentTier, ...] = field(
        default=(AssessmentTier.STANDARD, AssessmentTier.PROFESSIONAL)
    )


class AdapterRegistry:
    _adapters: Dict[ProviderType, tuple[Type[Any], AdapterMetadata]] = {}
    _lock = Lock()

    @classmethod
    def register(
        cls,
        provider_type: ProviderType,
        adapter_class: Type[Any],
        metadata: AdapterMetadata | None = None,
    ) -> None:
        if metadata is None:
            metadata = AdapterMetadata(display_name=provider_type.value)
        if not metadata.display_name:
            metadata.display_name = provider_type.value
        with cls._lock:
            cls._adapters[provider_type] = (adapter_class, metadata)
        logger.info(
            "Registered assessment adapter: %s (class=%s)",
            provider_type.value,
            adapter_class.__name__,
        )

    @classmethod
    def get(cls, provider_type: ProviderType) -> Type[Any]:
        entry = cls._adapters.get(provider_type)
        if entry is None:
            available = [item.value for item in cls._adapters]
            raise ValueError(
                f"Adapter '{provider_type.value}' not registered. Available adapters: {available}"
            )
        return entry[0]

    @classmethod
    def get_metadata(cls, provider_type: ProviderType) -> AdapterMetadata:
        entry = cls._adapters.get(provider_type)
        if entry is None:
            raise ValueError(f"Adapter '{provider_type.value}' not registered")
        return entry[1]

    @classmethod
    def is_registered(cls, provider_type: ProviderType) -> bool:
        return provider_type in cls._adapters

    @classmethod
    def list_adapters(cls) -> List[ProviderType]:
        return list(cls._adapters.keys())


def register_adapter(
    provider_type: ProviderType,
    metadata: AdapterMetadata | None = None,
) -> Callable[[Type[Any]], Type[Any]]:
    def decorator(adapter_class: Type[Any]) -> Type[Any]:
        AdapterRegistry.register(provider_type, adapter_class, metadata)
        adapter_class.provider_type = provider_type
        return adapter_class

    return decorator
