from __future__ import annotations

from typing import Optional

from voicegate.config import Settings
from voicegate.core.exceptions import Unsupported
from voicegate.core.registry import AdapterMetadata, AdapterRegistry
from voicegate.core.secrets import SecretResolver
from voicegate.models.enums import ProviderType
from voicegate.models.provider_config import ProviderConfig
from voicegate.services.providers.base import AssessmentAdapter


def _registered_type(config: ProviderConfig) -> Optional[ProviderType]:
    provider_type = ProviderType.parse(config.provider_type)
    if provider_type is None or not AdapterRegistry.is_registered(provider_type):
        return None
    return provider_type


def adapter_metadata(config: ProviderConfig) -> Optional[AdapterMetadata]:
    provider_type = _registered_type(config)
    if provider_type is None:
        return None
    return AdapterRegistry.get_metadata(provider_type)


def create_adapter(
    config: ProviderConfig,
    secrets: SecretResolver,
    app_settings: Optional[Settings] = None,
) -> AssessmentAdapter:
    provider_type = _registered_type(config)
    if provider_type is None:
        raise Unsupported(
            f"unknown provider type {config.provider_type!r}", provider=str(config.provider_type)
        )
    metadata = AdapterRegistry.get_metadata(provider_type)
    allowed = {tier.value for tier in metadata.tiers}
    if config.tier not in allowed:
        raise Unsupported(
            f"{provider_type.value} does not serve the {config.tier} tier", provider=provider_type.value
        )
    adapter_cls = AdapterRegistry.get(provider_type)
    return adapter_cls(config, secrets, app_settings)
