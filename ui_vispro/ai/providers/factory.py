"""Adapter registry and the client factory built on it."""

from __future__ import annotations

import logging

from ui_vispro.ai.errors import UnsupportedProviderError
from ui_vispro.ai.models import ModelConfig, normalize_provider_id
from ui_vispro.ai.providers.base import ChatClient, ProviderAdapter
from ui_vispro.ai.providers.ollama_provider import OllamaAdapter
from ui_vispro.ai.providers.openai_provider import (
    LMStudioAdapter,
    OpenAIAdapter,
    TogetherAIAdapter,
)
from ui_vispro.config import Settings

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """Lookup table from provider id to adapter."""

    def __init__(self, adapters: list[ProviderAdapter] | None = None) -> None:
        self._adapters: dict[str, ProviderAdapter] = {}
        for adapter in adapters or []:
            self.register(adapter)

    def register(self, adapter: ProviderAdapter) -> None:
        """Add or replace the adapter for its provider id."""
        key = normalize_provider_id(adapter.provider_id)
        if not key:
            raise ValueError("adapter.provider_id must be non-empty.")
        self._adapters[key] = adapter

    def get(self, provider_id: str) -> ProviderAdapter:
        """Return the adapter or raise ``UnsupportedProviderError``."""
        adapter = self._adapters.get(normalize_provider_id(provider_id))
        if adapter is None:
            raise UnsupportedProviderError(provider_id)
        return adapter

    def __contains__(self, provider_id: object) -> bool:
        return isinstance(provider_id, str) and normalize_provider_id(provider_id) in self._adapters

    def provider_ids(self) -> list[str]:
        return sorted(self._adapters)

    def adapters(self) -> list[ProviderAdapter]:
        return [self._adapters[key] for key in self.provider_ids()]


def default_registry(settings: Settings | None = None) -> ProviderRegistry:
    """Registry with the four built-in vendors."""
    return ProviderRegistry(
        [
            OpenAIAdapter(settings),
            TogetherAIAdapter(settings),
            OllamaAdapter(settings),
            LMStudioAdapter(settings),
        ]
    )


def create_client(
    config: ModelConfig,
    registry: ProviderRegistry | None = None,
    settings: Settings | None = None,
) -> ChatClient:
    """Resolve credentials and build the client handle for ``config``."""
    adapter = (registry or default_registry(settings)).get(config.provider_id)
    logger.debug("Creating client for provider=%s model=%s", adapter.provider_id, config.model_id)
    return adapter.create_client(config)
