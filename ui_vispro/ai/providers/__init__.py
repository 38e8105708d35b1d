"""Model provider implementations."""

from ui_vispro.ai.providers.base import (
    Capability,
    ChatClient,
    CompletionRequest,
    ProviderAdapter,
)
from ui_vispro.ai.providers.factory import ProviderRegistry, create_client, default_registry
from ui_vispro.ai.providers.mock_provider import MockAdapter, MockClient
from ui_vispro.ai.providers.ollama_provider import OllamaAdapter
from ui_vispro.ai.providers.openai_provider import (
    LMStudioAdapter,
    OpenAIAdapter,
    TogetherAIAdapter,
)

__all__ = [
    "Capability",
    "ChatClient",
    "CompletionRequest",
    "LMStudioAdapter",
    "MockAdapter",
    "MockClient",
    "OllamaAdapter",
    "OpenAIAdapter",
    "ProviderAdapter",
    "ProviderRegistry",
    "TogetherAIAdapter",
    "create_client",
    "default_registry",
]
