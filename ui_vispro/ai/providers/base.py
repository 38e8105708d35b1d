"""Provider abstraction for chat-completion style vendors."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from ui_vispro.ai.credentials import resolve_credentials
from ui_vispro.ai.errors import UnsupportedCapabilityError
from ui_vispro.ai.models import Credentials, ModelConfig
from ui_vispro.config import Settings

Message = dict[str, Any]


class Capability(str, Enum):
    """Operations a provider may support."""

    text_completion = "text_completion"
    image_input = "image_input"
    streaming = "streaming"


@dataclass(frozen=True)
class CompletionRequest:
    """Vendor-neutral request handed to a client handle."""

    model: str
    messages: list[Message]
    temperature: float
    max_tokens: int
    extra: dict[str, Any] = field(default_factory=dict)


class ChatClient(Protocol):
    """Handle able to issue one completion, streamed or not."""

    def complete(self, request: CompletionRequest) -> str:
        """Return the full response text."""
        ...

    def stream_complete(self, request: CompletionRequest) -> Iterator[str]:
        """Yield response text chunks as they arrive."""
        ...


class ProviderAdapter(ABC):
    """Everything that differs between vendors lives behind this interface."""

    provider_id: str = ""
    display_name: str = ""
    capabilities: frozenset[Capability] = frozenset({Capability.text_completion})
    # Sampling keys forwarded to the vendor beyond temperature and max_tokens.
    extra_parameters: tuple[str, ...] = ()

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings

    @property
    def settings(self) -> Settings:
        """Configuration, read from the environment on first use."""
        if self._settings is None:
            self._settings = Settings.from_env()
        return self._settings

    def supports(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def require(self, capability: Capability) -> None:
        """Raise when the adapter lacks a capability."""
        if not self.supports(capability):
            raise UnsupportedCapabilityError(self.provider_id, capability.value)

    def normalize_model(self, model_id: str) -> str:
        """Map a display model name to the vendor's expected id."""
        return model_id

    def format_image(self, image_base64: str) -> dict[str, Any]:
        """Encode a base64 JPEG payload the way the vendor expects."""
        raise UnsupportedCapabilityError(self.provider_id, Capability.image_input.value)

    def build_user_message(self, prompt: str, image_base64: str | None = None) -> Message:
        """Build the user turn, attaching an image when given."""
        if image_base64 is None:
            return {"role": "user", "content": prompt}
        self.require(Capability.image_input)
        return {
            "role": "user",
            "content": [{"type": "text", "text": prompt}, self.format_image(image_base64)],
        }

    def build_request(
        self,
        config: ModelConfig,
        messages: list[Message],
        parameters: dict[str, Any],
    ) -> CompletionRequest:
        """Shape resolved parameters into a request for this vendor."""
        extra = {
            key: parameters[key]
            for key in self.extra_parameters
            if parameters.get(key) is not None
        }
        return CompletionRequest(
            model=self.normalize_model(config.model_id),
            messages=messages,
            temperature=float(parameters["temperature"]),
            max_tokens=int(parameters["max_tokens"]),
            extra=extra,
        )

    def resolve_credentials(self, config: ModelConfig) -> Credentials:
        """Resolve the credentials this vendor needs."""
        return resolve_credentials(self.provider_id, config.credentials, self.settings)

    @abstractmethod
    def build_client(self, config: ModelConfig, credentials: Credentials) -> ChatClient:
        """Construct the SDK-backed client handle."""

    def create_client(self, config: ModelConfig) -> ChatClient:
        return self.build_client(config, self.resolve_credentials(config))


def data_uri(image_base64: str, media_type: str = "image/jpeg") -> str:
    return f"data:{media_type};base64,{image_base64}"
