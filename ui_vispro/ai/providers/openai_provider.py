"""OpenAI SDK-backed adapters: OpenAI itself plus OpenAI-compatible vendors."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any

from openai import OpenAI

from ui_vispro.ai.models import LMSTUDIO, OPENAI, TOGETHERAI, Credentials, ModelConfig
from ui_vispro.ai.providers.base import (
    Capability,
    ChatClient,
    CompletionRequest,
    ProviderAdapter,
    data_uri,
)
from ui_vispro.ai.registry import normalize_model_name

logger = logging.getLogger(__name__)

_ALL_CAPABILITIES = frozenset(
    {Capability.text_completion, Capability.image_input, Capability.streaming}
)


class OpenAICompatibleClient:
    """Chat-completions client handle over the OpenAI Python SDK.

    ``native_parameters`` are passed as keyword arguments to the SDK; any
    other extra sampling parameter travels in ``extra_body`` so vendors with
    non-standard knobs (``top_k``, ``repetition_penalty``) still receive them.
    """

    def __init__(self, client: OpenAI, *, native_parameters: frozenset[str]) -> None:
        self.client = client
        self.native_parameters = native_parameters

    def complete(self, request: CompletionRequest) -> str:
        """Call Chat Completions and return the message text."""
        response = self.client.chat.completions.create(  # type: ignore[call-overload]
            **self._payload(request, stream=False)
        )
        message = response.choices[0].message.content
        if message is None:
            raise RuntimeError("Model returned empty message content.")
        return str(message)

    def stream_complete(self, request: CompletionRequest) -> Iterator[str]:
        """Yield content deltas; closing the iterator closes the HTTP stream."""
        stream = self.client.chat.completions.create(  # type: ignore[call-overload]
            **self._payload(request, stream=True)
        )
        try:
            for chunk in stream:
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta.content
                if delta:
                    yield delta
        finally:
            stream.close()

    def _payload(self, request: CompletionRequest, *, stream: bool) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": request.model,
            "messages": request.messages,
            "temperature": request.temperature,
            "max_tokens": request.max_tokens,
            "stream": stream,
        }
        extra_body: dict[str, Any] = {}
        for key, value in request.extra.items():
            if key in self.native_parameters:
                payload[key] = value
            else:
                extra_body[key] = value
        if extra_body:
            payload["extra_body"] = extra_body
        return payload


class OpenAIAdapter(ProviderAdapter):
    """OpenAI chat completions."""

    provider_id = OPENAI
    display_name = "OpenAI"
    capabilities = _ALL_CAPABILITIES
    extra_parameters = ("top_p", "frequency_penalty", "presence_penalty")

    def format_image(self, image_base64: str) -> dict[str, Any]:
        return {"type": "image_url", "image_url": {"url": data_uri(image_base64)}}

    def build_client(self, config: ModelConfig, credentials: Credentials) -> ChatClient:
        logger.debug("Creating %s client for model %s", self.display_name, config.model_id)
        client = OpenAI(
            api_key=credentials.api_key,
            base_url=credentials.base_url,
            timeout=self.settings.request_timeout_seconds,
            max_retries=self.settings.max_retries,
        )
        return OpenAICompatibleClient(client, native_parameters=frozenset(self.extra_parameters))


class TogetherAIAdapter(OpenAIAdapter):
    """TogetherAI through its OpenAI-compatible endpoint."""

    provider_id = TOGETHERAI
    display_name = "TogetherAI"
    extra_parameters = ("top_p", "top_k", "repetition_penalty")

    def normalize_model(self, model_id: str) -> str:
        return normalize_model_name(self.provider_id, model_id)

    def format_image(self, image_base64: str) -> dict[str, Any]:
        return {"type": "image_url", "image_url": data_uri(image_base64)}

    def build_client(self, config: ModelConfig, credentials: Credentials) -> ChatClient:
        client = OpenAI(
            api_key=credentials.api_key,
            base_url=credentials.base_url,
            timeout=self.settings.request_timeout_seconds,
            max_retries=self.settings.max_retries,
        )
        return OpenAICompatibleClient(client, native_parameters=frozenset({"top_p"}))


class LMStudioAdapter(TogetherAIAdapter):
    """LM Studio local server; the API key is a placeholder."""

    provider_id = LMSTUDIO
    display_name = "LM Studio"

    def normalize_model(self, model_id: str) -> str:
        return model_id

    def format_image(self, image_base64: str) -> dict[str, Any]:
        return {
            "type": "image",
            "source": {"type": "base64", "media_type": "image/jpeg", "data": image_base64},
        }
