"""Ollama adapter using the official ``ollama`` client."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import ollama

from ui_vispro.ai.models import OLLAMA, Credentials, ModelConfig
from ui_vispro.ai.providers.base import (
    Capability,
    ChatClient,
    CompletionRequest,
    Message,
    ProviderAdapter,
)


class OllamaClient:
    """Client handle for ``/api/chat`` on an Ollama server."""

    def __init__(self, client: ollama.Client) -> None:
        self.client = client

    def complete(self, request: CompletionRequest) -> str:
        response = self.client.chat(
            model=request.model,
            messages=_wire_messages(request.messages),
            options=_options(request),
            stream=False,
        )
        content = response["message"]["content"]
        if content is None:
            raise RuntimeError("Model returned empty message content.")
        return str(content)

    def stream_complete(self, request: CompletionRequest) -> Iterator[str]:
        """Yield message deltas; closing the iterator closes the HTTP stream."""
        stream = self.client.chat(
            model=request.model,
            messages=_wire_messages(request.messages),
            options=_options(request),
            stream=True,
        )
        try:
            for part in stream:
                content = part["message"]["content"]
                if content:
                    yield content
        finally:
            close = getattr(stream, "close", None)
            if close is not None:
                close()


def _options(request: CompletionRequest) -> dict[str, Any]:
    options: dict[str, Any] = {
        "temperature": request.temperature,
        "num_predict": request.max_tokens,
    }
    options.update(request.extra)
    return options


def _wire_messages(messages: list[Message]) -> list[Message]:
    """Reduce image attachments to the bare base64 strings the server accepts."""
    wire: list[Message] = []
    for message in messages:
        images = message.get("images")
        if not images:
            wire.append(message)
            continue
        converted = dict(message)
        converted["images"] = [image["data"] for image in images]
        wire.append(converted)
    return wire


class OllamaAdapter(ProviderAdapter):
    """Locally hosted Ollama models."""

    provider_id = OLLAMA
    display_name = "Ollama"
    capabilities = frozenset(
        {Capability.text_completion, Capability.image_input, Capability.streaming}
    )
    extra_parameters = ("top_p", "repeat_penalty")

    def format_image(self, image_base64: str) -> dict[str, Any]:
        return {"data": image_base64, "mimeType": "image/jpeg"}

    def build_user_message(self, prompt: str, image_base64: str | None = None) -> Message:
        """Ollama keeps text content a plain string and lists images separately."""
        message: Message = {"role": "user", "content": prompt}
        if image_base64 is not None:
            message["images"] = [self.format_image(image_base64)]
        return message

    def build_client(self, config: ModelConfig, credentials: Credentials) -> ChatClient:
        client = ollama.Client(
            host=credentials.base_url,
            timeout=self.settings.request_timeout_seconds,
        )
        return OllamaClient(client)
