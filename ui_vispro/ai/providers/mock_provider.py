"""Deterministic provider that replays queued text responses."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from ui_vispro.ai.models import Credentials, ModelConfig
from ui_vispro.ai.providers.base import (
    Capability,
    ChatClient,
    CompletionRequest,
    ProviderAdapter,
)
from ui_vispro.config import Settings

MOCK = "mock"


class MockClient:
    """Client handle that pops queued responses and records requests."""

    def __init__(self, responses: Iterable[str]) -> None:
        self._responses = list(responses)
        self.requests: list[CompletionRequest] = []

    @property
    def remaining(self) -> int:
        return len(self._responses)

    def complete(self, request: CompletionRequest) -> str:
        """Return next queued response."""
        self.requests.append(request)
        if not self._responses:
            raise RuntimeError("MockClient has no remaining responses.")
        return self._responses.pop(0)

    def stream_complete(self, request: CompletionRequest) -> Iterator[str]:
        """Replay the next queued response line by line."""
        text = self.complete(request)
        yield from text.splitlines(keepends=True)


class MockAdapter(ProviderAdapter):
    """Text-only offline provider for tests and dry runs."""

    provider_id = MOCK
    display_name = "Mock"
    capabilities = frozenset({Capability.text_completion, Capability.streaming})

    def __init__(self, responses: Iterable[str], settings: Settings | None = None) -> None:
        super().__init__(settings)
        self.client = MockClient(responses)

    def resolve_credentials(self, config: ModelConfig) -> Credentials:
        return Credentials()

    def build_client(self, config: ModelConfig, credentials: Credentials) -> ChatClient:
        return self.client
