"""Tests for the design-to-code orchestration service."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from ui_vispro.ai import prompts
from ui_vispro.ai.cache import ResultCache
from ui_vispro.ai.errors import (
    InvalidInputError,
    ProviderRequestError,
    UnsupportedCapabilityError,
    UnsupportedProviderError,
)
from ui_vispro.ai.models import (
    Credentials,
    DesignInput,
    GeneratedFile,
    ModelConfig,
    StreamChunk,
)
from ui_vispro.ai.providers import (
    Capability,
    ChatClient,
    CompletionRequest,
    MockAdapter,
    OpenAIAdapter,
    ProviderRegistry,
)
from ui_vispro.ai.service import DesignToCodeService
from ui_vispro.config import Settings
from ui_vispro.storage.projects import ProjectStore

CONFIG = ModelConfig(provider_id="openai", model_id="gpt-4-turbo")
LOGIN = DesignInput(text_description="A login form with email and password")


class _Clock:
    def __init__(self) -> None:
        self.now = 0

    def __call__(self) -> int:
        return self.now


class _ScriptedClient:
    """Fake vendor client returning queued text and optional stream pieces."""

    def __init__(
        self,
        responses: list[str] | None = None,
        *,
        stream_pieces: list[str] | None = None,
        stream_error: Exception | None = None,
        error: Exception | None = None,
    ) -> None:
        self.responses = list(responses or [])
        self.stream_pieces = list(stream_pieces or [])
        self.stream_error = stream_error
        self.error = error
        self.requests: list[CompletionRequest] = []
        self.stream_requests: list[CompletionRequest] = []
        self.stream_closed = False

    def complete(self, request: CompletionRequest) -> str:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.responses.pop(0)

    def stream_complete(self, request: CompletionRequest) -> Iterator[str]:
        self.stream_requests.append(request)
        try:
            yield from self.stream_pieces
            if self.stream_error is not None:
                raise self.stream_error
        finally:
            self.stream_closed = True


class _FakeOpenAIAdapter(OpenAIAdapter):
    def __init__(self, client: _ScriptedClient) -> None:
        super().__init__(Settings())
        self.client = client

    def resolve_credentials(self, config: ModelConfig) -> Credentials:
        return Credentials()

    def build_client(self, config: ModelConfig, credentials: Credentials) -> ChatClient:
        return self.client


class _NonStreamingAdapter(_FakeOpenAIAdapter):
    capabilities = frozenset({Capability.text_completion, Capability.image_input})


class _BrokenClientAdapter(_FakeOpenAIAdapter):
    def build_client(self, config: ModelConfig, credentials: Credentials) -> ChatClient:
        raise ValueError("invalid base_url '::'")


class _RateLimited(Exception):
    class _Response:
        headers = {"Retry-After": "3"}

    def __init__(self) -> None:
        super().__init__("429 rate limited for key sk-abcdefghijklmnopqrstuvwxyz123")
        self.response = self._Response()


def _service(
    client: _ScriptedClient,
    *,
    clock: _Clock | None = None,
    project_store: ProjectStore | None = None,
) -> DesignToCodeService:
    cache = ResultCache(clock=clock or _Clock())
    registry = ProviderRegistry([_FakeOpenAIAdapter(client)])
    return DesignToCodeService(cache, registry=registry, project_store=project_store)


def test_login_form_analysis_returns_openai_result() -> None:
    client = _ScriptedClient(["Centered card with email, password and a submit button."])

    result = _service(client).analyze(LOGIN, CONFIG)

    assert result.analysis_text
    assert result.metadata.provider_id == "openai"
    assert result.metadata.model_id == "gpt-4-turbo"
    request = client.requests[0]
    assert request.messages[0] == {
        "role": "system",
        "content": prompts.ANALYSIS_SYSTEM_PROMPTS["openai"],
    }
    assert "A login form with email and password" in request.messages[1]["content"]
    assert request.temperature == 0.7
    assert request.max_tokens == 4000
    assert request.extra == {"top_p": 1.0, "frequency_penalty": 0.2, "presence_penalty": 0.1}


def test_caller_overrides_reach_the_request() -> None:
    client = _ScriptedClient(["ok"])
    config = ModelConfig(
        provider_id="openai", model_id="gpt-4-turbo", temperature=0.0, max_tokens=256
    )

    _service(client).analyze(LOGIN, config)

    assert client.requests[0].temperature == 0.0
    assert client.requests[0].max_tokens == 256


def test_image_input_is_attached_to_user_message() -> None:
    client = _ScriptedClient(["ok"])

    _service(client).analyze(DesignInput(image=b"\x89PNG"), CONFIG)

    content = client.requests[0].messages[1]["content"]
    assert content[0]["type"] == "text"
    assert content[1]["image_url"]["url"] == "data:image/jpeg;base64,iVBORw=="


def test_repeated_analysis_calls_vendor_once() -> None:
    client = _ScriptedClient(["first"])
    service = _service(client)

    first = service.analyze(LOGIN, CONFIG)
    second = service.analyze(
        DesignInput(text_description="  A login form with email and password "), CONFIG
    )

    assert len(client.requests) == 1
    assert second == first


def test_analysis_is_requested_again_after_ttl() -> None:
    clock = _Clock()
    client = _ScriptedClient(["first", "second"])
    service = _service(client, clock=clock)

    service.analyze(LOGIN, CONFIG)
    clock.now += service.cache.ttl_millis + 1
    result = service.analyze(LOGIN, CONFIG)

    assert len(client.requests) == 2
    assert result.analysis_text == "second"


def test_different_model_is_a_cache_miss() -> None:
    client = _ScriptedClient(["first", "second"])
    service = _service(client)

    service.analyze(LOGIN, CONFIG)
    service.analyze(LOGIN, ModelConfig(provider_id="openai", model_id="gpt-4o"))

    assert len(client.requests) == 2


@pytest.mark.parametrize(
    "design_input",
    [DesignInput(), DesignInput(text_description="   "), DesignInput(image=b"")],
)
def test_analysis_without_input_is_rejected(design_input: DesignInput) -> None:
    client = _ScriptedClient(["unused"])

    with pytest.raises(InvalidInputError, match="No input provided"):
        _service(client).analyze(design_input, CONFIG)

    assert client.requests == []


def test_unknown_provider_makes_no_vendor_call() -> None:
    client = _ScriptedClient(["unused"])

    with pytest.raises(UnsupportedProviderError):
        _service(client).analyze(LOGIN, ModelConfig(provider_id="acme", model_id="m"))

    assert client.requests == []


def test_generation_for_unknown_provider_makes_no_vendor_call() -> None:
    client = _ScriptedClient(["unused"])

    with pytest.raises(UnsupportedProviderError):
        _service(client).generate_files(
            "analysis", ModelConfig(provider_id="acme", model_id="m")
        )

    assert client.requests == []


def test_client_construction_failure_is_wrapped() -> None:
    adapter = _BrokenClientAdapter(_ScriptedClient())
    service = DesignToCodeService(ResultCache(), registry=ProviderRegistry([adapter]))

    with pytest.raises(ProviderRequestError, match="invalid base_url") as excinfo:
        service.analyze(LOGIN, CONFIG)

    assert isinstance(excinfo.value.__cause__, ValueError)
    [chunk] = service.stream_analyze(LOGIN, CONFIG)
    assert isinstance(chunk.error, ProviderRequestError)


def test_vendor_failure_is_wrapped_with_cause_and_retry_hint() -> None:
    failure = _RateLimited()
    client = _ScriptedClient(error=failure)

    with pytest.raises(ProviderRequestError) as excinfo:
        _service(client).analyze(LOGIN, CONFIG)

    error = excinfo.value
    assert error.__cause__ is failure
    assert error.provider == "openai"
    assert error.operation == "analyze design"
    assert error.retry_after_seconds == 3.0
    assert "sk-abcdefghijklmnopqrstuvwxyz123" not in str(error)
    assert "429 rate limited" in str(error)


def test_failed_analysis_is_not_cached() -> None:
    client = _ScriptedClient(error=RuntimeError("boom"))
    service = _service(client)

    with pytest.raises(ProviderRequestError):
        service.analyze(LOGIN, CONFIG)

    assert service.cache.stats().total == 0


def test_text_only_provider_rejects_images() -> None:
    adapter = MockAdapter(["unused"])
    service = DesignToCodeService(ResultCache(), registry=ProviderRegistry([adapter]))

    with pytest.raises(UnsupportedCapabilityError):
        service.analyze(
            DesignInput(image=b"img"), ModelConfig(provider_id="mock", model_id="any")
        )

    assert adapter.client.requests == []


def test_generation_splits_headings_into_files() -> None:
    client = _ScriptedClient(
        ["# Header.tsx\n```tsx\nheader\n```\n\n# Footer.tsx\n```tsx\nfooter\n```\n"]
    )

    files = _service(client).generate_files("Simple page with header and footer.", CONFIG)

    assert [file.name for file in files] == ["Header.tsx", "Footer.tsx"]
    request = client.requests[0]
    assert request.messages[0]["content"] == prompts.GENERATION_SYSTEM_PROMPTS["openai"]
    assert "Simple page with header and footer." in request.messages[1]["content"]


def test_repeated_generation_calls_vendor_once() -> None:
    client = _ScriptedClient(["# App.tsx\ncode"])
    service = _service(client)

    first = service.generate_files("analysis", CONFIG)
    second = service.generate_files("analysis", CONFIG)

    assert len(client.requests) == 1
    assert [file.id for file in second] == [file.id for file in first]


def test_generation_requires_analysis_text() -> None:
    with pytest.raises(InvalidInputError):
        _service(_ScriptedClient()).generate_files("  ", CONFIG)


def test_generation_saves_named_project(tmp_path: Path) -> None:
    store = ProjectStore(tmp_path / "projects.json")
    client = _ScriptedClient(["# App.tsx\ncode"])

    files = _service(client, project_store=store).generate_files(
        "analysis", CONFIG, project_name="Landing", description="Marketing page"
    )

    [project] = store.list_projects()
    assert project.name == "Landing"
    assert project.description == "Marketing page"
    assert project.metadata == {"provider": "openai", "model": "gpt-4-turbo"}
    assert [file.id for file in project.files] == [file.id for file in files]


def test_revision_keeps_identity_of_surviving_files() -> None:
    header = GeneratedFile(
        name="Header.tsx", content="old header", path="/src/Header.tsx", kind="tsx", id="h-1"
    )
    footer = GeneratedFile(
        name="Footer.tsx", content="old footer", path="/src/Footer.tsx", kind="tsx", id="f-1"
    )
    client = _ScriptedClient(["# Header.tsx\nblue header\n# Banner.tsx\nbanner\n"])

    revised = _service(client).revise_files([header, footer], "Make the header blue", CONFIG)

    assert [file.name for file in revised] == ["Header.tsx", "Banner.tsx"]
    assert revised[0].id == "h-1"
    assert revised[0].path == "/src/Header.tsx"
    assert revised[0].content == "blue header"
    assert revised[1].id not in {"h-1", "f-1"}
    assert revised[1].path == "/generated/Banner.tsx"

    request = client.requests[0]
    assert request.messages[0]["content"] == prompts.REVISION_SYSTEM_PROMPT
    assert "# Header.tsx\n\nold header" in request.messages[1]["content"]
    assert "User feedback: Make the header blue" in request.messages[1]["content"]
    assert request.temperature == 0.7
    assert request.max_tokens == 4000


def test_revision_is_never_cached() -> None:
    original = GeneratedFile(name="A.tsx", content="a", path="/generated/A.tsx", kind="tsx")
    client = _ScriptedClient(["# A.tsx\nb", "# A.tsx\nc"])
    service = _service(client)

    service.revise_files([original], "change", CONFIG)
    service.revise_files([original], "change", CONFIG)

    assert len(client.requests) == 2


def test_revision_validates_inputs() -> None:
    original = GeneratedFile(name="A.tsx", content="a", path="/generated/A.tsx", kind="tsx")
    service = _service(_ScriptedClient())

    with pytest.raises(InvalidInputError):
        service.revise_files([], "change", CONFIG)
    with pytest.raises(InvalidInputError):
        service.revise_files([original], " ", CONFIG)


def _texts(chunks: list[StreamChunk]) -> list[tuple[str, str]]:
    return [(chunk.kind, chunk.text) for chunk in chunks]


def test_stream_yields_data_chunks_and_caches_the_result() -> None:
    client = _ScriptedClient(stream_pieces=["Centered ", "card"])
    service = _service(client)

    chunks = list(service.stream_analyze(LOGIN, CONFIG))

    assert _texts(chunks) == [("data", "Centered "), ("data", "card")]
    assert service.analyze(LOGIN, CONFIG).analysis_text == "Centered card"
    assert client.requests == []


def test_stream_answers_from_cache_in_one_chunk() -> None:
    client = _ScriptedClient(["cached text"])
    service = _service(client)
    service.analyze(LOGIN, CONFIG)

    chunks = list(service.stream_analyze(LOGIN, CONFIG))

    assert _texts(chunks) == [("data", "cached text")]
    assert client.stream_requests == []


def test_stream_failure_reports_error_then_falls_back() -> None:
    client = _ScriptedClient(
        ["full answer"], stream_pieces=["par"], stream_error=ConnectionError("reset")
    )

    chunks = list(_service(client).stream_analyze(LOGIN, CONFIG))

    assert [chunk.kind for chunk in chunks] == ["data", "error", "data"]
    assert chunks[0].text == "par"
    assert chunks[1].text.startswith("Streaming error: ")
    assert isinstance(chunks[1].error, ProviderRequestError)
    assert chunks[2].text == "full answer"
    assert len(client.requests) == 1


def test_stream_fallback_failure_ends_with_error_chunk() -> None:
    client = _ScriptedClient(stream_error=ConnectionError("reset"), error=RuntimeError("down"))

    chunks = list(_service(client).stream_analyze(LOGIN, CONFIG))

    assert [chunk.kind for chunk in chunks] == ["error", "error"]
    assert chunks[-1].text.startswith("Error: Failed to analyze design")


def test_stream_validation_raises_before_iteration() -> None:
    with pytest.raises(InvalidInputError):
        _service(_ScriptedClient()).stream_analyze(DesignInput(), CONFIG)


def test_stream_unknown_provider_is_reported_in_band() -> None:
    client = _ScriptedClient()

    chunks = list(
        _service(client).stream_analyze(LOGIN, ModelConfig(provider_id="acme", model_id="m"))
    )

    assert len(chunks) == 1
    assert chunks[0].is_error
    assert isinstance(chunks[0].error, UnsupportedProviderError)


def test_non_streaming_provider_uses_single_request() -> None:
    client = _ScriptedClient(["whole answer"])
    service = DesignToCodeService(
        ResultCache(), registry=ProviderRegistry([_NonStreamingAdapter(client)])
    )

    chunks = list(service.stream_analyze(LOGIN, CONFIG))

    assert _texts(chunks) == [("data", "whole answer")]
    assert client.stream_requests == []


def test_abandoned_stream_closes_the_vendor_stream() -> None:
    client = _ScriptedClient(stream_pieces=["Centered ", "card"])
    service = _service(client)

    chunks = service.stream_analyze(LOGIN, CONFIG)
    assert next(chunks).text == "Centered "
    chunks.close()

    assert client.stream_closed
    assert service.cache.stats().total == 0
