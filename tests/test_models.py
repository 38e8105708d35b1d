"""Tests for request and result models."""

from __future__ import annotations

from pathlib import Path

import pytest

from ui_vispro.ai.errors import InvalidInputError, ProviderRequestError
from ui_vispro.ai.models import DesignInput, GeneratedFile, ModelConfig, StreamChunk


@pytest.mark.parametrize(
    "kwargs",
    [
        {"provider_id": " ", "model_id": "m"},
        {"provider_id": "openai", "model_id": ""},
        {"provider_id": "openai", "model_id": "m", "temperature": 2.5},
        {"provider_id": "openai", "model_id": "m", "temperature": -0.1},
        {"provider_id": "openai", "model_id": "m", "max_tokens": 0},
    ],
)
def test_model_config_rejects_invalid_values(kwargs: dict[str, object]) -> None:
    with pytest.raises(InvalidInputError):
        ModelConfig(**kwargs)  # type: ignore[arg-type]


def test_model_config_normalizes_provider() -> None:
    assert ModelConfig(provider_id=" OpenAI ", model_id="gpt-4o").provider == "openai"


def test_design_input_from_path(tmp_path: Path) -> None:
    image = tmp_path / "design.png"
    image.write_bytes(b"png-bytes")

    design = DesignInput.from_path(image, "  hero  ")

    assert design.has_image
    assert design.text == "hero"
    assert design.image_base64() == "cG5nLWJ5dGVz"


def test_design_input_rejects_missing_or_unsupported_files(tmp_path: Path) -> None:
    with pytest.raises(InvalidInputError, match="not found"):
        DesignInput.from_path(tmp_path / "missing.png")

    document = tmp_path / "design.pdf"
    document.write_bytes(b"%PDF")
    with pytest.raises(InvalidInputError, match="Unsupported"):
        DesignInput.from_path(document)


def test_generated_file_from_dict_fills_defaults() -> None:
    file = GeneratedFile.from_dict({"name": "App.tsx", "content": "x"})

    assert file.path == "/generated/App.tsx"
    assert file.kind == "markdown"
    assert file.id


def test_generated_file_from_dict_requires_name() -> None:
    with pytest.raises(InvalidInputError):
        GeneratedFile.from_dict({"content": "x"})


def test_stream_chunk_variants() -> None:
    error = ProviderRequestError("Failed to stream", provider="openai", operation="stream")

    data = StreamChunk.data("hello")
    failure = StreamChunk.failure(error, prefix="Streaming error")

    assert not data.is_error
    assert failure.is_error
    assert failure.text == "Streaming error: Failed to stream"
    assert failure.error is error
