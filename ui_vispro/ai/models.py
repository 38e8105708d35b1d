"""Data models exchanged with the orchestration service."""

from __future__ import annotations

import base64
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Literal
from uuid import uuid4

from ui_vispro.ai.errors import InvalidInputError

OPENAI = "openai"
TOGETHERAI = "togetherai"
OLLAMA = "ollama"
LMSTUDIO = "lmstudio"

SUPPORTED_IMAGE_SUFFIXES = frozenset({".png", ".jpg", ".jpeg", ".webp", ".gif"})

ChunkKind = Literal["data", "error"]


def normalize_provider_id(provider_id: str) -> str:
    """Return the canonical lower-case form of a provider id."""
    return provider_id.strip().lower()


@dataclass(frozen=True)
class Credentials:
    """Optional per-call credential override."""

    api_key: str | None = None
    base_url: str | None = None


@dataclass(frozen=True)
class ModelConfig:
    """Provider and model selection for a single request."""

    provider_id: str
    model_id: str
    temperature: float | None = None
    max_tokens: int | None = None
    credentials: Credentials | None = None

    def __post_init__(self) -> None:
        if not self.provider_id.strip():
            raise InvalidInputError("provider_id must be non-empty.")
        if not self.model_id.strip():
            raise InvalidInputError("model_id must be non-empty.")
        if self.temperature is not None and not 0.0 <= self.temperature <= 2.0:
            raise InvalidInputError("temperature must be between 0 and 2.")
        if self.max_tokens is not None and self.max_tokens <= 0:
            raise InvalidInputError("max_tokens must be greater than zero.")

    @property
    def provider(self) -> str:
        """Canonical provider id."""
        return normalize_provider_id(self.provider_id)


@dataclass(frozen=True)
class DesignInput:
    """Image and/or text describing the UI to analyze."""

    image: bytes | None = None
    text_description: str | None = None

    @classmethod
    def from_path(cls, image_path: Path, text_description: str | None = None) -> DesignInput:
        """Load an image from disk."""
        if not image_path.exists():
            raise InvalidInputError(f"Image not found: {image_path}")
        if image_path.suffix.lower() not in SUPPORTED_IMAGE_SUFFIXES:
            raise InvalidInputError("Unsupported image type.")
        return cls(image=image_path.read_bytes(), text_description=text_description)

    @property
    def has_image(self) -> bool:
        return bool(self.image)

    @property
    def text(self) -> str | None:
        """Description with surrounding whitespace removed, or None when blank."""
        if self.text_description is None:
            return None
        cleaned = self.text_description.strip()
        return cleaned or None

    def image_base64(self) -> str | None:
        """Base64 payload of the image, without any data-URI prefix."""
        if not self.image:
            return None
        return base64.b64encode(self.image).decode("ascii")


@dataclass(frozen=True)
class AnalysisMetadata:
    """Provenance for an analysis result."""

    provider_id: str
    model_id: str
    timestamp: str
    result_id: str


@dataclass(frozen=True)
class AnalysisResult:
    """Natural-language analysis of a design."""

    analysis_text: str
    metadata: AnalysisMetadata

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class GeneratedFile:
    """One file produced by a generation or revision call."""

    name: str
    content: str
    path: str
    kind: str
    id: str = field(default_factory=lambda: str(uuid4()))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "content": self.content,
            "path": self.path,
            "kind": self.kind,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> GeneratedFile:
        """Rebuild a file from its serialized form."""
        name = str(payload.get("name", "")).strip()
        if not name:
            raise InvalidInputError("Generated file entries require a name.")
        return cls(
            id=str(payload.get("id") or uuid4()),
            name=name,
            content=str(payload.get("content", "")),
            path=str(payload.get("path") or f"/generated/{name}"),
            kind=str(payload.get("kind") or payload.get("type") or "markdown"),
        )


@dataclass(frozen=True)
class StreamChunk:
    """One element of a streamed analysis.

    ``data`` chunks carry model output. ``error`` chunks report a failure
    that the stream recovered from or ended on, with the original exception
    in ``error``.
    """

    kind: ChunkKind
    text: str
    error: Exception | None = None

    @classmethod
    def data(cls, text: str) -> StreamChunk:
        return cls(kind="data", text=text)

    @classmethod
    def failure(cls, error: Exception, prefix: str = "Error") -> StreamChunk:
        return cls(kind="error", text=f"{prefix}: {error}", error=error)

    @property
    def is_error(self) -> bool:
        return self.kind == "error"
