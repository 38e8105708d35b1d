"""Environment-backed configuration."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from ui_vispro.ai.errors import InvalidInputError
from ui_vispro.ai.models import ModelConfig

DEFAULT_OLLAMA_BASE_URL = "http://localhost:11434"
DEFAULT_LMSTUDIO_BASE_URL = "http://localhost:1234/v1"
DEFAULT_TOGETHER_BASE_URL = "https://api.together.xyz/v1"
DEFAULT_VISION_MODEL = "openai/gpt-4-vision-preview"
DEFAULT_GENERATION_MODEL = "openai/gpt-4-turbo"
DEFAULT_REQUEST_TIMEOUT_SECONDS = 120.0
DEFAULT_MAX_RETRIES = 2

ModelKind = Literal["vision", "generation"]


def _optional(env: Mapping[str, str], key: str) -> str | None:
    value = env.get(key)
    if value is None or not value.strip():
        return None
    return value.strip()


def _float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = _optional(env, key)
    if raw is None:
        return default
    try:
        parsed = float(raw)
    except ValueError as exc:
        raise InvalidInputError(f"{key} must be a number.") from exc
    if parsed <= 0:
        raise InvalidInputError(f"{key} must be greater than zero.")
    return parsed


def _int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = _optional(env, key)
    if raw is None:
        return default
    try:
        parsed = int(raw)
    except ValueError as exc:
        raise InvalidInputError(f"{key} must be an integer.") from exc
    if parsed < 0:
        raise InvalidInputError(f"{key} must be non-negative.")
    return parsed


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration.

    Secrets are never checked here. A missing cloud API key only surfaces
    when that provider is actually selected.
    """

    openai_api_key: str | None = None
    openai_base_url: str | None = None
    together_api_key: str | None = None
    together_base_url: str = DEFAULT_TOGETHER_BASE_URL
    ollama_base_url: str = DEFAULT_OLLAMA_BASE_URL
    lmstudio_base_url: str = DEFAULT_LMSTUDIO_BASE_URL
    default_vision_model: str = DEFAULT_VISION_MODEL
    default_generation_model: str = DEFAULT_GENERATION_MODEL
    request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    max_retries: int = DEFAULT_MAX_RETRIES
    home_dir: Path = Path("~/.vispro")

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> Settings:
        """Read settings from environment variables."""
        source = os.environ if env is None else env
        return cls(
            openai_api_key=_optional(source, "OPENAI_API_KEY"),
            openai_base_url=_optional(source, "OPENAI_BASE_URL"),
            together_api_key=_optional(source, "TOGETHER_API_KEY"),
            together_base_url=_optional(source, "TOGETHER_BASE_URL") or DEFAULT_TOGETHER_BASE_URL,
            ollama_base_url=_optional(source, "OLLAMA_BASE_URL") or DEFAULT_OLLAMA_BASE_URL,
            lmstudio_base_url=_optional(source, "LMSTUDIO_BASE_URL") or DEFAULT_LMSTUDIO_BASE_URL,
            default_vision_model=_optional(source, "DEFAULT_VISION_MODEL") or DEFAULT_VISION_MODEL,
            default_generation_model=(
                _optional(source, "DEFAULT_GENERATION_MODEL") or DEFAULT_GENERATION_MODEL
            ),
            request_timeout_seconds=_float(
                source, "VISPRO_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT_SECONDS
            ),
            max_retries=_int(source, "VISPRO_MAX_RETRIES", DEFAULT_MAX_RETRIES),
            home_dir=Path(_optional(source, "VISPRO_HOME") or "~/.vispro"),
        )

    @property
    def projects_path(self) -> Path:
        return self.home_dir.expanduser() / "projects.json"

    def default_model_config(self, kind: ModelKind) -> ModelConfig:
        """Build a model config from a ``provider/model`` default."""
        raw = self.default_vision_model if kind == "vision" else self.default_generation_model
        return parse_model_reference(raw)


def parse_model_reference(reference: str) -> ModelConfig:
    """Parse ``provider/model`` into a config; the model part may contain slashes."""
    provider, separator, model = reference.strip().partition("/")
    if not separator or not provider or not model:
        raise InvalidInputError(
            f"Model reference must look like provider/model, got {reference!r}."
        )
    return ModelConfig(provider_id=provider, model_id=model)
