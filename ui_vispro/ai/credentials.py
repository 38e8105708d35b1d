"""Credential resolution with override, environment and default tiers."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from ui_vispro.ai.errors import MissingCredentialError
from ui_vispro.ai.models import (
    LMSTUDIO,
    OLLAMA,
    OPENAI,
    TOGETHERAI,
    Credentials,
    normalize_provider_id,
)
from ui_vispro.config import Settings

LMSTUDIO_PLACEHOLDER_KEY = "lm-studio"


@dataclass(frozen=True)
class _CredentialRule:
    display_name: str
    requires_api_key: bool
    env_api_key: Callable[[Settings], str | None]
    env_base_url: Callable[[Settings], str | None]
    default_api_key: str | None = None


_RULES: dict[str, _CredentialRule] = {
    OPENAI: _CredentialRule(
        display_name="OpenAI",
        requires_api_key=True,
        env_api_key=lambda settings: settings.openai_api_key,
        env_base_url=lambda settings: settings.openai_base_url,
    ),
    TOGETHERAI: _CredentialRule(
        display_name="TogetherAI",
        requires_api_key=True,
        env_api_key=lambda settings: settings.together_api_key,
        env_base_url=lambda settings: settings.together_base_url,
    ),
    OLLAMA: _CredentialRule(
        display_name="Ollama",
        requires_api_key=False,
        env_api_key=lambda settings: None,
        env_base_url=lambda settings: settings.ollama_base_url,
    ),
    LMSTUDIO: _CredentialRule(
        display_name="LM Studio",
        requires_api_key=False,
        env_api_key=lambda settings: None,
        env_base_url=lambda settings: settings.lmstudio_base_url,
        default_api_key=LMSTUDIO_PLACEHOLDER_KEY,
    ),
}


def _first(*values: str | None) -> str | None:
    for value in values:
        if value is not None and value.strip():
            return value.strip()
    return None


def resolve_credentials(
    provider_id: str,
    override: Credentials | None = None,
    settings: Settings | None = None,
) -> Credentials:
    """Return the effective credentials for a provider.

    Precedence is explicit override, then environment, then the provider's
    built-in default. Cloud providers without a key raise
    ``MissingCredentialError``. Providers outside the built-in table only see
    the override.
    """
    resolved_settings = settings or Settings.from_env()
    override = override or Credentials()
    rule = _RULES.get(normalize_provider_id(provider_id))
    if rule is None:
        return Credentials(api_key=_first(override.api_key), base_url=_first(override.base_url))

    api_key = _first(override.api_key, rule.env_api_key(resolved_settings), rule.default_api_key)
    base_url = _first(override.base_url, rule.env_base_url(resolved_settings))
    if rule.requires_api_key and api_key is None:
        raise MissingCredentialError(rule.display_name)
    return Credentials(api_key=api_key, base_url=base_url)


def has_provider_credentials(provider_id: str, settings: Settings | None = None) -> bool:
    """Report whether a built-in provider can resolve credentials without an override."""
    if normalize_provider_id(provider_id) not in _RULES:
        return False
    try:
        resolve_credentials(provider_id, settings=settings)
    except MissingCredentialError:
        return False
    return True
