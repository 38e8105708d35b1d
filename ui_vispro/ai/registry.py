"""Static table of providers, their models and model-name normalization."""

from __future__ import annotations

from ui_vispro.ai.models import LMSTUDIO, OLLAMA, OPENAI, TOGETHERAI, normalize_provider_id

PROVIDER_MODELS: dict[str, tuple[str, ...]] = {
    OPENAI: (
        "gpt-4o",
        "gpt-4o-mini",
        "gpt-4-turbo",
        "gpt-4-vision-preview",
        "gpt-3.5-turbo",
        "gpt-3.5-turbo-16k",
    ),
    TOGETHERAI: (
        "meta-llama/Meta-Llama-3.1-8B-Instruct-Turbo",
        "meta-llama/Meta-Llama-3.1-70B-Instruct",
        "meta-llama/Llama-3-8B-Instruct",
        "mistralai/Mistral-7B-Instruct-v0.3",
        "mistralai/Mixtral-8x7B-Instruct-v0.1",
        "togethercomputer/StripedHyena-Nous-7B",
        "google/gemma-7b-it",
    ),
    OLLAMA: (
        "llama3:8b",
        "llama3:latest",
        "llama2:7b",
        "mistral:7b",
        "mixtral:8x7b",
        "gemma:7b",
        "phi3:latest",
        "llava",
    ),
    LMSTUDIO: ("local-model",),
}

# TogetherAI expects fully qualified ids; the UI shows short aliases.
TOGETHER_MODEL_ALIASES: dict[str, str] = {
    "llama3-8b": "meta-llama/Meta-Llama-3.1-8B-Instruct-Turbo",
    "llama3-70b": "meta-llama/Meta-Llama-3.1-70B-Instruct",
    "mistral-7b": "mistralai/Mistral-7B-Instruct-v0.3",
    "mixtral-8x7b": "mistralai/Mixtral-8x7B-Instruct-v0.1",
    "gemma-7b": "google/gemma-7b-it",
}


def available_models(provider_id: str) -> tuple[str, ...]:
    """Return the known models for a provider, empty for unknown providers."""
    return PROVIDER_MODELS.get(normalize_provider_id(provider_id), ())


def normalize_model_name(provider_id: str, model_id: str) -> str:
    """Return the vendor-side model id for a displayed model name."""
    provider = normalize_provider_id(provider_id)
    if model_id in PROVIDER_MODELS.get(provider, ()):
        return model_id
    if provider == TOGETHERAI:
        return TOGETHER_MODEL_ALIASES.get(model_id.lower(), model_id)
    return model_id


def is_model_available(provider_id: str, model_id: str) -> bool:
    return normalize_model_name(provider_id, model_id) in available_models(provider_id)
