"""Error taxonomy for the orchestration layer."""

from __future__ import annotations


class VisproError(Exception):
    """Base class for all orchestration errors."""


class InvalidInputError(VisproError, ValueError):
    """Raised when a caller supplies unusable input."""


class MissingCredentialError(VisproError):
    """Raised when a provider that needs a secret has none configured."""

    def __init__(self, provider: str) -> None:
        super().__init__(
            f"Missing API key for {provider}. Provide one explicitly or set it in the environment."
        )
        self.provider = provider


class UnsupportedProviderError(VisproError):
    """Raised when a provider id is not registered."""

    def __init__(self, provider: str) -> None:
        super().__init__(f"Unsupported provider: {provider}")
        self.provider = provider


class UnsupportedCapabilityError(VisproError):
    """Raised when a provider cannot perform the requested operation."""

    def __init__(self, provider: str, capability: str) -> None:
        super().__init__(f"Provider {provider} does not support {capability.replace('_', ' ')}.")
        self.provider = provider
        self.capability = capability


class ProviderRequestError(VisproError):
    """Wraps any failure raised while talking to a vendor."""

    def __init__(
        self,
        message: str,
        *,
        provider: str,
        operation: str,
        retry_after_seconds: float | None = None,
    ) -> None:
        super().__init__(message)
        self.provider = provider
        self.operation = operation
        self.retry_after_seconds = retry_after_seconds
