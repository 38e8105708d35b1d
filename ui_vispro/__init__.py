"""UI Vispro: design-to-code orchestration across pluggable LLM providers."""

__version__ = "0.3.0"
