"""AI orchestration layer: prompts, providers, caching and file parsing."""
