"""HTTP API for the design-to-code service."""
