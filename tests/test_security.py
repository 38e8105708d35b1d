"""Security-focused unit tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from ui_vispro.security import SecurityError, ensure_safe_relative_path, redact_sensitive_text


def test_ensure_safe_relative_path_rejects_traversal(tmp_path: Path) -> None:
    with pytest.raises(SecurityError):
        ensure_safe_relative_path(tmp_path, "../outside.txt")


def test_ensure_safe_relative_path_rejects_root(tmp_path: Path) -> None:
    with pytest.raises(SecurityError):
        ensure_safe_relative_path(tmp_path, "/")


def test_ensure_safe_relative_path_accepts_child(tmp_path: Path) -> None:
    resolved = ensure_safe_relative_path(tmp_path, "components/Header.tsx")
    assert resolved.parent == (tmp_path / "components").resolve()


def test_redacts_vendor_keys() -> None:
    together_key = "a" * 64
    text = f"openai sk-ABCDEF1234567890ABCDEF12 together {together_key}"

    redacted = redact_sensitive_text(text)

    assert "sk-ABCDEF" not in redacted
    assert together_key not in redacted
    assert "[REDACTED:openai_api_key]" in redacted
    assert "[REDACTED:together_api_key]" in redacted


def test_redacts_key_values_and_headers() -> None:
    redacted = redact_sensitive_text(
        "api_key=abc123 url=https://x.test/v1?token=zzz X-API-Key: secret-value"
    )

    assert "abc123" not in redacted
    assert "zzz" not in redacted
    assert "secret-value" not in redacted


def test_plain_text_is_untouched() -> None:
    assert redact_sensitive_text("Connection reset by peer") == "Connection reset by peer"
