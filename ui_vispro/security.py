"""Keeping secrets out of error messages and generated files inside their folder."""

from __future__ import annotations

import re
from pathlib import Path, PurePosixPath


class SecurityError(RuntimeError):
    """Raised when a generated file would be written outside its output folder."""


# Order matters: vendor key shapes first, then generic key=value forms.
_SECRET_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("openai_api_key", re.compile(r"sk-(?:proj-)?[A-Za-z0-9_-]{20,}")),
    ("together_api_key", re.compile(r"\b[0-9a-f]{64}\b")),
    ("jwt", re.compile(r"\beyJ[\w-]+\.[\w-]+\.[\w-]+")),
    ("bearer_token", re.compile(r"(?i)(?<=bearer )[\w.~+/-]{16,}=*")),
)

_CREDENTIAL_FIELD = r"[\w.-]*(?:api[_-]?key|token|secret|password|authorization)[\w.-]*"
_ASSIGNMENT = re.compile(rf"(?i)(?P<field>\b{_CREDENTIAL_FIELD})(?P<sep>\s*[:=]\s*)[^\s,;&]+")
_QUERY_PARAMETER = re.compile(rf"(?i)(?P<field>[?&]{_CREDENTIAL_FIELD}=)[^&#\s]+")

REDACTED = "[REDACTED]"


def redact_sensitive_text(text: str) -> str:
    """Mask API keys and tokens that vendor SDKs may echo in error messages."""
    for label, pattern in _SECRET_PATTERNS:
        text = pattern.sub(f"[REDACTED:{label}]", text)
    text = _QUERY_PARAMETER.sub(lambda match: match.group("field") + REDACTED, text)
    return _ASSIGNMENT.sub(
        lambda match: match.group("field") + match.group("sep") + REDACTED, text
    )


def ensure_safe_relative_path(base_dir: Path, relative_path: str) -> Path:
    """Resolve a generated file name below ``base_dir``.

    Leading slashes are ignored so ``/generated/App.tsx`` style paths land
    inside the folder. Anything that resolves to the folder itself or escapes
    it raises ``SecurityError``.
    """
    parts = PurePosixPath(relative_path.replace("\\", "/")).parts
    relative = [part for part in parts if part not in ("/", "")]
    root = base_dir.resolve()
    if not relative:
        raise SecurityError("Target path must name a file, not the output folder.")
    target = root.joinpath(*relative).resolve()
    if not target.is_relative_to(root) or target == root:
        raise SecurityError(f"Refusing to write outside {root}: {relative_path}")
    return target
