"""Retry hints read from vendor rate-limit responses.

OpenAI-compatible vendors send ``retry-after`` (seconds or an HTTP date) and
``x-ratelimit-reset-*`` headers (durations such as ``6m0s``, ``250ms`` or
``1.5s``). Only the hint is extracted here; retrying is left to the SDK.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from typing import Any

RETRY_HEADERS: tuple[str, ...] = (
    "retry-after",
    "x-ratelimit-reset-requests",
    "x-ratelimit-reset-tokens",
    "x-ratelimit-reset",
)

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|h|m|s)")
_UNIT_SECONDS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


@dataclass(frozen=True)
class RateLimitHint:
    """How long a vendor asked us to wait, and which header said so."""

    retry_after_seconds: float
    header: str
    raw_value: str


def extract_rate_limit_hint(error: BaseException) -> RateLimitHint | None:
    """Return the first usable wait hint carried by a vendor error."""
    headers = _response_headers(error)
    if not headers:
        return None
    for name in RETRY_HEADERS:
        raw = headers.get(name)
        if not raw:
            continue
        seconds = parse_wait_seconds(raw)
        if seconds is not None:
            return RateLimitHint(retry_after_seconds=seconds, header=name, raw_value=raw)
    return None


def parse_wait_seconds(value: str, *, now: datetime | None = None) -> float | None:
    """Interpret a header value as a non-negative number of seconds."""
    text = value.strip().lower()
    if not text:
        return None
    try:
        return max(0.0, float(text))
    except ValueError:
        pass
    duration = _parse_duration(text)
    if duration is not None:
        return duration
    moment = _parse_http_date(value.strip())
    if moment is None:
        return None
    reference = now or datetime.now(tz=UTC)
    return max(0.0, (moment - reference).total_seconds())


def _response_headers(error: BaseException) -> dict[str, str]:
    response: Any = getattr(error, "response", None)
    headers = getattr(response, "headers", None)
    if not isinstance(headers, Mapping) and not hasattr(headers, "items"):
        return {}
    return {str(key).lower(): str(value) for key, value in headers.items()}


def _parse_duration(text: str) -> float | None:
    """Sum compound durations like ``1m30s``; the whole string must match."""
    parts = _DURATION_PART.findall(text)
    if not parts or "".join(number + unit for number, unit in parts) != text:
        return None
    return sum(float(number) * _UNIT_SECONDS[unit] for number, unit in parts)


def _parse_http_date(value: str) -> datetime | None:
    try:
        moment = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment
