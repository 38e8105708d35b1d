"""TTL cache for analysis results and generated file sets."""

from __future__ import annotations

import hashlib
import json
import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from types import TracebackType
from typing import Any, Generic, TypeVar

from ui_vispro.ai.models import AnalysisResult, GeneratedFile

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TTL_MILLIS = 24 * 60 * 60 * 1000

HashFunction = Callable[[str], str]
Clock = Callable[[], int]

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    sign = "-" if value < 0 else ""
    value = abs(value)
    digits: list[str] = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36[remainder])
    return sign + "".join(reversed(digits))


def rolling_hash(text: str) -> str:
    """Signed 32-bit ``h * 31 + c`` hash in base 36. Not collision resistant."""
    value = 0
    for char in text:
        value = (value * 31 + ord(char)) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return _to_base36(value)


def sha256_hash(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def _now_millis() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """Cached value with its creation time."""

    value: T
    created_at_millis: int


@dataclass(frozen=True)
class CacheStats:
    """Entry counts per namespace."""

    analysis_entries: int
    generation_entries: int

    @property
    def total(self) -> int:
        return self.analysis_entries + self.generation_entries

    def to_dict(self) -> dict[str, int]:
        return {
            "analysis_entries": self.analysis_entries,
            "generation_entries": self.generation_entries,
            "total": self.total,
        }


class ResultCache:
    """In-memory cache with two namespaces and lazy expiry.

    Entries older than the TTL are ignored on read and removed from both
    namespaces whenever anything is written. Fingerprinting failures never
    propagate: the lookup is reported as a miss and the write is skipped.
    Reads and writes share one lock, so a thread-pooled web backend can use
    a single instance.
    """

    def __init__(
        self,
        *,
        ttl_millis: int = DEFAULT_TTL_MILLIS,
        clock: Clock = _now_millis,
        hash_function: HashFunction = rolling_hash,
    ) -> None:
        if ttl_millis <= 0:
            raise ValueError("ttl_millis must be greater than zero.")
        self.ttl_millis = ttl_millis
        self._clock = clock
        self._hash = hash_function
        self._analysis: dict[str, CacheEntry[AnalysisResult]] = {}
        self._generation: dict[str, CacheEntry[list[GeneratedFile]]] = {}
        self._lock = threading.Lock()
        self._disposed = False

    def __enter__(self) -> ResultCache:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.dispose()

    def fingerprint(self, value: Any) -> str:
        """Hash a JSON-serializable value independently of mapping key order."""
        stable = json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
        return self._hash(stable)

    def get_analysis(
        self, inputs: dict[str, Any], provider_id: str, model_id: str
    ) -> AnalysisResult | None:
        return self._get(self._analysis, "analysis", inputs, provider_id, model_id)

    def put_analysis(
        self,
        inputs: dict[str, Any],
        provider_id: str,
        model_id: str,
        result: AnalysisResult,
    ) -> None:
        self._put(self._analysis, "analysis", inputs, provider_id, model_id, result)

    def get_generation(
        self, analysis_text: str, provider_id: str, model_id: str
    ) -> list[GeneratedFile] | None:
        cached = self._get(
            self._generation, "generation", {"analysis": analysis_text}, provider_id, model_id
        )
        return list(cached) if cached is not None else None

    def put_generation(
        self,
        analysis_text: str,
        provider_id: str,
        model_id: str,
        files: list[GeneratedFile],
    ) -> None:
        self._put(
            self._generation,
            "generation",
            {"analysis": analysis_text},
            provider_id,
            model_id,
            list(files),
        )

    def clear(self) -> None:
        with self._lock:
            self._analysis.clear()
            self._generation.clear()

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                analysis_entries=len(self._analysis),
                generation_entries=len(self._generation),
            )

    def dispose(self) -> None:
        """Drop all entries; later reads miss and writes are ignored."""
        self.clear()
        self._disposed = True

    @property
    def disposed(self) -> bool:
        return self._disposed

    def _key(self, inputs: dict[str, Any], provider_id: str, model_id: str) -> str | None:
        try:
            return self.fingerprint({"input": inputs, "provider": provider_id, "model": model_id})
        except (TypeError, ValueError) as exc:
            logger.warning("Cache fingerprint failed; treating request as uncached: %s", exc)
            return None

    def _get(
        self,
        namespace: dict[str, CacheEntry[Any]],
        label: str,
        inputs: dict[str, Any],
        provider_id: str,
        model_id: str,
    ) -> Any:
        if self._disposed:
            return None
        key = self._key(inputs, provider_id, model_id)
        if key is None:
            return None
        with self._lock:
            entry = namespace.get(key)
        if entry is None or self._expired(entry, self._clock()):
            logger.debug("Cache miss (%s) for %s/%s", label, provider_id, model_id)
            return None
        logger.debug("Cache hit (%s) for %s/%s", label, provider_id, model_id)
        return entry.value

    def _put(
        self,
        namespace: dict[str, CacheEntry[Any]],
        label: str,
        inputs: dict[str, Any],
        provider_id: str,
        model_id: str,
        value: Any,
    ) -> None:
        if self._disposed:
            return
        key = self._key(inputs, provider_id, model_id)
        if key is None:
            return
        now = self._clock()
        with self._lock:
            namespace[key] = CacheEntry(value=value, created_at_millis=now)
            self._sweep(now)

    def _expired(self, entry: CacheEntry[Any], now: int) -> bool:
        return now - entry.created_at_millis > self.ttl_millis

    def _sweep(self, now: int) -> None:
        """Drop expired entries; the caller holds the lock."""
        for namespace in (self._analysis, self._generation):
            stale = [key for key, entry in list(namespace.items()) if self._expired(entry, now)]
            for key in stale:
                del namespace[key]
