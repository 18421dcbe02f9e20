"""In-memory expiring caches for on-demand GitHub content.

Each logical resource kind gets its own ``TTLCache`` bucket. Writers sweep
expired entries on every ``set``; readers evict lazily. Buckets are only
touched from the event loop, so no locking is needed.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, fields
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from zkkit_mcp.config import CacheSettings

K = TypeVar("K")
V = TypeVar("V")


@dataclass
class _Entry(Generic[V]):
    value: V
    expires_at: float


class TTLCache(Generic[K, V]):
    """Key-value store whose entries expire ``ttl_seconds`` after being set."""

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._store: dict[K, _Entry[V]] = {}

    def get(self, key: K) -> V | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        if self._clock() > entry.expires_at:
            del self._store[key]
            return None
        return entry.value

    def set(self, key: K, value: V) -> None:
        now = self._clock()
        self._sweep(now)
        self._store[key] = _Entry(value, now + self._ttl)

    def clear(self) -> None:
        self._store.clear()

    def __contains__(self, key: K) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        self._sweep(self._clock())
        return len(self._store)

    def _sweep(self, now: float) -> None:
        expired = [k for k, entry in self._store.items() if now > entry.expires_at]
        for k in expired:
            del self._store[k]


@dataclass
class ResponseCaches:
    """One rendered-response bucket per on-demand resource kind.

    Build with ``from_settings``; every bucket takes its TTL from ``CacheSettings``.
    """

    readme: TTLCache[str, str]
    releases: TTLCache[str, str]
    dependencies: TTLCache[str, str]
    stats: TTLCache[str, str]
    tree: TTLCache[str, str]
    code_search: TTLCache[str, str]
    commits: TTLCache[str, str]
    downloads: TTLCache[str, str]
    build_status: TTLCache[str, str]
    issue_search: TTLCache[str, str]
    changelog: TTLCache[str, str]

    @classmethod
    def from_settings(cls, settings: CacheSettings) -> ResponseCaches:
        return cls(
            **{
                f.name: TTLCache(getattr(settings, f"{f.name}_ttl_seconds"))
                for f in fields(cls)
            }
        )

    def clear_all(self) -> None:
        for f in fields(self):
            getattr(self, f.name).clear()
