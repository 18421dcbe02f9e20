"""Unit tests for zkkit_mcp.cache."""

from __future__ import annotations

from dataclasses import fields

import httpx

from zkkit_mcp.cache import ResponseCaches, TTLCache
from zkkit_mcp.config import CacheSettings, Settings
from zkkit_mcp.github import GitHubClient
from zkkit_mcp.state import AppState


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ---------------------------------------------------------------------------
# TTLCache
# ---------------------------------------------------------------------------


class TestTTLCache:
    def test_set_and_get_fresh(self) -> None:
        cache: TTLCache[str, str] = TTLCache(60, clock=FakeClock())
        cache.set("typescript/lean-imt", "# Lean IMT")
        assert cache.get("typescript/lean-imt") == "# Lean IMT"
        assert "typescript/lean-imt" in cache

    def test_get_missing_returns_none(self) -> None:
        cache: TTLCache[str, str] = TTLCache(60)
        assert cache.get("nope") is None
        assert "nope" not in cache

    def test_entry_alive_at_exact_expiry(self) -> None:
        clock = FakeClock()
        cache: TTLCache[str, str] = TTLCache(60, clock=clock)
        cache.set("k", "v")
        clock.advance(60)
        assert cache.get("k") == "v"

    def test_expired_entry_is_evicted_on_read(self) -> None:
        clock = FakeClock()
        cache: TTLCache[str, str] = TTLCache(60, clock=clock)
        cache.set("k", "v")
        clock.advance(61)
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_set_sweeps_expired_entries(self) -> None:
        clock = FakeClock()
        cache: TTLCache[str, str] = TTLCache(60, clock=clock)
        cache.set("old", "1")
        clock.advance(61)
        cache.set("new", "2")
        assert cache._store.keys() == {"new"}

    def test_overwrite_refreshes_expiry(self) -> None:
        clock = FakeClock()
        cache: TTLCache[str, str] = TTLCache(60, clock=clock)
        cache.set("k", "v1")
        clock.advance(50)
        cache.set("k", "v2")
        clock.advance(50)
        assert cache.get("k") == "v2"

    def test_clear(self) -> None:
        cache: TTLCache[str, str] = TTLCache(60)
        cache.set("a", "1")
        cache.set("b", "2")
        cache.clear()
        assert len(cache) == 0


# ---------------------------------------------------------------------------
# ResponseCaches
# ---------------------------------------------------------------------------


class TestResponseCaches:
    def test_buckets_are_independent(self) -> None:
        caches = ResponseCaches.from_settings(CacheSettings())
        caches.readme.set("typescript/lean-imt", "readme")
        assert caches.changelog.get("typescript/lean-imt") is None

    def test_from_settings_applies_ttls(self) -> None:
        caches = ResponseCaches.from_settings(CacheSettings(stats_ttl_seconds=5))
        assert caches.stats._ttl == 5
        assert caches.readme._ttl == CacheSettings().readme_ttl_seconds

    def test_every_bucket_has_a_ttl_setting(self) -> None:
        names = {f.name for f in fields(ResponseCaches)}
        assert {f"{name}_ttl_seconds" for name in names} == set(CacheSettings.model_fields)

    def test_clear_all(self) -> None:
        caches = ResponseCaches.from_settings(CacheSettings())
        caches.readme.set("a", "1")
        caches.releases.set("b", "2")
        caches.clear_all()
        assert len(caches.readme) == 0
        assert len(caches.releases) == 0

    async def test_app_state_takes_ttls_from_settings(self) -> None:
        settings = Settings(cache=CacheSettings(readme_ttl_seconds=42))
        async with httpx.AsyncClient() as client:
            state = AppState(settings=settings, github=GitHubClient(client))
        assert state.caches.readme._ttl == 42
        assert state.caches.stats._ttl == CacheSettings().stats_ttl_seconds
