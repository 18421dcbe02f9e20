"""Unit tests for configuration loading and validation."""

from __future__ import annotations

from typing import TYPE_CHECKING

import platformdirs
import pytest
from pydantic import ValidationError

from zkkit_mcp.config import (
    _DEFAULT_CONFIG_DIR,
    REPOS,
    CacheSettings,
    GitHubSettings,
    Settings,
    _find_config_file,
)

if TYPE_CHECKING:
    from pathlib import Path


class TestDefaults:
    def test_default_config_dir_matches_platformdirs(self) -> None:
        assert platformdirs.user_config_dir("zk-kit-mcp") == _DEFAULT_CONFIG_DIR

    def test_settings_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        settings = Settings()
        assert settings.server.transport == "stdio"
        assert settings.logging.level == "INFO"
        assert settings.github.token is None
        assert settings.github.api_timeout_seconds == 15.0
        assert settings.cache.stats_ttl_seconds == 1800

    def test_github_token_falls_back_to_conventional_variable(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("GITHUB_TOKEN", "ghp_test")
        assert GitHubSettings().token == "ghp_test"

    def test_empty_github_token_is_none(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GITHUB_TOKEN", "")
        assert GitHubSettings().token is None


class TestEnvironmentOverrides:
    def test_nested_env_var(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ZKKIT_MCP__LOGGING__LEVEL", "DEBUG")
        monkeypatch.setenv("ZKKIT_MCP__CACHE__README_TTL_SECONDS", "30")
        settings = Settings()
        assert settings.logging.level == "DEBUG"
        assert settings.cache.readme_ttl_seconds == 30

    def test_prefixed_token_wins_over_conventional_variable(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("GITHUB_TOKEN", "conventional")
        monkeypatch.setenv("ZKKIT_MCP__GITHUB__TOKEN", "prefixed")
        assert Settings().github.token == "prefixed"


class TestConfigValidation:
    def test_wrong_type_raises_validation_error(self) -> None:
        with pytest.raises(ValidationError):
            Settings(cache={"readme_ttl_seconds": "not-a-number"})  # type: ignore[arg-type]

    def test_unknown_log_level_raises(self) -> None:
        with pytest.raises(ValidationError):
            Settings(logging={"level": "TRACE"})  # type: ignore[arg-type]

    def test_only_stdio_transport(self) -> None:
        with pytest.raises(ValidationError):
            Settings(server={"transport": "http"})  # type: ignore[arg-type]

    def test_unknown_top_level_field_raises_validation_error(self) -> None:
        with pytest.raises(ValidationError):
            Settings(completely_unknown_field="oops")  # type: ignore[call-arg]

    def test_unknown_nested_field_raises_validation_error(self) -> None:
        """A typo like 'readme_ttl' is caught rather than silently ignored."""
        with pytest.raises(ValidationError):
            CacheSettings(readme_ttl=5)  # type: ignore[call-arg]


class TestConfigFile:
    def test_cwd_file_found(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        (tmp_path / "zk-kit-mcp.yaml").write_text("logging:\n  level: DEBUG\n")
        assert _find_config_file() == "zk-kit-mcp.yaml"

    def test_no_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr("zkkit_mcp.config._DEFAULT_CONFIG_DIR", str(tmp_path / "none"))
        assert _find_config_file() is None


def test_repository_table() -> None:
    assert [r.language for r in REPOS] == ["typescript", "circom", "solidity", "noir", "rust"]
    assert {r.branch for r in REPOS} == {"main"}
    assert next(r for r in REPOS if r.language == "rust").package_path == "crates"
