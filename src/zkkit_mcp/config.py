"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (ZKKIT_MCP__LOGGING__LEVEL=DEBUG)
  2. zk-kit-mcp.yaml        (searched in cwd, then the platform config dir)
  3. Hardcoded defaults

The config file is optional. The GitHub token additionally falls back to the
conventional ``GITHUB_TOKEN`` variable.

The repository table (``REPOS``) is static and not configurable.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from zkkit_mcp.models.package import RepoConfig

_CONFIG_FILENAME = "zk-kit-mcp.yaml"
_DEFAULT_CONFIG_DIR = platformdirs.user_config_dir("zk-kit-mcp")

REPOS: tuple[RepoConfig, ...] = (
    RepoConfig(slug="zk-kit/zk-kit", language="typescript", package_path="packages", branch="main"),
    RepoConfig(
        slug="zk-kit/zk-kit.circom", language="circom", package_path="packages", branch="main"
    ),
    RepoConfig(
        slug="zk-kit/zk-kit.solidity", language="solidity", package_path="packages", branch="main"
    ),
    RepoConfig(slug="zk-kit/zk-kit.noir", language="noir", package_path="packages", branch="main"),
    RepoConfig(slug="zk-kit/zk-kit.rust", language="rust", package_path="crates", branch="main"),
)


def _find_config_file() -> str | None:
    """Return the path of the first zk-kit-mcp.yaml found, or None."""
    candidates = [
        Path(_CONFIG_FILENAME),
        Path(_DEFAULT_CONFIG_DIR) / _CONFIG_FILENAME,
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class ServerSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = "zk-kit-mcp"
    transport: Literal["stdio"] = "stdio"


class GitHubSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    token: str | None = Field(default_factory=lambda: os.environ.get("GITHUB_TOKEN") or None)
    api_url: str = "https://api.github.com"
    raw_url: str = "https://raw.githubusercontent.com"
    npm_downloads_url: str = "https://api.npmjs.org/downloads/point"
    crates_url: str = "https://crates.io/api/v1/crates"
    api_timeout_seconds: float = 15.0
    raw_timeout_seconds: float = 10.0
    retry_delay_seconds: float = 1.0


class CacheSettings(BaseModel):
    """Time-to-live, in seconds, for each on-demand response bucket."""

    model_config = ConfigDict(extra="forbid")

    readme_ttl_seconds: int = 600
    releases_ttl_seconds: int = 300
    dependencies_ttl_seconds: int = 600
    stats_ttl_seconds: int = 1800
    tree_ttl_seconds: int = 600
    code_search_ttl_seconds: int = 300
    commits_ttl_seconds: int = 300
    downloads_ttl_seconds: int = 1800
    build_status_ttl_seconds: int = 300
    issue_search_ttl_seconds: int = 300
    changelog_ttl_seconds: int = 600


class LoggingSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "text"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: ZKKIT_MCP__GITHUB__API_TIMEOUT_SECONDS=30
        env_prefix="ZKKIT_MCP__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    server: ServerSettings = ServerSettings()
    github: GitHubSettings = Field(default_factory=GitHubSettings)
    cache: CacheSettings = CacheSettings()
    logging: LoggingSettings = LoggingSettings()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,  # Constructor args (highest priority)
            env_settings,  # Environment variables
            YamlConfigSettingsSource(settings_cls),  # YAML file
            # dotenv and file secrets intentionally excluded
        )
