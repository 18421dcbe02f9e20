"""Integration test fixtures."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from pathlib import Path

# Port 9 (discard) is closed on test hosts, so every request is refused at once.
UNREACHABLE = "http://127.0.0.1:9"


@pytest.fixture()
def subprocess_env(tmp_path: Path) -> dict[str, str]:
    """Environment for spawning the server with no network and no user config."""
    env = {
        key: value
        for key, value in os.environ.items()
        if not key.startswith("ZKKIT_MCP__") and key != "GITHUB_TOKEN"
    }
    # platformdirs resolves the config dir from XDG_CONFIG_HOME on Linux
    env["XDG_CONFIG_HOME"] = str(tmp_path / "config")
    env["ZKKIT_MCP__GITHUB__API_URL"] = UNREACHABLE
    env["ZKKIT_MCP__GITHUB__RAW_URL"] = UNREACHABLE
    env["ZKKIT_MCP__GITHUB__RETRY_DELAY_SECONDS"] = "0"
    env["ZKKIT_MCP__GITHUB__API_TIMEOUT_SECONDS"] = "2"
    return env
