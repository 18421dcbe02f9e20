"""Unit tests for MCP server wiring."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import httpx
import pytest
import respx

from zkkit_mcp.config import GitHubSettings, Settings
from zkkit_mcp.server import create_server, load_registry

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from mcp.server.fastmcp import FastMCP

    from zkkit_mcp.models.package import Package
    from zkkit_mcp.state import AppState

EXPECTED_TOOLS = {
    "list_packages",
    "get_ecosystem_overview",
    "compare_packages",
    "get_cross_language_coverage",
    "get_dependency_graph",
    "get_package_readme",
    "get_package_dependencies",
    "get_package_source",
    "get_package_api",
    "get_package_changelog",
    "get_package_commits",
    "get_package_downloads",
    "get_releases",
    "search_issues",
    "get_repo_stats",
    "search_code",
    "get_build_status",
}


@pytest.fixture()
async def server() -> AsyncIterator[tuple[FastMCP, AppState]]:
    settings = Settings(github=GitHubSettings(token=None, retry_delay_seconds=0))
    mcp, state = create_server(settings)
    yield mcp, state
    await state.github.aclose()


async def test_registers_every_tool(server: tuple[FastMCP, AppState]) -> None:
    mcp, _ = server
    tools = {tool.name: tool for tool in await mcp.list_tools()}
    assert set(tools) == EXPECTED_TOOLS
    assert tools["list_packages"].annotations is not None
    assert tools["list_packages"].annotations.openWorldHint is False
    assert tools["get_releases"].annotations is not None
    assert tools["get_releases"].annotations.openWorldHint is True


async def test_registers_prompts_and_resources(server: tuple[FastMCP, AppState]) -> None:
    mcp, _ = server
    prompt_names = {p.name for p in await mcp.list_prompts()}
    assert prompt_names == {
        "zk-integration-guide",
        "zk-concept-explainer",
        "troubleshoot-package",
        "migration-guide",
    }
    assert [str(r.uri) for r in await mcp.list_resources()] == ["zk-kit://overview"]
    templates = await mcp.list_resource_templates()
    assert [t.uriTemplate for t in templates] == ["zk-kit://packages/{language}/{dir_name}"]


async def test_github_error_becomes_structured_tool_error(
    server: tuple[FastMCP, AppState],
) -> None:
    mcp, _ = server
    with respx.mock:
        respx.get("https://api.github.com/repos/zk-kit/zk-kit.rust").mock(
            return_value=httpx.Response(404)
        )
        result = await mcp.call_tool("get_repo_stats", {"language": "rust"})

    assert result.isError is True  # type: ignore[union-attr]
    text = result.content[0].text  # type: ignore[union-attr]
    assert "Error executing tool" not in text
    payload = json.loads(text)
    assert payload["error"]["code"] == "GITHUB_NOT_FOUND"
    assert payload["error"]["recoverable"] is False


async def test_remote_tool_success_result(
    server: tuple[FastMCP, AppState], sample_packages: list[Package]
) -> None:
    mcp, state = server
    state.registry.load(sample_packages)
    result = await mcp.call_tool("get_package_downloads", {"name": "ecdh"})
    assert result.isError is False  # type: ignore[union-attr]
    assert result.content[0].text.startswith("Download statistics are not available")  # type: ignore[union-attr]


async def test_prompt_uses_live_registry(
    server: tuple[FastMCP, AppState], sample_packages: list[Package]
) -> None:
    mcp, state = server
    state.registry.load(sample_packages)
    result = await mcp.get_prompt("zk-integration-guide", {"package_name": "lean-imt"})
    assert len(result.messages) == 2
    assert "Install: `npm i @zk-kit/lean-imt`" in result.messages[1].content.text  # type: ignore[union-attr]


async def test_load_registry_tolerates_failing_repos(server: tuple[FastMCP, AppState]) -> None:
    _, state = server
    api = "https://api.github.com/repos"
    with respx.mock:
        respx.get(f"{api}/zk-kit/zk-kit/contents/packages").mock(
            return_value=httpx.Response(200, json=[{"name": "lean-imt", "type": "dir"}])
        )
        respx.get(url__regex=rf"{api}/zk-kit/zk-kit\.\w+/contents/.*").mock(
            return_value=httpx.Response(404)
        )
        respx.get(
            "https://raw.githubusercontent.com/zk-kit/zk-kit/main/packages/lean-imt/package.json"
        ).mock(
            return_value=httpx.Response(200, json={"description": "Lean IMT", "version": "1.0.0"})
        )
        await load_registry(state)

    assert [p.name for p in state.registry.all] == ["@zk-kit/lean-imt"]
    assert state.registry.all[0].version == "1.0.0"


async def test_load_registry_all_failing_leaves_empty_registry(
    server: tuple[FastMCP, AppState],
) -> None:
    _, state = server
    with respx.mock:
        respx.get(url__startswith="https://api.github.com/").mock(
            side_effect=httpx.ConnectError("offline")
        )
        await load_registry(state)
    assert state.registry.count == 0
