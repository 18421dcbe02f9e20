"""MCP server entry point.

Startup order: load settings (invalid config exits non-zero before any
transport starts), configure logging, build the server, then discover
packages inside the lifespan before serving requests over stdio.

Run with ``python -m zkkit_mcp.server`` or the ``zk-kit-mcp`` script.
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Annotated, Literal

import structlog
from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.prompts.base import Message
from mcp.types import (
    CallToolResult,
    Completion,
    CompletionArgument,
    CompletionContext,
    PromptReference,
    ResourceTemplateReference,
    TextContent,
    ToolAnnotations,
)
from pydantic import Field

from zkkit_mcp import prompts, resources
from zkkit_mcp.config import Settings
from zkkit_mcp.discovery import discover_all_packages
from zkkit_mcp.errors import ZkKitError
from zkkit_mcp.github import GitHubClient, build_http_client
from zkkit_mcp.logging_config import configure_logging
from zkkit_mcp.models import Category, Language
from zkkit_mcp.state import AppState
from zkkit_mcp.tools import graph, packages, repos

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable

log = structlog.get_logger()

PackageName = Annotated[
    str, Field(description="Package name (e.g., '@zk-kit/lean-imt', 'lean-imt', 'lean_imt')")
]

_LOCAL = ToolAnnotations(readOnlyHint=True, idempotentHint=True, openWorldHint=False)
_REMOTE = ToolAnnotations(readOnlyHint=True, idempotentHint=True, openWorldHint=True)


async def _guarded(result: Awaitable[str]) -> CallToolResult:
    """Await a tool handler and wrap its text in a tool result.

    A ``ZkKitError`` becomes an error result whose text is the JSON payload
    from ``ZkKitError.to_payload``, so clients can parse code and
    recoverability without scraping a message prefix.
    """
    try:
        text = await result
    except ZkKitError as exc:
        log.warning("tool_failed", code=exc.code.value, error=exc.message)
        return CallToolResult(
            content=[TextContent(type="text", text=exc.to_payload())], isError=True
        )
    return CallToolResult(content=[TextContent(type="text", text=text)])


async def load_registry(state: AppState) -> None:
    """Run discovery and swap the result into the registry. Never raises on fetch failures."""
    started = time.monotonic()
    log.info("discovery_started")
    discovered = await discover_all_packages(state.github)
    if not discovered:
        log.warning("registry_empty", hint="check GITHUB_TOKEN and network access")
    state.registry.load(discovered)
    log.info(
        "server_ready",
        packages=state.registry.count,
        duration_ms=round((time.monotonic() - started) * 1000),
    )


def create_server(settings: Settings) -> tuple[FastMCP, AppState]:
    state = AppState(
        settings=settings,
        github=GitHubClient(build_http_client(), settings.github),
    )

    @asynccontextmanager
    async def lifespan(_server: FastMCP) -> AsyncIterator[AppState]:
        try:
            await load_registry(state)
            yield state
        finally:
            state.caches.clear_all()
            await state.github.aclose()

    mcp = FastMCP(settings.server.name, lifespan=lifespan)

    # ------------------------------------------------------------------
    # Registry tools
    # ------------------------------------------------------------------

    @mcp.tool(
        title="List Packages",
        description=(
            "List and search ZK-Kit packages. Filter by keyword, language, or category. "
            "Returns package names, descriptions, languages, and install commands."
        ),
        annotations=_LOCAL,
    )
    def list_packages(
        query: Annotated[
            str | None, Field(description="Search keywords (space-separated, all must match)")
        ] = None,
        language: Annotated[Language | None, Field(description="Filter by language")] = None,
        category: Annotated[Category | None, Field(description="Filter by category")] = None,
    ) -> str:
        return packages.list_packages(state, query, language, category)

    @mcp.tool(
        title="Ecosystem Overview",
        description=(
            "Get a high-level map of the entire ZK-Kit ecosystem: all packages grouped by "
            "language and category, with cross-language links."
        ),
        annotations=_LOCAL,
    )
    def get_ecosystem_overview() -> str:
        return packages.get_ecosystem_overview(state)

    @mcp.tool(
        title="Compare Packages",
        description=(
            "Side-by-side comparison of two or more ZK-Kit packages. Shows language, category, "
            "description, install commands, and cross-language variants."
        ),
        annotations=_LOCAL,
    )
    def compare_packages(
        names: Annotated[
            list[str], Field(min_length=2, description="Package names to compare (at least 2)")
        ],
    ) -> str:
        return packages.compare_packages(state, names)

    @mcp.tool(
        title="Cross-Language Coverage",
        description=(
            "Show a concept x language matrix revealing which ZK-Kit concepts are implemented "
            "in which languages and where gaps exist. Computed from the package registry."
        ),
        annotations=_LOCAL,
    )
    def get_cross_language_coverage() -> str:
        return graph.get_cross_language_coverage(state)

    @mcp.tool(
        title="Dependency Graph",
        description=(
            "Show the internal dependency graph between ZK-Kit packages. Without a package name, "
            "shows foundational, leaf, and independent packages. With a package name, shows what "
            "it depends on and what depends on it."
        ),
        annotations=_LOCAL,
    )
    def get_dependency_graph(
        name: Annotated[
            str | None, Field(description="Package to show reverse dependencies for")
        ] = None,
    ) -> str:
        return graph.get_dependency_graph(state, name)

    # ------------------------------------------------------------------
    # Package tools (network)
    # ------------------------------------------------------------------

    @mcp.tool(
        title="Get Package README",
        description=(
            "Fetch the full README for a ZK-Kit package: API docs, usage examples, install "
            "instructions. Set summary=true for install command, description and first code example."
        ),
        annotations=_REMOTE,
    )
    async def get_package_readme(
        name: PackageName,
        summary: Annotated[bool, Field(description="Return a concise summary instead")] = False,
    ) -> CallToolResult:
        return await _guarded(packages.get_package_readme(state, name, summary))

    @mcp.tool(
        title="Get Package Dependencies",
        description=(
            "Fetch runtime, dev, and peer dependencies from a ZK-Kit package manifest "
            "(package.json, Cargo.toml, or Nargo.toml)."
        ),
        annotations=_REMOTE,
    )
    async def get_package_dependencies(name: PackageName) -> CallToolResult:
        return await _guarded(packages.get_package_dependencies(state, name))

    @mcp.tool(
        title="Get Package Source",
        description=(
            "Browse source code of a ZK-Kit package. Without file_path, returns the directory "
            "tree. With file_path, returns the file content."
        ),
        annotations=_REMOTE,
    )
    async def get_package_source(
        name: PackageName,
        file_path: Annotated[
            str | None, Field(description="Path within the package (e.g., 'src/index.ts')")
        ] = None,
    ) -> CallToolResult:
        return await _guarded(packages.get_package_source(state, name, file_path))

    @mcp.tool(
        title="Get Package API",
        description=(
            "Fetch the main entry file of a ZK-Kit package: src/index.ts, src/lib.rs, the main "
            "contract, or the main circuit."
        ),
        annotations=_REMOTE,
    )
    async def get_package_api(name: PackageName) -> CallToolResult:
        return await _guarded(packages.get_package_api(state, name))

    @mcp.tool(
        title="Get Package Changelog",
        description="Fetch the CHANGELOG.md for a ZK-Kit package.",
        annotations=_REMOTE,
    )
    async def get_package_changelog(name: PackageName) -> CallToolResult:
        return await _guarded(packages.get_package_changelog(state, name))

    @mcp.tool(
        title="Get Package Commits",
        description="Fetch recent commits touching a specific ZK-Kit package.",
        annotations=_REMOTE,
    )
    async def get_package_commits(
        name: PackageName,
        limit: Annotated[int, Field(ge=1, le=50, description="Number of commits")] = 10,
    ) -> CallToolResult:
        return await _guarded(packages.get_package_commits(state, name, limit))

    @mcp.tool(
        title="Get Package Downloads",
        description=(
            "Fetch download statistics from npm (TypeScript/Circom/Solidity) or crates.io (Rust)."
        ),
        annotations=_REMOTE,
    )
    async def get_package_downloads(name: PackageName) -> CallToolResult:
        return await _guarded(packages.get_package_downloads(state, name))

    # ------------------------------------------------------------------
    # Repository tools (network)
    # ------------------------------------------------------------------

    @mcp.tool(
        title="Get Releases",
        description=(
            "Fetch recent releases for ZK-Kit repos, by language, repo slug, or package. "
            "Defaults to all repos."
        ),
        annotations=_REMOTE,
    )
    async def get_releases(
        language: Annotated[Language | None, Field(description="Language of the repo")] = None,
        repo: Annotated[str | None, Field(description="Repo slug (e.g., 'zk-kit/zk-kit')")] = None,
        package: Annotated[str | None, Field(description="Only this package's releases")] = None,
        limit: Annotated[int, Field(ge=1, le=30, description="Number of releases")] = 10,
    ) -> CallToolResult:
        return await _guarded(repos.get_releases(state, language, repo, package, limit))

    @mcp.tool(
        title="Search Issues",
        description=(
            "Search GitHub issues across ZK-Kit repositories, optionally scoped to a package, "
            "language, or repo."
        ),
        annotations=_REMOTE,
    )
    async def search_issues(
        query: Annotated[str, Field(description="Search query")],
        state_filter: Annotated[
            Literal["open", "closed", "all"], Field(description="Issue state filter")
        ] = "open",
        package: Annotated[str | None, Field(description="Scope to a package")] = None,
        language: Annotated[Language | None, Field(description="Scope to a language")] = None,
        repo: Annotated[str | None, Field(description="Scope to a repo slug")] = None,
    ) -> CallToolResult:
        return await _guarded(
            repos.search_issues(state, query, state_filter, package, language, repo)
        )

    @mcp.tool(
        title="Get Repo Stats",
        description="Stars, forks, open issues, last push, license, and topics for ZK-Kit repos.",
        annotations=_REMOTE,
    )
    async def get_repo_stats(
        language: Annotated[Language | None, Field(description="Language of the repo")] = None,
        repo: Annotated[str | None, Field(description="Repo slug")] = None,
    ) -> CallToolResult:
        return await _guarded(repos.get_repo_stats(state, language, repo))

    @mcp.tool(
        title="Search Code",
        description="Search ZK-Kit source code with GitHub Code Search, optionally within a package.",
        annotations=_REMOTE,
    )
    async def search_code(
        query: Annotated[str, Field(description="Code search query (e.g., 'PoseidonT3')")],
        language: Annotated[str | None, Field(description="Programming language filter")] = None,
        package: Annotated[str | None, Field(description="Scope to a package")] = None,
    ) -> CallToolResult:
        return await _guarded(repos.search_code(state, query, language, package))

    @mcp.tool(
        title="Get Build Status",
        description="Latest GitHub Actions workflow runs for ZK-Kit repos.",
        annotations=_REMOTE,
    )
    async def get_build_status(
        language: Annotated[Language | None, Field(description="Language of the repo")] = None,
        repo: Annotated[str | None, Field(description="Repo slug")] = None,
        limit: Annotated[int, Field(ge=1, le=20, description="Number of runs")] = 5,
    ) -> CallToolResult:
        return await _guarded(repos.get_build_status(state, language, repo, limit))

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------

    @mcp.resource(
        resources.OVERVIEW_URI,
        name="overview",
        description="All ZK-Kit packages grouped by language and category",
        mime_type="text/markdown",
    )
    def overview() -> str:
        return resources.overview(state)

    @mcp.resource(
        resources.PACKAGE_URI_TEMPLATE,
        name="package",
        description="ZK-Kit package metadata and documentation",
        mime_type="text/markdown",
    )
    async def package_page(language: str, dir_name: str) -> str:
        return await resources.package_page(state, language, dir_name)

    # ------------------------------------------------------------------
    # Prompts
    # ------------------------------------------------------------------

    @mcp.prompt(
        name="zk-integration-guide",
        description="Guided workflow for integrating a ZK-Kit package into your project",
    )
    def zk_integration_guide(
        package_name: str | None = None, language: str | None = None
    ) -> list[Message]:
        return prompts.integration_guide(state.registry, package_name, language)

    @mcp.prompt(
        name="zk-concept-explainer",
        description=(
            "Learn about a zero-knowledge concept (merkle tree, poseidon, eddsa, ...) through "
            "the ZK-Kit packages implementing it"
        ),
    )
    def zk_concept_explainer(concept: str, language: str | None = None) -> list[Message]:
        return prompts.concept_explainer(state.registry, concept, language)

    @mcp.prompt(
        name="troubleshoot-package",
        description="Guided troubleshooting workflow for issues with a ZK-Kit package",
    )
    def troubleshoot_package(
        package_name: str, error_message: str | None = None, language: str | None = None
    ) -> list[Message]:
        return prompts.troubleshoot_package(state.registry, package_name, error_message, language)

    @mcp.prompt(
        name="migration-guide",
        description=(
            "Upgrade a ZK-Kit package to a newer version, or switch to another language's "
            "implementation"
        ),
    )
    def migration_guide(package_name: str, target_language: str | None = None) -> list[Message]:
        return prompts.migration_guide(state.registry, package_name, target_language)

    @mcp.completion()
    async def complete(
        ref: PromptReference | ResourceTemplateReference,
        argument: CompletionArgument,
        context: CompletionContext | None,
    ) -> Completion | None:
        if isinstance(ref, PromptReference) and argument.name == "package_name":
            values = prompts.complete_package_name(state.registry, argument.value)
        elif isinstance(ref, ResourceTemplateReference) and argument.name == "language":
            values = resources.complete_language(state, argument.value)
        elif isinstance(ref, ResourceTemplateReference) and argument.name == "dir_name":
            language = (context.arguments or {}).get("language") if context else None
            values = resources.complete_dir_name(state, argument.value, language)
        else:
            return None
        return Completion(values=values, hasMore=False)

    return mcp, state


def main() -> None:
    settings = Settings()
    configure_logging(settings.logging)
    mcp, _ = create_server(settings)
    log.info("server_starting", transport=settings.server.transport)
    mcp.run(transport=settings.server.transport)


if __name__ == "__main__":
    main()
