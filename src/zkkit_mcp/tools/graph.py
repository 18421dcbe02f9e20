"""Registry-only tools: no network calls."""

from __future__ import annotations

from typing import TYPE_CHECKING

from zkkit_mcp.tools._shared import EMPTY_REGISTRY_HINT, resolve_package

if TYPE_CHECKING:
    from zkkit_mcp.state import AppState


def get_cross_language_coverage(state: AppState) -> str:
    if state.registry.count == 0:
        return f"No packages available.{EMPTY_REGISTRY_HINT}"
    return state.registry.get_cross_language_coverage()


def get_dependency_graph(state: AppState, name: str | None = None) -> str:
    """Full graph, or the reverse-dependency view of one package's concept."""
    if state.registry.count == 0:
        return f"No packages available.{EMPTY_REGISTRY_HINT}"
    if name:
        package = resolve_package(state, name)
        if isinstance(package, str):
            return package
        return state.registry.get_reverse_dependencies(package.cross_language_id)
    return state.registry.get_dependency_graph()
