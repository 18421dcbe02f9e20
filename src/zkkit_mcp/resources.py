"""Read-only resources: the ecosystem overview and per-package pages."""

from __future__ import annotations

from typing import TYPE_CHECKING

from zkkit_mcp.tools._shared import get_or_fetch_readme

if TYPE_CHECKING:
    from zkkit_mcp.state import AppState

OVERVIEW_URI = "zk-kit://overview"
PACKAGE_URI_TEMPLATE = "zk-kit://packages/{language}/{dir_name}"


def overview(state: AppState) -> str:
    return state.registry.get_ecosystem_overview()


async def package_page(state: AppState, language: str, dir_name: str) -> str:
    """Metadata table for one package followed by its README, when available."""
    package = state.registry.find(language, dir_name)
    if package is None:
        return f"Package not found: {language}/{dir_name}"

    text = f"# {package.name}\n\n"
    text += "| Field | Value |\n|-------|-------|\n"
    text += f"| Language | {package.language} |\n"
    text += f"| Category | {package.category} |\n"
    if package.version:
        text += f"| Version | {package.version} |\n"
    text += f"| Install | `{package.install_command}` |\n"
    text += f"| Repo | {package.repo} |\n"
    text += f"| Cross-lang ID | {package.cross_language_id} |\n"
    text += f"\n{package.description or '(no description)'}\n"

    readme = await get_or_fetch_readme(state, package)
    if readme:
        text += f"\n---\n\n{readme}"
    return text


def complete_language(state: AppState, value: str) -> list[str]:
    languages = {p.language for p in state.registry.all}
    return sorted(lang for lang in languages if lang.startswith(value.lower()))


def complete_dir_name(state: AppState, value: str, language: str | None = None) -> list[str]:
    names = (
        p.dir_name
        for p in state.registry.all
        if (not language or p.language == language) and p.dir_name.startswith(value)
    )
    return list(dict.fromkeys(names))[:20]
