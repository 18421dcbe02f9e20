from __future__ import annotations

from typing import TYPE_CHECKING

from zkkit_mcp.config import REPOS
from zkkit_mcp.formatting import MAX_RESPONSE_LENGTH

if TYPE_CHECKING:
    from zkkit_mcp.models.package import Package, RepoConfig
    from zkkit_mcp.state import AppState

EMPTY_REGISTRY_HINT = (
    " The package registry is empty, this usually means GitHub API requests failed at"
    " startup. Check server logs and ensure GITHUB_TOKEN is set for higher rate limits."
)


def resolve_package(state: AppState, name: str) -> Package | str:
    """The package for ``name``, or a user-facing not-found message.

    The message distinguishes an empty registry (a startup problem) from a
    name that simply matches nothing, and offers suggestions for the latter.
    """
    registry = state.registry
    package = registry.get_by_name(name)
    if package is not None:
        return package

    if registry.count == 0:
        return f'Package "{name}" not found.{EMPTY_REGISTRY_HINT}'

    suggestions = registry.suggest(name)
    if suggestions:
        listing = "\n".join(f"- {s.name}" for s in suggestions)
        return f'Package "{name}" not found. Did you mean:\n{listing}'
    return f'Package "{name}" not found. Use list_packages to see available packages.'


def resolve_repo(state: AppState, package: Package) -> RepoConfig | str:
    repo = state.registry.get_repo_for_language(package.language)
    if repo is None:
        return f"No repo config for language: {package.language}"
    return repo


def resolve_repo_slugs(language: str | None = None, repo: str | None = None) -> list[str] | str:
    """Slugs selected by an explicit repo, a language, or all repos by default."""
    if repo:
        valid = [r.slug for r in REPOS]
        if repo not in valid:
            return f'Unknown repo: "{repo}". Valid repos: {", ".join(valid)}'
        return [repo]
    if language:
        found = next((r for r in REPOS if r.language == language), None)
        if found is None:
            available = ", ".join(r.language for r in REPOS)
            return f"Unknown language: {language}. Available: {available}"
        return [found.slug]
    return [r.slug for r in REPOS]


async def get_or_fetch_readme(state: AppState, package: Package) -> str | None:
    key = f"{package.language}/{package.dir_name}"
    readme = state.caches.readme.get(key)
    if readme is None:
        repo = state.registry.get_repo_for_language(package.language)
        if repo is None:
            return None
        readme = await state.github.fetch_readme(
            repo.slug, repo.branch, repo.package_path, package.dir_name
        )
        if readme:
            state.caches.readme.set(key, readme)
    return readme


def truncate_response(text: str, hint: str) -> str:
    if len(text) <= MAX_RESPONSE_LENGTH:
        return text
    return (
        f"{text[:MAX_RESPONSE_LENGTH]}\n\n---\n"
        f"*[Content truncated at {MAX_RESPONSE_LENGTH} characters. {hint}]*"
    )
