"""Per-package tools: listing, docs, source, manifest and activity lookups."""

from __future__ import annotations

from typing import TYPE_CHECKING

from zkkit_mcp.formatting import (
    code_block,
    format_commits,
    format_dependencies,
    format_directory_tree,
    format_package_downloads,
)
from zkkit_mcp.manifest import extract_first_code_block
from zkkit_mcp.tools._shared import (
    EMPTY_REGISTRY_HINT,
    get_or_fetch_readme,
    resolve_package,
    resolve_repo,
    truncate_response,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from zkkit_mcp.models.package import Category, Language, Package
    from zkkit_mcp.state import AppState


def _version_suffix(package: Package) -> str:
    return f" v{package.version}" if package.version else ""


def list_packages(
    state: AppState,
    query: str | None = None,
    language: Language | None = None,
    category: Category | None = None,
) -> str:
    results = state.registry.search(query, language, category)
    if not results:
        hint = EMPTY_REGISTRY_HINT if state.registry.count == 0 else ""
        return f"No packages found matching the given criteria.{hint}"
    return "\n\n".join(
        f"**{p.name}**{_version_suffix(p)} ({p.language}, {p.category})\n"
        f"{p.description or '(no description)'}\n"
        f"Install: `{p.install_command}`"
        for p in results
    )


def get_ecosystem_overview(state: AppState) -> str:
    if state.registry.count == 0:
        return f"No packages available.{EMPTY_REGISTRY_HINT}"
    return state.registry.get_ecosystem_overview()


def compare_packages(state: AppState, names: Sequence[str]) -> str:
    if state.registry.count == 0:
        return f"Cannot compare packages.{EMPTY_REGISTRY_HINT}"
    return state.registry.compare(names)


async def get_package_readme(state: AppState, name: str, summary: bool = False) -> str:
    package = resolve_package(state, name)
    if isinstance(package, str):
        return package

    readme = await get_or_fetch_readme(state, package)
    if not readme:
        version_line = f"\n**Version:** {package.version}" if package.version else ""
        return (
            f"# {package.name}\n\n"
            f"**Language:** {package.language}\n"
            f"**Category:** {package.category}{version_line}\n"
            f"**Description:** {package.description or '(no description)'}\n"
            f"**Install:** `{package.install_command}`\n"
            f"**Repo:** {package.repo}\n\n"
            "(README could not be fetched from GitHub)"
        )

    if summary:
        text = f"# {package.name}{_version_suffix(package)}\n\n"
        text += f"{package.description or '(no description)'}\n\n"
        text += f"**Install:** `{package.install_command}`\n"
        example = extract_first_code_block(readme)
        if example is not None:
            hint, code = example
            text += f"\n## Quick Example\n\n```{hint}\n{code}\n```"
        text += "\n\n*Use `get_package_readme` without `summary` for the full documentation.*"
        return text

    return truncate_response(
        readme,
        "Use `get_package_readme` with `summary: true` for a concise version, "
        "or `get_package_source` to read specific files.",
    )


async def get_package_dependencies(state: AppState, name: str) -> str:
    package = resolve_package(state, name)
    if isinstance(package, str):
        return package

    key = f"{package.language}/{package.dir_name}"
    cached = state.caches.dependencies.get(key)
    if cached is None:
        repo = resolve_repo(state, package)
        if isinstance(repo, str):
            return repo
        deps = await state.github.fetch_package_dependencies(
            repo.slug, repo.branch, repo.package_path, package.dir_name, package.language
        )
        if deps is None:
            cached = f"Could not fetch dependencies for {package.name}. The manifest file may not exist."
        else:
            cached = format_dependencies(package.name, package.language, deps)
        state.caches.dependencies.set(key, cached)
    return cached


async def get_package_source(state: AppState, name: str, file_path: str | None = None) -> str:
    """Directory tree of the package, or one file's content when ``file_path`` is set."""
    package = resolve_package(state, name)
    if isinstance(package, str):
        return package
    repo = resolve_repo(state, package)
    if isinstance(repo, str):
        return repo

    base_path = f"{repo.package_path}/{package.dir_name}"

    if not file_path:
        key = f"{package.language}/{package.dir_name}"
        cached = state.caches.tree.get(key)
        if cached is None:
            entries = await state.github.fetch_directory_tree(repo.slug, repo.branch, base_path)
            cached = (
                f"# {package.name} - File Tree\n\n```\n{format_directory_tree(entries)}\n```\n\n"
                "Use `get_package_source` with a `file_path` to read any file."
            )
            state.caches.tree.set(key, cached)
        return cached

    content = await state.github.fetch_raw_file(repo.slug, repo.branch, f"{base_path}/{file_path}")
    if not content:
        return (
            f"File not found: `{file_path}` in {package.name}.\n\n"
            "Use `get_package_source` without `file_path` to see the directory tree."
        )
    return f"# {package.name} - `{file_path}`\n\n{code_block(content, file_path)}"


def entry_file_candidates(package: Package) -> list[str]:
    """Likely public-API entry files, most likely first."""
    match package.language:
        case "typescript":
            return ["src/index.ts", "src/index.js"]
        case "rust":
            return ["src/lib.rs", "src/main.rs"]
        case "solidity":
            pascal = "".join(word[:1].upper() + word[1:] for word in package.dir_name.split("-"))
            return [f"contracts/{pascal}.sol", f"contracts/{package.dir_name}.sol"]
        case "circom":
            return [f"src/{package.dir_name}.circom", f"circuits/{package.dir_name}.circom"]
        case "noir":
            return ["src/lib.nr", "src/main.nr"]
    return []


async def get_package_api(state: AppState, name: str) -> str:
    package = resolve_package(state, name)
    if isinstance(package, str):
        return package
    repo = resolve_repo(state, package)
    if isinstance(repo, str):
        return repo

    candidates = entry_file_candidates(package)
    base_path = f"{repo.package_path}/{package.dir_name}"
    for candidate in candidates:
        content = await state.github.fetch_raw_file(
            repo.slug, repo.branch, f"{base_path}/{candidate}"
        )
        if content:
            return f"# {package.name} - API (`{candidate}`)\n\n{code_block(content, candidate)}"

    tried = ", ".join(f"`{c}`" for c in candidates)
    return (
        f"Could not find the main entry file for {package.name}.\n\nTried: {tried}\n\n"
        "Use `get_package_source` without `file_path` to see the full directory tree "
        "and locate the right file."
    )


async def get_package_changelog(state: AppState, name: str) -> str:
    package = resolve_package(state, name)
    if isinstance(package, str):
        return package
    repo = resolve_repo(state, package)
    if isinstance(repo, str):
        return repo

    key = f"{package.language}/{package.dir_name}"
    cached = state.caches.changelog.get(key)
    if cached is not None:
        return cached

    base_path = f"{repo.package_path}/{package.dir_name}"
    content = None
    for path in (f"{base_path}/CHANGELOG.md", f"{base_path}/changelog.md"):
        content = await state.github.fetch_raw_file(repo.slug, repo.branch, path)
        if content:
            break

    if not content:
        cached = (
            f"No CHANGELOG.md found for {package.name}.\n\n"
            "Use `get_releases` to see repo-level releases, or `get_package_commits` "
            "for recent changes."
        )
    else:
        cached = truncate_response(
            content, 'Use `get_package_source` with file_path "CHANGELOG.md" for full content.'
        )
    state.caches.changelog.set(key, cached)
    return cached


async def get_package_commits(state: AppState, name: str, limit: int = 10) -> str:
    package = resolve_package(state, name)
    if isinstance(package, str):
        return package
    repo = resolve_repo(state, package)
    if isinstance(repo, str):
        return repo

    key = f"{package.language}/{package.dir_name}:{limit}"
    cached = state.caches.commits.get(key)
    if cached is None:
        commits = await state.github.fetch_package_commits(
            repo.slug, f"{repo.package_path}/{package.dir_name}", limit
        )
        cached = format_commits(package.name, commits)
        state.caches.commits.set(key, cached)
    return cached


async def get_package_downloads(state: AppState, name: str) -> str:
    package = resolve_package(state, name)
    if isinstance(package, str):
        return package

    cached = state.caches.downloads.get(package.name)
    if cached is None:
        downloads = await state.github.fetch_package_downloads(package.name, package.language)
        cached = format_package_downloads(package.name, downloads)
        state.caches.downloads.set(package.name, cached)
    return cached
