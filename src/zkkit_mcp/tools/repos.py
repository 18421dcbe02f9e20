"""Repository-level tools: releases, issues, stats, code search, CI status."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from zkkit_mcp.formatting import (
    format_code_search_results,
    format_issue,
    format_release,
    format_repo_stats,
    format_workflow_runs,
)
from zkkit_mcp.tools._shared import resolve_package, resolve_repo, resolve_repo_slugs

if TYPE_CHECKING:
    from zkkit_mcp.state import AppState


async def get_releases(
    state: AppState,
    language: str | None = None,
    repo: str | None = None,
    package: str | None = None,
    limit: int = 10,
) -> str:
    """Releases per repo. A package narrows to its repo and its own release tags."""
    package_filter: str | None = None
    if package:
        resolved = resolve_package(state, package)
        if isinstance(resolved, str):
            return resolved
        repo_config = resolve_repo(state, resolved)
        if isinstance(repo_config, str):
            return repo_config
        slugs = [repo_config.slug]
        package_filter = resolved.name
    else:
        selected = resolve_repo_slugs(language, repo)
        if isinstance(selected, str):
            return selected
        slugs = selected

    async def for_slug(slug: str) -> str:
        key = f"{slug}:{limit}:{package_filter or ''}"
        cached = state.caches.releases.get(key)
        if cached is None:
            releases = await state.github.fetch_releases(slug, limit, package_filter)
            if releases:
                cached = "\n\n---\n\n".join(format_release(r) for r in releases)
            else:
                cached = f"No releases found for {package_filter or slug}."
            state.caches.releases.set(key, cached)
        return cached

    parts = await asyncio.gather(*(for_slug(slug) for slug in slugs))
    return "\n\n---\n\n".join(parts)


async def search_issues(
    state: AppState,
    query: str,
    state_filter: str = "open",
    package: str | None = None,
    language: str | None = None,
    repo: str | None = None,
) -> str:
    scope_repo: str | None = None
    effective_query = query

    if package:
        resolved = resolve_package(state, package)
        if isinstance(resolved, str):
            return resolved
        repo_config = state.registry.get_repo_for_language(resolved.language)
        if repo_config is not None:
            scope_repo = repo_config.slug
        effective_query = f"{query} {resolved.dir_name}"
    elif repo or language:
        selected = resolve_repo_slugs(language, repo)
        if isinstance(selected, str):
            return selected
        scope_repo = selected[0]

    key = f"{effective_query}:{state_filter}:{scope_repo or ''}"
    cached = state.caches.issue_search.get(key)
    if cached is None:
        issues = await state.github.search_issues(effective_query, state_filter, scope_repo)
        if issues:
            cached = "\n\n".join(format_issue(i) for i in issues)
        else:
            cached = f'No issues found for "{query}".'
        state.caches.issue_search.set(key, cached)
    return cached


async def get_repo_stats(state: AppState, language: str | None = None, repo: str | None = None) -> str:
    selected = resolve_repo_slugs(language, repo)
    if isinstance(selected, str):
        return selected

    async def for_slug(slug: str) -> str:
        cached = state.caches.stats.get(slug)
        if cached is None:
            cached = format_repo_stats(await state.github.fetch_repo_stats(slug))
            state.caches.stats.set(slug, cached)
        return cached

    parts = await asyncio.gather(*(for_slug(slug) for slug in selected))
    return "\n---\n\n".join(parts)


async def search_code(
    state: AppState,
    query: str,
    language: str | None = None,
    package: str | None = None,
) -> str:
    scope_repo: str | None = None
    scope_path: str | None = None

    if package:
        resolved = resolve_package(state, package)
        if isinstance(resolved, str):
            return resolved
        repo_config = state.registry.get_repo_for_language(resolved.language)
        if repo_config is not None:
            scope_repo = repo_config.slug
            scope_path = f"{repo_config.package_path}/{resolved.dir_name}"

    key = f"{query}:{language or ''}:{scope_repo or ''}:{scope_path or ''}"
    cached = state.caches.code_search.get(key)
    if cached is None:
        results = await state.github.search_code(query, language, scope_repo, scope_path)
        cached = format_code_search_results(results)
        state.caches.code_search.set(key, cached)
    return cached


async def get_build_status(
    state: AppState, language: str | None = None, repo: str | None = None, limit: int = 5
) -> str:
    selected = resolve_repo_slugs(language, repo)
    if isinstance(selected, str):
        return selected

    async def for_slug(slug: str) -> str:
        key = f"{slug}:{limit}"
        cached = state.caches.build_status.get(key)
        if cached is None:
            runs = await state.github.fetch_workflow_runs(slug, limit)
            cached = format_workflow_runs(slug, runs)
            state.caches.build_status.set(key, cached)
        return cached

    parts = await asyncio.gather(*(for_slug(slug) for slug in selected))
    return "\n---\n\n".join(parts)
