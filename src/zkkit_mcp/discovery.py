"""Startup discovery: every package in every configured repository.

Failures are isolated at two levels. A repository whose listing fails
contributes nothing; a package whose manifest fetch fails is dropped alone.
Neither aborts the run, and the result order is independent of network
completion order.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Protocol

import structlog

from zkkit_mcp.config import REPOS
from zkkit_mcp.models.package import LANGUAGES, Package
from zkkit_mcp.naming import (
    derive_cross_language_id,
    derive_install_command,
    derive_name,
    infer_category,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from zkkit_mcp.models.manifest import ManifestInfo
    from zkkit_mcp.models.package import Language, RepoConfig

log = structlog.get_logger()

LANGUAGE_ORDER: dict[str, int] = {language: i for i, language in enumerate(LANGUAGES)}
_UNKNOWN_LANGUAGE_RANK = len(LANGUAGES)


class PackageSource(Protocol):
    """What discovery needs from the network layer."""

    async def fetch_directory_listing(self, slug: str, path: str) -> list[str]: ...

    async def fetch_manifest_info(
        self,
        slug: str,
        branch: str,
        package_path: str,
        dir_name: str,
        language: Language,
    ) -> ManifestInfo: ...


def package_sort_key(package: Package) -> tuple[int, str]:
    return LANGUAGE_ORDER.get(package.language, _UNKNOWN_LANGUAGE_RANK), package.name


async def _build_package(source: PackageSource, repo: RepoConfig, dir_name: str) -> Package:
    name = derive_name(dir_name, repo.language)
    manifest = await source.fetch_manifest_info(
        repo.slug, repo.branch, repo.package_path, dir_name, repo.language
    )
    return Package(
        name=name,
        dir_name=dir_name,
        language=repo.language,
        category=infer_category(dir_name),
        repo=f"https://github.com/{repo.slug}/tree/{repo.branch}/{repo.package_path}/{dir_name}",
        description=manifest.description,
        install_command=derive_install_command(name, dir_name, repo.language, repo.slug),
        cross_language_id=derive_cross_language_id(dir_name),
        version=manifest.version,
        zk_kit_dependencies=tuple(manifest.zk_kit_dependencies),
    )


async def _discover_repo(source: PackageSource, repo: RepoConfig) -> list[Package]:
    dir_names = await source.fetch_directory_listing(repo.slug, repo.package_path)
    outcomes = await asyncio.gather(
        *(_build_package(source, repo, dir_name) for dir_name in dir_names),
        return_exceptions=True,
    )

    packages: list[Package] = []
    for dir_name, outcome in zip(dir_names, outcomes, strict=True):
        if isinstance(outcome, BaseException):
            if not isinstance(outcome, Exception):
                raise outcome
            log.warning(
                "discovery_package_failed",
                language=repo.language,
                dir_name=dir_name,
                error=str(outcome),
            )
            continue
        packages.append(outcome)
    return packages


async def discover_all_packages(
    source: PackageSource, repos: Sequence[RepoConfig] = REPOS
) -> list[Package]:
    """Discover, build and sort every package. Never raises on fetch failures."""
    outcomes = await asyncio.gather(
        *(_discover_repo(source, repo) for repo in repos),
        return_exceptions=True,
    )

    packages: list[Package] = []
    failed = 0
    for repo, outcome in zip(repos, outcomes, strict=True):
        if isinstance(outcome, BaseException):
            if not isinstance(outcome, Exception):
                raise outcome
            failed += 1
            log.warning(
                "discovery_repo_failed",
                language=repo.language,
                slug=repo.slug,
                error=str(outcome),
            )
            continue
        packages.extend(outcome)

    packages.sort(key=package_sort_key)
    log.info(
        "discovery_complete",
        packages=len(packages),
        repos=len(repos),
        failed_repos=failed,
    )
    return packages
