from __future__ import annotations

from zkkit_mcp.models.github import (
    CodeSearchResult,
    DirectoryEntry,
    GithubIssue,
    GithubRelease,
    PackageCommit,
    PackageDownloads,
    RepoStats,
    WorkflowRun,
)
from zkkit_mcp.models.manifest import (
    CargoManifest,
    ManifestInfo,
    NargoManifest,
    PackageDependencies,
    PackageJsonManifest,
)
from zkkit_mcp.models.package import (
    LANGUAGES,
    Category,
    Language,
    Package,
    RepoConfig,
)

__all__ = [
    # package
    "Language",
    "Category",
    "LANGUAGES",
    "Package",
    "RepoConfig",
    # manifest
    "PackageJsonManifest",
    "CargoManifest",
    "NargoManifest",
    "ManifestInfo",
    "PackageDependencies",
    # github
    "RepoStats",
    "DirectoryEntry",
    "CodeSearchResult",
    "PackageCommit",
    "PackageDownloads",
    "WorkflowRun",
    "GithubRelease",
    "GithubIssue",
]
