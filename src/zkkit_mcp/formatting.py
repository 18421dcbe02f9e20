"""Markdown rendering for collaborator payloads."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

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
    from zkkit_mcp.models.manifest import PackageDependencies

MAX_RESPONSE_LENGTH = 50_000

_EXTENSION_LANGUAGES = {
    "ts": "typescript",
    "tsx": "typescript",
    "js": "javascript",
    "jsx": "javascript",
    "sol": "solidity",
    "nr": "noir",
    "rs": "rust",
    "toml": "toml",
    "json": "json",
    "md": "markdown",
    "circom": "circom",
    "yaml": "yaml",
    "yml": "yaml",
}


def detect_language_from_extension(file_path: str) -> str:
    _, _, ext = file_path.rpartition(".")
    return _EXTENSION_LANGUAGES.get(ext.lower(), "")


def format_file_size(size: int) -> str:
    if size < 1024:
        return f"{size}B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f}KB"
    return f"{size / (1024 * 1024):.1f}MB"


def format_number(n: int) -> str:
    return f"{n:,}"


def code_block(content: str, file_path: str) -> str:
    """Fenced block, truncated past ``MAX_RESPONSE_LENGTH``."""
    if len(content) > MAX_RESPONSE_LENGTH:
        content = f"{content[:MAX_RESPONSE_LENGTH]}\n... [truncated at {MAX_RESPONSE_LENGTH} characters]"
    return f"```{detect_language_from_extension(file_path)}\n{content}\n```"


def format_dependencies(package_name: str, language: str, deps: PackageDependencies) -> str:
    md = f"# Dependencies for {package_name} ({language})\n\n"
    sections = (
        ("Dependencies", deps.dependencies),
        ("Dev Dependencies", deps.dev_dependencies),
        ("Peer Dependencies", deps.peer_dependencies),
    )
    has_any = False
    for title, entries in sections:
        if not entries:
            continue
        has_any = True
        md += f"## {title}\n\n"
        for name, version in entries.items():
            md += f"- `{name}`: {version}\n"
        md += "\n"
    if not has_any:
        md += "No dependencies found.\n"
    return md


def format_repo_stats(stats: RepoStats) -> str:
    md = f"## {stats.slug}\n\n"
    md += "| Metric | Value |\n|--------|-------|\n"
    md += f"| Stars | {stats.stars} |\n"
    md += f"| Forks | {stats.forks} |\n"
    md += f"| Open Issues | {stats.open_issues} |\n"
    md += f"| Last Pushed | {stats.last_pushed[:10]} |\n"
    md += f"| License | {stats.license} |\n"
    md += f"| Primary Language | {stats.language} |\n"
    md += f"| URL | {stats.url} |\n"
    if stats.topics:
        md += f"| Topics | {', '.join(stats.topics)} |\n"
    if stats.description:
        md += f"\n{stats.description}\n"
    return md


def format_directory_tree(entries: Sequence[DirectoryEntry]) -> str:
    lines = []
    for entry in entries:
        indent = "  " * entry.path.count("/")
        if entry.type == "dir":
            lines.append(f"{indent}{entry.name}/")
        else:
            size = f" ({format_file_size(entry.size)})" if entry.size is not None else ""
            lines.append(f"{indent}{entry.name}{size}")
    return "\n".join(lines)


def format_code_search_results(results: Sequence[CodeSearchResult]) -> str:
    if not results:
        return "No code matches found."
    blocks = []
    for r in results:
        block = f"**{r.repo}** - `{r.path}`\n{r.url}"
        if r.fragment:
            block += f"\n```\n{r.fragment.strip()[:200]}\n```"
        blocks.append(block)
    return "\n\n---\n\n".join(blocks)


def format_commit(commit: PackageCommit) -> str:
    return f"`{commit.sha}` {commit.date[:10]} - {commit.message} ({commit.author})"


def format_commits(package_name: str, commits: Sequence[PackageCommit]) -> str:
    if not commits:
        return f"No recent commits found for {package_name}."
    md = f"# Recent commits for {package_name}\n\n"
    for c in commits:
        md += f"- {format_commit(c)}\n"
    return md


def format_package_downloads(package_name: str, downloads: PackageDownloads) -> str:
    if downloads.source == "unavailable":
        return f"Download statistics are not available for {package_name} (no package registry)."

    md = f"# Download Stats for {package_name}\n\n"
    md += "| Metric | Value |\n|--------|-------|\n"
    md += f"| Source | {downloads.source} |\n"
    if downloads.source == "npm":
        md += f"| Weekly Downloads | {format_number(downloads.weekly_downloads)} |\n"
        md += f"| Monthly Downloads | {format_number(downloads.monthly_downloads)} |\n"
    else:
        # crates.io only reports a 90-day window
        md += f"| Recent Downloads (90d) | {format_number(downloads.monthly_downloads)} |\n"
    return md


def format_workflow_runs(slug: str, runs: Sequence[WorkflowRun]) -> str:
    if not runs:
        return f"No workflow runs found for {slug}."
    md = f"# CI Status for {slug}\n\n"
    for run in runs:
        if run.conclusion == "success":
            icon = "PASS"
        elif run.conclusion == "failure":
            icon = "FAIL"
        else:
            icon = run.status.upper()
        md += f"- **{run.name}** [{icon}] on `{run.branch}` ({run.created_at[:10]})\n"
        md += f"  {run.url}\n"
    return md


def format_release(release: GithubRelease) -> str:
    body = f"\n{release.body[:500]}" if release.body else ""
    return f"**{release.name}** ({release.date[:10]})\n{release.url}{body}"


def format_issue(issue: GithubIssue) -> str:
    labels = f" [{', '.join(issue.labels)}]" if issue.labels else ""
    return f"#{issue.number} {issue.title} ({issue.state}){labels}\n{issue.url}"
