"""GitHub, npm and crates.io client.

All calls go through one shared ``httpx.AsyncClient`` and carry a bounded
timeout. API failures raise ``ZkKitError``; raw-file and download-count
lookups degrade to ``None`` / zero counts instead.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import httpx
import structlog

from zkkit_mcp.config import GitHubSettings
from zkkit_mcp.errors import ErrorCode, ZkKitError
from zkkit_mcp.manifest import (
    dependencies_from_cargo,
    dependencies_from_nargo,
    dependencies_from_package_json,
    extract_description_from_readme,
    parse_cargo_toml,
    parse_nargo_toml,
    parse_package_json,
    zk_kit_deps_from_cargo,
    zk_kit_deps_from_package_json,
)
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
from zkkit_mcp.models.manifest import ManifestInfo, PackageDependencies

if TYPE_CHECKING:
    from zkkit_mcp.models.package import Language

log = structlog.get_logger()

USER_AGENT = "zk-kit-mcp"
_MAX_ATTEMPTS = 2
_README_MIN_LENGTH = 100


def build_http_client() -> httpx.AsyncClient:
    """Shared client. Per-request timeouts are set by ``GitHubClient``."""
    return httpx.AsyncClient(
        headers={"User-Agent": USER_AGENT},
        follow_redirects=True,
        timeout=httpx.Timeout(15.0),
    )


def _rate_limit_reset(response: httpx.Response) -> str:
    reset = response.headers.get("x-ratelimit-reset")
    try:
        return datetime.fromtimestamp(int(reset), tz=UTC).isoformat()
    except (TypeError, ValueError):
        return "unknown"


class GitHubClient:
    """Network collaborator for discovery and on-demand tool lookups."""

    def __init__(self, client: httpx.AsyncClient, settings: GitHubSettings | None = None) -> None:
        self._client = client
        self._settings = settings or GitHubSettings()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _api_headers(self, accept: str | None = None) -> dict[str, str]:
        headers = {
            "Accept": accept or "application/vnd.github.v3+json",
            "User-Agent": USER_AGENT,
        }
        if self._settings.token:
            headers["Authorization"] = f"Bearer {self._settings.token}"
        return headers

    async def _api_get(self, url: str, accept: str | None = None) -> Any:
        """GET a GitHub API URL and decode JSON.

        One retry on 5xx and transport errors. 4xx and rate limiting fail
        immediately.
        """
        last_error = ZkKitError(
            ErrorCode.FETCH_FAILED, f"GitHub request failed: {url}", recoverable=True
        )
        for attempt in range(_MAX_ATTEMPTS):
            if attempt > 0:
                await asyncio.sleep(self._settings.retry_delay_seconds)
            try:
                response = await self._client.get(
                    url,
                    headers=self._api_headers(accept),
                    timeout=self._settings.api_timeout_seconds,
                )
            except httpx.HTTPError as exc:
                log.debug("github_request_error", url=url, attempt=attempt, error=str(exc))
                last_error = ZkKitError(
                    ErrorCode.FETCH_FAILED,
                    f"GitHub request failed: {url} ({exc.__class__.__name__})",
                    recoverable=True,
                )
                continue

            if response.is_success:
                try:
                    return response.json()
                except ValueError as exc:
                    raise ZkKitError(
                        ErrorCode.FETCH_FAILED,
                        f"GitHub API returned invalid JSON: {url}",
                        recoverable=False,
                    ) from exc

            if response.status_code == 403 and response.headers.get("x-ratelimit-remaining") == "0":
                raise ZkKitError(
                    ErrorCode.GITHUB_RATE_LIMITED,
                    f"GitHub API rate limit exceeded. Resets at {_rate_limit_reset(response)}. "
                    "Set GITHUB_TOKEN for 5000 req/hr.",
                    recoverable=True,
                )
            if response.status_code >= 500:
                last_error = ZkKitError(
                    ErrorCode.GITHUB_API_ERROR,
                    f"GitHub API {response.status_code}: {url}",
                    recoverable=True,
                )
                continue
            if response.status_code == 404:
                raise ZkKitError(
                    ErrorCode.GITHUB_NOT_FOUND,
                    f"GitHub API 404: {url}",
                    recoverable=False,
                )
            raise ZkKitError(
                ErrorCode.GITHUB_API_ERROR,
                f"GitHub API {response.status_code}: {url}",
                recoverable=False,
            )

        raise last_error

    async def fetch_raw_file(self, slug: str, branch: str, file_path: str) -> str | None:
        """Fetch a file from the raw CDN (not API rate limited). None on any failure."""
        url = f"{self._settings.raw_url}/{slug}/{branch}/{file_path}"
        try:
            response = await self._client.get(url, timeout=self._settings.raw_timeout_seconds)
        except httpx.HTTPError as exc:
            log.debug("raw_fetch_error", url=url, error=str(exc))
            return None
        if not response.is_success:
            return None
        return response.text

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    async def fetch_directory_listing(self, slug: str, path: str) -> list[str]:
        """Names of the immediate subdirectories of ``path``."""
        items = await self._api_get(f"{self._settings.api_url}/repos/{slug}/contents/{path}")
        return [item["name"] for item in items if item.get("type") == "dir"]

    async def fetch_readme(
        self, slug: str, branch: str, package_path: str, dir_name: str
    ) -> str | None:
        """README for a package.

        Solidity packages keep the real README under ``contracts/``; the
        top-level one is often a one-line pointer, so a short primary README
        only wins when nothing longer exists.
        """
        candidates = [
            f"{package_path}/{dir_name}/README.md",
            f"{package_path}/{dir_name}/contracts/README.md",
        ]
        primary: str | None = None
        for i, candidate in enumerate(candidates):
            content = await self.fetch_raw_file(slug, branch, candidate)
            if i == 0:
                primary = content
            if content and len(content.strip()) > _README_MIN_LENGTH:
                return content
        return primary

    async def fetch_manifest_info(
        self,
        slug: str,
        branch: str,
        package_path: str,
        dir_name: str,
        language: Language,
    ) -> ManifestInfo:
        """Description, version and internal dependency ids for one package.

        Falls back to the README for the description (always for Noir).
        """
        info = ManifestInfo()
        base = f"{package_path}/{dir_name}"

        if language == "rust":
            content = await self.fetch_raw_file(slug, branch, f"{base}/Cargo.toml")
            cargo = parse_cargo_toml(content) if content else None
            if cargo is not None:
                info = ManifestInfo(
                    description=cargo.package.description or "",
                    version=cargo.package.version,
                    zk_kit_dependencies=zk_kit_deps_from_cargo(cargo),
                )
        elif language != "noir":
            content = await self.fetch_raw_file(slug, branch, f"{base}/package.json")
            package_json = parse_package_json(content) if content else None
            if package_json is not None:
                info = ManifestInfo(
                    description=package_json.description or "",
                    version=package_json.version,
                    zk_kit_dependencies=zk_kit_deps_from_package_json(package_json),
                )

        if not info.description:
            readme = await self.fetch_readme(slug, branch, package_path, dir_name)
            if readme:
                info = info.model_copy(
                    update={"description": extract_description_from_readme(readme)}
                )
        return info

    # ------------------------------------------------------------------
    # On-demand lookups
    # ------------------------------------------------------------------

    async def fetch_package_dependencies(
        self,
        slug: str,
        branch: str,
        package_path: str,
        dir_name: str,
        language: Language,
    ) -> PackageDependencies | None:
        """Full dependency lists from the language's manifest, or None."""
        base = f"{package_path}/{dir_name}"
        if language == "rust":
            content = await self.fetch_raw_file(slug, branch, f"{base}/Cargo.toml")
            cargo = parse_cargo_toml(content) if content else None
            return dependencies_from_cargo(cargo) if cargo else None
        if language == "noir":
            content = await self.fetch_raw_file(slug, branch, f"{base}/Nargo.toml")
            nargo = parse_nargo_toml(content) if content else None
            return dependencies_from_nargo(nargo) if nargo else None

        content = await self.fetch_raw_file(slug, branch, f"{base}/package.json")
        package_json = parse_package_json(content) if content else None
        return dependencies_from_package_json(package_json) if package_json else None

    async def fetch_releases(
        self, slug: str, limit: int = 10, package_filter: str | None = None
    ) -> list[GithubRelease]:
        """Recent releases, optionally only those tagged ``{package}@...``."""
        # Over-fetch when filtering: most releases belong to other packages.
        per_page = min(limit * 5, 100) if package_filter else limit
        data = await self._api_get(
            f"{self._settings.api_url}/repos/{slug}/releases?per_page={per_page}"
        )
        releases = [
            GithubRelease(
                tag=r["tag_name"],
                name=r.get("name") or r["tag_name"],
                date=r.get("published_at") or "",
                url=r["html_url"],
                body=r.get("body") or "",
            )
            for r in data
        ]
        if package_filter:
            prefix = package_filter if package_filter.endswith("@") else f"{package_filter}@"
            releases = [r for r in releases if r.tag.startswith((prefix, f"v{prefix}"))][:limit]
        return releases

    async def search_issues(
        self, query: str, state: str = "open", scope_repo: str | None = None
    ) -> list[GithubIssue]:
        q = f"{query} repo:{scope_repo}" if scope_repo else f"{query} org:zk-kit"
        if state != "all":
            q += f" state:{state}"
        url = httpx.URL(
            f"{self._settings.api_url}/search/issues", params={"q": q, "per_page": 20}
        )
        data = await self._api_get(str(url))
        return [
            GithubIssue(
                number=i["number"],
                title=i["title"],
                state=i["state"],
                url=i["html_url"],
                labels=[label["name"] for label in i.get("labels", [])],
                created=i["created_at"],
            )
            for i in data.get("items", [])
        ]

    async def fetch_repo_stats(self, slug: str) -> RepoStats:
        data = await self._api_get(f"{self._settings.api_url}/repos/{slug}")
        license_info = data.get("license") or {}
        return RepoStats(
            slug=data["full_name"],
            description=data.get("description") or "",
            stars=data.get("stargazers_count", 0),
            forks=data.get("forks_count", 0),
            open_issues=data.get("open_issues_count", 0),
            last_pushed=data.get("pushed_at") or "",
            license=license_info.get("spdx_id") or "None",
            topics=data.get("topics") or [],
            language=data.get("language") or "Unknown",
            url=data["html_url"],
        )

    async def fetch_directory_tree(self, slug: str, branch: str, path: str) -> list[DirectoryEntry]:
        """Every file and directory below ``path``, from a single recursive tree call."""
        data = await self._api_get(
            f"{self._settings.api_url}/repos/{slug}/git/trees/{branch}?recursive=1"
        )
        prefix = path if path.endswith("/") else f"{path}/"
        entries: list[DirectoryEntry] = []
        for item in data.get("tree", []):
            if not item["path"].startswith(prefix):
                continue
            relative = item["path"][len(prefix) :]
            if not relative:
                continue
            name = relative.rsplit("/", 1)[-1]
            if item["type"] == "blob":
                entries.append(
                    DirectoryEntry(name=name, path=relative, type="file", size=item.get("size"))
                )
            elif item["type"] == "tree":
                entries.append(DirectoryEntry(name=name, path=relative, type="dir"))
        return entries

    async def search_code(
        self,
        query: str,
        language: str | None = None,
        scope_repo: str | None = None,
        scope_path: str | None = None,
    ) -> list[CodeSearchResult]:
        q = f"{query} repo:{scope_repo}" if scope_repo else f"{query} org:zk-kit"
        if scope_path:
            q += f" path:{scope_path}"
        if language:
            q += f" language:{language}"
        url = httpx.URL(f"{self._settings.api_url}/search/code", params={"q": q, "per_page": 20})
        data = await self._api_get(str(url), accept="application/vnd.github.text-match+json")
        results = []
        for item in data.get("items", []):
            matches = item.get("text_matches") or []
            results.append(
                CodeSearchResult(
                    path=item["path"],
                    repo=item["repository"]["full_name"],
                    url=item["html_url"],
                    fragment=matches[0].get("fragment", "") if matches else "",
                )
            )
        return results

    async def fetch_package_commits(
        self, slug: str, path: str, limit: int = 10
    ) -> list[PackageCommit]:
        url = httpx.URL(
            f"{self._settings.api_url}/repos/{slug}/commits",
            params={"path": path, "per_page": limit},
        )
        data = await self._api_get(str(url))
        return [
            PackageCommit(
                sha=c["sha"][:7],
                message=c["commit"]["message"].split("\n", 1)[0],
                author=c["commit"]["author"]["name"],
                date=c["commit"]["author"]["date"],
                url=c["html_url"],
            )
            for c in data
        ]

    async def fetch_package_downloads(self, package_name: str, language: Language) -> PackageDownloads:
        """Download counts. Never raises: failures report zero counts."""
        if language == "noir":
            return PackageDownloads(source="unavailable")

        if language == "rust":
            try:
                response = await self._client.get(
                    f"{self._settings.crates_url}/{package_name}",
                    headers={"User-Agent": USER_AGENT},
                    timeout=self._settings.raw_timeout_seconds,
                )
                if not response.is_success:
                    return PackageDownloads(source="crates.io")
                recent = response.json().get("crate", {}).get("recent_downloads") or 0
                return PackageDownloads(monthly_downloads=recent, source="crates.io")
            except (httpx.HTTPError, ValueError):
                log.debug("downloads_fetch_error", package=package_name, source="crates.io")
                return PackageDownloads(source="crates.io")

        try:
            week, month = await asyncio.gather(
                self._npm_downloads("last-week", package_name),
                self._npm_downloads("last-month", package_name),
            )
        except (httpx.HTTPError, ValueError):
            log.debug("downloads_fetch_error", package=package_name, source="npm")
            return PackageDownloads(source="npm")
        return PackageDownloads(weekly_downloads=week, monthly_downloads=month, source="npm")

    async def _npm_downloads(self, period: str, package_name: str) -> int:
        response = await self._client.get(
            f"{self._settings.npm_downloads_url}/{period}/{package_name}",
            timeout=self._settings.raw_timeout_seconds,
        )
        if not response.is_success:
            return 0
        return response.json().get("downloads", 0)

    async def fetch_workflow_runs(self, slug: str, limit: int = 5) -> list[WorkflowRun]:
        data = await self._api_get(
            f"{self._settings.api_url}/repos/{slug}/actions/runs?per_page={limit}"
        )
        return [
            WorkflowRun(
                name=r["name"],
                status=r["status"],
                conclusion=r.get("conclusion"),
                branch=r["head_branch"],
                created_at=r["created_at"],
                url=r["html_url"],
            )
            for r in data.get("workflow_runs", [])
        ]
