from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class RepoStats(BaseModel):
    slug: str
    description: str
    stars: int
    forks: int
    open_issues: int
    last_pushed: str
    license: str
    topics: list[str] = []
    language: str
    url: str


class DirectoryEntry(BaseModel):
    name: str
    path: str  # relative to the package root
    type: Literal["file", "dir"]
    size: int | None = None


class CodeSearchResult(BaseModel):
    path: str
    repo: str
    url: str
    fragment: str = ""


class PackageCommit(BaseModel):
    sha: str  # short form
    message: str  # first line only
    author: str
    date: str
    url: str


class PackageDownloads(BaseModel):
    weekly_downloads: int = 0
    monthly_downloads: int = 0
    source: Literal["npm", "crates.io", "unavailable"]


class WorkflowRun(BaseModel):
    name: str
    status: str
    conclusion: str | None
    branch: str
    created_at: str
    url: str


class GithubRelease(BaseModel):
    tag: str
    name: str
    date: str
    url: str
    body: str = ""


class GithubIssue(BaseModel):
    number: int
    title: str
    state: str
    url: str
    labels: list[str] = []
    created: str
