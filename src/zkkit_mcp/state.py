from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from zkkit_mcp.cache import ResponseCaches
from zkkit_mcp.registry import PackageRegistry

if TYPE_CHECKING:
    from zkkit_mcp.config import Settings
    from zkkit_mcp.github import GitHubClient


@dataclass
class AppState:
    """Everything a handler needs, built once by the server lifespan.

    ``caches`` is derived from ``settings.cache``.
    """

    settings: Settings
    github: GitHubClient
    registry: PackageRegistry = field(default_factory=PackageRegistry)
    caches: ResponseCaches = field(init=False)

    def __post_init__(self) -> None:
        self.caches = ResponseCaches.from_settings(self.settings.cache)
