"""Shared fixtures: package factories and a pre-loaded registry."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx
import pytest

from zkkit_mcp.config import REPOS, GitHubSettings, Settings
from zkkit_mcp.github import GitHubClient
from zkkit_mcp.models.package import Package
from zkkit_mcp.naming import (
    derive_cross_language_id,
    derive_install_command,
    derive_name,
    infer_category,
)
from zkkit_mcp.registry import PackageRegistry
from zkkit_mcp.state import AppState

if TYPE_CHECKING:
    from collections.abc import Callable

    from zkkit_mcp.models.package import Language


def _make_package(dir_name: str, language: Language, **overrides: Any) -> Package:
    repo = next(r for r in REPOS if r.language == language)
    name = derive_name(dir_name, language)
    fields: dict[str, Any] = {
        "name": name,
        "dir_name": dir_name,
        "language": language,
        "category": infer_category(dir_name),
        "repo": f"https://github.com/{repo.slug}/tree/{repo.branch}/{repo.package_path}/{dir_name}",
        "install_command": derive_install_command(name, dir_name, language, repo.slug),
        "cross_language_id": derive_cross_language_id(dir_name),
    }
    fields.update(overrides)
    return Package(**fields)


@pytest.fixture()
def make_package() -> Callable[..., Package]:
    """Build a Package the way discovery would, with optional field overrides."""
    return _make_package


@pytest.fixture()
def sample_packages() -> list[Package]:
    return [
        _make_package(
            "lean-imt",
            "typescript",
            description="Lean Incremental Merkle Tree implementation",
            version="2.2.3",
            zk_kit_dependencies=["utils"],
        ),
        _make_package("eddsa-poseidon", "typescript", description="EdDSA over Baby Jubjub"),
        _make_package("utils", "typescript", description="Shared utility functions"),
        _make_package("binary-merkle-root", "circom", description="Merkle root circuit"),
        _make_package("lean-imt", "solidity", description="Lean IMT Solidity library"),
        _make_package("excubiae", "solidity", description="On-chain gatekeepers"),
        _make_package("ecdh", "noir", description="ECDH key exchange"),
        _make_package(
            "lean-imt",
            "rust",
            description="Lean IMT in Rust",
            version="0.1.0",
            zk_kit_dependencies=["utils"],
        ),
    ]


@pytest.fixture()
def registry(sample_packages: list[Package]) -> PackageRegistry:
    reg = PackageRegistry()
    reg.load(sample_packages)
    return reg


@pytest.fixture()
async def app_state(registry: PackageRegistry):
    """AppState over the sample registry; HTTP goes through respx in each test."""
    async with httpx.AsyncClient() as client:
        settings = Settings(github=GitHubSettings(token=None, retry_delay_seconds=0))
        yield AppState(
            settings=settings,
            github=GitHubClient(client, settings.github),
            registry=registry,
        )


@pytest.fixture()
async def empty_state():
    async with httpx.AsyncClient() as client:
        yield AppState(settings=Settings(), github=GitHubClient(client))
