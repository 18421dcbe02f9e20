from __future__ import annotations

from typing import Literal, get_args

from pydantic import BaseModel, ConfigDict

Language = Literal["typescript", "circom", "solidity", "noir", "rust"]
Category = Literal["merkle-trees", "cryptography", "identity", "access-control", "math", "other"]

LANGUAGES: tuple[Language, ...] = get_args(Language)


class RepoConfig(BaseModel):
    """One source repository, routed by language."""

    model_config = ConfigDict(frozen=True)

    slug: str  # "owner/name"
    language: Language
    package_path: str  # packages root inside the repo, e.g. "packages" or "crates"
    branch: str


class Package(BaseModel):
    """Normalized record for one language-specific implementation of a concept."""

    model_config = ConfigDict(frozen=True)

    name: str
    dir_name: str
    language: Language
    category: Category
    repo: str  # tree URL, derived
    description: str = ""
    install_command: str
    cross_language_id: str  # join key across languages
    version: str | None = None
    zk_kit_dependencies: tuple[str, ...] = ()  # cross-language ids, not package names
