"""Manifest dialects.

Every field is optional and fails closed: a value of the wrong type is
treated exactly like a missing one.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _str_or_none(v: Any) -> str | None:
    return v if isinstance(v, str) and v else None


def _str_map(v: Any) -> dict[str, str]:
    if not isinstance(v, dict):
        return {}
    return {k: val for k, val in v.items() if isinstance(k, str) and isinstance(val, str)}


def _toml_dep_map(v: Any) -> dict[str, str]:
    """Flatten a TOML dependency table to name -> version (or tag).

    ``name = "1.0"`` and ``name = { version = "1.0" }`` / ``{ tag = "v1" }``
    are kept; entries without either are dropped.
    """
    if not isinstance(v, dict):
        return {}
    deps: dict[str, str] = {}
    for key, val in v.items():
        if isinstance(val, str):
            deps[key] = val
        elif isinstance(val, dict):
            ref = val.get("version", val.get("tag"))
            if isinstance(ref, str):
                deps[key] = ref
    return deps


class PackageJsonManifest(BaseModel):
    """package.json (typescript, circom, solidity)."""

    model_config = ConfigDict(populate_by_name=True)

    description: str | None = None
    version: str | None = None
    dependencies: dict[str, str] = {}
    dev_dependencies: dict[str, str] = Field(default={}, alias="devDependencies")
    peer_dependencies: dict[str, str] = Field(default={}, alias="peerDependencies")

    @field_validator("description", "version", mode="before")
    @classmethod
    def _optional_str(cls, v: Any) -> str | None:
        return _str_or_none(v)

    @field_validator("dependencies", "dev_dependencies", "peer_dependencies", mode="before")
    @classmethod
    def _deps(cls, v: Any) -> dict[str, str]:
        return _str_map(v)


class CargoPackageSection(BaseModel):
    description: str | None = None
    version: str | None = None  # absent for `version.workspace = true`

    @field_validator("description", "version", mode="before")
    @classmethod
    def _optional_str(cls, v: Any) -> str | None:
        return _str_or_none(v)


class CargoManifest(BaseModel):
    """Cargo.toml (rust)."""

    model_config = ConfigDict(populate_by_name=True)

    package: CargoPackageSection = CargoPackageSection()
    dependencies: dict[str, str] = {}
    dev_dependencies: dict[str, str] = Field(default={}, alias="dev-dependencies")

    @field_validator("package", mode="before")
    @classmethod
    def _package(cls, v: Any) -> Any:
        return v if isinstance(v, dict) else {}

    @field_validator("dependencies", "dev_dependencies", mode="before")
    @classmethod
    def _deps(cls, v: Any) -> dict[str, str]:
        return _toml_dep_map(v)


class NargoManifest(BaseModel):
    """Nargo.toml (noir). Only dependencies are read."""

    dependencies: dict[str, str] = {}

    @field_validator("dependencies", mode="before")
    @classmethod
    def _deps(cls, v: Any) -> dict[str, str]:
        return _toml_dep_map(v)


class ManifestInfo(BaseModel):
    """The slice of a manifest that discovery needs."""

    description: str = ""
    version: str | None = None
    zk_kit_dependencies: list[str] = []


class PackageDependencies(BaseModel):
    dependencies: dict[str, str] = {}
    dev_dependencies: dict[str, str] = {}
    peer_dependencies: dict[str, str] = {}
