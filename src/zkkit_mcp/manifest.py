"""Manifest parsing and README description extraction.

Parsers fail closed: unparsable input yields ``None`` and malformed fields are
treated as absent (see ``zkkit_mcp.models.manifest``).
"""

from __future__ import annotations

import json
import re
import tomllib

from pydantic import ValidationError

from zkkit_mcp.models.manifest import (
    CargoManifest,
    NargoManifest,
    PackageDependencies,
    PackageJsonManifest,
)
from zkkit_mcp.naming import RUST_PREFIX, SCOPE

_DESCRIPTION_MAX = 200

_HTML_PARAGRAPH = re.compile(r"<p[^>]*>\s*([^<]{10,}?)\s*</p>", re.IGNORECASE)
_CODE_BLOCK = re.compile(r"```(\w*)\n(.*?)```", re.DOTALL)
_JS_SUFFIX = re.compile(r"\.(sol|circom)$")


def parse_package_json(content: str) -> PackageJsonManifest | None:
    try:
        return PackageJsonManifest.model_validate(json.loads(content))
    except (json.JSONDecodeError, ValidationError):
        return None


def parse_cargo_toml(content: str) -> CargoManifest | None:
    try:
        return CargoManifest.model_validate(tomllib.loads(content))
    except (tomllib.TOMLDecodeError, ValidationError):
        return None


def parse_nargo_toml(content: str) -> NargoManifest | None:
    try:
        return NargoManifest.model_validate(tomllib.loads(content))
    except (tomllib.TOMLDecodeError, ValidationError):
        return None


def zk_kit_deps_from_package_json(manifest: PackageJsonManifest) -> list[str]:
    """``@zk-kit/lean-imt.sol`` -> ``lean-imt``."""
    prefix = f"{SCOPE}/"
    return [
        _JS_SUFFIX.sub("", name.removeprefix(prefix))
        for name in manifest.dependencies
        if name.startswith(prefix)
    ]


def zk_kit_deps_from_cargo(manifest: CargoManifest) -> list[str]:
    """``zk-kit-lean-imt`` -> ``lean-imt``."""
    prefix = f"{RUST_PREFIX}-"
    return [name.removeprefix(prefix) for name in manifest.dependencies if name.startswith(prefix)]


def dependencies_from_package_json(manifest: PackageJsonManifest) -> PackageDependencies:
    return PackageDependencies(
        dependencies=manifest.dependencies,
        dev_dependencies=manifest.dev_dependencies,
        peer_dependencies=manifest.peer_dependencies,
    )


def dependencies_from_cargo(manifest: CargoManifest) -> PackageDependencies:
    return PackageDependencies(
        dependencies=manifest.dependencies,
        dev_dependencies=manifest.dev_dependencies,
    )


def dependencies_from_nargo(manifest: NargoManifest) -> PackageDependencies:
    return PackageDependencies(dependencies=manifest.dependencies)


def truncate(text: str, max_length: int) -> str:
    """Cut at a word boundary (if one exists past the halfway mark) and add '...'."""
    if len(text) <= max_length:
        return text
    cut = text[:max_length]
    last_space = cut.rfind(" ")
    if last_space > max_length * 0.5:
        cut = cut[:last_space]
    return f"{cut}..."


def extract_description_from_readme(content: str) -> str:
    """Best-effort one-line description from HTML or Markdown README content."""
    match = _HTML_PARAGRAPH.search(content)
    if match:
        return truncate(match.group(1).strip(), _DESCRIPTION_MAX)

    for line in content.split("\n"):
        if not line.strip() or line.startswith(("#", "<", "[", "!")):
            continue
        return truncate(line.strip(), _DESCRIPTION_MAX)
    return ""


def extract_first_code_block(content: str) -> tuple[str, str] | None:
    """Return ``(language_hint, code)`` of the first fenced block, or None."""
    match = _CODE_BLOCK.search(content)
    if match is None:
        return None
    return match.group(1), match.group(2).strip()
