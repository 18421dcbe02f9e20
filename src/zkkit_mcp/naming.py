"""Naming and categorization rules for ZK-Kit packages.

All functions are pure: a package's public name, install directive and
category follow from its directory name and language alone.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from zkkit_mcp.models.package import Category, Language

SCOPE = "@zk-kit"
RUST_PREFIX = "zk-kit"

# Literal per-directory names that do not follow the language template.
NAME_OVERRIDES: dict[Language, dict[str, str]] = {
    "solidity": {"excubiae": "@zk-kit/excubiae"},
}

# Ordered: the first matching rule wins. Keywords must be whole hyphen-separated
# tokens, so "commitment" never matches "imt".
CATEGORY_RULES: tuple[tuple[re.Pattern[str], Category], ...] = (
    (re.compile(r"(?:^|-)(?:imt|merkle|smt|pmt)(?:-|$)"), "merkle-trees"),
    (re.compile(r"(?:^|-)(?:eddsa|ecdh|poseidon|baby-?jubjub)(?:-|$)"), "cryptography"),
    (re.compile(r"(?:^|-)excubiae(?:-|$)"), "access-control"),
    (re.compile(r"(?:^|-)(?:semaphore|rln|identity)(?:-|$)"), "identity"),
    (re.compile(r"(?:^|-)(?:utils|math)(?:-|$)"), "math"),
)


def derive_name(dir_name: str, language: Language) -> str:
    override = NAME_OVERRIDES.get(language, {}).get(dir_name)
    if override:
        return override

    match language:
        case "typescript":
            return f"{SCOPE}/{dir_name}"
        case "circom":
            return f"{SCOPE}/{dir_name}.circom"
        case "solidity":
            return f"{SCOPE}/{dir_name}.sol"
        case "noir":
            return dir_name.replace("-", "_")
        case "rust":
            return f"{RUST_PREFIX}-{dir_name}"
    raise ValueError(f"Unknown language: {language!r}")


def derive_install_command(name: str, dir_name: str, language: Language, slug: str) -> str:
    match language:
        case "typescript" | "circom" | "solidity":
            return f"npm i {name}"
        case "noir":
            return (
                f'Add to Nargo.toml: {name} = {{ git = "https://github.com/{slug}", '
                f'tag = "main", directory = "packages/{dir_name}" }}'
            )
        case "rust":
            return f"cargo add {name}"
    raise ValueError(f"Unknown language: {language!r}")


def infer_category(dir_name: str) -> Category:
    for pattern, category in CATEGORY_RULES:
        if pattern.search(dir_name):
            return category
    return "other"


def derive_cross_language_id(dir_name: str) -> str:
    return dir_name
