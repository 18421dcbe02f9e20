"""Guided-workflow prompts. Each returns a user/assistant message pair."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from mcp.server.fastmcp.prompts.base import AssistantMessage, Message, UserMessage

if TYPE_CHECKING:
    from zkkit_mcp.models.package import Package
    from zkkit_mcp.registry import PackageRegistry

_NON_KEYWORD = re.compile(r"[^a-zA-Z0-9\s-]")


def _exchange(user_text: str, assistant_text: str) -> list[Message]:
    return [UserMessage(user_text), AssistantMessage(assistant_text)]


def _version(package: Package) -> str:
    return f" v{package.version}" if package.version else ""


def _prefer_language(
    registry: PackageRegistry, package: Package | None, language: str | None
) -> Package | None:
    """Swap ``package`` for its variant in ``language`` when one exists."""
    if package is None or not language or package.language == language:
        return package
    for variant in registry.variants_of(package):
        if variant.language == language:
            return variant
    return package


def _not_found(registry: PackageRegistry, name: str) -> str:
    suggestions = registry.suggest(name)
    suggest_text = ""
    if suggestions:
        listing = "\n".join(f"- {s.name} ({s.language})" for s in suggestions)
        suggest_text = f"\n\nDid you mean:\n{listing}"
    return (
        f'Package "{name}" not found in the ZK-Kit ecosystem.{suggest_text}\n\n'
        "Use `list_packages` to see all available packages."
    )


def integration_guide(
    registry: PackageRegistry, package_name: str | None = None, language: str | None = None
) -> list[Message]:
    if package_name:
        package = _prefer_language(registry, registry.get_by_name(package_name), language)
        if package is not None and language and package.language != language:
            available = ", ".join(
                p.language for p in registry.all if p.cross_language_id == package.cross_language_id
            )
            intro = (
                f"**{package.name}** is not available in {language}. Available in: {available}.\n\n"
                f'Use `list_packages` with language="{language}" to see all {language} packages.'
            )
        elif package is not None:
            intro = (
                f"You want to integrate **{package.name}** ({package.language}, {package.category}).\n\n"
                f"Install: `{package.install_command}`\n\n"
                f'I\'ll fetch the README for detailed docs. Use `get_package_readme` with name "{package.name}" '
                "to see full API documentation and examples."
            )
        else:
            intro = f'Package "{package_name}" not found. Use `list_packages` to browse available packages.'
    else:
        lang_filter = f" for {language}" if language else ""
        lang_arg = f' with language="{language}"' if language else ""
        intro = (
            f"Let's find the right ZK-Kit package{lang_filter}. Here's what's available:\n\n"
            f"Use `list_packages`{lang_arg} to browse, or describe what you're building "
            "and I'll recommend packages."
        )

    target = f": {package_name}" if package_name else ""
    return _exchange(f"I want to integrate a ZK-Kit package{target}.", intro)


def concept_explainer(
    registry: PackageRegistry, concept: str, language: str | None = None
) -> list[Message]:
    """Map a ZK concept to the packages implementing it."""
    concept_lower = concept.lower()
    related = registry.search(concept, language)
    by_mention = [
        p
        for p in registry.search(None, language)
        if concept_lower in p.description.lower() or concept_lower in p.dir_name
    ]

    seen: set[str] = set()
    packages: list[Package] = []
    for p in related + by_mention:
        if p.name not in seen:
            seen.add(p.name)
            packages.append(p)
    packages = packages[:10]

    if not packages:
        guide = (
            f'I couldn\'t find ZK-Kit packages directly related to "{concept}". This concept may not '
            "be implemented in ZK-Kit, or try a different search term.\n\n"
            f'Use `list_packages` to browse all available packages, or `search_code` with query "{concept}" '
            "to search across all source code."
        )
    else:
        lang_note = f" (filtered to {language})" if language else ""
        guide = f"# {concept}{lang_note}\n\nHere are the ZK-Kit packages related to this concept:\n\n"
        for p in packages:
            guide += f"## {p.name}{_version(p)} ({p.language})\n"
            guide += f"{p.description or '(no description)'}\n"
            guide += f"- Install: `{p.install_command}`\n"
            guide += f'- Source: `get_package_source` with name "{p.name}"\n'
            guide += f'- Docs: `get_package_readme` with name "{p.name}"\n\n'

        concepts = {p.cross_language_id for p in packages}
        variant_languages = list(
            dict.fromkeys(p.language for p in registry.all if p.cross_language_id in concepts)
        )
        if len(variant_languages) > 1:
            guide += (
                "## Available Languages\n\n"
                f"This concept is implemented in: {', '.join(variant_languages)}.\n"
            )

        guide += "\n## Next Steps\n\n"
        guide += "1. Read the documentation: `get_package_readme` for any package above\n"
        guide += "2. Browse the source: `get_package_source` to see the implementation\n"
        guide += f'3. Search for usage patterns: `search_code` with query "{concept}"\n'
        guide += "4. Check dependencies: `get_package_dependencies` for integration requirements\n"

    return _exchange(f'Explain the concept of "{concept}" in the context of ZK-Kit.', guide)


def troubleshoot_package(
    registry: PackageRegistry,
    package_name: str,
    error_message: str | None = None,
    language: str | None = None,
) -> list[Message]:
    package = _prefer_language(registry, registry.get_by_name(package_name), language)
    error_desc = f": {error_message}" if error_message else ""

    if package is None:
        return _exchange(
            f"I'm having trouble with {package_name}{error_desc}.",
            _not_found(registry, package_name),
        )

    if error_message:
        keywords = " ".join(_NON_KEYWORD.sub("", error_message).split()[:3])
    else:
        keywords = package.dir_name
    version_note = f" (current version: v{package.version})" if package.version else ""

    variants = registry.variants_of(package)
    variant_section = ""
    if variants:
        listing = "\n".join(f"- **{v.name}** ({v.language}): `{v.install_command}`" for v in variants)
        variant_section = (
            "\n\n## Cross-Language Variants\n\n"
            f"This package is also available in other languages:\n{listing}\n\n"
            "If the issue is language-specific, consider trying a different implementation."
        )

    guide = f"""# Troubleshooting: {package.name}{version_note}

## Step 1: Check Documentation
Use `get_package_readme` with name "{package.name}" to review the full API docs, usage examples, and known limitations.

## Step 2: Verify Installation
Make sure the package is correctly installed:
`{package.install_command}`

## Step 3: Check Dependencies
Use `get_package_dependencies` with name "{package.name}" to verify all required dependencies are installed.

## Step 4: Search Known Issues
Use `search_issues` with query "{keywords}" to find related bug reports and discussions.

## Step 5: Check for Updates
Use `get_releases` with language "{package.language}" to see if a newer version fixes your issue.{variant_section}"""

    return _exchange(f"I'm having trouble with {package.name}{error_desc}.", guide)


def migration_guide(
    registry: PackageRegistry, package_name: str, target_language: str | None = None
) -> list[Message]:
    """Upgrade guide, or a cross-language migration when ``target_language`` differs."""
    package = registry.get_by_name(package_name)
    if package is None:
        target = f" to {target_language}" if target_language else ""
        return _exchange(
            f"I want to migrate {package_name}{target}.", _not_found(registry, package_name)
        )

    if target_language and target_language != package.language:
        target_pkg = next(
            (v for v in registry.variants_of(package) if v.language == target_language), None
        )
        if target_pkg is None:
            guide = (
                f"**{package.name}** does not have a {target_language} implementation.\n\n"
                "Available implementations:\n"
            )
            for v in [package, *registry.variants_of(package)]:
                guide += f"- **{v.name}**{_version(v)} ({v.language})\n"
            guide += (
                f'\nUse `list_packages` with language="{target_language}" to find alternative '
                f"{target_language} packages."
            )
        else:
            guide = f"# Migration: {package.name} -> {target_pkg.name}\n\n"
            guide += f"**From:** {package.name}{_version(package)} ({package.language})\n"
            guide += f"**To:** {target_pkg.name}{_version(target_pkg)} ({target_pkg.language})\n\n"
            guide += "## Step 1: Understand the Target\n"
            guide += f'Use `get_package_readme` with name "{target_pkg.name}" to read the API documentation.\n\n'
            guide += "## Step 2: Compare Implementations\n"
            guide += f'Use `compare_packages` with names ["{package.name}", "{target_pkg.name}"] to see differences.\n'
            guide += "Use `get_package_source` to browse both implementations side by side.\n\n"
            guide += "## Step 3: Install New Package\n"
            guide += f"`{target_pkg.install_command}`\n\n"
            guide += "## Step 4: Check Dependencies\n"
            guide += f'Use `get_package_dependencies` with name "{target_pkg.name}" to verify required dependencies.\n\n'
            guide += "## Step 5: Remove Old Package\n"
            guide += f"Uninstall {package.name} after migration is complete and all references are updated.\n"
        user_text = f"I want to migrate {package.name} from {package.language} to {target_language}."
    else:
        version = _version(package)
        guide = f"# Upgrade Guide: {package.name}{version}\n\n"
        guide += "## Step 1: Check Current Version\n"
        guide += f"You're using **{package.name}**{version}.\n\n"
        guide += "## Step 2: Review Recent Releases\n"
        guide += f'Use `get_releases` with language "{package.language}" to see what\'s new and check for breaking changes.\n\n'
        guide += "## Step 3: Check Recent Commits\n"
        guide += f'Use `get_package_commits` with name "{package.name}" to see what changed recently.\n\n'
        guide += "## Step 4: Review Documentation\n"
        guide += f'Use `get_package_readme` with name "{package.name}" for updated API documentation.\n\n'
        guide += "## Step 5: Check Dependencies\n"
        guide += f'Use `get_package_dependencies` with name "{package.name}" to verify compatible dependencies.\n\n'
        guide += "## Step 6: Update\n"
        guide += f"`{package.install_command}`\n"

        variants = registry.variants_of(package)
        if variants:
            guide += "\n## Alternative: Switch Language\n\nThis package is also available in:\n"
            for v in variants:
                guide += f"- **{v.name}**{_version(v)} ({v.language}): `{v.install_command}`\n"
            guide += "\nTo migrate to a different language, use this prompt again with a `target_language`."
        if target_language:
            user_text = f"I want to migrate {package.name} from {package.language} to {target_language}."
        else:
            user_text = f"I want to upgrade {package.name} to the latest version."

    return _exchange(user_text, guide)


def complete_package_name(registry: PackageRegistry, value: str | None) -> list[str]:
    needle = (value or "").lower()
    return [p.name for p in registry.all if needle in p.name.lower()][:20]
