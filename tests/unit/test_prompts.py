"""Unit tests for guided-workflow prompts and completions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from zkkit_mcp import prompts, resources

if TYPE_CHECKING:
    from mcp.server.fastmcp.prompts.base import Message

    from zkkit_mcp.registry import PackageRegistry
    from zkkit_mcp.state import AppState


def _texts(messages: list[Message]) -> tuple[str, str]:
    user, assistant = messages
    assert user.role == "user"
    assert assistant.role == "assistant"
    return user.content.text, assistant.content.text  # type: ignore[union-attr]


class TestIntegrationGuide:
    def test_known_package(self, registry: PackageRegistry) -> None:
        user, assistant = _texts(prompts.integration_guide(registry, "lean-imt"))
        assert user == "I want to integrate a ZK-Kit package: lean-imt."
        assert "**@zk-kit/lean-imt** (typescript, merkle-trees)" in assistant
        assert "Install: `npm i @zk-kit/lean-imt`" in assistant

    def test_prefers_requested_language(self, registry: PackageRegistry) -> None:
        _, assistant = _texts(prompts.integration_guide(registry, "lean-imt", "rust"))
        assert "**zk-kit-lean-imt** (rust, merkle-trees)" in assistant

    def test_language_not_available(self, registry: PackageRegistry) -> None:
        _, assistant = _texts(prompts.integration_guide(registry, "lean-imt", "noir"))
        assert assistant.startswith(
            "**@zk-kit/lean-imt** is not available in noir. "
            "Available in: typescript, solidity, rust."
        )

    def test_unknown_package(self, registry: PackageRegistry) -> None:
        _, assistant = _texts(prompts.integration_guide(registry, "zzz"))
        assert assistant.startswith('Package "zzz" not found.')

    def test_browse(self, registry: PackageRegistry) -> None:
        user, assistant = _texts(prompts.integration_guide(registry, language="solidity"))
        assert user == "I want to integrate a ZK-Kit package."
        assert 'Use `list_packages` with language="solidity"' in assistant


class TestConceptExplainer:
    def test_lists_related_packages(self, registry: PackageRegistry) -> None:
        _, assistant = _texts(prompts.concept_explainer(registry, "merkle"))
        assert "## @zk-kit/lean-imt v2.2.3 (typescript)" in assistant
        assert "## @zk-kit/binary-merkle-root.circom (circom)" in assistant
        assert "This concept is implemented in: typescript, circom, solidity, rust." in assistant

    def test_language_filter(self, registry: PackageRegistry) -> None:
        _, assistant = _texts(prompts.concept_explainer(registry, "lean", "rust"))
        assert assistant.startswith("# lean (filtered to rust)")
        assert "@zk-kit/lean-imt " not in assistant

    def test_nothing_related(self, registry: PackageRegistry) -> None:
        _, assistant = _texts(prompts.concept_explainer(registry, "plonk"))
        assert assistant.startswith("I couldn't find ZK-Kit packages directly related to \"plonk\".")


class TestTroubleshoot:
    def test_keywords_from_error(self, registry: PackageRegistry) -> None:
        user, assistant = _texts(
            prompts.troubleshoot_package(registry, "lean-imt", "TypeError: hash() is undefined!")
        )
        assert user == "I'm having trouble with @zk-kit/lean-imt: TypeError: hash() is undefined!."
        assert 'Use `search_issues` with query "TypeError hash is"' in assistant
        assert "(current version: v2.2.3)" in assistant
        assert "## Cross-Language Variants" in assistant

    def test_keywords_default_to_dir_name(self, registry: PackageRegistry) -> None:
        _, assistant = _texts(prompts.troubleshoot_package(registry, "ecdh"))
        assert 'Use `search_issues` with query "ecdh"' in assistant
        assert "Cross-Language Variants" not in assistant

    def test_unknown_package_suggests(self, registry: PackageRegistry) -> None:
        _, assistant = _texts(prompts.troubleshoot_package(registry, "lean"))
        assert "Did you mean:\n- @zk-kit/lean-imt (typescript)" in assistant


class TestMigrationGuide:
    def test_cross_language(self, registry: PackageRegistry) -> None:
        user, assistant = _texts(prompts.migration_guide(registry, "lean-imt", "rust"))
        assert user == "I want to migrate @zk-kit/lean-imt from typescript to rust."
        assert assistant.startswith("# Migration: @zk-kit/lean-imt -> zk-kit-lean-imt")
        assert "`cargo add zk-kit-lean-imt`" in assistant

    def test_missing_target_language(self, registry: PackageRegistry) -> None:
        _, assistant = _texts(prompts.migration_guide(registry, "lean-imt", "noir"))
        assert assistant.startswith("**@zk-kit/lean-imt** does not have a noir implementation.")
        assert "- **zk-kit-lean-imt** v0.1.0 (rust)" in assistant

    def test_upgrade(self, registry: PackageRegistry) -> None:
        user, assistant = _texts(prompts.migration_guide(registry, "excubiae"))
        assert user == "I want to upgrade @zk-kit/excubiae to the latest version."
        assert assistant.startswith("# Upgrade Guide: @zk-kit/excubiae\n")
        assert "Alternative: Switch Language" not in assistant

    def test_unknown(self, registry: PackageRegistry) -> None:
        user, _ = _texts(prompts.migration_guide(registry, "zzz", "rust"))
        assert user == "I want to migrate zzz to rust."


class TestCompletions:
    def test_package_names(self, registry: PackageRegistry) -> None:
        assert prompts.complete_package_name(registry, "LEAN") == [
            "@zk-kit/lean-imt",
            "@zk-kit/lean-imt.sol",
            "zk-kit-lean-imt",
        ]

    def test_languages(self, app_state: AppState) -> None:
        assert resources.complete_language(app_state, "") == [
            "circom",
            "noir",
            "rust",
            "solidity",
            "typescript",
        ]
        assert resources.complete_language(app_state, "S") == ["solidity"]

    def test_dir_names(self, app_state: AppState) -> None:
        assert resources.complete_dir_name(app_state, "", "solidity") == ["lean-imt", "excubiae"]
        assert resources.complete_dir_name(app_state, "lean") == ["lean-imt"]


class TestResources:
    def test_overview(self, app_state: AppState) -> None:
        assert resources.overview(app_state).startswith("# ZK-Kit Ecosystem")

    async def test_unknown_package_page(self, app_state: AppState) -> None:
        text = await resources.package_page(app_state, "noir", "lean-imt")
        assert text == "Package not found: noir/lean-imt"
