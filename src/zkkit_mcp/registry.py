"""In-memory package registry: lookup, search, comparison and the
cross-language dependency graph.

All queries are synchronous, pure functions of the loaded snapshot. ``load``
swaps the whole snapshot, so readers never see a partial update.

Concepts (``cross_language_id``) link same-purpose packages across languages.
The dependency graph is built over concepts, not packages: every package of a
concept contributes its ``zk_kit_dependencies`` to the same node.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from zkkit_mcp.config import REPOS
from zkkit_mcp.naming import RUST_PREFIX, SCOPE

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from zkkit_mcp.models.package import Category, Language, Package, RepoConfig

NO_PACKAGES = "No packages available."

_SCOPE_PREFIX = f"{SCOPE}/"
_RUST_PREFIX = f"{RUST_PREFIX}-"
_WHITESPACE = re.compile(r"\s+")

# Points per term, per field it occurs in (additive).
_NAME_SCORE = 3
_DIR_SCORE = 2
_DESCRIPTION_SCORE = 1


def _terms(query: str) -> list[str]:
    return [t for t in _WHITESPACE.split(query.lower()) if t]


def _unique(items: Iterable[str]) -> list[str]:
    """Order-preserving de-duplication."""
    return list(dict.fromkeys(items))


@dataclass
class DependencyGraph:
    """Concept-level graph with the three-way node classification."""

    depends_on: dict[str, set[str]] = field(default_factory=dict)
    depended_by: dict[str, set[str]] = field(default_factory=dict)
    concepts: set[str] = field(default_factory=set)

    @property
    def edge_count(self) -> int:
        return sum(len(deps) for deps in self.depends_on.values())

    def classify(self) -> tuple[list[str], list[str], list[str]]:
        """Return (foundational, leaf, independent), each sorted.

        In-degree is checked first: a concept that both depends on something
        and is depended upon is foundational, never leaf.
        """
        foundational: list[str] = []
        leaf: list[str] = []
        independent: list[str] = []
        for concept in sorted(self.concepts):
            if self.depended_by.get(concept):
                foundational.append(concept)
            elif self.depends_on.get(concept):
                leaf.append(concept)
            else:
                independent.append(concept)
        return foundational, leaf, independent


class PackageRegistry:
    def __init__(self, repos: Sequence[RepoConfig] = REPOS) -> None:
        self._packages: tuple[Package, ...] = ()
        self._repos = tuple(repos)

    def load(self, packages: Iterable[Package]) -> None:
        self._packages = tuple(packages)

    @property
    def all(self) -> tuple[Package, ...]:
        return self._packages

    @property
    def count(self) -> int:
        return len(self._packages)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get_by_name(self, query: str) -> Package | None:
        """Resolve a user-supplied name, case-insensitively.

        Tries, in order: exact name, name without the ``@zk-kit/`` scope,
        directory name, then the query normalized from Noir (``lean_imt``)
        or Rust (``zk-kit-lean-imt``) conventions against directory names.
        """
        lower = query.lower()
        packages = self._packages

        for p in packages:
            if p.name.lower() == lower:
                return p
        for p in packages:
            if p.name.lower().removeprefix(_SCOPE_PREFIX) == lower:
                return p
        for p in packages:
            if p.dir_name.lower() == lower:
                return p

        normalized = lower.replace("_", "-")
        without_prefix = normalized.removeprefix(_RUST_PREFIX)
        if normalized != lower or without_prefix != normalized:
            for p in packages:
                if p.dir_name.lower() in (without_prefix, normalized):
                    return p
        return None

    def suggest(self, query: str, limit: int = 5) -> list[Package]:
        """Packages whose name or directory contains every query term."""
        terms = _terms(query)
        matches = []
        for p in self._packages:
            name, dir_name = p.name.lower(), p.dir_name.lower()
            if all(term in name or term in dir_name for term in terms):
                matches.append(p)
                if len(matches) >= limit:
                    break
        return matches

    def search(
        self,
        query: str | None = None,
        language: Language | None = None,
        category: Category | None = None,
    ) -> list[Package]:
        """Filter by language/category, then rank by query relevance.

        Every term must occur in at least one of name, directory name or
        description. Ties keep registry order.
        """
        results = [
            p
            for p in self._packages
            if (language is None or p.language == language)
            and (category is None or p.category == category)
        ]
        terms = _terms(query) if query else []
        if not terms:
            return results

        scored: list[tuple[int, Package]] = []
        for p in results:
            score = self._score(p, terms)
            if score:
                scored.append((score, p))
        # sorted() is stable, so equal scores stay in registry order
        scored = sorted(scored, key=lambda item: item[0], reverse=True)
        return [p for _, p in scored]

    @staticmethod
    def _score(package: Package, terms: list[str]) -> int:
        name = package.name.lower()
        dir_name = package.dir_name.lower()
        description = package.description.lower()
        total = 0
        for term in terms:
            term_score = (
                (_NAME_SCORE if term in name else 0)
                + (_DIR_SCORE if term in dir_name else 0)
                + (_DESCRIPTION_SCORE if term in description else 0)
            )
            if term_score == 0:
                return 0
            total += term_score
        return total

    def find(self, language: str, dir_name: str) -> Package | None:
        for p in self._packages:
            if p.language == language and p.dir_name == dir_name:
                return p
        return None

    def variants_of(self, package: Package) -> list[Package]:
        """Same-concept packages in other languages."""
        return [
            p
            for p in self._packages
            if p.cross_language_id == package.cross_language_id and p.name != package.name
        ]

    def languages_of(self, concept: str) -> list[str]:
        return _unique(p.language for p in self._packages if p.cross_language_id == concept)

    def get_repo_for_language(self, language: str) -> RepoConfig | None:
        return next((r for r in self._repos if r.language == language), None)

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    def compare(self, names: Sequence[str]) -> str:
        found: list[Package] = []
        not_found: list[str] = []
        for name in names:
            package = self.get_by_name(name)
            if package is None:
                not_found.append(name)
            else:
                found.append(package)

        if not found:
            return f"No packages found for: {', '.join(names)}"

        def row(label: str, values: Iterable[str]) -> str:
            return f"| {label} | {' | '.join(values)} |\n"

        md = row("Property", (p.name for p in found))
        md += f"|----------|{'|'.join('---' for _ in found)}|\n"
        md += row("Language", (p.language for p in found))
        md += row("Category", (p.category for p in found))
        md += row("Version", (p.version or "-" for p in found))
        md += row("Description", (p.description or "-" for p in found))
        md += row("Install", (f"`{p.install_command}`" for p in found))
        md += row("Cross-lang ID", (p.cross_language_id for p in found))
        md += row("Repo", (p.repo for p in found))

        if not_found:
            md += f"\n**Not found:** {', '.join(not_found)}"

        concepts = {p.cross_language_id for p in found}
        found_names = {p.name for p in found}
        variants = [
            p
            for p in self._packages
            if p.cross_language_id in concepts and p.name not in found_names
        ]
        if variants:
            md += "\n\n**Other language variants:**\n"
            for v in variants:
                md += f"- {v.name} ({v.language})\n"
        return md

    def _group_by_concept(self) -> dict[str, list[Package]]:
        groups: dict[str, list[Package]] = {}
        for p in self._packages:
            groups.setdefault(p.cross_language_id, []).append(p)
        return groups

    def get_ecosystem_overview(self) -> str:
        by_language: dict[str, list[Package]] = {}
        for p in self._packages:
            by_language.setdefault(p.language, []).append(p)

        md = "# ZK-Kit Ecosystem\n\n"
        md += f"**{self.count} packages** across {len(by_language)} languages\n\n"

        for language, packages in by_language.items():
            md += f"## {language} ({len(packages)} packages)\n\n"
            by_category: dict[str, list[Package]] = {}
            for p in packages:
                by_category.setdefault(p.category, []).append(p)
            for category, members in by_category.items():
                md += f"### {category}\n"
                for p in members:
                    version = f" (v{p.version})" if p.version else ""
                    md += f"- **{p.name}**{version}: {p.description or '(no description)'}\n"
                md += "\n"

        multi = [(cid, ps) for cid, ps in self._group_by_concept().items() if len(ps) > 1]
        if multi:
            md += "## Cross-Language Packages\n\n"
            for cid, packages in multi:
                md += f"- **{cid}**: {', '.join(p.language for p in packages)}\n"
        return md

    def get_cross_language_coverage(self) -> str:
        if not self._packages:
            return NO_PACKAGES

        languages = sorted({p.language for p in self._packages})
        coverage: dict[str, dict[str, None]] = {}
        for p in self._packages:
            coverage.setdefault(p.cross_language_id, {})[p.language] = None
        concepts = sorted(coverage)

        md = "# Cross-Language Coverage Matrix\n\n"
        md += f"| Concept | {' | '.join(languages)} |\n"
        md += f"|---------|{'|'.join('---' for _ in languages)}|\n"

        total_slots = len(concepts) * len(languages)
        filled = 0
        for concept in concepts:
            present = coverage[concept]
            filled += len(present)
            cells = ["yes" if language in present else "-" for language in languages]
            md += f"| {concept} | {' | '.join(cells)} |\n"

        percent = math.floor(filled * 100 / total_slots + 0.5)  # half up
        md += f"\n**{len(concepts)} concepts** across **{len(languages)} languages** - "
        md += f"**{percent}% coverage** ({filled}/{total_slots} slots filled)\n"

        multi = [c for c in concepts if len(coverage[c]) > 1]
        if multi:
            md += "\n## Multi-Language Concepts\n"
            for c in multi:
                md += f"- **{c}**: {', '.join(coverage[c])}\n"

        single = [c for c in concepts if len(coverage[c]) == 1]
        if single:
            md += "\n## Single-Language Only (potential gaps)\n"
            for c in single:
                md += f"- **{c}**: {', '.join(coverage[c])} only\n"
        return md

    # ------------------------------------------------------------------
    # Dependency graph
    # ------------------------------------------------------------------

    def build_dependency_graph(self) -> DependencyGraph:
        # Unknown dependency ids become nodes too; they are not validated.
        graph = DependencyGraph()
        for p in self._packages:
            concept = p.cross_language_id
            graph.concepts.add(concept)
            deps = graph.depends_on.setdefault(concept, set())
            for dep in p.zk_kit_dependencies:
                deps.add(dep)
                graph.depended_by.setdefault(dep, set()).add(concept)
                graph.concepts.add(dep)
        return graph

    def get_dependency_graph(self) -> str:
        if not self._packages:
            return NO_PACKAGES

        graph = self.build_dependency_graph()
        foundational, leaf, independent = graph.classify()

        md = "# ZK-Kit Internal Dependency Graph\n\n"
        md += f"**{len(graph.concepts)} concepts**, **{graph.edge_count} internal dependencies**\n\n"

        if foundational:
            md += "## Foundational Packages\n\nDepended on by other ZK-Kit packages:\n\n"
            for c in foundational:
                used_by = ", ".join(sorted(graph.depended_by[c]))
                md += f"- **{c}** ({', '.join(self.languages_of(c))}): used by {used_by}\n"
            md += "\n"

        if leaf:
            md += "## Leaf Packages\n\nDepend on other ZK-Kit packages but are not depended on:\n\n"
            for c in leaf:
                deps = ", ".join(sorted(graph.depends_on[c]))
                md += f"- **{c}** ({', '.join(self.languages_of(c))}): depends on {deps}\n"
            md += "\n"

        if independent:
            md += "## Independent Packages\n\nNo internal ZK-Kit dependencies:\n\n"
            for c in independent:
                md += f"- **{c}** ({', '.join(self.languages_of(c))})\n"
        return md

    def get_reverse_dependencies(self, concept: str) -> str:
        if not self._packages:
            return NO_PACKAGES

        # dependent concept -> languages whose package declares the dependency
        dependents: dict[str, list[str]] = {}
        direct_deps: list[str] = []
        for p in self._packages:
            if concept in p.zk_kit_dependencies:
                languages = dependents.setdefault(p.cross_language_id, [])
                if p.language not in languages:
                    languages.append(p.language)
            if p.cross_language_id == concept:
                direct_deps.extend(p.zk_kit_dependencies)

        md = f"# Dependency Info: {concept}\n\n"
        md += f"**Available in:** {', '.join(self.languages_of(concept))}\n\n"

        if direct_deps:
            md += "## Depends On\n\n"
            for dep in sorted(set(direct_deps)):
                md += f"- **{dep}** ({', '.join(self.languages_of(dep))})\n"
            md += "\n"

        if dependents:
            md += "## Depended On By\n\n"
            for dependent in sorted(dependents):
                md += f"- **{dependent}** ({', '.join(dependents[dependent])})\n"
            md += "\n"
            md += f"**{len(dependents)} package(s)** depend on {concept}.\n"
        else:
            md += f"No other ZK-Kit packages depend on {concept}.\n"
        return md
