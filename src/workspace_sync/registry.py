"""Capability registry for pluggable collaborators."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from workspace_sync.providers import GlobTestFileClassifier


if TYPE_CHECKING:
    from workspace_sync.protocols import (
        ExclusionProvider,
        HierarchyProvider,
        LanguageProvider,
        TestFileClassifier,
    )


@dataclass
class ExtensionRegistry:
    """Collaborators resolved once at startup and injected into the synchronizer.

    Provider order matters for language detection: the first provider with an
    answer wins.
    """

    exclusion_providers: list[ExclusionProvider] = field(default_factory=list)
    """Contribute per-project exclusion paths, unioned."""

    hierarchy_providers: list[HierarchyProvider] = field(default_factory=list)
    """Report sub-projects, unioned."""

    language_providers: list[LanguageProvider] = field(default_factory=list)
    """Detect file languages, first answer wins."""

    test_classifier: TestFileClassifier = field(default_factory=GlobTestFileClassifier)
    """Authoritative test/non-test classification."""

    def register_exclusion_provider(self, provider: ExclusionProvider) -> None:
        self.exclusion_providers.append(provider)

    def register_hierarchy_provider(self, provider: HierarchyProvider) -> None:
        self.hierarchy_providers.append(provider)

    def register_language_provider(self, provider: LanguageProvider) -> None:
        self.language_providers.append(provider)
