"""Default collaborators, used when the host registers nothing better."""

from __future__ import annotations

from dataclasses import dataclass, field
import fnmatch
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

from workspace_sync.config import DEFAULT_TEST_PATTERNS
from workspace_sync.models import Language


if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from workspace_sync.protocols import Project, WorkspaceFile


EXTENSION_LANGUAGES: dict[str, Language] = {
    ".abap": Language.ABAP,
    ".cls": Language.APEX,
    ".c": Language.C,
    ".h": Language.C,
    ".cc": Language.CPP,
    ".cpp": Language.CPP,
    ".cxx": Language.CPP,
    ".hpp": Language.CPP,
    ".cs": Language.CS,
    ".css": Language.CSS,
    ".less": Language.CSS,
    ".scss": Language.CSS,
    ".cbl": Language.COBOL,
    ".cob": Language.COBOL,
    ".go": Language.GO,
    ".html": Language.HTML,
    ".htm": Language.HTML,
    ".ipynb": Language.IPYTHON,
    ".java": Language.JAVA,
    ".js": Language.JS,
    ".jsx": Language.JS,
    ".mjs": Language.JS,
    ".json": Language.JSON,
    ".kt": Language.KOTLIN,
    ".kts": Language.KOTLIN,
    ".m": Language.OBJC,
    ".php": Language.PHP,
    ".pkb": Language.PLSQL,
    ".pks": Language.PLSQL,
    ".py": Language.PYTHON,
    ".pyi": Language.PYTHON,
    ".rb": Language.RUBY,
    ".scala": Language.SCALA,
    ".swift": Language.SWIFT,
    ".tsql": Language.TSQL,
    ".ts": Language.TS,
    ".tsx": Language.TS,
    ".xml": Language.XML,
    ".yaml": Language.YAML,
    ".yml": Language.YAML,
}


@dataclass
class GlobTestFileClassifier:
    """Classifies files as tests by matching their project-relative path."""

    patterns: tuple[str, ...] = DEFAULT_TEST_PATTERNS

    def is_test(self, file: WorkspaceFile) -> bool:
        # Leading slash so that `**/tests/**` also matches top-level folders.
        path = "/" + file.project_relative_path.lstrip("/")
        return any(fnmatch.fnmatchcase(path, pattern) for pattern in self.patterns)


@dataclass
class ExtensionLanguageProvider:
    """Detects languages from file name suffixes."""

    mapping: Mapping[str, Language] = field(default_factory=lambda: dict(EXTENSION_LANGUAGES))

    def language(self, file: WorkspaceFile) -> Language | None:
        suffix = PurePosixPath(file.name).suffix.lower()
        return self.mapping.get(suffix)


@dataclass
class StaticExclusionProvider:
    """Exclusions configured up front, keyed by project scope id."""

    exclusions: dict[str, set[PurePosixPath]] = field(default_factory=dict)

    def exclude(self, scope_id: str, paths: Iterable[PurePosixPath | str]) -> None:
        entries = self.exclusions.setdefault(scope_id, set())
        entries.update(PurePosixPath(p) for p in paths)

    def get_exclusions(self, project: Project) -> set[PurePosixPath]:
        return set(self.exclusions.get(project.scope_id, ()))
