"""Change events and backend-facing wire models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntFlag, StrEnum
from pathlib import Path  # noqa: TC003
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


if TYPE_CHECKING:
    from workspace_sync.protocols import Project, WorkspaceFile


class DeltaKind(Enum):
    """Kind of a resource delta."""

    ADDED = "added"
    REMOVED = "removed"
    CHANGED = "changed"


class DeltaFlag(IntFlag):
    """Details about a changed resource."""

    NONE = 0
    CONTENT = 1
    REPLACED = 2
    ENCODING = 4
    MARKERS = 8
    MOVED_FROM = 16
    MOVED_TO = 32
    SYNC = 64

    INTERESTING = CONTENT | REPLACED | ENCODING
    """Flags that make a change relevant for the backend."""


@dataclass(frozen=True)
class FileAdded:
    """A file appeared in the workspace."""

    file: WorkspaceFile


@dataclass(frozen=True)
class FileRemoved:
    """A file or folder disappeared from the workspace."""

    uri: str


@dataclass(frozen=True)
class FileChanged:
    """A file changed in a way the backend cares about."""

    file: WorkspaceFile

    reasons: DeltaFlag
    """Non-empty subset of `DeltaFlag.INTERESTING`."""


ChangeEvent = FileAdded | FileRemoved | FileChanged


@dataclass
class ClassifiedChanges:
    """Flat result of classifying one change notification."""

    changed_or_added: list[WorkspaceFile] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.changed_or_added and not self.removed

    def add(self, event: ChangeEvent) -> None:
        match event:
            case FileRemoved(uri=uri):
                self.removed.append(uri)
            case FileAdded(file=file) | FileChanged(file=file):
                self.changed_or_added.append(file)

    def projects(self) -> list[Project]:
        """Distinct projects owning changed or added files, in first-seen order."""
        seen: dict[str, Project] = {}
        for file in self.changed_or_added:
            project = file.project
            seen.setdefault(project.scope_id, project)
        return list(seen.values())


class Language(StrEnum):
    """Languages known to the analysis backend."""

    ABAP = "ABAP"
    APEX = "APEX"
    C = "C"
    CPP = "CPP"
    CS = "CS"
    CSS = "CSS"
    COBOL = "COBOL"
    GO = "GO"
    HTML = "HTML"
    IPYTHON = "IPYTHON"
    JAVA = "JAVA"
    JS = "JS"
    JSON = "JSON"
    KOTLIN = "KOTLIN"
    OBJC = "OBJC"
    PHP = "PHP"
    PLI = "PLI"
    PLSQL = "PLSQL"
    PYTHON = "PYTHON"
    RPG = "RPG"
    RUBY = "RUBY"
    SCALA = "SCALA"
    SECRETS = "SECRETS"
    SWIFT = "SWIFT"
    TSQL = "TSQL"
    TS = "TS"
    XML = "XML"
    YAML = "YAML"


class WireModel(BaseModel):
    """Base class for models sent to the backend (camelCase on the wire)."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel, frozen=True)


class FileSnapshot(WireModel):
    """Backend-facing representation of one file."""

    uri: str
    """Identity of the file."""

    ide_relative_path: str
    """Path relative to the root of the project identified by `config_scope_id`."""

    config_scope_id: str
    """Scope the file belongs to on the backend side."""

    is_test: bool
    """Whether the file contains test code."""

    charset: str | None
    """Character set name of the file."""

    fs_path: Path | None = None
    """Absolute local path, absent for virtual or remote storage."""

    content: str | None = None
    """Embedded live content, present for config files and unresolvable files."""

    detected_language: Language | None = None
    """Language reported by the language providers."""

    is_user_defined: bool = True
    """Always True for files coming from the workspace."""


class DidUpdateFileSystemParams(WireModel):
    """One batch of file system changes, sent atomically."""

    removed_files: list[str]
    added_or_changed_files: list[FileSnapshot]
