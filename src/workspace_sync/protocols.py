"""Interfaces of the host workspace and the pluggable collaborators.

The synchronizer never owns any of these objects. Host resources and files are
borrowed for the duration of one notification cycle; providers are resolved
once and injected through an `ExtensionRegistry`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable


if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from pathlib import Path, PurePosixPath

    from workspace_sync.models import (
        DeltaFlag,
        DeltaKind,
        DidUpdateFileSystemParams,
        Language,
    )


class Project(Protocol):
    """A workspace project."""

    @property
    def name(self) -> str:
        """Display name of the project."""
        ...

    @property
    def scope_id(self) -> str:
        """Opaque key correlating this project to backend-side state."""
        ...

    @property
    def location_uri(self) -> str:
        """URI of the project root directory."""
        ...

    def files(self) -> Sequence[WorkspaceFile]:
        """All files of the project (potentially expensive)."""
        ...


class WorkspaceFile(Protocol):
    """Capability reference to a workspace file."""

    @property
    def uri(self) -> str:
        """Identity of the file."""
        ...

    @property
    def name(self) -> str:
        """File name without any folder."""
        ...

    @property
    def project(self) -> Project:
        """Owning project."""
        ...

    @property
    def project_relative_path(self) -> str:
        """POSIX-style path relative to the project root."""
        ...

    @property
    def charset(self) -> str:
        """Name of the file's character set."""
        ...

    def read_document(self) -> str:
        """Current content, including unsaved editor state."""
        ...


class Resource(Protocol):
    """A node of the host resource tree (workspace root, project, folder, file)."""

    @property
    def full_path(self) -> PurePosixPath:
        """Workspace-relative path, e.g. `/project/src/Foo.java`."""
        ...

    @property
    def location_uri(self) -> str | None:
        """Location on disk, None when it cannot be resolved anymore."""
        ...

    def to_file(self) -> WorkspaceFile | None:
        """Adapt to a workspace file, None for anything that is not a plain file."""
        ...


class ResourceDelta(Protocol):
    """One node of a hierarchical change notification."""

    @property
    def kind(self) -> DeltaKind: ...

    @property
    def flags(self) -> DeltaFlag: ...

    @property
    def resource(self) -> Resource: ...

    @property
    def children(self) -> Sequence[ResourceDelta]: ...


@runtime_checkable
class ExclusionProvider(Protocol):
    """Contributes paths a project considers out of analysis scope."""

    def get_exclusions(self, project: Project) -> Iterable[PurePosixPath]:
        """Workspace-relative path prefixes excluded for the project."""
        ...


@runtime_checkable
class HierarchyProvider(Protocol):
    """Reports parent/child relationships between projects."""

    def part_of_hierarchy(self, project: Project) -> bool:
        """Whether the project takes part in a hierarchy of this provider."""
        ...

    def get_sub_projects(self, project: Project) -> Iterable[Project]:
        """Direct and indirect sub-projects of the project."""
        ...


@runtime_checkable
class LanguageProvider(Protocol):
    """Detects the language of a file."""

    def language(self, file: WorkspaceFile) -> Language | None:
        """Detected language or None when the provider has no opinion."""
        ...


@runtime_checkable
class TestFileClassifier(Protocol):
    """Decides whether a file contains test code."""

    def is_test(self, file: WorkspaceFile) -> bool: ...


class StorageResolver(Protocol):
    """Resolves file URIs to concrete local files."""

    def to_local_path(self, uri: str) -> Path | None:
        """Absolute local path, None for virtual or remote storage.

        Raises:
            StorageResolutionError: The URI cannot be mapped to any storage.
        """
        ...


class FileService(Protocol):
    """Backend file service reached over RPC."""

    def did_update_file_system(self, params: DidUpdateFileSystemParams) -> None:
        """Notify the backend about removed and changed-or-added files."""
        ...
