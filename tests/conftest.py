"""Test configuration and shared fixtures.

Fake host objects implementing the workspace protocols in memory.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import PurePosixPath
import threading
from typing import TYPE_CHECKING, Any

import pytest

from workspace_sync import (
    DeltaFlag,
    DeltaKind,
    ExtensionRegistry,
    FileSystemSynchronizer,
    SyncConfig,
)
from workspace_sync.log import configure_logging


if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from workspace_sync import DidUpdateFileSystemParams


@dataclass(eq=False)
class FakeProject:
    name: str
    root_uri: str
    file_list: list[FakeFile] = field(default_factory=list)
    files_calls: int = 0

    @property
    def scope_id(self) -> str:
        return f"scope:{self.name}"

    @property
    def location_uri(self) -> str:
        return self.root_uri

    def files(self) -> list[FakeFile]:
        self.files_calls += 1
        return list(self.file_list)


@dataclass(eq=False)
class FakeFile:
    project: FakeProject
    project_relative_path: str
    text: str = ""
    charset: str = "UTF-8"
    read_error: Exception | None = None

    @property
    def uri(self) -> str:
        return f"{self.project.root_uri}/{self.project_relative_path}"

    @property
    def name(self) -> str:
        return PurePosixPath(self.project_relative_path).name

    def read_document(self) -> str:
        if self.read_error is not None:
            raise self.read_error
        return self.text


@dataclass(eq=False)
class FakeResource:
    full_path: PurePosixPath
    location_uri: str | None = None
    file: FakeFile | None = None
    adapt_error: Exception | None = None

    def to_file(self) -> FakeFile | None:
        if self.adapt_error is not None:
            raise self.adapt_error
        return self.file


@dataclass(eq=False)
class FakeDelta:
    resource: FakeResource
    kind: DeltaKind = DeltaKind.CHANGED
    flags: DeltaFlag = DeltaFlag.NONE
    children: list[FakeDelta] = field(default_factory=list)


class BrokenDelta:
    """Delta whose children cannot be read."""

    kind = DeltaKind.CHANGED
    flags = DeltaFlag.NONE

    def __init__(self, resource: FakeResource):
        self.resource = resource

    @property
    def children(self) -> list[FakeDelta]:
        msg = "workspace tree is locked"
        raise RuntimeError(msg)


@dataclass
class RecordingFileService:
    """Backend stand-in remembering every batch it receives."""

    batches: list[DidUpdateFileSystemParams] = field(default_factory=list)
    fail: bool = False
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def did_update_file_system(self, params: DidUpdateFileSystemParams) -> None:
        if self.fail:
            msg = "backend unavailable"
            raise ConnectionError(msg)
        with self._lock:
            self.batches.append(params)


@dataclass
class StaticHierarchy:
    sub_projects: dict[str, list[FakeProject]]

    def part_of_hierarchy(self, project: Any) -> bool:
        return project.scope_id in self.sub_projects

    def get_sub_projects(self, project: Any) -> list[FakeProject]:
        return self.sub_projects.get(project.scope_id, [])


@dataclass
class FixedLanguage:
    answer: Any

    def language(self, file: Any) -> Any:
        return self.answer


@pytest.fixture(scope="session", autouse=True)
def structured_logging():
    """Route structlog through stdlib logging so caplog sees it."""
    configure_logging("DEBUG", use_colors=False)


@pytest.fixture
def project() -> FakeProject:
    return FakeProject(name="app", root_uri="file:///ws/app")


@pytest.fixture
def make_file() -> Callable[..., FakeFile]:
    def factory(project: FakeProject, relative_path: str, **kwargs: Any) -> FakeFile:
        file = FakeFile(project=project, project_relative_path=relative_path, **kwargs)
        project.file_list.append(file)
        return file

    return factory


@pytest.fixture
def file_delta() -> Callable[..., FakeDelta]:
    """Delta node for a file, with a resource adapting to the file."""

    def factory(
        file: FakeFile,
        kind: DeltaKind = DeltaKind.ADDED,
        flags: DeltaFlag = DeltaFlag.NONE,
    ) -> FakeDelta:
        resource = FakeResource(
            full_path=PurePosixPath("/", file.project.name, file.project_relative_path),
            location_uri=file.uri,
            file=file,
        )
        return FakeDelta(resource=resource, kind=kind, flags=flags)

    return factory


@pytest.fixture
def tree() -> Callable[..., FakeDelta]:
    """Workspace root delta with the given project-level children."""

    def factory(*children: FakeDelta, project_name: str = "app") -> FakeDelta:
        project_node = FakeDelta(
            resource=FakeResource(full_path=PurePosixPath("/", project_name)),
            children=list(children),
        )
        return FakeDelta(
            resource=FakeResource(full_path=PurePosixPath("/")),
            children=[project_node],
        )

    return factory


@pytest.fixture
def file_service() -> RecordingFileService:
    return RecordingFileService()


@pytest.fixture
def registry() -> ExtensionRegistry:
    return ExtensionRegistry()


@pytest.fixture
def synchronizer(
    file_service: RecordingFileService, registry: ExtensionRegistry
) -> Iterator[FileSystemSynchronizer]:
    sync = FileSystemSynchronizer(file_service, registry, SyncConfig())
    yield sync
    sync.close()


@pytest.fixture
def make_project() -> type[FakeProject]:
    return FakeProject


@pytest.fixture
def make_resource() -> type[FakeResource]:
    return FakeResource


@pytest.fixture
def make_delta() -> type[FakeDelta]:
    return FakeDelta


@pytest.fixture
def broken_delta() -> BrokenDelta:
    """Workspace root delta whose children cannot be read."""
    return BrokenDelta(FakeResource(full_path=PurePosixPath("/")))


@pytest.fixture
def make_hierarchy() -> type[StaticHierarchy]:
    return StaticHierarchy


@pytest.fixture
def fixed_language() -> type[FixedLanguage]:
    return FixedLanguage
