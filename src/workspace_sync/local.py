"""Local directory workspace and a watchfiles-based notification source.

Lets the synchronizer run against plain directories instead of an IDE
workspace:

    ```python
    workspace = LocalWorkspace("/path/to/workspace")
    parent = workspace.add_project("/path/to/workspace/app")
    workspace.add_project("/path/to/workspace/app/module")

    registry = ExtensionRegistry(hierarchy_providers=[NestedProjectHierarchy(workspace)])
    with FileSystemSynchronizer(JsonRpcFileService(sys.stdout), registry) as sync:
        async with WorkspaceWatcher(workspace, sync):
            await asyncio.sleep(60)
    ```
"""

from __future__ import annotations

import asyncio
import contextlib
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, Self

from watchfiles import Change, awatch

from workspace_sync.log import get_logger
from workspace_sync.models import DeltaFlag, DeltaKind


if TYPE_CHECKING:
    from collections.abc import Iterable, Set as AbstractSet

    from workspace_sync.protocols import Project
    from workspace_sync.synchronizer import FileSystemSynchronizer


logger = get_logger(__name__)


class LocalWorkspace:
    """A directory containing projects, possibly nested in each other."""

    def __init__(self, root: Path | str, default_charset: str = "UTF-8"):
        self.root = Path(root).resolve()
        self.default_charset = default_charset
        self._projects: dict[Path, LocalProject] = {}
        self._documents: dict[Path, str] = {}

    @property
    def projects(self) -> list[LocalProject]:
        return list(self._projects.values())

    def add_project(self, path: Path | str, name: str | None = None) -> LocalProject:
        path = Path(path).resolve()
        if not path.is_relative_to(self.root):
            msg = f"Project {path} is outside of workspace {self.root}"
            raise ValueError(msg)
        project = LocalProject(name=name or path.name, path=path, workspace=self)
        self._projects[path] = project
        return project

    def remove_project(self, project: LocalProject) -> None:
        self._projects.pop(project.path, None)

    def project_for_scope(self, scope_id: str) -> LocalProject | None:
        return next((p for p in self._projects.values() if p.scope_id == scope_id), None)

    def owner_of(self, path: Path) -> LocalProject | None:
        """Innermost project containing the path."""
        candidates = [p for p in self._projects.values() if path.is_relative_to(p.path)]
        return max(candidates, key=lambda p: len(p.path.parts), default=None)

    def open_document(self, path: Path | str, text: str) -> None:
        """Register unsaved editor content for a file."""
        self._documents[Path(path).resolve()] = text

    def close_document(self, path: Path | str) -> None:
        self._documents.pop(Path(path).resolve(), None)

    def document_text(self, path: Path) -> str | None:
        return self._documents.get(path)

    def resource(self, path: Path | str) -> LocalResource:
        return LocalResource(path=Path(path), workspace=self)

    def full_path_of(self, path: Path) -> PurePosixPath:
        """Path below the workspace root, as an absolute POSIX path."""
        return PurePosixPath("/", path.relative_to(self.root).as_posix())


@dataclass(eq=False)
class LocalProject:
    """A project rooted at a directory of a `LocalWorkspace`."""

    name: str
    path: Path
    workspace: LocalWorkspace = field(repr=False)

    @property
    def scope_id(self) -> str:
        return self.path.as_uri()

    @property
    def location_uri(self) -> str:
        return self.path.as_uri()

    @property
    def full_path(self) -> PurePosixPath:
        """Workspace path of the project folder, unique even for equal names."""
        return self.workspace.full_path_of(self.path)

    def files(self) -> list[LocalFile]:
        """Files owned by this project (nested projects own their own files)."""
        return [
            LocalFile(path=path, project=self)
            for path in sorted(self.path.rglob("*"))
            if path.is_file() and self.workspace.owner_of(path) is self
        ]


@dataclass(frozen=True)
class LocalFile:
    """A regular file of a `LocalProject`."""

    path: Path
    project: LocalProject

    @property
    def uri(self) -> str:
        return self.path.as_uri()

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def project_relative_path(self) -> str:
        return self.path.relative_to(self.project.path).as_posix()

    @property
    def charset(self) -> str:
        return self.project.workspace.default_charset

    def read_document(self) -> str:
        if (text := self.project.workspace.document_text(self.path)) is not None:
            return text
        return self.path.read_text(encoding=self.charset)


@dataclass(frozen=True)
class LocalResource:
    """Any path of a `LocalWorkspace`, existing or already deleted."""

    path: Path
    workspace: LocalWorkspace = field(repr=False, compare=False)

    @property
    def full_path(self) -> PurePosixPath:
        return self.workspace.full_path_of(self.path)

    @property
    def location_uri(self) -> str | None:
        if self.workspace.owner_of(self.path) is None:
            return None
        return self.path.as_uri()

    def to_file(self) -> LocalFile | None:
        project = self.workspace.owner_of(self.path)
        if project is None or project.path == self.path or not self.path.is_file():
            return None
        return LocalFile(path=self.path, project=project)


@dataclass
class LocalDelta:
    """Mutable delta tree node."""

    resource: LocalResource
    kind: DeltaKind = DeltaKind.CHANGED
    flags: DeltaFlag = DeltaFlag.NONE
    children: list[LocalDelta] = field(default_factory=list)


@dataclass
class NestedProjectHierarchy:
    """Projects located inside another project are its sub-projects."""

    workspace: LocalWorkspace

    def get_sub_projects(self, project: Project) -> list[LocalProject]:
        parent = self.workspace.project_for_scope(project.scope_id)
        if parent is None:
            return []
        return [
            p
            for p in self.workspace.projects
            if p is not parent and p.path.is_relative_to(parent.path)
        ]

    def part_of_hierarchy(self, project: Project) -> bool:
        return bool(self.get_sub_projects(project))


def _leaf_kind(path: Path, changes: set[Change]) -> tuple[DeltaKind, DeltaFlag]:
    if not path.exists():
        return DeltaKind.REMOVED, DeltaFlag.NONE
    if Change.added in changes:
        return DeltaKind.ADDED, DeltaFlag.NONE
    return DeltaKind.CHANGED, DeltaFlag.CONTENT


def build_delta_tree(
    changes: Iterable[tuple[Change, str]], workspace: LocalWorkspace
) -> LocalDelta:
    """Turn a watchfiles change set into a delta tree rooted at the workspace.

    Several changes of the same path collapse into one node; paths outside of
    the workspace are dropped.
    """
    per_path: dict[Path, set[Change]] = {}
    for change, raw_path in changes:
        path = Path(raw_path)
        if not path.is_absolute():
            path = workspace.root / path
        if path == workspace.root or not path.is_relative_to(workspace.root):
            continue
        per_path.setdefault(path, set()).add(change)

    root = LocalDelta(resource=workspace.resource(workspace.root))
    nodes: dict[Path, LocalDelta] = {workspace.root: root}

    def node_for(path: Path) -> LocalDelta:
        if (node := nodes.get(path)) is None:
            node = LocalDelta(resource=workspace.resource(path))
            nodes[path] = node
            node_for(path.parent).children.append(node)
        return node

    for path in sorted(per_path):
        node = node_for(path)
        node.kind, node.flags = _leaf_kind(path, per_path[path])
    return root


@dataclass
class WorkspaceWatcher:
    """Watches a local workspace and feeds change notifications to a synchronizer."""

    workspace: LocalWorkspace
    """Workspace to watch."""

    synchronizer: FileSystemSynchronizer
    """Receives one delta tree per batch of file system events."""

    debounce: int | None = None
    """Debounce time in milliseconds (default: from the synchronizer config)."""

    _task: asyncio.Task[None] | None = field(default=None, repr=False)
    """Background watch task."""

    _stop_event: asyncio.Event = field(default_factory=asyncio.Event, repr=False)
    """Event to signal stop."""

    async def start(self) -> None:
        """Start watching for file changes."""
        if self._task is not None:
            return

        self._stop_event.clear()
        self._task = asyncio.create_task(self._watch_loop())

    async def stop(self) -> None:
        """Stop watching for file changes."""
        if self._task is None:
            return

        self._stop_event.set()
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    def dispatch(self, changes: AbstractSet[tuple[Change, str]]) -> None:
        """Forward one set of watchfiles changes to the synchronizer."""
        tree = build_delta_tree(changes, self.workspace)
        self.synchronizer.resource_changed(tree)

    async def _watch_loop(self) -> None:
        debounce = self.debounce
        if debounce is None:
            debounce = self.synchronizer.config.watch_debounce
        async for changes in awatch(
            self.workspace.root,
            debounce=debounce,
            stop_event=self._stop_event,
        ):
            try:
                self.dispatch(changes)
            except Exception:
                logger.exception("Failed to dispatch file changes", count=len(changes))

    async def __aenter__(self) -> Self:
        """Start watcher on context enter."""
        await self.start()
        return self

    async def __aexit__(self, *args: object) -> None:
        """Stop watcher on context exit."""
        await self.stop()
