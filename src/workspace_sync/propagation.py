"""Background propagation of classified changes to the backend."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, wait as wait_futures
from dataclasses import dataclass, field
import threading
from typing import TYPE_CHECKING, Self

from workspace_sync.hierarchy import fan_out, resolve_sub_projects
from workspace_sync.log import get_logger
from workspace_sync.models import DidUpdateFileSystemParams


if TYPE_CHECKING:
    from collections.abc import Sequence
    from concurrent.futures import Future

    from workspace_sync.models import ClassifiedChanges, FileSnapshot
    from workspace_sync.protocols import FileService, HierarchyProvider, Project
    from workspace_sync.snapshots import SnapshotBuilder


logger = get_logger(__name__)


@dataclass
class PropagationTask:
    """Everything one notification cycle has to send to the backend."""

    changes: ClassifiedChanges
    """Result of classifying the cycle's delta tree."""

    builder: SnapshotBuilder
    """Builds the snapshots of changed or added files."""

    hierarchy_providers: Sequence[HierarchyProvider]
    """Used to find sub-projects of projects whose config files changed."""

    file_service: FileService
    """Backend receiving the batch."""

    def build_snapshots(self) -> list[FileSnapshot]:
        """Snapshots of all changed or added files, plus sub-project duplicates."""
        snapshots: list[FileSnapshot] = []
        config_files: dict[str, tuple[Project, list[FileSnapshot]]] = {}
        for file in self.changes.changed_or_added:
            snapshot = self.builder.build(file)
            snapshots.append(snapshot)
            if self.builder.config_matcher.is_config_json(snapshot.ide_relative_path):
                project = file.project
                _, matched = config_files.setdefault(project.scope_id, (project, []))
                matched.append(snapshot)

        for project, matched in config_files.values():
            sub_projects = resolve_sub_projects(project, self.hierarchy_providers)
            snapshots.extend(fan_out(matched, sub_projects))
        return snapshots

    def run(self) -> DidUpdateFileSystemParams | None:
        """Send one batch for the cycle. Returns None when there was nothing to send."""
        if self.changes.is_empty:
            return None

        params = DidUpdateFileSystemParams(
            removed_files=list(self.changes.removed),
            added_or_changed_files=self.build_snapshots(),
        )
        self.file_service.did_update_file_system(params)
        logger.debug(
            "Propagated file system changes",
            removed=len(params.removed_files),
            added_or_changed=len(params.added_or_changed_files),
        )
        return params


def _run_task(task: PropagationTask) -> DidUpdateFileSystemParams | None:
    try:
        return task.run()
    except Exception:
        logger.exception("Failed to propagate file system changes")
        raise


@dataclass
class SerialDispatcher:
    """Runs propagation tasks one at a time, in submission order.

    Tasks are never cancelled: once submitted, they run to completion, even
    when the dispatcher is shut down.
    """

    thread_name_prefix: str = "workspace-sync"

    _executor: ThreadPoolExecutor = field(init=False, repr=False)
    _last: Future[DidUpdateFileSystemParams | None] | None = field(
        default=None, init=False, repr=False
    )
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def __post_init__(self) -> None:
        self._executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix=self.thread_name_prefix
        )

    def submit(self, task: PropagationTask) -> Future[DidUpdateFileSystemParams | None]:
        with self._lock:
            future = self._executor.submit(_run_task, task)
            self._last = future
        return future

    def flush(self, timeout: float | None = None) -> bool:
        """Wait until every task submitted so far has finished.

        Returns:
            False if the timeout expired first
        """
        with self._lock:
            last = self._last
        if last is None:
            return True
        done, _ = wait_futures([last], timeout=timeout)
        return bool(done)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait, cancel_futures=False)

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *args: object) -> None:
        self.shutdown()
