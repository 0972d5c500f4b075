"""Main entry point: forwards workspace changes to the analysis backend."""

from __future__ import annotations

from typing import TYPE_CHECKING, Self

from workspace_sync.cache import ExclusionCache, ProjectFilesCache
from workspace_sync.classifier import DeltaClassifier
from workspace_sync.config import SyncConfig
from workspace_sync.exceptions import DeltaWalkError
from workspace_sync.log import get_logger
from workspace_sync.paths import ConfigFileMatcher
from workspace_sync.propagation import PropagationTask, SerialDispatcher
from workspace_sync.registry import ExtensionRegistry
from workspace_sync.snapshots import SnapshotBuilder


if TYPE_CHECKING:
    from concurrent.futures import Future

    from workspace_sync.models import DidUpdateFileSystemParams
    from workspace_sync.protocols import (
        FileService,
        Project,
        ResourceDelta,
        StorageResolver,
        WorkspaceFile,
    )


logger = get_logger(__name__)


class FileSystemSynchronizer:
    """Listens to workspace change notifications and propagates them.

    `resource_changed` runs on the host's notification thread: it only
    classifies the delta and invalidates caches. Snapshot building and the
    backend call happen on a single serial worker, so batches reach the
    backend in notification order.
    """

    def __init__(
        self,
        file_service: FileService,
        registry: ExtensionRegistry | None = None,
        config: SyncConfig | None = None,
        *,
        exclusion_cache: ExclusionCache | None = None,
        project_files_cache: ProjectFilesCache | None = None,
        resolver: StorageResolver | None = None,
        dispatcher: SerialDispatcher | None = None,
    ):
        """Initialize the synchronizer.

        Args:
            file_service: Backend receiving one batch per notification cycle
            registry: Pluggable collaborators (default: no providers)
            config: Synchronizer settings
            exclusion_cache: Shared exclusion cache (default: a private one)
            project_files_cache: Shared project file listing cache
            resolver: Storage resolver for snapshot paths (default: fsspec)
            dispatcher: Background worker (default: a new serial worker)
        """
        self.file_service = file_service
        self.config = config or SyncConfig()
        self.registry = registry or ExtensionRegistry()
        self.exclusion_cache = exclusion_cache or ExclusionCache()
        self.project_files_cache = project_files_cache or ProjectFilesCache()
        self.config_matcher = ConfigFileMatcher.from_config(self.config)
        self.classifier = DeltaClassifier(self.exclusion_cache, self.registry, self.config)
        self.builder = SnapshotBuilder(self.registry, self.config_matcher, resolver)
        self.dispatcher = dispatcher or SerialDispatcher(self.config.worker_thread_name)

    def resource_changed(
        self, delta: ResourceDelta
    ) -> Future[DidUpdateFileSystemParams | None] | None:
        """Handle one change notification.

        Returns:
            Future of the scheduled propagation, None if nothing was scheduled
        """
        try:
            changes = self.classifier.collect(delta)
        except DeltaWalkError:
            logger.exception("Dropping change notification")
            return None

        if changes.is_empty:
            return None

        # Must happen before scheduling: the propagation task and anyone asking
        # for project files in the meantime must not see a stale listing.
        for project in changes.projects():
            self.project_files_cache.invalidate(project.scope_id)

        task = PropagationTask(
            changes=changes,
            builder=self.builder,
            hierarchy_providers=self.registry.hierarchy_providers,
            file_service=self.file_service,
        )
        return self.dispatcher.submit(task)

    def invalidate_project(self, project: Project) -> None:
        """Forget everything cached for a project.

        To be called on structural changes: import, close, reconfiguration.
        """
        self.exclusion_cache.invalidate(project.scope_id)
        self.project_files_cache.invalidate(project.scope_id)

    def config_files(self, project: Project) -> list[WorkspaceFile]:
        """Configuration files of one project."""
        files = self.project_files_cache.files_of(project)
        return [f for f in files if self.config_matcher.matches(f)]

    def flush(self, timeout: float | None = None) -> bool:
        """Wait for all scheduled propagations."""
        return self.dispatcher.flush(timeout)

    def close(self) -> None:
        if not self.dispatcher.flush(self.config.flush_timeout):
            logger.warning("Pending file system changes still running on close")
        self.dispatcher.shutdown(wait=False)

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
