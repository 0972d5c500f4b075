"""Classification of hierarchical change notifications.

The walk is pre-order and depth-first. Each node yields a `VisitResult`
telling the walk whether to descend into its children, and at most one
`ChangeEvent`.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from workspace_sync.config import SyncConfig
from workspace_sync.exceptions import DeltaWalkError
from workspace_sync.log import get_logger
from workspace_sync.models import (
    ClassifiedChanges,
    DeltaFlag,
    DeltaKind,
    FileAdded,
    FileChanged,
    FileRemoved,
)
from workspace_sync.paths import inside_ignored_folder, is_excluded


if TYPE_CHECKING:
    from workspace_sync.cache import ExclusionCache
    from workspace_sync.models import ChangeEvent
    from workspace_sync.protocols import Resource, ResourceDelta, WorkspaceFile
    from workspace_sync.registry import ExtensionRegistry


logger = get_logger(__name__)


class VisitResult(Enum):
    """Whether the walk descends into a node's children."""

    CONTINUE = "continue"
    SKIP = "skip"


class DeltaClassifier:
    """Turns a delta tree into changed-or-added files and removed locations."""

    def __init__(
        self,
        exclusion_cache: ExclusionCache,
        registry: ExtensionRegistry,
        config: SyncConfig | None = None,
    ):
        self.exclusion_cache = exclusion_cache
        self.registry = registry
        config = config or SyncConfig()
        self._ignored_folders = frozenset((*config.vcs_folders, *config.tooling_folders))

    def is_ignored(self, resource: Resource) -> bool:
        """Whether the resource lives in a VCS or tooling metadata folder."""
        return inside_ignored_folder(resource.full_path, self._ignored_folders)

    def classify_node(self, delta: ResourceDelta) -> tuple[VisitResult, ChangeEvent | None]:
        """Classify a single node of the delta tree."""
        resource = delta.resource
        if self.is_ignored(resource):
            return VisitResult.SKIP, None

        if delta.kind is DeltaKind.REMOVED:
            # No exclusion check and no adaptation: the resource is gone.
            uri = resource.location_uri
            if uri is None:
                return VisitResult.CONTINUE, None
            logger.debug("File removed", uri=uri)
            return VisitResult.CONTINUE, FileRemoved(uri)

        file = self._adapt(resource)
        if file is None:
            # The workspace root, projects and folders: keep digging.
            return VisitResult.CONTINUE, None

        exclusions = self.exclusion_cache.exclusions_for(
            file.project, self.registry.exclusion_providers
        )
        if is_excluded(resource.full_path, exclusions):
            return VisitResult.SKIP, None

        if delta.kind is DeltaKind.ADDED:
            logger.debug("File added", file=file.name)
            return VisitResult.CONTINUE, FileAdded(file)

        reasons = delta.flags & DeltaFlag.INTERESTING
        if not reasons:
            return VisitResult.CONTINUE, None
        if reasons & DeltaFlag.CONTENT:
            logger.debug("File content changed", file=file.name)
        if reasons & DeltaFlag.REPLACED:
            logger.debug("File content replaced", file=file.name)
        if reasons & DeltaFlag.ENCODING:
            logger.debug("File encoding changed", file=file.name)
        return VisitResult.CONTINUE, FileChanged(file, reasons)

    def collect(self, root: ResourceDelta) -> ClassifiedChanges:
        """Walk the whole tree and accumulate the classified changes.

        Raises:
            DeltaWalkError: The tree could not be traversed.
        """
        changes = ClassifiedChanges()
        try:
            self._walk(root, changes)
        except DeltaWalkError:
            raise
        except Exception as e:
            msg = f"Failed to walk resource delta: {e}"
            raise DeltaWalkError(msg) from e
        return changes

    def _walk(self, root: ResourceDelta, changes: ClassifiedChanges) -> None:
        stack = [root]
        while stack:
            delta = stack.pop()
            result, event = self.classify_node(delta)
            if event is not None:
                changes.add(event)
            if result is VisitResult.CONTINUE:
                # Reversed so children are visited in their original order.
                stack.extend(reversed(delta.children))

    @staticmethod
    def _adapt(resource: Resource) -> WorkspaceFile | None:
        try:
            return resource.to_file()
        except Exception:  # noqa: BLE001
            logger.debug("Could not adapt resource", path=str(resource.full_path), exc_info=True)
            return None
