"""Workspace file system synchronization for analysis backends.

This package provides:
- Classification of hierarchical workspace change notifications
- Per-project exclusion and VCS/tooling folder filtering
- Conversion of changed files into backend-facing snapshots
- Fan-out of configuration files to sub-projects
- Ordered, serial propagation of one batch per notification cycle
"""

from __future__ import annotations

from workspace_sync.backend import JsonRpcFileService, LoggingFileService
from workspace_sync.cache import ExclusionCache, ProjectFilesCache, ScopedCache
from workspace_sync.classifier import DeltaClassifier, VisitResult
from workspace_sync.config import SyncConfig
from workspace_sync.exceptions import DeltaWalkError, StorageResolutionError, SyncError
from workspace_sync.hierarchy import fan_out, resolve_sub_projects, to_sub_project_snapshot
from workspace_sync.local import (
    LocalWorkspace,
    NestedProjectHierarchy,
    WorkspaceWatcher,
    build_delta_tree,
)
from workspace_sync.models import (
    ClassifiedChanges,
    DeltaFlag,
    DeltaKind,
    DidUpdateFileSystemParams,
    FileAdded,
    FileChanged,
    FileRemoved,
    FileSnapshot,
    Language,
)
from workspace_sync.paths import ConfigFileMatcher
from workspace_sync.propagation import PropagationTask, SerialDispatcher
from workspace_sync.providers import (
    ExtensionLanguageProvider,
    GlobTestFileClassifier,
    StaticExclusionProvider,
)
from workspace_sync.registry import ExtensionRegistry
from workspace_sync.snapshots import FsspecStorageResolver, SnapshotBuilder
from workspace_sync.synchronizer import FileSystemSynchronizer

__all__ = [
    # Models
    "ClassifiedChanges",
    # Paths
    "ConfigFileMatcher",
    # Classifier
    "DeltaClassifier",
    "DeltaFlag",
    "DeltaKind",
    # Errors
    "DeltaWalkError",
    "DidUpdateFileSystemParams",
    # Caches
    "ExclusionCache",
    # Providers
    "ExtensionLanguageProvider",
    # Registry
    "ExtensionRegistry",
    "FileAdded",
    "FileChanged",
    "FileRemoved",
    "FileSnapshot",
    # Core
    "FileSystemSynchronizer",
    # Snapshots
    "FsspecStorageResolver",
    "GlobTestFileClassifier",
    # Backend
    "JsonRpcFileService",
    "Language",
    # Local workspace
    "LocalWorkspace",
    "LoggingFileService",
    "NestedProjectHierarchy",
    "ProjectFilesCache",
    # Propagation
    "PropagationTask",
    "ScopedCache",
    "SerialDispatcher",
    "SnapshotBuilder",
    "StaticExclusionProvider",
    "StorageResolutionError",
    # Config
    "SyncConfig",
    "SyncError",
    "VisitResult",
    "WorkspaceWatcher",
    "build_delta_tree",
    # Hierarchy
    "fan_out",
    "resolve_sub_projects",
    "to_sub_project_snapshot",
]
