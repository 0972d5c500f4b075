"""Conversion of workspace files into backend-facing snapshots."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import unquote

from fsspec.core import url_to_fs
from fsspec.implementations.local import LocalFileSystem

from workspace_sync.exceptions import StorageResolutionError
from workspace_sync.log import get_logger
from workspace_sync.models import FileSnapshot


if TYPE_CHECKING:
    from workspace_sync.models import Language
    from workspace_sync.paths import ConfigFileMatcher
    from workspace_sync.protocols import StorageResolver, WorkspaceFile
    from workspace_sync.registry import ExtensionRegistry


logger = get_logger(__name__)


class FsspecStorageResolver:
    """Resolves URIs through fsspec.

    Only URIs served by the local filesystem resolve to a concrete path; memory
    and remote filesystems have no local file.
    """

    def to_local_path(self, uri: str) -> Path | None:
        try:
            fs, path = url_to_fs(uri)
        except (ValueError, ImportError) as e:
            raise StorageResolutionError(uri, str(e)) from e
        if not isinstance(fs, LocalFileSystem):
            return None
        # url_to_fs keeps percent escapes of file:// URIs
        return Path(unquote(path)).absolute()


class SnapshotBuilder:
    """Builds `FileSnapshot`s.

    Every failure to resolve a path or to read content only degrades the
    snapshot of that one file.
    """

    def __init__(
        self,
        registry: ExtensionRegistry,
        config_matcher: ConfigFileMatcher,
        resolver: StorageResolver | None = None,
    ):
        self.registry = registry
        self.config_matcher = config_matcher
        self.resolver = resolver or FsspecStorageResolver()

    def resolve_fs_path(self, file: WorkspaceFile) -> Path | None:
        try:
            return self.resolver.to_local_path(file.uri)
        except Exception:  # noqa: BLE001
            logger.debug("Error while looking for file path", uri=file.uri, exc_info=True)
            return None

    def read_content(self, file: WorkspaceFile) -> str | None:
        try:
            return file.read_document()
        except Exception:  # noqa: BLE001
            logger.debug("Error while reading file content", uri=file.uri, exc_info=True)
            return None

    def detect_language(self, file: WorkspaceFile) -> Language | None:
        """Ask every language provider; the first answer wins.

        A failing provider counts as having no opinion.
        """
        language: Language | None = None
        for provider in self.registry.language_providers:
            try:
                detected = provider.language(file)
            except Exception:  # noqa: BLE001
                logger.debug(
                    "Language provider failed",
                    uri=file.uri,
                    provider=type(provider).__name__,
                    exc_info=True,
                )
                continue
            if detected is None:
                continue
            if language is None:
                language = detected
            elif detected != language:
                logger.error(
                    "Conflicting languages detected",
                    file=file.name,
                    kept=str(language),
                    discarded=str(detected),
                )
        return language

    def is_test(self, file: WorkspaceFile) -> bool:
        try:
            return self.registry.test_classifier.is_test(file)
        except Exception:  # noqa: BLE001
            logger.debug("Error while classifying test file", uri=file.uri, exc_info=True)
            return False

    def charset(self, file: WorkspaceFile) -> str | None:
        try:
            return file.charset
        except Exception:  # noqa: BLE001
            logger.debug("Error while reading file charset", uri=file.uri, exc_info=True)
            return None

    def build(self, file: WorkspaceFile) -> FileSnapshot:
        fs_path = self.resolve_fs_path(file)
        content = None
        # Config files always carry the live document content.
        if fs_path is None or self.config_matcher.matches(file):
            content = self.read_content(file)

        return FileSnapshot(
            uri=file.uri,
            ide_relative_path=file.project_relative_path,
            config_scope_id=file.project.scope_id,
            is_test=self.is_test(file),
            charset=self.charset(file),
            fs_path=fs_path,
            content=content,
            detected_language=self.detect_language(file),
        )
