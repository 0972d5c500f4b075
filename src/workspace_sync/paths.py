"""Side-effect free path predicates used while classifying deltas."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath, PureWindowsPath
from typing import TYPE_CHECKING
from urllib.parse import unquote, urlparse

from workspace_sync.config import SyncConfig


if TYPE_CHECKING:
    from collections.abc import Iterable
    import re

    from workspace_sync.protocols import WorkspaceFile


def inside_ignored_folder(path: PurePosixPath, folders: Iterable[str]) -> bool:
    """Whether any segment of the path is one of the given folder names."""
    names = set(folders)
    return any(part in names for part in path.parts)


def is_excluded(path: PurePosixPath, exclusions: Iterable[PurePosixPath]) -> bool:
    """Whether the path equals or lies below any exclusion entry."""
    return any(path.is_relative_to(exclusion) for exclusion in exclusions)


def uri_to_path(uri: str) -> PurePosixPath:
    """Path component of a URI, Windows drive paths normalized to POSIX form."""
    parsed = urlparse(uri)
    raw = unquote(parsed.path)
    # file:///C:/x -> /C:/x
    if len(raw) > 2 and raw[0] == "/" and raw[2] == ":":  # noqa: PLR2004
        return PurePosixPath(PureWindowsPath(raw[1:]).as_posix())
    return PurePosixPath(raw)


def relativize(base_uri: str, uri: str) -> PurePosixPath:
    """Path of `uri` relative to `base_uri`, walking up with `..` if needed."""
    return uri_to_path(uri).relative_to(uri_to_path(base_uri), walk_up=True)


@dataclass(frozen=True)
class ConfigFileMatcher:
    """Recognizes synchronizer configuration files.

    Configuration files are the reserved scanner config files (matched by
    name suffix) and any JSON file below the reserved configuration folder.
    """

    scanner_config_filenames: tuple[str, ...]
    json_pattern: re.Pattern[str]

    @classmethod
    def from_config(cls, config: SyncConfig | None = None) -> ConfigFileMatcher:
        config = config or SyncConfig()
        return cls(
            scanner_config_filenames=config.scanner_config_filenames,
            json_pattern=config.config_json_pattern,
        )

    def is_config_json(self, relative_path: str) -> bool:
        """Whether a project-relative path is a JSON file in the config folder."""
        return self.json_pattern.search(relative_path) is not None

    def matches(self, file: WorkspaceFile) -> bool:
        """Whether the file is any kind of configuration file."""
        return file.name.endswith(self.scanner_config_filenames) or self.is_config_json(
            file.project_relative_path
        )
