"""Configuration models for the synchronizer.

Can be embedded in a host application's settings or loaded standalone:

    # workspace-sync.yml
    config_folder: .sonarlint
    scanner_config_filenames:
      - sonar-project.properties
      - .sonarcloud.properties
    tooling_folders:
      - node_modules
    test_file_patterns:
      - "**/tests/**"
"""

from __future__ import annotations

from pathlib import Path
import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
import yaml


DEFAULT_VCS_FOLDERS = (".git", ".svn", ".hg", ".bzr", "CVS", "_darcs")
DEFAULT_TOOLING_FOLDERS = ("node_modules",)
DEFAULT_TEST_PATTERNS = (
    "**/test/**",
    "**/tests/**",
    "**/*Test.java",
    "**/*Tests.java",
    "**/test_*.py",
    "**/*_test.py",
    "**/*_test.go",
    "**/*.spec.ts",
    "**/*.test.ts",
    "**/*.spec.js",
    "**/*.test.js",
)


class SyncConfig(BaseModel):
    """Root synchronizer configuration."""

    config_folder: str = ".sonarlint"
    """Reserved folder holding synchronizer configuration JSON files."""

    scanner_config_filenames: tuple[str, ...] = (
        "sonar-project.properties",
        ".sonarcloud.properties",
    )
    """Reserved scanner configuration filenames, matched by suffix."""

    vcs_folders: tuple[str, ...] = DEFAULT_VCS_FOLDERS
    """Version control metadata folders whose contents are never forwarded."""

    tooling_folders: tuple[str, ...] = DEFAULT_TOOLING_FOLDERS
    """Dependency/tooling metadata folders whose contents are never forwarded."""

    test_file_patterns: tuple[str, ...] = DEFAULT_TEST_PATTERNS
    """Glob patterns (project-relative) used by the default test classifier."""

    worker_thread_name: str = "workspace-sync"
    """Thread name prefix of the serial propagation worker."""

    flush_timeout: float | None = Field(default=30.0, gt=0)
    """Seconds to wait for pending propagation tasks on shutdown."""

    watch_debounce: int = Field(default=100, ge=0)
    """Debounce in milliseconds for the local file watcher."""

    model_config = ConfigDict(frozen=True)

    @property
    def config_json_pattern(self) -> re.Pattern[str]:
        """Case-insensitive pattern for JSON files below the config folder."""
        return re.compile(rf"^{re.escape(self.config_folder)}/.*\.json$", re.IGNORECASE)

    @classmethod
    def from_yaml(cls, path: Path | str) -> SyncConfig:
        """Load configuration from a YAML file.

        A missing or empty file yields the defaults.
        """
        path = Path(path)
        if not path.exists():
            return cls()
        data: dict[str, Any] | None = yaml.safe_load(path.read_text(encoding="utf-8"))
        if data is None:
            return cls()
        if not isinstance(data, dict):
            msg = f"Expected a mapping in {path}, got {type(data).__name__}"
            raise TypeError(msg)
        return cls.model_validate(data)
