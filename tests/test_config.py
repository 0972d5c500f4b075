"""Test SyncConfig model."""

from __future__ import annotations

import pydantic
import pytest

from workspace_sync import SyncConfig


class TestSyncConfig:
    """Test SyncConfig model."""

    def test_defaults(self):
        config = SyncConfig()

        assert config.config_folder == ".sonarlint"
        assert config.scanner_config_filenames == (
            "sonar-project.properties",
            ".sonarcloud.properties",
        )
        assert ".git" in config.vcs_folders
        assert config.tooling_folders == ("node_modules",)

    def test_frozen(self):
        config = SyncConfig()

        with pytest.raises(pydantic.ValidationError):
            config.config_folder = ".other"  # type: ignore[misc]

    def test_invalid_debounce(self):
        with pytest.raises(pydantic.ValidationError):
            SyncConfig(watch_debounce=-1)

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "workspace-sync.yml"
        path.write_text(
            "config_folder: .scanner\ntooling_folders:\n  - node_modules\n  - .venv\n",
            encoding="utf-8",
        )

        config = SyncConfig.from_yaml(path)

        assert config.config_folder == ".scanner"
        assert config.tooling_folders == ("node_modules", ".venv")
        assert config.vcs_folders == SyncConfig().vcs_folders

    def test_from_missing_yaml(self, tmp_path):
        assert SyncConfig.from_yaml(tmp_path / "missing.yml") == SyncConfig()

    def test_from_empty_yaml(self, tmp_path):
        path = tmp_path / "empty.yml"
        path.write_text("", encoding="utf-8")

        assert SyncConfig.from_yaml(path) == SyncConfig()

    def test_from_yaml_rejects_non_mapping(self, tmp_path):
        path = tmp_path / "list.yml"
        path.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(TypeError, match="Expected a mapping"):
            SyncConfig.from_yaml(path)
