"""
Tests for configuration and path resolution (tasklane/core/config.py, paths.py).
"""

import json
import os
from pathlib import Path

import pytest

from tasklane.core.config import get_backup_dir, load_config, save_config
from tasklane.core.exceptions import ConfigurationError
from tasklane.core.models import ConflictResolution, TasklaneConfig
from tasklane.core.paths import PathManager


class TestPathManager:
    def test_env_override(self, isolated_home):
        manager = PathManager()
        assert manager.working_dir == Path(isolated_home).resolve()
        assert manager.data_path == Path(isolated_home).resolve() / "data" / "tasks.json"

    def test_explicit_directory_wins(self, temp_dir):
        manager = PathManager(working_dir=Path(temp_dir) / "explicit")
        assert manager.backup_dir == Path(temp_dir) / "explicit" / "backups"

    def test_ensure_directories(self, temp_dir):
        manager = PathManager(working_dir=Path(temp_dir) / "wd")
        manager.ensure_directories()
        assert manager.data_dir.is_dir()
        assert manager.backup_dir.is_dir()


class TestLoadConfig:
    def test_missing_file_gives_defaults(self, temp_dir, isolated_home):
        config = load_config(os.path.join(temp_dir, "absent.json"))

        assert config.order_step == 1000.0
        assert config.backup_before_import
        assert config.conflict_resolution is ConflictResolution.KEEP_NEWER
        assert config.data_path == str(Path(isolated_home).resolve() / "data" / "tasks.json")

    def test_round_trip(self, temp_dir):
        path = os.path.join(temp_dir, "cfg", "config.json")
        original = TasklaneConfig(
            data_path=os.path.join(temp_dir, "store.json"),
            backup_dir=os.path.join(temp_dir, "bk"),
            backup_before_import=False,
            order_step=64.0,
            default_conflict_resolution="keep-local",
        )

        save_config(original, path)
        loaded = load_config(path)

        assert loaded == original

    def test_unknown_strategy(self, temp_dir):
        path = os.path.join(temp_dir, "config.json")
        with open(path, "w", encoding="utf-8") as handle:
            json.dump({"import": {"conflict_resolution": "merge"}}, handle)

        with pytest.raises(ConfigurationError):
            load_config(path)

    def test_non_positive_step(self, temp_dir):
        path = os.path.join(temp_dir, "config.json")
        with open(path, "w", encoding="utf-8") as handle:
            json.dump({"ordering": {"step": 0}}, handle)

        with pytest.raises(ConfigurationError):
            load_config(path)

    def test_malformed_value(self, temp_dir):
        path = os.path.join(temp_dir, "config.json")
        with open(path, "w", encoding="utf-8") as handle:
            json.dump({"ordering": {"step": "big"}}, handle)

        with pytest.raises(ConfigurationError):
            load_config(path)


class TestBackupDir:
    def test_created_on_demand(self, config):
        backup_dir = get_backup_dir(config)
        assert backup_dir.is_dir()
        assert str(backup_dir) == config.backup_dir
