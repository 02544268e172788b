"""
Centralized path management for tasklane.

This module handles working-directory resolution and provides a consistent
API for accessing configuration, data and backup files.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional


class PathManager:
    """Manages tasklane file paths."""

    APP_DIR_NAME = "tasklane"
    HOME_ENV_VAR = "TASKLANE_HOME"

    CONFIG_FILE = "config.json"
    DATA_FILE = "tasks.json"

    def __init__(self, working_dir: Optional[Path] = None,
                 logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self._working_dir = Path(working_dir) if working_dir else None

    def _default_user_dir(self) -> Path:
        """Platform-appropriate per-user data directory."""
        if sys.platform == "darwin":
            return Path.home() / "Library" / "Application Support" / self.APP_DIR_NAME
        if sys.platform.startswith("win"):
            appdata = os.environ.get("APPDATA")
            if appdata:
                return Path(appdata) / self.APP_DIR_NAME
            return Path.home() / "AppData" / "Roaming" / self.APP_DIR_NAME
        return Path.home() / ".config" / self.APP_DIR_NAME

    @property
    def working_dir(self) -> Path:
        """
        Get the working directory for tasklane data.

        Priority order:
        1. Directory passed to the constructor
        2. TASKLANE_HOME environment variable
        3. Per-platform user directory
        """
        if self._working_dir is not None:
            return self._working_dir

        env_override = os.environ.get(self.HOME_ENV_VAR)
        if env_override:
            env_path = Path(env_override).expanduser().resolve()
            self.logger.debug("Using %s override: %s", self.HOME_ENV_VAR, env_path)
            return env_path

        return self._default_user_dir()

    def ensure_directories(self) -> None:
        """Ensure all required directories exist."""
        for directory in (self.working_dir, self.data_dir, self.backup_dir):
            directory.mkdir(parents=True, exist_ok=True)
            self.logger.debug("Ensured directory exists: %s", directory)

    @property
    def data_dir(self) -> Path:
        """Get the data directory holding the task store."""
        return self.working_dir / "data"

    @property
    def backup_dir(self) -> Path:
        """Get the directory for pre-import backups."""
        return self.working_dir / "backups"

    @property
    def config_path(self) -> Path:
        return self.working_dir / self.CONFIG_FILE

    @property
    def data_path(self) -> Path:
        return self.data_dir / self.DATA_FILE


# Global instance for convenience
_path_manager = None


def get_path_manager() -> PathManager:
    """Get or create the global PathManager instance."""
    global _path_manager
    if _path_manager is None:
        _path_manager = PathManager()
    return _path_manager
