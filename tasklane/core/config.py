"""
Configuration management for tasklane.
"""

import os
from pathlib import Path
from typing import Optional

from .exceptions import ConfigurationError
from .models import ConflictResolution, TasklaneConfig
from .paths import get_path_manager


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    return get_path_manager().config_path


def load_config(config_path: Optional[str] = None) -> TasklaneConfig:
    """
    Load configuration from file or return defaults.

    Args:
        config_path: Optional path to config file. Uses default if not provided.

    Returns:
        TasklaneConfig object

    Raises:
        ConfigurationError: if the file holds values the engine cannot use
    """
    if config_path is None:
        config_path = str(get_default_config_path())

    try:
        config = TasklaneConfig.load_from_file(config_path)
    except (TypeError, ValueError, AttributeError) as exc:
        raise ConfigurationError(f"Invalid configuration in {config_path}: {exc}") from exc

    try:
        ConflictResolution.parse(config.default_conflict_resolution)
    except ValueError as exc:
        raise ConfigurationError(
            f"Unknown conflict resolution '{config.default_conflict_resolution}' in {config_path}"
        ) from exc

    if config.order_step <= 0:
        raise ConfigurationError(f"ordering.step must be positive (got {config.order_step})")
    if config.order_jitter <= 0:
        raise ConfigurationError(f"ordering.jitter must be positive (got {config.order_jitter})")

    return config


def save_config(config: TasklaneConfig, config_path: Optional[str] = None):
    """
    Save configuration to file.

    Args:
        config: TasklaneConfig object to save
        config_path: Optional path to save to. Uses default if not provided.
    """
    if config_path is None:
        manager = get_path_manager()
        manager.ensure_directories()
        config_path = str(manager.config_path)

    os.makedirs(os.path.dirname(os.path.abspath(config_path)), exist_ok=True)
    config.save_to_file(config_path)


def get_backup_dir(config: Optional[TasklaneConfig] = None) -> Path:
    """Get the backup directory, creating it if needed."""
    if config is not None and config.backup_dir:
        backup_dir = Path(config.backup_dir)
    else:
        backup_dir = get_path_manager().backup_dir
    backup_dir.mkdir(parents=True, exist_ok=True)
    return backup_dir
