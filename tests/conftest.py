#!/usr/bin/env python3
"""
Global pytest configuration and fixtures.

This module provides:
- An isolated TASKLANE_HOME for every test
- Fixed clocks and a fixed "today"
- Ready-made storage backends and configuration
"""

import os
import shutil
import sys
import tempfile
from typing import Generator

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from tasklane.core.models import TasklaneConfig
from tasklane.storage import InMemoryStorage, JsonFileStorage
from tests.factories import INBOX, TODAY, WORK, ms


@pytest.fixture
def temp_dir() -> Generator[str, None, None]:
    """Create a temporary directory for test isolation."""
    temp_path = tempfile.mkdtemp(prefix="tasklane_test_")
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture(autouse=True)
def isolated_home(temp_dir, monkeypatch) -> str:
    """Point TASKLANE_HOME at a throwaway directory."""
    home = os.path.join(temp_dir, "home")
    monkeypatch.setenv("TASKLANE_HOME", home)
    return home


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def clock():
    """Clock frozen at noon on the fixed test day."""
    return lambda: ms(2024, 6, 15, 12)


@pytest.fixture
def config(temp_dir) -> TasklaneConfig:
    return TasklaneConfig(
        data_path=os.path.join(temp_dir, "data", "tasks.json"),
        backup_dir=os.path.join(temp_dir, "backups"),
        backup_before_import=False,
    )


@pytest.fixture
def memory_storage() -> InMemoryStorage:
    return InMemoryStorage(lists=[INBOX, WORK])


@pytest.fixture
def json_storage(config) -> JsonFileStorage:
    return JsonFileStorage(config.data_path)
