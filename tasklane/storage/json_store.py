"""JSON-file storage backend with atomic, lock-guarded writes."""

import logging
import os
from typing import Any, Dict, List, Optional

from ..core.exceptions import InvalidFormatError, StorageFailureError
from ..core.models import (
    EchoReport,
    ExportedData,
    LocalSnapshot,
    StoredSummary,
    Task,
    TaskList,
)
from ..utils.io import safe_read_json, safe_write_json
from .base import CommitBatch, StorageBackend, apply_batch, patch_task


class JsonFileStorage(StorageBackend):
    """
    Stores the whole dataset in one JSON document.

    The document uses the export envelope layout, so a data file is itself a
    valid backup. Every write replaces the file atomically: a commit is either
    fully persisted or not at all.
    """

    def __init__(self, path: str, platform: str = "cli",
                 logger: Optional[logging.Logger] = None):
        self.path = os.path.abspath(os.path.expanduser(path))
        self.platform = platform
        self.logger = logger or logging.getLogger(__name__)

    def _load(self) -> LocalSnapshot:
        try:
            raw = safe_read_json(self.path, default={}, strict=True)
        except (ValueError, OSError, TimeoutError) as exc:
            # Unreadable is not the same as empty.
            raise StorageFailureError(f"Data file {self.path} could not be read: {exc}") from exc
        if not raw:
            return LocalSnapshot()
        try:
            envelope = ExportedData.from_dict(raw)
        except InvalidFormatError as exc:
            raise StorageFailureError(f"Data file {self.path} is corrupt: {exc}") from exc
        return LocalSnapshot(
            tasks=envelope.tasks,
            lists=envelope.lists,
            summaries=envelope.summaries,
            echo_reports=envelope.echo_reports,
            settings=envelope.settings,
        )

    def _save(self, snapshot: LocalSnapshot) -> None:
        envelope = ExportedData(
            platform=self.platform,
            tasks=snapshot.tasks,
            lists=snapshot.lists,
            summaries=snapshot.summaries,
            echo_reports=snapshot.echo_reports,
            settings=snapshot.settings,
        )
        if not safe_write_json(self.path, envelope.to_dict()):
            raise StorageFailureError(f"Could not write {self.path}")

    def fetch_tasks(self) -> List[Task]:
        return self._load().tasks

    def fetch_lists(self) -> List[TaskList]:
        return self._load().lists

    def fetch_summaries(self) -> List[StoredSummary]:
        return self._load().summaries

    def fetch_echo_reports(self) -> List[EchoReport]:
        return self._load().echo_reports

    def fetch_settings(self) -> Dict[str, Any]:
        return self._load().settings

    def snapshot(self) -> LocalSnapshot:
        return self._load()

    def update_task(self, task_id: str, patch: Dict[str, Any]) -> Task:
        snapshot = self._load()
        updated = patch_task(snapshot.tasks, task_id, patch)
        self._save(snapshot)
        self.logger.debug("Patched task %s in %s", task_id, self.path)
        return updated

    def commit(self, batch: CommitBatch) -> None:
        self._save(apply_batch(self._load(), batch))
        self.logger.info("Committed import batch to %s", self.path)
