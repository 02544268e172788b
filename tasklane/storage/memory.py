"""In-memory storage backend."""

import copy
import logging
from typing import Any, Dict, Iterable, List, Optional

from ..core.models import (
    EchoReport,
    LocalSnapshot,
    StoredSummary,
    Task,
    TaskList,
)
from .base import CommitBatch, StorageBackend, apply_batch, patch_task


class InMemoryStorage(StorageBackend):
    """Keeps the dataset in process memory. Reads hand out copies."""

    def __init__(self,
                 tasks: Optional[Iterable[Task]] = None,
                 lists: Optional[Iterable[TaskList]] = None,
                 summaries: Optional[Iterable[StoredSummary]] = None,
                 echo_reports: Optional[Iterable[EchoReport]] = None,
                 settings: Optional[Dict[str, Any]] = None,
                 logger: Optional[logging.Logger] = None):
        self._data = LocalSnapshot(
            tasks=list(tasks or []),
            lists=list(lists or []),
            summaries=list(summaries or []),
            echo_reports=list(echo_reports or []),
            settings=dict(settings or {}),
        )
        self.logger = logger or logging.getLogger(__name__)

    def fetch_tasks(self) -> List[Task]:
        return copy.deepcopy(self._data.tasks)

    def fetch_lists(self) -> List[TaskList]:
        return copy.deepcopy(self._data.lists)

    def fetch_summaries(self) -> List[StoredSummary]:
        return copy.deepcopy(self._data.summaries)

    def fetch_echo_reports(self) -> List[EchoReport]:
        return copy.deepcopy(self._data.echo_reports)

    def fetch_settings(self) -> Dict[str, Any]:
        return copy.deepcopy(self._data.settings)

    def update_task(self, task_id: str, patch: Dict[str, Any]) -> Task:
        updated = patch_task(self._data.tasks, task_id, patch)
        self.logger.debug("Patched task %s: %s", task_id, sorted(patch))
        return copy.deepcopy(updated)

    def commit(self, batch: CommitBatch) -> None:
        # Build the new dataset first so a failure leaves the old one intact.
        self._data = apply_batch(copy.deepcopy(self._data), copy.deepcopy(batch))
        self.logger.debug("Committed batch touching %s", sorted(t.value for t in batch.upserts))
