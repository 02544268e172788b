"""Storage backend interface consumed by the engine."""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Set

from ..core.exceptions import StaleReferenceError
from ..core.models import (
    EchoReport,
    EntityType,
    LocalSnapshot,
    StoredSummary,
    Task,
    TaskList,
)

# Task attributes a single-task patch may touch.
PATCHABLE_TASK_FIELDS = frozenset({
    "title", "completed", "completed_at", "due_date", "priority", "order",
    "list_id", "list_name", "content", "tags", "updated_at",
})


@dataclass
class CommitBatch:
    """Everything one import writes, applied as a single transaction."""

    clear: Set[EntityType] = field(default_factory=set)
    upserts: Dict[EntityType, List[Any]] = field(default_factory=dict)
    settings: Optional[Dict[str, Any]] = None

    def add(self, entity_type: EntityType, entity: Any) -> None:
        self.upserts.setdefault(entity_type, []).append(entity)

    def entities(self, entity_type: EntityType) -> List[Any]:
        return self.upserts.get(entity_type, [])

    @property
    def is_empty(self) -> bool:
        return not self.clear and not any(self.upserts.values()) and self.settings is None


def upsert_by_id(existing: List[Any], incoming: List[Any]) -> List[Any]:
    """Replace entities by id in place; append the ones not yet present."""
    merged = list(existing)
    positions = {entity.id: index for index, entity in enumerate(merged)}
    for entity in incoming:
        if entity.id in positions:
            merged[positions[entity.id]] = entity
        else:
            positions[entity.id] = len(merged)
            merged.append(entity)
    return merged


def apply_batch(snapshot: LocalSnapshot, batch: CommitBatch) -> LocalSnapshot:
    """Return the dataset that results from committing ``batch`` onto ``snapshot``."""

    def _collection(entity_type: EntityType, current: List[Any]) -> List[Any]:
        base = [] if entity_type in batch.clear else current
        return upsert_by_id(base, batch.entities(entity_type))

    settings = copy.deepcopy(snapshot.settings)
    if batch.settings is not None:
        settings.update(copy.deepcopy(batch.settings))

    return LocalSnapshot(
        tasks=_collection(EntityType.TASK, snapshot.tasks),
        lists=_collection(EntityType.LIST, snapshot.lists),
        summaries=_collection(EntityType.SUMMARY, snapshot.summaries),
        echo_reports=_collection(EntityType.ECHO, snapshot.echo_reports),
        settings=settings,
    )


def patch_task(tasks: List[Task], task_id: str, patch: Dict[str, Any]) -> Task:
    """
    Apply a single-task patch to a task collection in place.

    Raises:
        StaleReferenceError: if no task has ``task_id``
        ValueError: if the patch touches a field that cannot be patched
    """
    unknown = set(patch) - PATCHABLE_TASK_FIELDS
    if unknown:
        raise ValueError(f"Cannot patch task fields: {sorted(unknown)}")

    for index, task in enumerate(tasks):
        if task.id == task_id:
            updated = replace(task, **patch)
            tasks[index] = updated
            return updated
    raise StaleReferenceError(task_id)


class StorageBackend(ABC):
    """CRUD snapshot reads, a single-task patch, and a transactional batch commit."""

    @abstractmethod
    def fetch_tasks(self) -> List[Task]:
        ...

    @abstractmethod
    def fetch_lists(self) -> List[TaskList]:
        ...

    @abstractmethod
    def fetch_summaries(self) -> List[StoredSummary]:
        ...

    @abstractmethod
    def fetch_echo_reports(self) -> List[EchoReport]:
        ...

    @abstractmethod
    def fetch_settings(self) -> Dict[str, Any]:
        ...

    @abstractmethod
    def update_task(self, task_id: str, patch: Dict[str, Any]) -> Task:
        """Persist a patch to one task and return the stored result."""

    @abstractmethod
    def commit(self, batch: CommitBatch) -> None:
        """Apply a batch atomically; raise StorageFailureError if nothing was written."""

    def snapshot(self) -> LocalSnapshot:
        return LocalSnapshot(
            tasks=self.fetch_tasks(),
            lists=self.fetch_lists(),
            summaries=self.fetch_summaries(),
            echo_reports=self.fetch_echo_reports(),
            settings=self.fetch_settings(),
        )
