"""Drag-and-drop reorder handling with optimistic, rollback-able writes."""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..core.exceptions import StaleReferenceError, StorageFailureError
from ..core.models import BUCKET_ORDER, DateBucket, Task, task_sort_key
from ..storage.base import StorageBackend
from ..utils.date import now_ms
from .assigner import OrderAssigner, array_move
from .buckets import NO_CHANGE, BucketReclassifier, bucket_for_task


@dataclass
class DragDropEvent:
    """The slice of a UI drag-end event the engine needs."""

    active_id: str
    over_id: str
    original_task: Task
    target_bucket: Optional[DateBucket] = None


@dataclass
class TaskPatch:
    """Changes computed for the single task a reorder touches."""

    task_id: str
    order: float
    due_date: Any = NO_CHANGE

    @property
    def changes_due_date(self) -> bool:
        return self.due_date is not NO_CHANGE

    def as_fields(self) -> Dict[str, Any]:
        fields = {"order": self.order}
        if self.changes_due_date:
            fields["due_date"] = self.due_date
        return fields


@dataclass
class _PendingEntry:
    previous: Task
    patch: TaskPatch


@dataclass
class PendingCommitBuffer:
    """
    Optimistically applied patches awaiting storage confirmation.

    ``stage`` applies a patch to the local view right away; ``confirm`` drops
    the entry once storage accepted it; ``rollback`` restores the task as it
    was before staging.
    """

    tasks: Dict[str, Task] = field(default_factory=dict)
    _pending: Dict[str, _PendingEntry] = field(default_factory=dict)

    def load(self, tasks: Sequence[Task]) -> None:
        self.tasks = {task.id: task for task in tasks}
        self._pending.clear()

    def stage(self, patch: TaskPatch) -> Task:
        current = self.tasks.get(patch.task_id)
        if current is None:
            raise StaleReferenceError(patch.task_id)
        if patch.task_id not in self._pending:
            self._pending[patch.task_id] = _PendingEntry(previous=copy.deepcopy(current), patch=patch)
        else:
            self._pending[patch.task_id].patch = patch
        updated = replace(current, **patch.as_fields())
        self.tasks[patch.task_id] = updated
        return updated

    def confirm(self, task_id: str, stored: Optional[Task] = None) -> None:
        self._pending.pop(task_id, None)
        if stored is not None:
            self.tasks[task_id] = stored

    def rollback(self, task_id: str) -> None:
        entry = self._pending.pop(task_id, None)
        if entry is not None:
            self.tasks[task_id] = entry.previous

    @property
    def pending_ids(self) -> List[str]:
        return list(self._pending)

    def ordered(self) -> List[Task]:
        return sorted(self.tasks.values(), key=task_sort_key)


def build_view(tasks: Sequence[Task], view: str = "all",
               now: Optional[datetime] = None) -> List[str]:
    """
    Visible task ids for a view, in display order.

    ``all`` groups active tasks by date bucket; ``list-<name>`` and
    ``tag-<name>`` show active tasks of one list or tag ordered by ``order``.
    """
    active = [task for task in tasks if not task.completed and not task.is_trashed]

    if view == "all":
        grouped: Dict[DateBucket, List[Task]] = {bucket: [] for bucket in BUCKET_ORDER}
        for task in active:
            grouped[bucket_for_task(task, now)].append(task)
        return [
            task.id
            for bucket in BUCKET_ORDER
            for task in sorted(grouped[bucket], key=task_sort_key)
        ]

    if view.startswith("list-"):
        name = view[len("list-"):]
        selected = [task for task in active if task.list_name == name]
    elif view.startswith("tag-"):
        tag = view[len("tag-"):]
        selected = [task for task in active if tag in task.tags]
    else:
        raise ValueError(f"Unknown view: {view}")

    return [task.id for task in sorted(selected, key=task_sort_key)]


class ReorderService:
    """Turns drag-end events into single-task patches and writes them through storage."""

    def __init__(self, storage: StorageBackend,
                 assigner: Optional[OrderAssigner] = None,
                 reclassifier: Optional[BucketReclassifier] = None,
                 clock: Optional[Callable[[], int]] = None,
                 logger: Optional[logging.Logger] = None):
        self.storage = storage
        self.assigner = assigner or OrderAssigner()
        self.reclassifier = reclassifier or BucketReclassifier()
        self.clock = clock or now_ms
        self.logger = logger or logging.getLogger(__name__)
        self.buffer = PendingCommitBuffer()
        self.buffer.load(storage.fetch_tasks())

    def refresh(self) -> None:
        """Reload the local view from storage, dropping nothing that is pending."""
        if self.buffer.pending_ids:
            self.logger.debug("Refresh skipped: %d patch(es) pending", len(self.buffer.pending_ids))
            return
        self.buffer.load(self.storage.fetch_tasks())

    def compute_patch(self, event: DragDropEvent,
                      visible_ids: Sequence[str]) -> Optional[TaskPatch]:
        """
        Compute the patch for a drag-end event without writing anything.

        Args:
            event: The drag-end event
            visible_ids: Ids currently shown, before the drag is applied

        Returns:
            The patch, or None when the event is a no-op (dropped on itself,
            or it refers to tasks that no longer exist).
        """
        if event.active_id == event.over_id:
            return None

        tasks = self.buffer.tasks
        if event.active_id not in tasks or event.over_id not in tasks:
            self.logger.debug("Stale drag %s -> %s ignored", event.active_id, event.over_id)
            return None

        visible = list(visible_ids)
        try:
            from_index = visible.index(event.active_id)
            to_index = visible.index(event.over_id)
        except ValueError:
            self.logger.debug("Drag %s -> %s not in the visible sequence", event.active_id, event.over_id)
            return None

        moved_ids = array_move(visible, from_index, to_index)
        orders = {task_id: tasks[task_id].order for task_id in moved_ids if task_id in tasks}
        new_order = self.assigner.compute(moved_ids, event.active_id, orders)
        if new_order is None:
            return None

        patch = TaskPatch(task_id=event.active_id, order=new_order)
        if self.reclassifier.crosses(event.original_task, event.target_bucket):
            patch.due_date = self.reclassifier.reclassify(
                event.original_task.due_date, event.target_bucket
            )
        return patch

    def handle_drag_end(self, event: DragDropEvent,
                        visible_ids: Sequence[str]) -> Optional[Task]:
        """
        Apply a drag-end event: stage the patch locally, then persist it.

        Returns:
            The stored task, or None for a no-op event.

        Raises:
            StorageFailureError: if storage rejected the write; the local
                view is rolled back before raising.
        """
        patch = self.compute_patch(event, visible_ids)
        if patch is None:
            return None

        try:
            self.buffer.stage(patch)
        except StaleReferenceError:
            self.logger.debug("Task %s vanished before staging", patch.task_id)
            return None

        fields = patch.as_fields()
        fields["updated_at"] = self.clock()
        try:
            stored = self.storage.update_task(patch.task_id, fields)
        except StaleReferenceError:
            self.logger.debug("Task %s deleted while reordering; dropping patch", patch.task_id)
            self.buffer.rollback(patch.task_id)
            self.buffer.tasks.pop(patch.task_id, None)
            return None
        except StorageFailureError:
            self.logger.warning("Reorder of %s rejected by storage; rolling back", patch.task_id)
            self.buffer.rollback(patch.task_id)
            raise

        self.buffer.confirm(patch.task_id, stored)
        self.logger.debug("Moved %s to order %r", patch.task_id, patch.order)
        return stored
