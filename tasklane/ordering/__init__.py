"""Fractional ordering, date buckets and drag-and-drop reorders."""

from .assigner import (
    DEFAULT_ORDER_JITTER,
    DEFAULT_ORDER_STEP,
    OrderAssigner,
    array_move,
    compute_new_order,
    order_for_new_task,
)
from .buckets import (
    NO_CHANGE,
    BucketReclassifier,
    bucket_for_due_date,
    bucket_for_task,
    reclassify_bucket,
)
from .service import DragDropEvent, PendingCommitBuffer, ReorderService, TaskPatch, build_view

__all__ = [
    'DEFAULT_ORDER_JITTER',
    'DEFAULT_ORDER_STEP',
    'OrderAssigner',
    'array_move',
    'compute_new_order',
    'order_for_new_task',
    'NO_CHANGE',
    'BucketReclassifier',
    'bucket_for_due_date',
    'bucket_for_task',
    'reclassify_bucket',
    'DragDropEvent',
    'PendingCommitBuffer',
    'ReorderService',
    'TaskPatch',
    'build_view',
]
