"""Storage backends for tasklane."""

from .base import CommitBatch, StorageBackend, apply_batch, patch_task, upsert_by_id
from .memory import InMemoryStorage
from .json_store import JsonFileStorage

__all__ = [
    'CommitBatch',
    'StorageBackend',
    'apply_batch',
    'patch_task',
    'upsert_by_id',
    'InMemoryStorage',
    'JsonFileStorage',
]
