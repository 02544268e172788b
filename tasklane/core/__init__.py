"""
Core module for tasklane - contains domain models, configuration, and exceptions.
"""

from .models import (
    Task,
    Subtask,
    TaskList,
    StoredSummary,
    EchoReport,
    ExportedData,
    LocalSnapshot,
    ImportOptions,
    ImportResult,
    DataConflict,
    ConflictResolution,
    DateBucket,
    EntityType,
    TasklaneConfig,
    task_sort_key,
)

from .exceptions import (
    TasklaneError,
    ConfigurationError,
    InvalidFormatError,
    ValidationError,
    OrderOverflowError,
    StaleReferenceError,
    StorageFailureError,
    ImportStateError,
)

__all__ = [
    # Models
    'Task',
    'Subtask',
    'TaskList',
    'StoredSummary',
    'EchoReport',
    'ExportedData',
    'LocalSnapshot',
    'ImportOptions',
    'ImportResult',
    'DataConflict',
    'ConflictResolution',
    'DateBucket',
    'EntityType',
    'TasklaneConfig',
    'task_sort_key',
    # Exceptions
    'TasklaneError',
    'ConfigurationError',
    'InvalidFormatError',
    'ValidationError',
    'OrderOverflowError',
    'StaleReferenceError',
    'StorageFailureError',
    'ImportStateError',
]
