"""
Exception classes for tasklane.
"""


class TasklaneError(Exception):
    """Base exception for all tasklane errors."""
    pass


class ConfigurationError(TasklaneError):
    """Raised when configuration is invalid or missing."""
    pass


class InvalidFormatError(TasklaneError):
    """Raised when an import payload is missing required structural fields."""
    pass


class ValidationError(TasklaneError):
    """Raised when a single entity references something that cannot be resolved."""

    def __init__(self, message: str, entity_type: str = "", entity_id: str = ""):
        super().__init__(message)
        self.entity_type = entity_type
        self.entity_id = entity_id


class OrderOverflowError(TasklaneError):
    """Raised when fractional ordering runs out of floating-point precision."""
    pass


class StaleReferenceError(TasklaneError):
    """Raised when a reorder refers to a task that is no longer present."""

    def __init__(self, task_id: str):
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


class StorageFailureError(TasklaneError):
    """Raised when the storage backend rejects a write."""
    pass


class ImportStateError(TasklaneError):
    """Raised when the import pipeline is driven out of order."""
    pass
