"""
Command implementations for tasklane.
"""

from .export import ExportCommand
from .importing import AnalyzeCommand, ImportCommand
from .list_tasks import ListCommand
from .reorder import ReorderCommand

__all__ = [
    'ExportCommand',
    'AnalyzeCommand',
    'ImportCommand',
    'ListCommand',
    'ReorderCommand',
]
