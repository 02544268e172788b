"""
Utility functions for tasklane.
"""

from .io import safe_read_json, safe_write_json, file_lock
from .date import now_ms, ms_to_datetime, datetime_to_ms, format_timestamp
from .prompts import (
    is_interactive, format_conflict_for_display,
    prompt_for_resolution, collect_resolutions
)

__all__ = [
    # I/O utilities
    'safe_read_json',
    'safe_write_json',
    'file_lock',
    # Date utilities
    'now_ms',
    'ms_to_datetime',
    'datetime_to_ms',
    'format_timestamp',
    # Prompt utilities
    'is_interactive',
    'format_conflict_for_display',
    'prompt_for_resolution',
    'collect_resolutions',
]
