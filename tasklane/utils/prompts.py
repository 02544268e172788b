"""Interactive prompting utilities for the tasklane CLI."""

import builtins
import sys
from typing import Any, Dict, List, Optional

from ..core.models import ConflictResolution, DataConflict
from .date import format_timestamp

_CHOICES = {
    "l": ConflictResolution.KEEP_LOCAL,
    "i": ConflictResolution.KEEP_IMPORTED,
    "n": ConflictResolution.KEEP_NEWER,
    "s": ConflictResolution.SKIP,
}


def is_interactive() -> bool:
    """Return True when prompts can safely read from stdin."""
    # If input() has been monkeypatched (e.g. during tests), assume interactivity.
    if input is not builtins.input:  # type: ignore[name-defined]
        return True

    stdin = getattr(sys, "stdin", None)
    if stdin is None:
        return False

    try:
        return stdin.isatty()
    except (AttributeError, ValueError, OSError):
        return False


def _describe_side(label: str, entity: Any) -> str:
    title = getattr(entity, "title", None) or getattr(entity, "name", None) or entity.id
    updated = getattr(entity, "updated_at", None) or getattr(entity, "created_at", None)
    return f"     {label}: {title} | updated {format_timestamp(updated) if updated else 'unknown'}"


def _changed_fields(conflict: DataConflict) -> List[str]:
    from ..merge.analyzer import comparable_fields

    local = comparable_fields(conflict.local)
    imported = comparable_fields(conflict.imported)
    return sorted(key for key in set(local) | set(imported) if local.get(key) != imported.get(key))


def format_conflict_for_display(conflict: DataConflict, index: int) -> str:
    """
    Format a conflict for display in interactive prompts.

    Args:
        conflict: Conflict to format
        index: Display index (1-based)

    Returns:
        Formatted conflict string
    """
    lines = [
        f"  • #{index} {conflict.describe()} ({conflict.id})",
        _describe_side("local   ", conflict.local),
        _describe_side("imported", conflict.imported),
    ]
    changed = _changed_fields(conflict)
    if changed:
        lines.append(f"     differs in: {', '.join(changed)}")
    return "\n".join(lines)


def prompt_for_resolution(conflict: DataConflict, index: int,
                          default: ConflictResolution = ConflictResolution.KEEP_NEWER
                          ) -> Optional[ConflictResolution]:
    """
    Ask which side of one conflict should win.

    Returns:
        The chosen strategy, or None to fall back to the default.
    """
    if not is_interactive():
        return None

    print(format_conflict_for_display(conflict, index))
    while True:
        response = input(
            f"   [l]ocal, [i]mported, [n]ewer, [s]kip (Enter = {default.value}): "
        ).strip().lower()
        if not response:
            return None
        if response[0] in _CHOICES:
            return _CHOICES[response[0]]
        print("   Try again using one of the options above.")


def collect_resolutions(conflicts: List[DataConflict],
                        default: ConflictResolution = ConflictResolution.KEEP_NEWER
                        ) -> Dict[str, ConflictResolution]:
    """Prompt for every conflict; unanswered ones are left to the default."""
    resolutions: Dict[str, ConflictResolution] = {}
    if not is_interactive():
        print("   ℹ️ Non-interactive environment detected; using the default strategy.")
        return resolutions

    print(f"\n⚠️ {len(conflicts)} conflict(s) need a decision:")
    for index, conflict in enumerate(conflicts, 1):
        choice = prompt_for_resolution(conflict, index, default)
        if choice is not None:
            resolutions[conflict.id] = choice
    return resolutions
