"""Conflict resolution for imports."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from ..core.models import ConflictResolution, DataConflict, EntityType


@dataclass
class ResolutionOutcome:
    """Per-category result of settling a set of conflicts."""

    updates: Dict[EntityType, List[Any]] = field(default_factory=dict)
    kept_local: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)

    def updates_of(self, entity_type: EntityType) -> List[Any]:
        return self.updates.get(entity_type, [])


class ConflictResolver:
    """Settles each import conflict independently with one strategy."""

    def __init__(self, default: Union[str, ConflictResolution] = ConflictResolution.KEEP_NEWER,
                 logger: Optional[logging.Logger] = None):
        self.default = ConflictResolution.parse(default)
        self.logger = logger or logging.getLogger(__name__)

    def resolve(self, conflicts: Sequence[DataConflict],
                resolutions: Optional[Mapping[str, Any]] = None) -> ResolutionOutcome:
        """
        Resolve conflicts.

        Args:
            conflicts: Conflicts as produced by the analyzer
            resolutions: Strategy per conflict id; missing ids use the default

        Returns:
            ResolutionOutcome listing the entities to write and the ids that
            stay local or were skipped.
        """
        resolutions = resolutions or {}
        outcome = ResolutionOutcome()

        for conflict in conflicts:
            strategy = ConflictResolution.parse(resolutions.get(conflict.id, self.default))
            winner = self.winner(conflict, strategy)
            self.logger.debug(f"Conflict on {conflict.describe()} ({conflict.id}): {strategy.value} -> {winner}")

            if winner == "imported":
                outcome.updates.setdefault(conflict.type, []).append(conflict.imported)
            elif winner == "local":
                outcome.kept_local.append(conflict.id)
            else:
                outcome.skipped.append(conflict.id)

        return outcome

    def winner(self, conflict: DataConflict, strategy: ConflictResolution) -> str:
        """Return 'local', 'imported' or 'none' for one conflict."""
        if strategy is ConflictResolution.SKIP:
            return "none"
        if strategy is ConflictResolution.KEEP_LOCAL:
            return "local"
        if strategy is ConflictResolution.KEEP_IMPORTED:
            return "imported"
        return self._compare_times(self._parse_time(conflict.local), self._parse_time(conflict.imported))

    def _parse_time(self, entity: Any) -> Optional[int]:
        """Modification time of an entity: updated_at, else created_at."""
        for attr in ("updated_at", "created_at"):
            value = getattr(entity, attr, None)
            if value:
                return int(value)
        return None

    def _compare_times(self, local_time: Optional[int],
                       imported_time: Optional[int]) -> str:
        """Later timestamp wins; a tie keeps local; no timestamps at all lets the import win."""
        if local_time is not None and imported_time is not None:
            return "imported" if imported_time > local_time else "local"
        if local_time is not None:
            return "local"
        return "imported"


def resolve_conflicts(conflicts: Sequence[DataConflict],
                      resolutions: Optional[Mapping[str, Any]] = None,
                      default: Union[str, ConflictResolution] = ConflictResolution.KEEP_NEWER,
                      logger: Optional[logging.Logger] = None) -> ResolutionOutcome:
    return ConflictResolver(default=default, logger=logger).resolve(conflicts, resolutions)
