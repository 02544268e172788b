"""Detection of conflicts between the live dataset and an imported backup."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..core.models import (
    DataConflict,
    EntityType,
    ExportedData,
    ImportOptions,
    LocalSnapshot,
)

# Category order used for every per-category walk.
CATEGORY_ORDER = (
    EntityType.LIST,
    EntityType.TASK,
    EntityType.SUMMARY,
    EntityType.ECHO,
)

# Derived, view-only keys that never count as a content difference.
VOLATILE_FIELDS = frozenset({"groupCategory"})


def comparable_fields(entity: Any) -> Dict[str, Any]:
    """Wire form of an entity reduced to the fields that matter for conflicts."""
    data = {key: value for key, value in entity.to_dict().items() if key not in VOLATILE_FIELDS}
    if "tags" in data:
        data["tags"] = sorted(set(data["tags"] or []))
    return data


def _dedupe(entities: List[Any], entity_type: EntityType,
            logger: logging.Logger) -> List[Any]:
    seen = set()
    unique = []
    for entity in entities:
        if entity.id in seen:
            logger.warning(f"Duplicate {entity_type.value} id {entity.id} in import; keeping first")
            continue
        seen.add(entity.id)
        unique.append(entity)
    return unique


@dataclass
class ImportAnalysis:
    """What an import would do, before any conflict is resolved."""

    conflicts: List[DataConflict] = field(default_factory=list)
    insertions: Dict[EntityType, List[Any]] = field(default_factory=dict)
    unchanged: Dict[EntityType, List[str]] = field(default_factory=dict)
    replace_all: bool = False

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)

    def conflicts_of(self, entity_type: EntityType) -> List[DataConflict]:
        return [conflict for conflict in self.conflicts if conflict.type is entity_type]

    def counts(self) -> Dict[str, Dict[str, int]]:
        return {
            entity_type.value: {
                "conflicts": len(self.conflicts_of(entity_type)),
                "insertions": len(self.insertions.get(entity_type, [])),
                "unchanged": len(self.unchanged.get(entity_type, [])),
            }
            for entity_type in CATEGORY_ORDER
        }


def analyze_import(local: LocalSnapshot, imported: ExportedData,
                   options: Optional[ImportOptions] = None,
                   logger: Optional[logging.Logger] = None) -> ImportAnalysis:
    """
    Compare an imported payload against the live dataset.

    Args:
        local: Snapshot of the live dataset
        imported: Parsed import envelope
        options: Category filters and replace-all flag

    Returns:
        ImportAnalysis with conflicts in category order (lists, tasks,
        summaries, echo) and, inside a category, in imported order.
    """
    options = options or ImportOptions()
    logger = logger or logging.getLogger(__name__)
    analysis = ImportAnalysis(replace_all=options.replace_all_data)

    for entity_type in CATEGORY_ORDER:
        if not options.includes(entity_type):
            continue

        incoming = _dedupe(imported.entities(entity_type), entity_type, logger)
        insertions: List[Any] = []
        unchanged: List[str] = []

        if options.replace_all_data:
            insertions = list(incoming)
        else:
            existing = {entity.id: entity for entity in local.entities(entity_type)}
            for entity in incoming:
                current = existing.get(entity.id)
                if current is None:
                    insertions.append(entity)
                elif comparable_fields(current) == comparable_fields(entity):
                    unchanged.append(entity.id)
                else:
                    analysis.conflicts.append(
                        DataConflict(id=entity.id, type=entity_type, local=current, imported=entity)
                    )

        analysis.insertions[entity_type] = insertions
        analysis.unchanged[entity_type] = unchanged
        logger.debug(
            f"{entity_type.value}: {len(insertions)} new, {len(unchanged)} unchanged, "
            f"{len(analysis.conflicts_of(entity_type))} conflicting"
        )

    return analysis


class ConflictAnalyzer:
    """Analyzes imports against whatever the storage backend currently holds."""

    def __init__(self, storage, logger: Optional[logging.Logger] = None):
        self.storage = storage
        self.logger = logger or logging.getLogger(__name__)

    def analyze_import(self, imported: ExportedData,
                       options: Optional[ImportOptions] = None) -> ImportAnalysis:
        return analyze_import(self.storage.snapshot(), imported, options, logger=self.logger)

    def analyze(self, imported: ExportedData,
                options: Optional[ImportOptions] = None) -> List[DataConflict]:
        """Only the conflicts an import of ``imported`` would raise."""
        return self.analyze_import(imported, options).conflicts
