"""Import/export reconciliation."""

from .analyzer import ConflictAnalyzer, ImportAnalysis, analyze_import, comparable_fields
from .coordinator import ImportExportCoordinator, ImportOutcome, ImportState
from .resolver import ConflictResolver, ResolutionOutcome, resolve_conflicts

__all__ = [
    'ConflictAnalyzer',
    'ImportAnalysis',
    'analyze_import',
    'comparable_fields',
    'ImportExportCoordinator',
    'ImportOutcome',
    'ImportState',
    'ConflictResolver',
    'ResolutionOutcome',
    'resolve_conflicts',
]
