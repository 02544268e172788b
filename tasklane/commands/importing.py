"""Import and analyze commands - merge a backup into the live dataset."""

import logging
import os
from typing import Iterable, Optional

from ..core.exceptions import TasklaneError
from ..core.models import ConflictResolution, ImportOptions, TasklaneConfig
from ..merge.analyzer import CATEGORY_ORDER
from ..merge.coordinator import ImportExportCoordinator
from ..storage.json_store import JsonFileStorage
from ..utils.prompts import collect_resolutions, format_conflict_for_display, is_interactive

# CLI category names accepted by --exclude.
CATEGORY_FLAGS = ("tasks", "lists", "summaries", "settings", "echo")


def build_options(strategy: Optional[str] = None,
                  replace_all: bool = False,
                  exclude: Optional[Iterable[str]] = None,
                  default: ConflictResolution = ConflictResolution.KEEP_NEWER) -> ImportOptions:
    excluded = set(exclude or [])
    unknown = excluded - set(CATEGORY_FLAGS)
    if unknown:
        raise ValueError(f"Unknown categories: {', '.join(sorted(unknown))}")
    return ImportOptions(
        include_tasks="tasks" not in excluded,
        include_lists="lists" not in excluded,
        include_summaries="summaries" not in excluded,
        include_settings="settings" not in excluded,
        include_echo="echo" not in excluded,
        conflict_resolution=strategy or default,
        replace_all_data=replace_all,
    )


class _ImportCommandBase:
    def __init__(self, config: TasklaneConfig, verbose: bool = False):
        self.config = config
        self.verbose = verbose
        self.logger = logging.getLogger(__name__)
        if verbose:
            self.logger.setLevel(logging.DEBUG)

    def _coordinator(self) -> ImportExportCoordinator:
        storage = JsonFileStorage(self.config.data_path, platform=self.config.platform,
                                  logger=self.logger)
        return ImportExportCoordinator(storage, self.config, logger=self.logger)

    def _read(self, path: str) -> Optional[bytes]:
        path = os.path.abspath(os.path.expanduser(path))
        if not os.path.exists(path):
            print(f"❌ Import file not found: {path}")
            return None
        with open(path, "rb") as handle:
            return handle.read()


class AnalyzeCommand(_ImportCommandBase):
    """Command for previewing what an import would change."""

    def run(self, path: str, replace_all: bool = False,
            exclude: Optional[Iterable[str]] = None) -> bool:
        try:
            raw = self._read(path)
            if raw is None:
                return False

            options = build_options(replace_all=replace_all, exclude=exclude,
                                    default=self.config.conflict_resolution)
            analysis = self._coordinator().analyze(raw, options)

            print(f"\n🔍 Import preview for {os.path.basename(path)}")
            print("=" * 50)
            counts = analysis.counts()
            for entity_type in CATEGORY_ORDER:
                if not options.includes(entity_type):
                    continue
                row = counts[entity_type.value]
                print(f"  {entity_type.value:<8} new: {row['insertions']:<4} "
                      f"unchanged: {row['unchanged']:<4} conflicts: {row['conflicts']}")
            if analysis.replace_all:
                print("\n⚠️  Replace-all: included local collections will be cleared first.")

            for index, conflict in enumerate(analysis.conflicts, 1):
                print(format_conflict_for_display(conflict, index))
            return True

        except (TasklaneError, ValueError) as e:
            print(f"❌ {e}")
            return False


class ImportCommand(_ImportCommandBase):
    """Command for importing a backup, prompting for conflicts when possible."""

    def run(self, path: str, strategy: Optional[str] = None,
            replace_all: bool = False, exclude: Optional[Iterable[str]] = None,
            interactive: bool = True) -> bool:
        """
        Run the import.

        Args:
            path: Backup file to import
            strategy: Default conflict strategy (keep-local, keep-imported,
                keep-newer, skip)
            replace_all: Clear included local collections before importing
            exclude: Categories to leave out
            interactive: Ask per conflict when stdin is a terminal

        Returns:
            True if the import committed, False otherwise
        """
        try:
            raw = self._read(path)
            if raw is None:
                return False

            options = build_options(strategy, replace_all, exclude,
                                    default=self.config.conflict_resolution)
            coordinator = self._coordinator()
            outcome = coordinator.start_import(raw, options)

            if outcome.awaiting_resolution:
                resolutions = {}
                if interactive and is_interactive():
                    try:
                        resolutions = collect_resolutions(outcome.conflicts,
                                                          options.conflict_resolution)
                    except KeyboardInterrupt:
                        coordinator.cancel_import(outcome.token)
                        raise
                else:
                    print(f"ℹ️ {len(outcome.conflicts)} conflict(s) resolved with "
                          f"'{options.conflict_resolution.value}'")
                result = coordinator.resume_import(outcome.token, resolutions)
            else:
                result = outcome.result

            print(f"✅ {result.message}")
            for error in result.errors:
                print(f"   ⚠️ {error}")
            return result.success

        except (TasklaneError, ValueError) as e:
            self.logger.error(f"Import failed: {e}")
            print(f"❌ Import failed: {e}")
            return False
