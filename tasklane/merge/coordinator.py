"""Import/export orchestration: parse, analyze, await resolution, commit."""

from __future__ import annotations

import json
import logging
import os
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from ..core.exceptions import (
    ImportStateError,
    InvalidFormatError,
    StorageFailureError,
    TasklaneError,
    ValidationError,
)
from ..core.models import (
    INBOX_LIST_NAME,
    SETTINGS_SECTIONS,
    DataConflict,
    EntityType,
    ExportedData,
    ImportOptions,
    ImportResult,
    Task,
    TaskList,
    TasklaneConfig,
)
from ..ordering.buckets import bucket_for_task
from ..storage.base import CommitBatch, StorageBackend, upsert_by_id
from ..utils.date import ms_to_datetime, now_ms
from ..utils.io import safe_write_json
from .analyzer import CATEGORY_ORDER, ImportAnalysis, analyze_import
from .resolver import ConflictResolver, ResolutionOutcome


class ImportState(Enum):
    IDLE = "idle"
    PARSING = "parsing"
    ANALYZING = "analyzing"
    AWAITING_RESOLUTION = "awaiting_resolution"
    COMMITTING = "committing"


@dataclass
class ImportOutcome:
    """Return value of ``start_import``: either a result or conflicts to settle."""

    state: ImportState
    token: Optional[str] = None
    conflicts: List[DataConflict] = field(default_factory=list)
    result: Optional[ImportResult] = None

    @property
    def awaiting_resolution(self) -> bool:
        return self.state is ImportState.AWAITING_RESOLUTION


@dataclass
class _PendingImport:
    token: str
    payload: ExportedData
    options: ImportOptions
    analysis: ImportAnalysis


RawPayload = Union[str, bytes, Dict[str, Any], ExportedData]


class ImportExportCoordinator:
    """
    Drives exports and imports against one storage backend.

    Imports with conflicts pause in AWAITING_RESOLUTION and hand back a
    continuation token; the caller settles the conflicts and calls
    ``resume_import`` with that token. Only one import may be in flight.

    Pre-import backups are written only when an explicit ``config`` asks for
    them; a coordinator built without one never touches the filesystem.
    """

    def __init__(self, storage: StorageBackend,
                 config: Optional[TasklaneConfig] = None,
                 clock: Optional[Callable[[], int]] = None,
                 logger: Optional[logging.Logger] = None):
        self.storage = storage
        self.config = config if config is not None else TasklaneConfig(backup_before_import=False)
        self.clock = clock or now_ms
        self.logger = logger or logging.getLogger(__name__)
        self.state = ImportState.IDLE
        self._pending: Optional[_PendingImport] = None

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------
    def export_data(self) -> ExportedData:
        """Snapshot the live dataset into a versioned envelope."""
        snapshot = self.storage.snapshot()
        return ExportedData(
            exported_at=self.clock(),
            platform=self.config.platform,
            tasks=snapshot.tasks,
            lists=snapshot.lists,
            summaries=snapshot.summaries,
            echo_reports=snapshot.echo_reports,
            settings=snapshot.settings,
        )

    def export_payload(self) -> Dict[str, Any]:
        """Wire form of an export; tasks carry their current ``groupCategory``."""
        exported = self.export_data()
        payload = exported.to_dict()
        today = ms_to_datetime(exported.exported_at)
        for task, wire in zip(exported.tasks, payload["data"]["tasks"]):
            wire["groupCategory"] = bucket_for_task(task, today).value
        return payload

    def export_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.export_payload(), indent=indent, ensure_ascii=False)

    # ------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------
    def parse(self, raw: RawPayload) -> ExportedData:
        """
        Parse an import payload.

        Raises:
            InvalidFormatError: for non-JSON input or a malformed envelope
        """
        if isinstance(raw, ExportedData):
            return raw
        if isinstance(raw, bytes):
            try:
                raw = raw.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise InvalidFormatError(f"Import payload is not UTF-8: {exc}") from exc
        if isinstance(raw, str):
            try:
                raw = json.loads(raw)
            except json.JSONDecodeError as exc:
                raise InvalidFormatError(f"Import payload is not valid JSON: {exc}") from exc
        return ExportedData.from_dict(raw)

    def _default_options(self) -> ImportOptions:
        return ImportOptions(conflict_resolution=self.config.conflict_resolution)

    def analyze(self, raw: RawPayload,
                options: Optional[ImportOptions] = None) -> ImportAnalysis:
        """Dry run: what an import of ``raw`` would do, without touching state."""
        options = options or self._default_options()
        payload = self._with_resolved_lists(self.parse(raw), options)
        return analyze_import(self.storage.snapshot(), payload, options, logger=self.logger)

    def start_import(self, raw: RawPayload,
                     options: Optional[ImportOptions] = None) -> ImportOutcome:
        """
        Parse and analyze a payload; commit right away when nothing conflicts.

        Raises:
            ImportStateError: if another import is awaiting resolution
            InvalidFormatError: if the payload cannot be parsed
            StorageFailureError: if the commit was rejected
        """
        if self._pending is not None or self.state is not ImportState.IDLE:
            raise ImportStateError(f"An import is already in progress ({self.state.value})")

        options = options or self._default_options()
        try:
            self.state = ImportState.PARSING
            payload = self.parse(raw)

            self.state = ImportState.ANALYZING
            payload = self._with_resolved_lists(payload, options)
            analysis = analyze_import(self.storage.snapshot(), payload, options, logger=self.logger)
        except Exception:
            self.state = ImportState.IDLE
            raise

        if analysis.has_conflicts:
            token = uuid.uuid4().hex
            self._pending = _PendingImport(token=token, payload=payload,
                                           options=options, analysis=analysis)
            self.state = ImportState.AWAITING_RESOLUTION
            self.logger.info(f"Import paused with {len(analysis.conflicts)} conflict(s)")
            return ImportOutcome(state=self.state, token=token, conflicts=list(analysis.conflicts))

        result = self._commit(payload, options, analysis, ResolutionOutcome())
        return ImportOutcome(state=self.state, result=result)

    def _take_pending(self, token: str) -> _PendingImport:
        if self._pending is None or self._pending.token != token:
            raise ImportStateError(f"Unknown import token: {token}")
        pending = self._pending
        self._pending = None
        return pending

    def resume_import(self, token: str,
                      resolutions: Optional[Mapping[str, Any]] = None) -> ImportResult:
        """Settle the paused import's conflicts and commit it."""
        pending = self._take_pending(token)
        resolver = ConflictResolver(default=pending.options.conflict_resolution, logger=self.logger)
        try:
            outcome = resolver.resolve(pending.analysis.conflicts, resolutions)
        except ValueError:
            # Unknown strategy name: keep the import resumable.
            self._pending = pending
            raise
        return self._commit(pending.payload, pending.options, pending.analysis, outcome)

    def cancel_import(self, token: str) -> None:
        """Drop a paused import; storage is left untouched."""
        self._take_pending(token)
        self.state = ImportState.IDLE
        self.logger.info("Import cancelled")

    def import_data(self, raw: RawPayload,
                    options: Optional[ImportOptions] = None,
                    resolutions: Optional[Mapping[str, Any]] = None) -> ImportResult:
        """
        One-shot import: conflicts are settled with ``resolutions`` and the
        default strategy. Failures are reported in the result, not raised.
        """
        try:
            outcome = self.start_import(raw, options)
            if outcome.awaiting_resolution:
                return self.resume_import(outcome.token, resolutions)
            return outcome.result
        except TasklaneError as exc:
            self.logger.error(f"Import failed: {exc}")
            return ImportResult(success=False, message=str(exc))

    # ------------------------------------------------------------------
    # Commit
    # ------------------------------------------------------------------
    def _resulting_lists(self, options: ImportOptions, incoming: List[TaskList]) -> List[TaskList]:
        """Lists present once ``incoming`` lists are committed under ``options``."""
        if not options.includes(EntityType.LIST):
            return self.storage.fetch_lists()
        base = [] if options.replace_all_data else self.storage.fetch_lists()
        return upsert_by_id(base, incoming)

    def _with_resolved_lists(self, payload: ExportedData, options: ImportOptions) -> ExportedData:
        """
        Point imported tasks at the lists they will be stored under, so analysis
        compares what a commit would actually write.
        """
        if not options.includes(EntityType.TASK):
            return payload
        lists = self._resulting_lists(options, payload.lists)
        tasks = []
        for task in payload.tasks:
            try:
                tasks.append(self._resolve_task_list(task, lists))
            except ValidationError:
                # Reported per entity when the batch is built.
                tasks.append(task)
        return replace(payload, tasks=tasks)

    def _resolve_task_list(self, task: Task, lists: List[TaskList]) -> Task:
        """
        Point a task at an existing list: by id, then by name, then Inbox.

        Raises:
            ValidationError: if none of these resolves
        """
        if task.is_trashed:
            return task

        by_id = {lst.id: lst for lst in lists}
        by_name = {lst.name.lower(): lst for lst in lists}

        target = by_id.get(task.list_id) if task.list_id else None
        if target is None:
            target = by_name.get((task.list_name or "").lower())
        if target is None:
            target = by_name.get(INBOX_LIST_NAME.lower())
            if target is not None:
                self.logger.debug(f"Task {task.id} moved to {INBOX_LIST_NAME}: list not found")
        if target is None:
            raise ValidationError(
                f"No list found for task '{task.title}' ({task.id})",
                entity_type=EntityType.TASK.value,
                entity_id=task.id,
            )

        if task.list_id == target.id and task.list_name == target.name:
            return task
        return replace(task, list_id=target.id, list_name=target.name)

    def _write_backup(self) -> None:
        if not self.config.backup_before_import or not self.config.backup_dir:
            return
        stamp = self.clock()
        filename = f"tasklane-backup-{ms_to_datetime(stamp).strftime('%Y%m%d-%H%M%S')}-{stamp % 1000:03d}.json"
        path = os.path.join(self.config.backup_dir, filename)
        if not safe_write_json(path, self.export_payload()):
            raise StorageFailureError(f"Could not write backup to {path}")
        self.logger.info(f"Backup written to {path}")

    def _commit(self, payload: ExportedData, options: ImportOptions,
                analysis: ImportAnalysis, outcome: ResolutionOutcome) -> ImportResult:
        self.state = ImportState.COMMITTING
        try:
            result = self._build_and_commit(payload, options, analysis, outcome)
        finally:
            self.state = ImportState.IDLE
        return result

    def _build_and_commit(self, payload: ExportedData, options: ImportOptions,
                          analysis: ImportAnalysis, outcome: ResolutionOutcome) -> ImportResult:
        result = ImportResult()
        batch = CommitBatch()

        included = [entity_type for entity_type in CATEGORY_ORDER if options.includes(entity_type)]
        if options.replace_all_data:
            batch.clear = set(included)

        writes = {
            entity_type: list(analysis.insertions.get(entity_type, []))
            + list(outcome.updates_of(entity_type))
            for entity_type in included
        }
        lists = self._resulting_lists(options, writes.get(EntityType.LIST, []))
        conflict_types = {conflict.id: conflict.type for conflict in analysis.conflicts}

        for entity_type in included:
            key = entity_type.value
            inserted_ids = {entity.id for entity in analysis.insertions.get(entity_type, [])}

            for entity in writes[entity_type]:
                if entity_type is EntityType.TASK:
                    try:
                        entity = self._resolve_task_list(entity, lists)
                    except ValidationError as exc:
                        self.logger.warning(str(exc))
                        result.errors.append(str(exc))
                        continue
                batch.add(entity_type, entity)
                if entity.id in inserted_ids:
                    result.inserted[key] += 1
                else:
                    result.updated[key] += 1

            result.skipped[key] = sum(
                1 for entity_id in outcome.skipped if conflict_types.get(entity_id) is entity_type
            )
            result.unchanged[key] = len(analysis.unchanged.get(entity_type, [])) + sum(
                1 for entity_id in outcome.kept_local if conflict_types.get(entity_id) is entity_type
            )

        if options.include_settings and payload.settings:
            batch.settings = dict(payload.settings)
            result.settings = sum(1 for section in SETTINGS_SECTIONS if section in payload.settings)

        if not batch.is_empty:
            self._write_backup()
            try:
                self.storage.commit(batch)
            except StorageFailureError:
                self.logger.error("Storage rejected the import batch; nothing was written")
                raise

        imported = sum(result.imported.values())
        skipped = sum(result.skipped.values())
        result.success = True
        result.message = (
            f"Imported {imported} item(s), {result.settings} settings section(s); "
            f"{skipped} skipped, {len(result.errors)} error(s)"
        )
        self.logger.info(result.message)
        return result
