"""
Domain models for tasklane.

This module contains the core data structures shared by the ordering and
reconciliation engine. Wire dictionaries use the camelCase keys of the
export format so backups round-trip with other clients.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .exceptions import InvalidFormatError
from .paths import get_path_manager

EXPORT_FORMAT_VERSION = 1

RESERVED_LIST_NAMES = frozenset({
    "inbox", "trash", "archive", "all", "today", "next 7 days",
    "completed", "later", "nodate", "overdue",
})

INBOX_LIST_NAME = "Inbox"
TRASH_LIST_NAME = "Trash"

# Settings sections the app recognises; other keys are carried but not counted.
SETTINGS_SECTIONS = ("appearance", "preferences", "ai")


def _normalize_path(path: str) -> str:
    """Expand user and convert to absolute path."""
    return os.path.abspath(os.path.expanduser(path))


def _optional_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    return int(value)


def _as_float(value: Any, default: float = 0.0) -> float:
    if value is None or isinstance(value, bool):
        return default
    return float(value)


def is_reserved_list_name(name: str) -> bool:
    """True when a list name collides (case-insensitively) with a built-in view."""
    return (name or "").strip().lower() in RESERVED_LIST_NAMES


class ConflictResolution(Enum):
    """How one import conflict should be settled."""

    KEEP_LOCAL = "keep-local"
    KEEP_IMPORTED = "keep-imported"
    KEEP_NEWER = "keep-newer"
    SKIP = "skip"

    @classmethod
    def parse(cls, value: Any) -> ConflictResolution:
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().lower())


class DateBucket(Enum):
    """Date-derived grouping used by the grouped "all tasks" view."""

    OVERDUE = "overdue"
    TODAY = "today"
    NEXT_7_DAYS = "next7days"
    LATER = "later"
    NODATE = "nodate"


BUCKET_ORDER = (
    DateBucket.OVERDUE,
    DateBucket.TODAY,
    DateBucket.NEXT_7_DAYS,
    DateBucket.LATER,
    DateBucket.NODATE,
)


class EntityType(Enum):
    """Categories of importable entities."""

    LIST = "list"
    TASK = "task"
    SUMMARY = "summary"
    ECHO = "echo"


@dataclass
class Subtask:
    """A checklist item owned by a task."""

    id: str
    parent_id: str
    title: str
    completed: bool = False
    completed_at: Optional[int] = None
    due_date: Optional[int] = None
    order: float = 0.0
    created_at: int = 0
    updated_at: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "parentId": self.parent_id,
            "title": self.title,
            "completed": self.completed,
            "completedAt": self.completed_at,
            "dueDate": self.due_date,
            "order": self.order,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Subtask:
        return cls(
            id=str(data["id"]),
            parent_id=str(data.get("parentId", "")),
            title=data.get("title", ""),
            completed=bool(data.get("completed", False)),
            completed_at=_optional_int(data.get("completedAt")),
            due_date=_optional_int(data.get("dueDate")),
            order=_as_float(data.get("order")),
            created_at=_optional_int(data.get("createdAt")) or 0,
            updated_at=_optional_int(data.get("updatedAt")) or 0,
        )


@dataclass
class Task:
    """A single to-do item."""

    id: str
    title: str
    completed: bool = False
    completed_at: Optional[int] = None
    complete_percentage: Optional[int] = None
    due_date: Optional[int] = None
    priority: Optional[int] = None
    order: float = 0.0
    list_id: Optional[str] = None
    list_name: str = INBOX_LIST_NAME
    content: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    subtasks: List[Subtask] = field(default_factory=list)
    created_at: int = 0
    updated_at: int = 0

    def __post_init__(self) -> None:
        self.subtasks = sorted(self.subtasks, key=lambda sub: (sub.order, sub.id))

    @property
    def is_trashed(self) -> bool:
        return self.list_name == TRASH_LIST_NAME

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "completed": self.completed,
            "completedAt": self.completed_at,
            "completePercentage": self.complete_percentage,
            "dueDate": self.due_date,
            "priority": self.priority,
            "order": self.order,
            "listId": self.list_id,
            "listName": self.list_name,
            "content": self.content,
            "tags": list(self.tags),
            "subtasks": [sub.to_dict() for sub in self.subtasks],
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Task:
        return cls(
            id=str(data["id"]),
            title=data.get("title", ""),
            completed=bool(data.get("completed", False)),
            completed_at=_optional_int(data.get("completedAt")),
            complete_percentage=_optional_int(data.get("completePercentage")),
            due_date=_optional_int(data.get("dueDate")),
            priority=_optional_int(data.get("priority")),
            order=_as_float(data.get("order")),
            list_id=data.get("listId"),
            list_name=data.get("listName") or INBOX_LIST_NAME,
            content=data.get("content"),
            tags=list(data.get("tags") or []),
            subtasks=[Subtask.from_dict(sub) for sub in data.get("subtasks") or []],
            created_at=_optional_int(data.get("createdAt")) or 0,
            updated_at=_optional_int(data.get("updatedAt")) or 0,
        )


def task_sort_key(task: Task):
    """Total order within a view: fractional order, then id."""
    return (task.order, task.id)


@dataclass
class TaskList:
    """A user-defined list of tasks."""

    id: str
    name: str
    icon: Optional[str] = None
    color: Optional[str] = None
    order: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "icon": self.icon,
            "color": self.color,
            "order": self.order,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> TaskList:
        order = data.get("order")
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            icon=data.get("icon"),
            color=data.get("color"),
            order=None if order is None else _as_float(order),
        )


@dataclass
class StoredSummary:
    """A generated summary of a set of tasks."""

    id: str
    period_key: str
    list_key: str
    summary_text: str = ""
    task_ids: List[str] = field(default_factory=list)
    created_at: int = 0
    updated_at: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "periodKey": self.period_key,
            "listKey": self.list_key,
            "taskIds": list(self.task_ids),
            "summaryText": self.summary_text,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> StoredSummary:
        return cls(
            id=str(data["id"]),
            period_key=data.get("periodKey", ""),
            list_key=data.get("listKey", ""),
            summary_text=data.get("summaryText", ""),
            task_ids=list(data.get("taskIds") or []),
            created_at=_optional_int(data.get("createdAt")) or 0,
            updated_at=_optional_int(data.get("updatedAt")) or 0,
        )


@dataclass
class EchoReport:
    """A generated reflection report. Reports are never edited, only replaced."""

    id: str
    content: str = ""
    job_types: List[str] = field(default_factory=list)
    style: str = "balanced"
    user_input: Optional[str] = None
    created_at: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "createdAt": self.created_at,
            "content": self.content,
            "jobTypes": list(self.job_types),
            "style": self.style,
            "userInput": self.user_input,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> EchoReport:
        return cls(
            id=str(data["id"]),
            content=data.get("content", ""),
            job_types=list(data.get("jobTypes") or []),
            style=data.get("style", "balanced"),
            user_input=data.get("userInput"),
            created_at=_optional_int(data.get("createdAt")) or 0,
        )


@dataclass
class LocalSnapshot:
    """Point-in-time copy of the live dataset, as read from storage."""

    tasks: List[Task] = field(default_factory=list)
    lists: List[TaskList] = field(default_factory=list)
    summaries: List[StoredSummary] = field(default_factory=list)
    echo_reports: List[EchoReport] = field(default_factory=list)
    settings: Dict[str, Any] = field(default_factory=dict)

    def entities(self, entity_type: EntityType) -> List[Any]:
        return {
            EntityType.LIST: self.lists,
            EntityType.TASK: self.tasks,
            EntityType.SUMMARY: self.summaries,
            EntityType.ECHO: self.echo_reports,
        }[entity_type]


def _parse_version(value: Any) -> int:
    """Accept an integer revision, or the major part of a legacy "1.0.0" string."""
    if isinstance(value, bool):
        raise InvalidFormatError(f"Invalid export version: {value!r}")
    if isinstance(value, int):
        version = value
    elif isinstance(value, float) and value.is_integer():
        version = int(value)
    elif isinstance(value, str) and value.strip():
        try:
            version = int(value.strip().split(".")[0])
        except ValueError:
            raise InvalidFormatError(f"Invalid export version: {value!r}") from None
    else:
        raise InvalidFormatError(f"Invalid export version: {value!r}")

    if version < 1:
        raise InvalidFormatError(f"Invalid export version: {value!r}")
    if version > EXPORT_FORMAT_VERSION:
        raise InvalidFormatError(
            f"Export version {version} is newer than supported version {EXPORT_FORMAT_VERSION}"
        )
    return version


@dataclass
class ExportedData:
    """Versioned envelope wrapping an exported dataset."""

    version: int = EXPORT_FORMAT_VERSION
    exported_at: int = 0
    platform: str = "cli"
    tasks: List[Task] = field(default_factory=list)
    lists: List[TaskList] = field(default_factory=list)
    summaries: List[StoredSummary] = field(default_factory=list)
    echo_reports: List[EchoReport] = field(default_factory=list)
    settings: Dict[str, Any] = field(default_factory=dict)

    def entities(self, entity_type: EntityType) -> List[Any]:
        return {
            EntityType.LIST: self.lists,
            EntityType.TASK: self.tasks,
            EntityType.SUMMARY: self.summaries,
            EntityType.ECHO: self.echo_reports,
        }[entity_type]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "exportedAt": self.exported_at,
            "platform": self.platform,
            "data": {
                "settings": self.settings,
                "lists": [lst.to_dict() for lst in self.lists],
                "tasks": [task.to_dict() for task in self.tasks],
                "summaries": [summary.to_dict() for summary in self.summaries],
                "echoReports": [report.to_dict() for report in self.echo_reports],
            },
        }

    @classmethod
    def from_dict(cls, data: Any) -> ExportedData:
        """
        Build an envelope from decoded JSON.

        Raises:
            InvalidFormatError: if required structure is missing or malformed
        """
        if not isinstance(data, dict):
            raise InvalidFormatError("Import payload must be a JSON object")
        if "version" not in data or data.get("version") in (None, ""):
            raise InvalidFormatError("Import payload is missing 'version'")
        payload = data.get("data")
        if not isinstance(payload, dict):
            raise InvalidFormatError("Import payload is missing 'data'")

        version = _parse_version(data["version"])

        def _collection(key: str, entity_cls):
            raw = payload.get(key)
            if raw is None:
                return []
            if not isinstance(raw, list):
                raise InvalidFormatError(f"'data.{key}' must be a list")
            try:
                return [entity_cls.from_dict(item) for item in raw]
            except (KeyError, TypeError, ValueError, AttributeError) as exc:
                raise InvalidFormatError(f"Malformed entry in 'data.{key}': {exc}") from exc

        settings = payload.get("settings")
        if settings is None:
            settings = {}
        elif not isinstance(settings, dict):
            raise InvalidFormatError("'data.settings' must be an object")

        exported_at = data.get("exportedAt", data.get("timestamp"))
        try:
            exported_at = _optional_int(exported_at) or 0
        except (TypeError, ValueError):
            exported_at = 0

        return cls(
            version=version,
            exported_at=exported_at,
            platform=str(data.get("platform") or "unknown"),
            tasks=_collection("tasks", Task),
            lists=_collection("lists", TaskList),
            summaries=_collection("summaries", StoredSummary),
            echo_reports=_collection("echoReports", EchoReport),
            settings=settings,
        )


@dataclass
class ImportOptions:
    """Caller-selected scope and default strategy for one import."""

    include_tasks: bool = True
    include_lists: bool = True
    include_summaries: bool = True
    include_settings: bool = True
    include_echo: bool = True
    conflict_resolution: ConflictResolution = ConflictResolution.KEEP_NEWER
    replace_all_data: bool = False

    def __post_init__(self) -> None:
        self.conflict_resolution = ConflictResolution.parse(self.conflict_resolution)

    def includes(self, entity_type: EntityType) -> bool:
        return {
            EntityType.LIST: self.include_lists,
            EntityType.TASK: self.include_tasks,
            EntityType.SUMMARY: self.include_summaries,
            EntityType.ECHO: self.include_echo,
        }[entity_type]


@dataclass
class DataConflict:
    """A local and an imported entity sharing one id but differing in content."""

    id: str
    type: EntityType
    local: Any
    imported: Any

    def describe(self) -> str:
        label = getattr(self.imported, "title", None) or getattr(self.imported, "name", None) or self.id
        return f"{self.type.value} '{label}'"


def _empty_counts() -> Dict[str, int]:
    return {entity_type.value: 0 for entity_type in EntityType}


@dataclass
class ImportResult:
    """Outcome of a committed import."""

    success: bool = False
    message: str = ""
    inserted: Dict[str, int] = field(default_factory=_empty_counts)
    updated: Dict[str, int] = field(default_factory=_empty_counts)
    skipped: Dict[str, int] = field(default_factory=_empty_counts)
    unchanged: Dict[str, int] = field(default_factory=_empty_counts)
    settings: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def imported(self) -> Dict[str, int]:
        return {key: self.inserted[key] + self.updated[key] for key in self.inserted}

    def to_dict(self) -> Dict[str, Any]:
        imported = self.imported
        return {
            "success": self.success,
            "message": self.message,
            "imported": {
                "settings": self.settings,
                "lists": imported["list"],
                "tasks": imported["task"],
                "summaries": imported["summary"],
                "echo": imported["echo"],
            },
            "inserted": dict(self.inserted),
            "updated": dict(self.updated),
            "skipped": dict(self.skipped),
            "unchanged": dict(self.unchanged),
            "errors": list(self.errors),
        }


@dataclass
class TasklaneConfig:
    """Configuration for the engine and its CLI."""

    data_path: Optional[str] = None
    backup_dir: Optional[str] = None
    backup_before_import: bool = True
    order_step: float = 1000.0
    order_jitter: float = 1.0
    default_conflict_resolution: str = ConflictResolution.KEEP_NEWER.value
    platform: str = "cli"

    def __post_init__(self) -> None:
        manager = get_path_manager()

        if self.data_path is None:
            self.data_path = str(manager.data_path)
        else:
            self.data_path = _normalize_path(self.data_path)

        if self.backup_dir is None:
            self.backup_dir = str(manager.backup_dir)
        else:
            self.backup_dir = _normalize_path(self.backup_dir)

    @property
    def conflict_resolution(self) -> ConflictResolution:
        return ConflictResolution.parse(self.default_conflict_resolution)

    # ------------------------------------------------------------------
    # Persistence helpers
    # ------------------------------------------------------------------
    @classmethod
    def load_from_file(cls, config_path: str) -> TasklaneConfig:
        config_path = _normalize_path(config_path)
        if not os.path.exists(config_path):
            return cls()

        try:
            with open(config_path, "r", encoding="utf-8") as handle:
                data = json.load(handle)
        except json.JSONDecodeError:
            return cls()

        ordering = data.get("ordering", {})
        import_settings = data.get("import", {})
        paths = data.get("paths", {})

        return cls(
            data_path=paths.get("data", data.get("data_path")),
            backup_dir=paths.get("backups", data.get("backup_dir")),
            backup_before_import=import_settings.get("backup_before_import", True),
            order_step=float(ordering.get("step", 1000.0)),
            order_jitter=float(ordering.get("jitter", 1.0)),
            default_conflict_resolution=import_settings.get(
                "conflict_resolution", ConflictResolution.KEEP_NEWER.value
            ),
            platform=data.get("platform", "cli"),
        )

    def save_to_file(self, config_path: str) -> None:
        config_path = _normalize_path(config_path)
        os.makedirs(os.path.dirname(config_path), exist_ok=True)

        data = {
            "platform": self.platform,
            "ordering": {
                "step": self.order_step,
                "jitter": self.order_jitter,
            },
            "import": {
                "backup_before_import": self.backup_before_import,
                "conflict_resolution": self.default_conflict_resolution,
            },
            "paths": {
                "data": self.data_path,
                "backups": self.backup_dir,
            },
        }

        with open(config_path, "w", encoding="utf-8") as handle:
            json.dump(data, handle, indent=2, ensure_ascii=False)
