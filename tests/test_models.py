"""
Tests for domain models and the export envelope (tasklane/core/models.py).
"""

import pytest

from tasklane.core.exceptions import InvalidFormatError
from tasklane.core.models import (
    ConflictResolution,
    EntityType,
    ExportedData,
    ImportOptions,
    ImportResult,
    Subtask,
    Task,
    is_reserved_list_name,
)
from tests.factories import make_export, make_task


class TestTaskWireFormat:
    """camelCase keys of the export format."""

    def test_to_dict_uses_export_keys(self):
        task = make_task("a", due_date=5, completed_at=7, tags=["x"])
        data = task.to_dict()
        assert data["dueDate"] == 5
        assert data["completedAt"] == 7
        assert data["listName"] == "Inbox"
        assert "due_date" not in data

    def test_from_dict_fills_defaults(self):
        task = Task.from_dict({"id": 42, "title": "Minimal"})
        assert task.id == "42"
        assert task.list_name == "Inbox"
        assert task.tags == []
        assert task.order == 0.0
        assert task.due_date is None

    def test_subtasks_are_kept_in_order(self):
        task = make_task("a", subtasks=[
            Subtask(id="s2", parent_id="a", title="second", order=2.0),
            Subtask(id="s1", parent_id="a", title="first", order=1.0),
        ])
        assert [sub.id for sub in task.subtasks] == ["s1", "s2"]

    def test_trash_membership(self):
        assert make_task("a", list_name="Trash").is_trashed
        assert not make_task("a").is_trashed


class TestExportedData:
    """Envelope parsing and validation."""

    def test_parses_full_envelope(self):
        envelope = ExportedData.from_dict(make_export(tasks=[make_task("a")], settings={"ai": {}}))
        assert envelope.version == 1
        assert [t.id for t in envelope.tasks] == ["a"]
        assert envelope.settings == {"ai": {}}
        assert envelope.entities(EntityType.TASK) is envelope.tasks

    def test_legacy_semver_version_is_accepted(self):
        data = make_export()
        data["version"] = "1.0.0"
        assert ExportedData.from_dict(data).version == 1

    def test_legacy_timestamp_key(self):
        data = {"version": 1, "timestamp": 1234, "data": {}}
        assert ExportedData.from_dict(data).exported_at == 1234

    @pytest.mark.parametrize("data", [
        None,
        {"data": {}},
        {"version": 1},
        {"version": 2, "data": {}},
        {"version": 0, "data": {}},
        {"version": "one", "data": {}},
        {"version": 1, "data": {"tasks": "not-a-list"}},
        {"version": 1, "data": {"tasks": [{"title": "no id"}]}},
        {"version": 1, "data": {"settings": []}},
    ])
    def test_structural_errors(self, data):
        with pytest.raises(InvalidFormatError):
            ExportedData.from_dict(data)


class TestImportOptions:
    def test_defaults(self):
        options = ImportOptions()
        assert options.conflict_resolution is ConflictResolution.KEEP_NEWER
        assert not options.replace_all_data
        assert all(options.includes(entity_type) for entity_type in EntityType)

    def test_strategy_string_is_parsed(self):
        assert ImportOptions(conflict_resolution="Skip").conflict_resolution is ConflictResolution.SKIP


class TestImportResult:
    def test_imported_is_inserted_plus_updated(self):
        result = ImportResult(success=True)
        result.inserted["task"] = 2
        result.updated["task"] = 3
        result.settings = 1

        data = result.to_dict()

        assert data["imported"]["tasks"] == 5
        assert data["imported"]["settings"] == 1
        assert data["imported"]["lists"] == 0


class TestReservedListNames:
    @pytest.mark.parametrize("name", ["Inbox", "trash", " Next 7 Days ", "TODAY"])
    def test_reserved(self, name):
        assert is_reserved_list_name(name)

    def test_user_names_are_allowed(self):
        assert not is_reserved_list_name("Groceries")
