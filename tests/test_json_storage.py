"""
Tests for the storage backends (tasklane/storage/).
"""

import os
from unittest.mock import patch

import pytest

from tasklane.core.exceptions import StaleReferenceError, StorageFailureError
from tasklane.core.models import EntityType, LocalSnapshot
from tasklane.storage import CommitBatch, InMemoryStorage, JsonFileStorage, apply_batch
from tests.factories import INBOX, WORK, make_task


class TestApplyBatch:
    """Batch semantics shared by every backend."""

    def test_upserts_replace_by_id_and_append_new(self):
        snapshot = LocalSnapshot(tasks=[make_task("a", title="old"), make_task("b")])
        batch = CommitBatch()
        batch.add(EntityType.TASK, make_task("a", title="new"))
        batch.add(EntityType.TASK, make_task("c"))

        result = apply_batch(snapshot, batch)

        assert [(t.id, t.title) for t in result.tasks] == [("a", "new"), ("b", "Task b"), ("c", "Task c")]

    def test_clear_only_touches_named_categories(self):
        snapshot = LocalSnapshot(tasks=[make_task("a")], lists=[INBOX])
        batch = CommitBatch(clear={EntityType.TASK})

        result = apply_batch(snapshot, batch)

        assert result.tasks == []
        assert result.lists == [INBOX]

    def test_settings_merge_by_section(self):
        snapshot = LocalSnapshot(settings={"appearance": {"theme": "light"}, "ai": {"model": "x"}})
        batch = CommitBatch(settings={"appearance": {"theme": "dark"}})

        assert apply_batch(snapshot, batch).settings == {
            "appearance": {"theme": "dark"},
            "ai": {"model": "x"},
        }

    def test_empty_batch(self):
        assert CommitBatch().is_empty


class TestInMemoryStorage:
    def test_reads_are_copies(self):
        storage = InMemoryStorage(tasks=[make_task("a")])
        storage.fetch_tasks()[0].title = "mutated"
        assert storage.fetch_tasks()[0].title == "Task a"

    def test_update_unknown_task(self):
        with pytest.raises(StaleReferenceError):
            InMemoryStorage().update_task("ghost", {"order": 1.0})

    def test_update_rejects_unknown_fields(self):
        storage = InMemoryStorage(tasks=[make_task("a")])
        with pytest.raises(ValueError):
            storage.update_task("a", {"id": "b"})


class TestJsonFileStorage:
    """Persistence through the export envelope."""

    def test_missing_file_is_empty(self, json_storage):
        assert json_storage.snapshot() == LocalSnapshot()

    def test_commit_persists_across_instances(self, json_storage, config):
        batch = CommitBatch(settings={"preferences": {"language": "de"}})
        batch.add(EntityType.LIST, WORK)
        batch.add(EntityType.TASK, make_task("a", list_id=WORK.id, list_name="Work"))

        json_storage.commit(batch)

        reopened = JsonFileStorage(config.data_path)
        assert [t.id for t in reopened.fetch_tasks()] == ["a"]
        assert reopened.fetch_lists() == [WORK]
        assert reopened.fetch_settings() == {"preferences": {"language": "de"}}

    def test_update_task_persists(self, json_storage, config):
        batch = CommitBatch()
        batch.add(EntityType.TASK, make_task("a", order=1.0))
        json_storage.commit(batch)

        updated = json_storage.update_task("a", {"order": 42.5})

        assert updated.order == 42.5
        assert JsonFileStorage(config.data_path).fetch_tasks()[0].order == 42.5

    def test_corrupt_file_raises(self, json_storage, config):
        os.makedirs(os.path.dirname(config.data_path), exist_ok=True)
        with open(config.data_path, "w", encoding="utf-8") as handle:
            handle.write('{"version": 1, "data": ')

        with pytest.raises(StorageFailureError):
            json_storage.fetch_tasks()

    def test_failed_write_raises_and_keeps_file(self, json_storage, config):
        batch = CommitBatch()
        batch.add(EntityType.TASK, make_task("a"))
        json_storage.commit(batch)

        second = CommitBatch()
        second.add(EntityType.TASK, make_task("b"))
        with patch("tasklane.storage.json_store.safe_write_json", return_value=False):
            with pytest.raises(StorageFailureError):
                json_storage.commit(second)

        assert [t.id for t in json_storage.fetch_tasks()] == ["a"]
