"""
Tests for CLI entry point (tasklane/main.py) and the commands behind it.

Validates argument parsing, command dispatch, and error handling.
"""

import json
import os
from unittest.mock import Mock, patch

import pytest

from tasklane.core.models import EntityType, TasklaneConfig
from tasklane.main import main
from tasklane.storage import CommitBatch, JsonFileStorage
from tests.factories import INBOX, make_export, make_task


class TestMainCLI:
    """Test suite for main CLI entry point."""

    def _dispatch(self, command_name, argv):
        with patch(f'tasklane.main.{command_name}') as mock_cmd:
            mock_instance = Mock()
            mock_instance.run.return_value = True
            mock_cmd.return_value = mock_instance

            with patch('tasklane.main.load_config', return_value=TasklaneConfig()):
                result = main(argv)

        return result, mock_cmd, mock_instance

    def test_no_command_prints_help(self):
        assert main([]) == 1

    def test_export_dispatch(self):
        result, mock_cmd, instance = self._dispatch('ExportCommand', ['export', '-o', 'out.json'])
        mock_cmd.assert_called_once()
        instance.run.assert_called_once_with(output='out.json')
        assert result == 0

    def test_import_dispatch(self):
        result, _, instance = self._dispatch(
            'ImportCommand',
            ['import', 'backup.json', '--strategy', 'skip', '--replace-all', '--exclude', 'echo', '-y'],
        )
        instance.run.assert_called_once_with(
            'backup.json',
            strategy='skip',
            replace_all=True,
            exclude=['echo'],
            interactive=False,
        )
        assert result == 0

    def test_analyze_dispatch(self):
        result, _, instance = self._dispatch('AnalyzeCommand', ['analyze', 'backup.json'])
        instance.run.assert_called_once_with('backup.json', replace_all=False, exclude=[])
        assert result == 0

    def test_reorder_dispatch(self):
        result, _, instance = self._dispatch(
            'ReorderCommand', ['reorder', 't1', '--over', 't2', '--bucket', 'today']
        )
        instance.run.assert_called_once_with('t1', 't2', view='all', bucket='today')
        assert result == 0

    def test_list_dispatch(self):
        result, _, instance = self._dispatch('ListCommand', ['list', '--view', 'list-Inbox'])
        instance.run.assert_called_once_with(view='list-Inbox')
        assert result == 0

    def test_failed_command_returns_one(self):
        with patch('tasklane.main.ListCommand') as mock_cmd:
            mock_cmd.return_value.run.return_value = False
            with patch('tasklane.main.load_config', return_value=TasklaneConfig()):
                assert main(['list']) == 1

    def test_keyboard_interrupt_returns_130(self):
        with patch('tasklane.main.ListCommand') as mock_cmd:
            mock_cmd.return_value.run.side_effect = KeyboardInterrupt
            with patch('tasklane.main.load_config', return_value=TasklaneConfig()):
                assert main(['list']) == 130

    def test_unexpected_error_returns_one(self, capsys):
        with patch('tasklane.main.load_config', side_effect=RuntimeError("boom")):
            assert main(['list']) == 1
        assert "boom" in capsys.readouterr().out

    def test_invalid_strategy_is_rejected_by_argparse(self):
        with pytest.raises(SystemExit):
            main(['import', 'backup.json', '--strategy', 'merge'])


class TestCommandsEndToEnd:
    """Real commands against a JSON data file in a temp directory."""

    @pytest.fixture
    def config_path(self, config, temp_dir):
        path = os.path.join(temp_dir, "config.json")
        config.save_to_file(path)
        return path

    @pytest.fixture
    def seeded(self, config):
        storage = JsonFileStorage(config.data_path)
        batch = CommitBatch()
        batch.add(EntityType.LIST, INBOX)
        batch.add(EntityType.TASK, make_task("a", title="Alpha", order=1000.0))
        batch.add(EntityType.TASK, make_task("b", title="Beta", order=2000.0))
        storage.commit(batch)
        return storage

    def test_export_to_file(self, config_path, seeded, temp_dir):
        out = os.path.join(temp_dir, "export.json")

        assert main(['--config', config_path, 'export', '-o', out]) == 0

        with open(out, encoding="utf-8") as handle:
            payload = json.load(handle)
        assert [t["id"] for t in payload["data"]["tasks"]] == ["a", "b"]

    def test_list(self, config_path, seeded, capsys):
        assert main(['--config', config_path, 'list']) == 0
        output = capsys.readouterr().out
        assert output.index("Alpha") < output.index("Beta")

    def test_reorder(self, config_path, seeded):
        assert main(['--config', config_path, 'reorder', 'b', '--over', 'a']) == 0
        assert {t.id: t.order for t in seeded.fetch_tasks()}["b"] == 0.0

    def test_reorder_unknown_task(self, config_path, seeded):
        assert main(['--config', config_path, 'reorder', 'ghost', '--over', 'a']) == 1

    def test_import_non_interactive(self, config_path, seeded, temp_dir):
        path = os.path.join(temp_dir, "backup.json")
        with open(path, "w", encoding="utf-8") as handle:
            json.dump(make_export(tasks=[
                make_task("a", title="Alpha (edited)", order=1000.0, updated_at=5_000),
                make_task("c", title="Gamma", order=3000.0),
            ]), handle)

        assert main(['--config', config_path, 'import', path, '-y']) == 0

        titles = {t.id: t.title for t in seeded.fetch_tasks()}
        assert titles == {"a": "Alpha (edited)", "b": "Beta", "c": "Gamma"}

    def test_analyze_does_not_write(self, config_path, seeded, temp_dir, capsys):
        path = os.path.join(temp_dir, "backup.json")
        with open(path, "w", encoding="utf-8") as handle:
            json.dump(make_export(tasks=[make_task("a", title="Changed", updated_at=5_000)]), handle)

        assert main(['--config', config_path, 'analyze', path]) == 0

        assert {t.id: t.title for t in seeded.fetch_tasks()}["a"] == "Alpha"
        assert "conflicts: 1" in capsys.readouterr().out

    def test_import_missing_file(self, config_path):
        assert main(['--config', config_path, 'import', '/nonexistent/backup.json', '-y']) == 1

    def test_import_invalid_file(self, config_path, temp_dir):
        path = os.path.join(temp_dir, "broken.json")
        with open(path, "w", encoding="utf-8") as handle:
            handle.write("{}")
        assert main(['--config', config_path, 'import', path, '-y']) == 1
