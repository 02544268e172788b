"""
Tests for interactive conflict prompts (tasklane/utils/prompts.py).
"""

from unittest.mock import patch

from tasklane.core.models import ConflictResolution, DataConflict, EntityType
from tasklane.utils.prompts import (
    collect_resolutions,
    format_conflict_for_display,
    prompt_for_resolution,
)
from tests.factories import make_task


def conflict(task_id="t1"):
    return DataConflict(
        id=task_id,
        type=EntityType.TASK,
        local=make_task(task_id, title="Local"),
        imported=make_task(task_id, title="Imported", priority=2),
    )


class TestFormatting:
    def test_lists_both_sides_and_changed_fields(self):
        text = format_conflict_for_display(conflict(), 1)
        assert "#1 task 'Imported' (t1)" in text
        assert "Local" in text
        assert "differs in: priority, title" in text


class TestPrompts:
    def test_choice_letters(self):
        with patch('tasklane.utils.prompts.input', create=True, return_value='i'):
            assert prompt_for_resolution(conflict(), 1) is ConflictResolution.KEEP_IMPORTED
        with patch('tasklane.utils.prompts.input', create=True, return_value='skip'):
            assert prompt_for_resolution(conflict(), 1) is ConflictResolution.SKIP

    def test_enter_falls_back_to_default(self):
        with patch('tasklane.utils.prompts.input', create=True, return_value=''):
            assert prompt_for_resolution(conflict(), 1) is None

    def test_retries_on_unknown_answer(self):
        with patch('tasklane.utils.prompts.input', create=True, side_effect=['x', 'l']):
            assert prompt_for_resolution(conflict(), 1) is ConflictResolution.KEEP_LOCAL

    def test_collect_skips_unanswered(self):
        with patch('tasklane.utils.prompts.input', create=True, side_effect=['', 'n']):
            resolutions = collect_resolutions([conflict("a"), conflict("b")])
        assert resolutions == {"b": ConflictResolution.KEEP_NEWER}

    def test_non_interactive_returns_nothing(self):
        with patch('tasklane.utils.prompts.is_interactive', return_value=False):
            assert collect_resolutions([conflict()]) == {}
            assert prompt_for_resolution(conflict(), 1) is None
