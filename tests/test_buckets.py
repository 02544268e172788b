"""
Tests for date buckets and drag reclassification (tasklane/ordering/buckets.py).
"""

from datetime import datetime

import pytest

from tasklane.core.models import DateBucket
from tasklane.ordering.buckets import (
    NO_CHANGE,
    BucketReclassifier,
    bucket_for_due_date,
    bucket_for_task,
    reclassify_bucket,
)
from tests.factories import TODAY, make_task, ms


class TestBucketForDueDate:
    """Classification relative to a fixed today (2024-06-15)."""

    @pytest.mark.parametrize("due, expected", [
        (None, DateBucket.NODATE),
        (ms(2024, 6, 14, 23, 59), DateBucket.OVERDUE),
        (ms(2024, 6, 15), DateBucket.TODAY),
        (ms(2024, 6, 15, 23, 30), DateBucket.TODAY),
        (ms(2024, 6, 16), DateBucket.NEXT_7_DAYS),
        (ms(2024, 6, 21, 18), DateBucket.NEXT_7_DAYS),
        (ms(2024, 6, 22), DateBucket.LATER),
    ])
    def test_classification(self, due, expected):
        assert bucket_for_due_date(due, TODAY) is expected

    def test_completed_task_has_no_bucket(self):
        task = make_task("a", due_date=ms(2024, 6, 1), completed=True)
        assert bucket_for_task(task, TODAY) is DateBucket.NODATE

    def test_trashed_task_has_no_bucket(self):
        task = make_task("a", due_date=ms(2024, 6, 1), list_name="Trash")
        assert bucket_for_task(task, TODAY) is DateBucket.NODATE


class TestReclassifyBucket:
    """Target bucket to concrete due date."""

    def test_undated_task_to_today(self):
        assert reclassify_bucket(None, DateBucket.TODAY, TODAY) == ms(2024, 6, 15)

    def test_next_seven_days_snaps_to_tomorrow(self):
        assert reclassify_bucket(ms(2024, 6, 1), DateBucket.NEXT_7_DAYS, TODAY) == ms(2024, 6, 16)

    def test_later_snaps_to_eight_days_out(self):
        assert reclassify_bucket(None, DateBucket.LATER, TODAY) == ms(2024, 6, 23)

    def test_overdue_snaps_to_yesterday(self):
        assert reclassify_bucket(ms(2024, 6, 20), DateBucket.OVERDUE, TODAY) == ms(2024, 6, 14)

    def test_time_of_day_is_preserved(self):
        original = ms(2024, 6, 10, 14, 30)
        assert reclassify_bucket(original, DateBucket.NEXT_7_DAYS, TODAY) == ms(2024, 6, 16, 14, 30)

    def test_dragged_to_later_keeps_afternoon_time(self):
        today = datetime(2024, 1, 9)
        original = ms(2024, 1, 10, 14, 30)
        assert reclassify_bucket(original, DateBucket.LATER, today) == ms(2024, 1, 17, 14, 30)

    def test_midnight_due_date_stays_at_midnight(self):
        assert reclassify_bucket(ms(2024, 6, 10), DateBucket.TODAY, TODAY) == ms(2024, 6, 15)

    def test_nodate_clears_due_date(self):
        assert reclassify_bucket(ms(2024, 6, 10, 9), DateBucket.NODATE, TODAY) is None

    def test_same_day_is_no_change(self):
        assert reclassify_bucket(ms(2024, 6, 15, 9, 15), DateBucket.TODAY, TODAY) is NO_CHANGE

    def test_undated_to_nodate_is_no_change(self):
        assert reclassify_bucket(None, DateBucket.NODATE, TODAY) is NO_CHANGE

    def test_accepts_bucket_value_strings(self):
        assert reclassify_bucket(None, "today", TODAY) == ms(2024, 6, 15)

    def test_today_may_be_a_date_with_time(self):
        afternoon = datetime(2024, 6, 15, 16, 45)
        assert reclassify_bucket(None, DateBucket.TODAY, afternoon) == ms(2024, 6, 15)


class TestNoChangeSentinel:
    def test_sentinel_is_singleton_and_falsy(self):
        assert type(NO_CHANGE)() is NO_CHANGE
        assert not NO_CHANGE
        assert repr(NO_CHANGE) == "NO_CHANGE"


class TestBucketReclassifier:
    """Crossing detection against a fixed today."""

    def test_crosses_when_target_differs(self):
        reclassifier = BucketReclassifier(today=TODAY)
        task = make_task("a", due_date=ms(2024, 6, 15, 10))
        assert reclassifier.crosses(task, DateBucket.LATER)
        assert not reclassifier.crosses(task, DateBucket.TODAY)

    def test_no_target_never_crosses(self):
        reclassifier = BucketReclassifier(today=TODAY)
        assert not reclassifier.crosses(make_task("a"), None)

    def test_reclassify_uses_configured_today(self):
        reclassifier = BucketReclassifier(today=TODAY)
        assert reclassifier.reclassify(None, DateBucket.TODAY) == ms(2024, 6, 15)
        assert reclassifier.today == TODAY
