"""Due-date buckets and reclassification of tasks dragged across them."""

from datetime import date, datetime
from typing import Optional, Union

from ..core.models import DateBucket, Task
from ..utils.date import (
    add_days,
    datetime_to_ms,
    has_time_of_day,
    ms_to_datetime,
    start_of_day,
)


class _NoChange:
    """Sentinel returned when a reclassification would not move the due day."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NO_CHANGE"

    def __bool__(self) -> bool:
        return False


NO_CHANGE = _NoChange()

# Day offsets (relative to today) that each dated bucket snaps to.
BUCKET_DAY_OFFSETS = {
    DateBucket.TODAY: 0,
    DateBucket.NEXT_7_DAYS: 1,
    DateBucket.LATER: 8,
    DateBucket.OVERDUE: -1,
}


def _today(today: Optional[Union[date, datetime]]) -> datetime:
    return start_of_day(today if today is not None else datetime.now())


def bucket_for_due_date(due_date: Optional[int],
                        now: Optional[datetime] = None) -> DateBucket:
    """Classify a due date relative to today."""
    due = ms_to_datetime(due_date)
    if due is None:
        return DateBucket.NODATE

    today = _today(now)
    due_day = start_of_day(due)
    if due_day < today:
        return DateBucket.OVERDUE
    if due_day == today:
        return DateBucket.TODAY
    if due_day <= add_days(today, 6):
        return DateBucket.NEXT_7_DAYS
    return DateBucket.LATER


def bucket_for_task(task: Task, now: Optional[datetime] = None) -> DateBucket:
    """Bucket a task; completed and trashed tasks never carry a date bucket."""
    if task.completed or task.is_trashed:
        return DateBucket.NODATE
    return bucket_for_due_date(task.due_date, now)


def reclassify_bucket(original_due: Optional[int],
                      target: DateBucket,
                      today: Optional[Union[date, datetime]] = None):
    """
    Map a drag target bucket to a concrete due date.

    Args:
        original_due: The task's current due date (epoch ms) or None
        target: Bucket the task was dropped into
        today: Reference day, defaults to the local current day

    Returns:
        New due date in epoch ms, None to clear the date, or NO_CHANGE when
        the task would stay on the same calendar day.
    """
    target = DateBucket(target)
    original = ms_to_datetime(original_due)

    if target is DateBucket.NODATE:
        new_due: Optional[datetime] = None
    else:
        new_due = add_days(_today(today), BUCKET_DAY_OFFSETS[target])
        if original is not None and has_time_of_day(original):
            new_due = new_due.replace(hour=original.hour, minute=original.minute)

    original_day = start_of_day(original) if original is not None else None
    new_day = start_of_day(new_due) if new_due is not None else None
    if original_day == new_day:
        return NO_CHANGE

    return datetime_to_ms(new_due) if new_due is not None else None


class BucketReclassifier:
    """Reclassifies dragged tasks against a fixed or live notion of today."""

    def __init__(self, today: Optional[Union[date, datetime]] = None):
        self._today = today

    @property
    def today(self) -> datetime:
        return _today(self._today)

    def bucket_of(self, task: Task) -> DateBucket:
        return bucket_for_task(task, self.today)

    def crosses(self, task: Task, target: Optional[DateBucket]) -> bool:
        """True when dropping ``task`` into ``target`` changes its bucket."""
        return target is not None and DateBucket(target) is not self.bucket_of(task)

    def reclassify(self, original_due: Optional[int], target: DateBucket):
        return reclassify_bucket(original_due, target, self.today)
