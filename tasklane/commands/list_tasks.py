"""List command - print a task view in display order."""

import logging
from itertools import groupby

from ..core.exceptions import TasklaneError
from ..core.models import TasklaneConfig
from ..ordering.buckets import BucketReclassifier
from ..ordering.service import build_view
from ..storage.json_store import JsonFileStorage
from ..utils.date import format_timestamp

_BUCKET_TITLES = {
    "overdue": "Overdue",
    "today": "Today",
    "next7days": "Next 7 Days",
    "later": "Later",
    "nodate": "No Date",
}


class ListCommand:
    """Command for listing active tasks of a view."""

    def __init__(self, config: TasklaneConfig, verbose: bool = False):
        self.config = config
        self.verbose = verbose
        self.logger = logging.getLogger(__name__)
        if verbose:
            self.logger.setLevel(logging.DEBUG)

    def run(self, view: str = "all") -> bool:
        try:
            storage = JsonFileStorage(self.config.data_path, platform=self.config.platform,
                                      logger=self.logger)
            tasks = {task.id: task for task in storage.fetch_tasks()}
            reclassifier = BucketReclassifier()
            ids = build_view(list(tasks.values()), view, reclassifier.today)

            if not ids:
                print("✓ No active tasks.")
                return True

            if view == "all":
                for bucket, group in groupby(ids, key=lambda task_id: reclassifier.bucket_of(tasks[task_id])):
                    print(f"\n{_BUCKET_TITLES[bucket.value]}")
                    for task_id in group:
                        print(self._format(tasks[task_id]))
            else:
                for task_id in ids:
                    print(self._format(tasks[task_id]))
            return True

        except (TasklaneError, ValueError) as e:
            print(f"❌ {e}")
            return False

    def _format(self, task) -> str:
        due = f" 📅 {format_timestamp(task.due_date)}" if task.due_date is not None else ""
        tags = f" {' '.join('#' + tag for tag in task.tags)}" if task.tags else ""
        line = f"  • {task.title} [{task.list_name}]{due}{tags}"
        if self.verbose:
            line += f"  ({task.id}, order {task.order:g})"
        return line
