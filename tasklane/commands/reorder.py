"""Reorder command - move a task the way a drag and drop would."""

import logging
from typing import Optional

from ..core.exceptions import TasklaneError
from ..core.models import DateBucket, TasklaneConfig
from ..ordering.assigner import OrderAssigner
from ..ordering.buckets import BucketReclassifier
from ..ordering.service import DragDropEvent, ReorderService, build_view
from ..storage.json_store import JsonFileStorage
from ..utils.date import format_timestamp


class ReorderCommand:
    """Command for moving one task onto the slot of another."""

    def __init__(self, config: TasklaneConfig, verbose: bool = False):
        self.config = config
        self.verbose = verbose
        self.logger = logging.getLogger(__name__)
        if verbose:
            self.logger.setLevel(logging.DEBUG)

    def run(self, task_id: str, over_id: str, view: str = "all",
            bucket: Optional[str] = None) -> bool:
        """
        Move ``task_id`` to where ``over_id`` currently sits in ``view``.

        In the grouped "all" view the task takes the date bucket of the task
        it is dropped on unless ``bucket`` names one explicitly.
        """
        try:
            storage = JsonFileStorage(self.config.data_path, platform=self.config.platform,
                                      logger=self.logger)
            reclassifier = BucketReclassifier()
            service = ReorderService(
                storage,
                assigner=OrderAssigner(step=self.config.order_step,
                                       jitter=self.config.order_jitter,
                                       logger=self.logger),
                reclassifier=reclassifier,
                logger=self.logger,
            )

            tasks = service.buffer.tasks
            if task_id not in tasks or over_id not in tasks:
                missing = task_id if task_id not in tasks else over_id
                print(f"❌ Task not found: {missing}")
                return False

            target_bucket = None
            if bucket:
                target_bucket = DateBucket(bucket)
            elif view == "all":
                target_bucket = reclassifier.bucket_of(tasks[over_id])

            visible = build_view(list(tasks.values()), view, reclassifier.today)
            event = DragDropEvent(active_id=task_id, over_id=over_id,
                                  original_task=tasks[task_id], target_bucket=target_bucket)
            stored = service.handle_drag_end(event, visible)

            if stored is None:
                print("ℹ️ Nothing to move.")
                return True

            print(f"✅ Moved '{stored.title}' (order {stored.order:g}, due {format_timestamp(stored.due_date)})")
            return True

        except (TasklaneError, ValueError) as e:
            self.logger.error(f"Reorder failed: {e}")
            print(f"❌ Reorder failed: {e}")
            return False
