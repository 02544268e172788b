"""Fractional-index ordering for drag-and-drop reorders."""

import logging
import math
import random
from typing import Callable, Iterable, List, Mapping, Optional, Sequence

from ..core.exceptions import OrderOverflowError
from ..core.models import Task, task_sort_key
from ..utils.date import now_ms

DEFAULT_ORDER_STEP = 1000.0
DEFAULT_ORDER_JITTER = 1.0

_logger = logging.getLogger(__name__)


def array_move(items: Sequence[str], from_index: int, to_index: int) -> List[str]:
    """Return a copy of ``items`` with one element moved, like a sortable list drop."""
    moved = list(items)
    moved.insert(to_index, moved.pop(from_index))
    return moved


def _jitter_above(prev_order: float, jitter: float, rng: random.Random) -> float:
    """
    A random value strictly greater than ``prev_order``, used once midpoints run out.

    Raises:
        OrderOverflowError: if the offset is lost to rounding
    """
    candidate = prev_order + rng.random() * jitter
    if not candidate > prev_order:
        raise OrderOverflowError(f"No jittered order above {prev_order!r}")
    return candidate


def compute_new_order(ordered_ids: Sequence[str],
                      moved_id: str,
                      orders: Mapping[str, float],
                      *,
                      now: Optional[Callable[[], int]] = None,
                      step: float = DEFAULT_ORDER_STEP,
                      jitter: float = DEFAULT_ORDER_JITTER,
                      rng: Optional[random.Random] = None,
                      logger: Optional[logging.Logger] = None) -> Optional[float]:
    """
    Compute a new ``order`` for one moved item.

    Args:
        ordered_ids: Visible ids after the move has been applied
        moved_id: Id of the item that was dragged
        orders: Current order value of every visible item
        now: Clock returning epoch milliseconds (used at the empty top of a view)
        step: Gap left when placing before the first or after the last item
        jitter: Upper bound of the random offset used when midpoints are exhausted

    Returns:
        The new order value, or None when the move refers to ids that are no
        longer present (a stale drag racing a deletion).
    """
    logger = logger or _logger
    clock = now or now_ms
    rng = rng or random.Random()

    try:
        index = list(ordered_ids).index(moved_id)
    except ValueError:
        logger.debug("Moved item %s is not in the visible sequence", moved_id)
        return None

    prev_id = ordered_ids[index - 1] if index > 0 else None
    next_id = ordered_ids[index + 1] if index < len(ordered_ids) - 1 else None

    for neighbour in (prev_id, next_id):
        if neighbour is not None and neighbour not in orders:
            logger.debug("Neighbour %s of %s has no known order", neighbour, moved_id)
            return None

    prev_order = orders[prev_id] if prev_id is not None else None
    next_order = orders[next_id] if next_id is not None else None

    if prev_order is None:
        anchor = next_order if next_order is not None else clock()
        new_order = anchor - step
    elif next_order is None:
        new_order = prev_order + step
    else:
        midpoint = prev_order + (next_order - prev_order) / 2
        if not math.isfinite(midpoint) or midpoint <= prev_order or midpoint >= next_order:
            logger.debug(
                "Order precision exhausted between %r and %r; using jitter",
                prev_order, next_order,
            )
            try:
                new_order = _jitter_above(prev_order, jitter, rng)
            except OrderOverflowError as exc:
                logger.debug("%s; taking the next representable value", exc)
                new_order = math.nextafter(prev_order, math.inf)
        else:
            new_order = midpoint

    if not math.isfinite(new_order):
        new_order = float(clock())

    return new_order


def order_for_new_task(tasks: Iterable[Task], *, now: Optional[Callable[[], int]] = None,
                       step: float = DEFAULT_ORDER_STEP) -> float:
    """Order that places a new task above every active task."""
    clock = now or now_ms
    active = [task for task in tasks if not task.completed and not task.is_trashed]
    if not active:
        return float(clock())
    top = min(active, key=task_sort_key)
    if not top.order:
        return float(clock())
    return top.order - step


class OrderAssigner:
    """Assigns fractional order values using one configured step and clock."""

    def __init__(self, step: float = DEFAULT_ORDER_STEP,
                 jitter: float = DEFAULT_ORDER_JITTER,
                 clock: Optional[Callable[[], int]] = None,
                 rng: Optional[random.Random] = None,
                 logger: Optional[logging.Logger] = None):
        self.step = step
        self.jitter = jitter
        self.clock = clock or now_ms
        self.rng = rng or random.Random()
        self.logger = logger or logging.getLogger(__name__)

    def compute(self, ordered_ids: Sequence[str], moved_id: str,
                orders: Mapping[str, float]) -> Optional[float]:
        return compute_new_order(
            ordered_ids,
            moved_id,
            orders,
            now=self.clock,
            step=self.step,
            jitter=self.jitter,
            rng=self.rng,
            logger=self.logger,
        )

    def for_new_task(self, tasks: Iterable[Task]) -> float:
        return order_for_new_task(tasks, now=self.clock, step=self.step)
