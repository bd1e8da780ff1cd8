"""Stats aggregation and the overdue rule."""

import logging
from collections.abc import Callable, Iterable
from datetime import date, datetime

from .models import StoreSnapshot, Task, TaskStats, TaskStatus
from .store import TaskStore

logger = logging.getLogger(__name__)


def is_overdue(task: Task, now: datetime | date | None = None) -> bool:
    """
    Check whether a task is overdue.

    A pending task is overdue once the end of its due day has passed, which
    for date-valued due dates is the same as the due date being strictly
    before today. Completed tasks are never overdue.

    Args:
        task: Task to check
        now: Current instant or date (defaults to now)

    Returns:
        True if the task is overdue
    """
    if task.status == TaskStatus.COMPLETED or task.due_date is None:
        return False

    if now is None:
        now = datetime.now()
    today = now.date() if isinstance(now, datetime) else now

    due = task.due_date.date() if isinstance(task.due_date, datetime) else task.due_date
    return due < today


def compute_stats(tasks: Iterable[Task], today: date | None = None) -> TaskStats:
    """
    Count completed, pending and overdue tasks.

    Args:
        tasks: Task collection
        today: Reference date (defaults to today)

    Returns:
        TaskStats with the counts
    """
    today = today or date.today()
    stats = TaskStats()

    for task in tasks:
        stats.total += 1
        if task.status == TaskStatus.COMPLETED:
            stats.completed += 1
        elif task.status == TaskStatus.PENDING:
            stats.pending += 1
        if is_overdue(task, today):
            stats.overdue += 1

    return stats


class StatsAggregator:
    """Keeps TaskStats current by observing a TaskStore."""

    def __init__(
        self,
        store: TaskStore,
        today_provider: Callable[[], date] = date.today,
    ) -> None:
        self._today_provider = today_provider
        self._stats = compute_stats(store.tasks, today_provider())
        self._unsubscribe = store.subscribe(self._on_store_change)

    @property
    def stats(self) -> TaskStats:
        return self._stats

    def _on_store_change(self, snapshot: StoreSnapshot) -> None:
        self._stats = compute_stats(snapshot.tasks, self._today_provider())
        logger.debug(
            f"Stats updated: completed={self._stats.completed}, "
            f"pending={self._stats.pending}, overdue={self._stats.overdue}"
        )

    def close(self) -> None:
        """Stop observing the store."""
        self._unsubscribe()
