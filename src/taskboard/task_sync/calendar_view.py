"""Calendar projection of tasks and drag-to-reschedule."""

import logging
from collections.abc import Callable
from datetime import date, datetime, time, timedelta

from .config import DEFAULT_EVENT_DURATION_HOURS, DEFAULT_EVENT_START_HOUR
from .controller import TaskListController
from .exceptions import TaskNotFoundError
from .models import (
    CalendarEvent,
    CalendarGranularity,
    EventDetail,
    MutationResult,
    Task,
    TaskFormDraft,
    TaskStatus,
    format_due_date,
)

logger = logging.getLogger(__name__)

PRIORITY_EVENT_CLASSES = {
    "high": "event-high-priority",
    "medium": "event-medium-priority",
    "low": "event-low-priority",
}
COMPLETED_EVENT_CLASS = "event-completed"


def event_class(task: Task) -> str:
    """Display class for a task's event; completion overrides priority."""
    if task.status == TaskStatus.COMPLETED:
        return COMPLETED_EVENT_CLASS
    return PRIORITY_EVENT_CLASSES.get(task.priority.value, "")


def project_task(task: Task, granularity: CalendarGranularity) -> CalendarEvent:
    """
    Build the calendar event for a task.

    The event spans the default hour on the due date; it is all-day only in
    month granularity.
    """
    start = datetime.combine(task.due_date, time(hour=DEFAULT_EVENT_START_HOUR))
    return CalendarEvent(
        id=task.id,
        title=task.title,
        start=start,
        end=start + timedelta(hours=DEFAULT_EVENT_DURATION_HOURS),
        all_day=granularity == CalendarGranularity.MONTH,
        css_class=event_class(task),
        show_description=granularity != CalendarGranularity.MONTH and bool(task.description),
        task=task,
    )


class CalendarProjection:
    """
    Calendar view over the controller's filtered tasks.

    Granularity and the visible date are local state; changing them never
    refetches. Rescheduling goes through the store and the event only moves
    once the following refresh lands.
    """

    def __init__(
        self,
        controller: TaskListController,
        granularity: CalendarGranularity = CalendarGranularity.MONTH,
        selected_date: date | None = None,
        today_provider: Callable[[], date] = date.today,
    ) -> None:
        self._controller = controller
        self._granularity = CalendarGranularity(granularity)
        self._selected_date = selected_date or today_provider()
        self._selected_task: Task | None = None

    @property
    def granularity(self) -> CalendarGranularity:
        return self._granularity

    @property
    def selected_date(self) -> date:
        return self._selected_date

    def set_granularity(self, granularity: CalendarGranularity | str) -> None:
        """Switch month/week/day, keeping the selected date."""
        self._granularity = CalendarGranularity(granularity)

    def navigate(self, new_date: date | datetime) -> None:
        """Move the visible range to another date."""
        self._selected_date = new_date.date() if isinstance(new_date, datetime) else new_date

    def events(self) -> list[CalendarEvent]:
        """Project the filtered task list into calendar events."""
        return [
            project_task(task, self._granularity)
            for task in self._controller.filtered_tasks()
            if task.due_date is not None
        ]

    # Selection popup

    @property
    def selected_detail(self) -> EventDetail | None:
        task = self._selected_task
        if task is None:
            return None
        return EventDetail(
            task_id=task.id,
            title=task.title,
            description=task.description,
            due_date=format_due_date(task.due_date),
            priority=task.priority,
            status=task.status,
        )

    def select_event(self, task_id: str) -> EventDetail:
        """
        Open the read-only detail popup for an event.

        Raises:
            TaskNotFoundError: If no visible event has this id
        """
        for task in self._controller.filtered_tasks():
            if task.id == task_id:
                self._selected_task = task
                return self.selected_detail
        raise TaskNotFoundError(f"No calendar event for task {task_id}")

    def close_detail(self) -> None:
        self._selected_task = None

    def edit_selected(self) -> TaskFormDraft:
        """Hand the selected task to the list controller's edit flow."""
        if self._selected_task is None:
            raise RuntimeError("No calendar event selected")
        draft = self._controller.open_edit(self._selected_task)
        self.close_detail()
        return draft

    # Drag and drop

    async def reschedule(self, task_id: str, new_start: date | datetime) -> MutationResult:
        """
        Move a task to the date an event was dropped on.

        Only the date component is kept; time of day is not user-controlled.

        Raises:
            TaskNotFoundError: If the task does not exist
            GatewayError: If the backend rejects the update
        """
        new_due = new_start.date() if isinstance(new_start, datetime) else new_start
        logger.info(f"Rescheduling task {task_id} to {new_due.isoformat()}")
        return await self._controller.store.set_due_date(task_id, new_due)
