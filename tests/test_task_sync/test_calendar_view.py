"""Unit tests for the calendar projection and rescheduler."""

from datetime import date, datetime
from typing import Any
from unittest.mock import AsyncMock

import pytest

from taskboard.task_sync.calendar_view import CalendarProjection, event_class, project_task
from taskboard.task_sync.controller import TaskListController
from taskboard.task_sync.exceptions import TaskNotFoundError
from taskboard.task_sync.interfaces import TaskBackend
from taskboard.task_sync.models import (
    CalendarGranularity,
    ModalMode,
    Task,
    TaskPriority,
    TaskStatus,
)
from taskboard.task_sync.store import TaskStore


def make_task(task_id: str = "1", **overrides: Any) -> Task:
    now = datetime(2024, 5, 1, 8, 0)
    fields: dict[str, Any] = {
        "id": task_id,
        "title": f"Task {task_id}",
        "due_date": date(2024, 6, 12),
        "created_at": now,
        "updated_at": now,
    }
    fields.update(overrides)
    return Task(**fields)


@pytest.fixture
def mock_backend() -> AsyncMock:
    """Create a mock backend for testing."""
    backend = AsyncMock(spec=TaskBackend)
    backend.list_tasks = AsyncMock(return_value=[])
    backend.get_task = AsyncMock(return_value=None)
    backend.update_task = AsyncMock(side_effect=lambda task: task)
    return backend


async def make_calendar(backend: AsyncMock, tasks: list[Task]) -> CalendarProjection:
    backend.list_tasks.return_value = tasks
    controller = TaskListController(TaskStore(backend))
    await controller.store.refresh()
    return CalendarProjection(controller, selected_date=date(2024, 6, 1))


@pytest.mark.unit
class TestEventProjection:
    """Test cases for task-to-event projection."""

    def test_event_spans_nine_to_ten(self) -> None:
        event = project_task(make_task(due_date=date(2024, 6, 1)), CalendarGranularity.WEEK)

        assert event.start == datetime(2024, 6, 1, 9, 0)
        assert event.end == datetime(2024, 6, 1, 10, 0)
        assert event.all_day is False

    def test_all_day_only_in_month_view(self) -> None:
        task = make_task()
        assert project_task(task, CalendarGranularity.MONTH).all_day is True
        assert project_task(task, CalendarGranularity.DAY).all_day is False

    def test_description_hidden_in_month_view(self) -> None:
        task = make_task(description="Details")
        assert project_task(task, CalendarGranularity.MONTH).show_description is False
        assert project_task(task, CalendarGranularity.DAY).show_description is True

    @pytest.mark.parametrize(
        ("priority", "expected"),
        [
            (TaskPriority.HIGH, "event-high-priority"),
            (TaskPriority.MEDIUM, "event-medium-priority"),
            (TaskPriority.LOW, "event-low-priority"),
        ],
    )
    def test_pending_events_styled_by_priority(
        self, priority: TaskPriority, expected: str
    ) -> None:
        assert event_class(make_task(priority=priority)) == expected

    def test_completed_overrides_priority(self) -> None:
        task = make_task(priority=TaskPriority.HIGH, status=TaskStatus.COMPLETED)
        assert event_class(task) == "event-completed"


@pytest.mark.unit
@pytest.mark.asyncio
class TestCalendarProjection:
    """Test cases for calendar state, selection and rescheduling."""

    async def test_events_follow_list_filter(self, mock_backend: AsyncMock) -> None:
        calendar = await make_calendar(
            mock_backend,
            [make_task("1"), make_task("2", status=TaskStatus.COMPLETED)],
        )
        calendar._controller.set_filter("pending")

        assert [event.id for event in calendar.events()] == ["1"]

    async def test_tasks_without_due_date_are_skipped(self, mock_backend: AsyncMock) -> None:
        calendar = await make_calendar(mock_backend, [make_task("1", due_date=None)])
        assert calendar.events() == []

    async def test_granularity_switch_keeps_date_and_does_not_refetch(
        self, mock_backend: AsyncMock
    ) -> None:
        calendar = await make_calendar(mock_backend, [make_task("1")])
        calendar.navigate(datetime(2024, 6, 15, 8, 0))

        calendar.set_granularity("week")

        assert calendar.granularity == CalendarGranularity.WEEK
        assert calendar.selected_date == date(2024, 6, 15)
        assert all(not event.all_day for event in calendar.events())
        assert mock_backend.list_tasks.await_count == 1

    async def test_select_event_shows_detail(self, mock_backend: AsyncMock) -> None:
        task = make_task(
            "1",
            title="Dentist",
            description="Bring card",
            due_date=date(2024, 6, 1),
            priority=TaskPriority.HIGH,
        )
        calendar = await make_calendar(mock_backend, [task])

        detail = calendar.select_event("1")

        assert detail.title == "Dentist"
        assert detail.description == "Bring card"
        assert detail.due_date == "Jun 1, 2024"
        assert detail.priority == TaskPriority.HIGH
        assert detail.status == TaskStatus.PENDING
        assert calendar.selected_detail == detail

    async def test_select_unknown_event(self, mock_backend: AsyncMock) -> None:
        calendar = await make_calendar(mock_backend, [])
        with pytest.raises(TaskNotFoundError):
            calendar.select_event("nope")

    async def test_edit_selected_hands_off_and_dismisses(
        self, mock_backend: AsyncMock
    ) -> None:
        calendar = await make_calendar(mock_backend, [make_task("1", title="Edit me")])
        calendar.select_event("1")

        draft = calendar.edit_selected()

        assert draft.id == "1"
        assert calendar._controller.modal_mode == ModalMode.EDIT
        assert calendar.selected_detail is None

    async def test_edit_without_selection(self, mock_backend: AsyncMock) -> None:
        calendar = await make_calendar(mock_backend, [])
        with pytest.raises(RuntimeError):
            calendar.edit_selected()

    async def test_reschedule_issues_due_date_update(self, mock_backend: AsyncMock) -> None:
        calendar = await make_calendar(mock_backend, [make_task("2")])

        result = await calendar.reschedule("2", datetime(2024, 7, 4, 14, 30))

        sent = mock_backend.update_task.call_args[0][0]
        assert sent.id == "2"
        assert sent.due_date == date(2024, 7, 4)
        assert result.refreshed is True
        assert mock_backend.list_tasks.await_count == 2

    async def test_reschedule_does_not_move_event_locally(
        self, mock_backend: AsyncMock
    ) -> None:
        calendar = await make_calendar(mock_backend, [make_task("2")])

        # The backend has not reported the new date yet
        await calendar.reschedule("2", date(2024, 7, 4))

        assert calendar.events()[0].start.date() == date(2024, 6, 12)
