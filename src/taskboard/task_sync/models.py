"""Data models for task synchronization and view projection."""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum


class TaskStatus(str, Enum):
    """Task status enumeration."""

    PENDING = "pending"
    COMPLETED = "completed"

    def toggled(self) -> "TaskStatus":
        """Return the opposite status."""
        if self is TaskStatus.COMPLETED:
            return TaskStatus.PENDING
        return TaskStatus.COMPLETED


class TaskPriority(str, Enum):
    """Task priority enumeration."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class StatusFilter(str, Enum):
    """Status filter applied to the task list."""

    ALL = "all"
    PENDING = "pending"
    COMPLETED = "completed"

    def matches(self, task: "Task") -> bool:
        """Check whether a task passes this filter."""
        if self is StatusFilter.ALL:
            return True
        return task.status.value == self.value


class ViewMode(str, Enum):
    """Which view of the collection is active."""

    LIST = "list"
    CALENDAR = "calendar"


class CalendarGranularity(str, Enum):
    """Calendar view granularity."""

    MONTH = "month"
    WEEK = "week"
    DAY = "day"


class StoreStatus(str, Enum):
    """Task store lifecycle state."""

    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class ModalMode(str, Enum):
    """Create/edit modal state."""

    CLOSED = "closed"
    ADD = "add"
    EDIT = "edit"


@dataclass
class Task:
    """Represents a persisted task."""

    id: str
    title: str
    due_date: date | None
    created_at: datetime
    updated_at: datetime
    description: str = ""
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.PENDING


@dataclass
class TaskFormDraft:
    """Editable, unpersisted copy of a task used by the create/edit modal."""

    title: str = ""
    description: str = ""
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.PENDING
    due_date: date | None = None
    id: str | None = None

    @classmethod
    def from_task(cls, task: Task) -> "TaskFormDraft":
        """Seed a draft from an existing task, keeping only the due date's date."""
        due = task.due_date
        if isinstance(due, datetime):
            due = due.date()
        return cls(
            title=task.title,
            description=task.description,
            priority=task.priority,
            status=task.status,
            due_date=due,
            id=task.id,
        )


@dataclass
class CalendarEvent:
    """Calendar projection of a task. Never mutated independently of its task."""

    id: str
    title: str
    start: datetime
    end: datetime
    all_day: bool
    css_class: str
    show_description: bool
    task: Task


@dataclass
class EventDetail:
    """Read-only popup contents for a selected calendar event."""

    task_id: str
    title: str
    description: str
    due_date: str
    priority: TaskPriority
    status: TaskStatus


@dataclass
class TaskStats:
    """Aggregate counts derived from the task collection."""

    completed: int = 0
    pending: int = 0
    overdue: int = 0
    total: int = 0


@dataclass(frozen=True)
class StoreSnapshot:
    """Immutable view of the task store handed to observers."""

    status: StoreStatus
    tasks: tuple[Task, ...] = ()
    error: str | None = None

    @property
    def loading(self) -> bool:
        return self.status == StoreStatus.LOADING


@dataclass
class MutationResult:
    """Outcome of a mutation that the backend accepted."""

    task: Task | None = None
    refreshed: bool = True
    refresh_error: str | None = None


def format_due_date(value: date | None) -> str:
    """Format a due date like "Jun 1, 2024"."""
    if not isinstance(value, date):
        return "Invalid date"
    return f"{value:%b} {value.day}, {value.year}"
