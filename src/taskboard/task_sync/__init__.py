"""Task synchronization and view projection."""

from .calendar_view import CalendarProjection
from .controller import TaskListController
from .factory import TaskBoard, create_backend
from .interfaces import TaskBackend
from .local_gateway import LocalTaskGateway
from .models import (
    CalendarEvent,
    CalendarGranularity,
    MutationResult,
    StatusFilter,
    StoreStatus,
    Task,
    TaskFormDraft,
    TaskPriority,
    TaskStats,
    TaskStatus,
)
from .remote_gateway import RemoteTaskGateway
from .stats import StatsAggregator, compute_stats, is_overdue
from .store import TaskStore
from .validation import validate_draft

__all__ = [
    "Task",
    "TaskStatus",
    "TaskPriority",
    "TaskFormDraft",
    "TaskStats",
    "StatusFilter",
    "StoreStatus",
    "CalendarEvent",
    "CalendarGranularity",
    "MutationResult",
    "TaskBackend",
    "LocalTaskGateway",
    "RemoteTaskGateway",
    "TaskStore",
    "TaskListController",
    "CalendarProjection",
    "StatsAggregator",
    "TaskBoard",
    "compute_stats",
    "create_backend",
    "is_overdue",
    "validate_draft",
]
