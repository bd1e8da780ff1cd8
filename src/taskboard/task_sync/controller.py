"""Task List Controller orchestrating list-view user intent."""

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Any

from .exceptions import TaskBusyError, ValidationError
from .models import (
    ModalMode,
    MutationResult,
    StatusFilter,
    Task,
    TaskFormDraft,
    TaskPriority,
    TaskStatus,
    ViewMode,
    format_due_date,
)
from .stats import is_overdue
from .store import TaskStore
from .validation import validate_draft

logger = logging.getLogger(__name__)

DRAFT_FIELDS = ("title", "description", "priority", "status", "due_date")


class TaskListController:
    """
    Orchestrates filtering, the create/edit modal, per-task mutation locks
    and two-phase delete confirmation on top of a TaskStore.

    Holds only transient UI state; the task collection itself is read from
    the store on every call.
    """

    def __init__(
        self,
        store: TaskStore,
        today_provider: Callable[[], date] = date.today,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        """
        Initialize the controller.

        Args:
            store: Task store to read from and mutate through
            today_provider: Returns the current date (seeds new drafts)
            clock: Returns the current instant (overdue checks)
        """
        self._store = store
        self._today_provider = today_provider
        self._clock = clock

        self._filter = StatusFilter.ALL
        self._view_mode = ViewMode.LIST

        self._modal_mode = ModalMode.CLOSED
        self._draft: TaskFormDraft | None = None
        self._form_errors: dict[str, str] = {}
        self._submitting = False

        self._busy_ids: set[str] = set()
        self._delete_candidate: Task | None = None

    @property
    def store(self) -> TaskStore:
        return self._store

    # Filtering and view mode

    @property
    def status_filter(self) -> StatusFilter:
        return self._filter

    def set_filter(self, status_filter: StatusFilter | str) -> None:
        self._filter = StatusFilter(status_filter)

    def filtered_tasks(self) -> list[Task]:
        """Return the store's tasks that pass the current filter."""
        return [task for task in self._store.tasks if self._filter.matches(task)]

    def empty_message(self) -> str:
        """Text shown when the filtered list is empty."""
        if self._filter == StatusFilter.ALL:
            return "No tasks found"
        return f"No tasks marked as {self._filter.value}"

    @property
    def view_mode(self) -> ViewMode:
        return self._view_mode

    def set_view_mode(self, mode: ViewMode | str) -> None:
        self._view_mode = ViewMode(mode)

    # Create/edit modal

    @property
    def modal_mode(self) -> ModalMode:
        return self._modal_mode

    @property
    def draft(self) -> TaskFormDraft | None:
        return self._draft

    @property
    def form_errors(self) -> dict[str, str]:
        return dict(self._form_errors)

    @property
    def submitting(self) -> bool:
        return self._submitting

    def open_add(self) -> TaskFormDraft:
        """Open the modal with a fresh draft due tomorrow."""
        self._draft = TaskFormDraft(due_date=self._today_provider() + timedelta(days=1))
        self._form_errors = {}
        self._modal_mode = ModalMode.ADD
        return self._draft

    def open_edit(self, task: Task) -> TaskFormDraft:
        """Open the modal with a draft copied from an existing task."""
        self._draft = TaskFormDraft.from_task(task)
        self._form_errors = {}
        self._modal_mode = ModalMode.EDIT
        self._store.set_current_task(task)
        return self._draft

    def close_modal(self) -> None:
        """Close the modal, discarding the draft and its errors."""
        self._modal_mode = ModalMode.CLOSED
        self._draft = None
        self._form_errors = {}
        self._store.clear_current_task()

    def edit_field(self, name: str, value: Any) -> None:
        """
        Change one draft field and clear that field's validation error.

        Args:
            name: One of title, description, priority, status, due_date
            value: New value; enum and date fields also accept strings

        Raises:
            RuntimeError: If no modal is open
            ValueError: If the field name or value is invalid
        """
        if self._draft is None:
            raise RuntimeError("No task form is open")
        if name not in DRAFT_FIELDS:
            raise ValueError(f"Unknown task field: {name}")

        if name == "priority":
            value = TaskPriority(value)
        elif name == "status":
            value = TaskStatus(value)
        elif name == "due_date":
            if isinstance(value, datetime):
                value = value.date()
            elif isinstance(value, str):
                value = date.fromisoformat(value) if value.strip() else None

        setattr(self._draft, name, value)
        self._form_errors.pop(name, None)

    def validate(self) -> bool:
        """Validate the open draft, storing any field errors."""
        if self._draft is None:
            raise RuntimeError("No task form is open")
        self._form_errors = validate_draft(self._draft)
        return not self._form_errors

    async def submit(self) -> MutationResult:
        """
        Validate and persist the open draft.

        The modal closes only when the backend accepts the change. On any
        failure it stays open with the draft intact.

        Returns:
            MutationResult of the create or update

        Raises:
            ValidationError: If the draft is invalid (no backend call is made)
            TaskBusyError: If a submission is already in flight
            GatewayError: If the backend rejects the change
        """
        if self._draft is None:
            raise RuntimeError("No task form is open")
        if self._submitting:
            raise TaskBusyError("A task submission is already in progress")
        if not self.validate():
            logger.info(f"Task form invalid: {sorted(self._form_errors)}")
            raise ValidationError(self._form_errors)

        draft = self._draft
        self._submitting = True
        try:
            if self._modal_mode == ModalMode.EDIT and draft.id:
                existing = await self._store.get_task(draft.id)
                result = await self._store.update(
                    replace(
                        existing,
                        title=draft.title,
                        description=draft.description or "",
                        priority=draft.priority,
                        status=draft.status,
                        due_date=draft.due_date,
                    )
                )
            else:
                result = await self._store.create(draft)
        finally:
            self._submitting = False

        self.close_modal()
        return result

    # Per-task mutations

    def is_busy(self, task_id: str) -> bool:
        """Whether a toggle or delete is in flight for this task."""
        return task_id in self._busy_ids

    @contextmanager
    def _task_lock(self, task_id: str) -> Iterator[None]:
        if task_id in self._busy_ids:
            raise TaskBusyError(f"Task {task_id} already has an operation in progress")
        self._busy_ids.add(task_id)
        try:
            yield
        finally:
            self._busy_ids.discard(task_id)

    async def toggle_status(self, task_id: str) -> MutationResult:
        """
        Flip a task between pending and completed.

        Raises:
            TaskBusyError: If the task is already locked
        """
        with self._task_lock(task_id):
            task = await self._store.get_task(task_id)
            new_status = task.status.toggled()
            logger.info(f"Toggling task {task_id} to {new_status.value}")
            return await self._store.update(replace(task, status=new_status))

    async def delete(self, task_id: str) -> MutationResult:
        """
        Delete a task under its mutation lock.

        Raises:
            TaskBusyError: If the task is already locked
        """
        with self._task_lock(task_id):
            return await self._store.delete(task_id)

    # Two-phase delete

    @property
    def delete_candidate(self) -> Task | None:
        return self._delete_candidate

    def request_delete(self, task: Task) -> None:
        self._delete_candidate = task

    def cancel_delete(self) -> None:
        self._delete_candidate = None

    async def confirm_delete(self) -> MutationResult | None:
        """
        Delete the pending candidate.

        The candidate is cleared once the backend accepts the deletion; on
        failure it is kept so the deletion can be retried.

        Returns:
            MutationResult, or None when nothing was pending
        """
        candidate = self._delete_candidate
        if candidate is None:
            return None

        result = await self.delete(candidate.id)
        if self._delete_candidate is candidate:
            self._delete_candidate = None
        return result

    # Display helpers

    def is_overdue(self, task: Task) -> bool:
        return is_overdue(task, self._clock())

    def format_due_date(self, task: Task) -> str:
        return format_due_date(task.due_date)
