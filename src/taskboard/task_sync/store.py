"""Task Store holding the authoritative task collection."""

import logging
from collections.abc import Callable
from dataclasses import replace
from datetime import date

from .exceptions import TaskNotFoundError
from .interfaces import TaskBackend
from .models import (
    MutationResult,
    StoreSnapshot,
    StoreStatus,
    Task,
    TaskFormDraft,
    TaskStatus,
)

logger = logging.getLogger(__name__)

StoreObserver = Callable[[StoreSnapshot], None]


class TaskStore:
    """
    Owns the task collection and its loading/error status.

    Lifecycle is idle -> loading -> (ready | failed). Mutations never patch
    the collection locally: every accepted mutation is followed by a full
    refresh from the backend. Observers are notified on each transition.
    """

    def __init__(self, backend: TaskBackend) -> None:
        """
        Initialize the store.

        Args:
            backend: Persistence backend (remote or local)
        """
        self._backend = backend
        self._tasks: tuple[Task, ...] = ()
        self._status = StoreStatus.IDLE
        self._error: str | None = None
        self._current_task: Task | None = None
        self._observers: list[StoreObserver] = []
        self._refresh_seq = 0
        self._applied_seq = 0

    @property
    def backend(self) -> TaskBackend:
        return self._backend

    @property
    def tasks(self) -> tuple[Task, ...]:
        return self._tasks

    @property
    def status(self) -> StoreStatus:
        return self._status

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def loading(self) -> bool:
        return self._status == StoreStatus.LOADING

    @property
    def current_task(self) -> Task | None:
        return self._current_task

    def snapshot(self) -> StoreSnapshot:
        """Return an immutable view of the current state."""
        return StoreSnapshot(status=self._status, tasks=self._tasks, error=self._error)

    def subscribe(self, observer: StoreObserver) -> Callable[[], None]:
        """
        Register an observer for state transitions.

        Args:
            observer: Callback receiving a StoreSnapshot

        Returns:
            Callable that removes the observer
        """
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def _transition(self, status: StoreStatus, error: str | None = None) -> None:
        self._status = status
        self._error = error
        snapshot = self.snapshot()
        for observer in list(self._observers):
            try:
                observer(snapshot)
            except Exception:
                logger.exception(f"Task store observer failed on {status.value}")

    async def _refresh(self) -> str | None:
        """Run one refresh; return its error message, or None on success."""
        self._refresh_seq += 1
        seq = self._refresh_seq
        self._transition(StoreStatus.LOADING)

        try:
            tasks = await self._backend.list_tasks()
        except Exception as e:
            error = str(e) or e.__class__.__name__
            if seq < self._applied_seq:
                logger.debug(f"Ignoring failure of superseded refresh #{seq}")
                return error
            self._applied_seq = seq
            logger.warning(f"Task refresh failed, keeping {len(self._tasks)} tasks: {error}")
            self._transition(StoreStatus.FAILED, error)
            return error

        if seq < self._applied_seq:
            logger.debug(f"Discarding superseded refresh #{seq}")
            return None

        self._applied_seq = seq
        self._tasks = tuple(tasks)
        if self._current_task is not None:
            self._current_task = next(
                (task for task in self._tasks if task.id == self._current_task.id), None
            )
        logger.debug(f"Task refresh #{seq} loaded {len(self._tasks)} tasks")
        self._transition(StoreStatus.READY)
        return None

    async def refresh(self) -> bool:
        """
        Reload the whole collection from the backend.

        A failure is recorded on the store (status failed, error set) and the
        last known collection is kept.

        Returns:
            True if the backend returned the collection
        """
        return await self._refresh() is None

    async def _after_write(self, task: Task | None) -> MutationResult:
        error = await self._refresh()
        if error is not None:
            logger.warning(f"Change saved but could not refresh tasks: {error}")
            return MutationResult(task=task, refreshed=False, refresh_error=error)
        return MutationResult(task=task)

    async def get_task(self, task_id: str) -> Task:
        """
        Find a task in the collection, falling back to the backend.

        Raises:
            TaskNotFoundError: If the task does not exist
        """
        for task in self._tasks:
            if task.id == task_id:
                return task

        task = await self._backend.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(f"Task with ID {task_id} not found")
        return task

    async def create(self, draft: TaskFormDraft) -> MutationResult:
        """
        Create a task and refresh.

        Raises:
            GatewayError: If the backend rejects the task
        """
        try:
            task = await self._backend.create_task(draft)
        except Exception as e:
            logger.error(f"Error creating task: {e}")
            raise
        return await self._after_write(task)

    async def update(self, task: Task) -> MutationResult:
        """
        Persist all mutable fields of a task and refresh.

        Raises:
            GatewayError: If the backend rejects the update
            TaskNotFoundError: If the task no longer exists
        """
        try:
            updated = await self._backend.update_task(task)
        except Exception as e:
            logger.error(f"Error updating task {task.id}: {e}")
            raise
        return await self._after_write(updated)

    async def delete(self, task_id: str) -> MutationResult:
        """
        Delete a task and refresh.

        Raises:
            GatewayError: If the deletion fails
            TaskNotFoundError: If the task does not exist
        """
        try:
            await self._backend.delete_task(task_id)
        except Exception as e:
            logger.error(f"Error deleting task {task_id}: {e}")
            raise
        if self._current_task is not None and self._current_task.id == task_id:
            self._current_task = None
        return await self._after_write(None)

    async def set_status(self, task_id: str, status: TaskStatus) -> MutationResult:
        """Set a task's status and refresh."""
        task = await self.get_task(task_id)
        return await self.update(replace(task, status=status))

    async def set_due_date(self, task_id: str, due_date: date) -> MutationResult:
        """Move a task to a new due date and refresh."""
        task = await self.get_task(task_id)
        return await self.update(replace(task, due_date=due_date))

    def set_current_task(self, task: Task) -> None:
        self._current_task = task

    def clear_current_task(self) -> None:
        self._current_task = None

    def reset(self) -> None:
        """Return to the initial idle state."""
        self._tasks = ()
        self._current_task = None
        self._transition(StoreStatus.IDLE)
