"""Abstract interfaces for task persistence backends."""

from abc import ABC, abstractmethod

from taskboard.task_sync.models import Task, TaskFormDraft


class TaskBackend(ABC):
    """Abstract interface for a task persistence backend."""

    @abstractmethod
    async def initialize(self) -> None:
        """
        Prepare the backend for use.

        Opens connections and loads any durable state.

        Raises:
            GatewayError: If the backend cannot be reached or opened
        """
        pass

    @abstractmethod
    async def list_tasks(self) -> list[Task]:
        """
        Fetch the complete task collection.

        Returns:
            All tasks ordered by ascending due date; empty if there are none

        Raises:
            GatewayError: If the backend call fails
        """
        pass

    @abstractmethod
    async def get_task(self, task_id: str) -> Task | None:
        """
        Fetch a single task.

        Args:
            task_id: Task identifier

        Returns:
            The task, or None when it does not exist

        Raises:
            GatewayError: If the backend call fails
        """
        pass

    @abstractmethod
    async def create_task(self, draft: TaskFormDraft) -> Task:
        """
        Persist a new task. The stored status is always pending.

        Args:
            draft: Validated draft

        Returns:
            The created task with its backend-assigned id

        Raises:
            GatewayError: If the backend rejects the record
        """
        pass

    @abstractmethod
    async def update_task(self, task: Task) -> Task:
        """
        Persist every mutable field of an existing task.

        Args:
            task: Task with its id and new field values

        Returns:
            The updated task as stored by the backend

        Raises:
            GatewayError: If the backend rejects the record
        """
        pass

    @abstractmethod
    async def delete_task(self, task_id: str) -> None:
        """
        Remove a task.

        Args:
            task_id: Task identifier

        Raises:
            GatewayError: If the deletion fails
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release connections held by the backend."""
        pass
