"""Backend selection and wiring of the task synchronization components."""

import logging
from dataclasses import dataclass

from .calendar_view import CalendarProjection
from .config import BACKEND_LOCAL, BACKEND_REMOTE, DEFAULT_BACKEND, DEFAULT_DATABASE_PATH
from .controller import TaskListController
from .interfaces import TaskBackend
from .local_gateway import LocalTaskGateway
from .remote_gateway import RemoteTaskGateway
from .stats import StatsAggregator
from .store import TaskStore

logger = logging.getLogger(__name__)


def create_backend(
    kind: str = DEFAULT_BACKEND, db_path: str = DEFAULT_DATABASE_PATH
) -> TaskBackend:
    """
    Create the configured persistence backend.

    Args:
        kind: "local" or "remote"
        db_path: Database path for the local backend

    Returns:
        Uninitialized backend

    Raises:
        ValueError: If the backend kind is unknown
    """
    if kind == BACKEND_LOCAL:
        return LocalTaskGateway(db_path)
    if kind == BACKEND_REMOTE:
        return RemoteTaskGateway()
    raise ValueError(f"Unknown task backend: {kind}")


@dataclass
class TaskBoard:
    """The store and the views derived from it, sharing one backend."""

    store: TaskStore
    controller: TaskListController
    calendar: CalendarProjection
    stats: StatsAggregator

    @classmethod
    def create(cls, backend: TaskBackend) -> "TaskBoard":
        store = TaskStore(backend)
        controller = TaskListController(store)
        return cls(
            store=store,
            controller=controller,
            calendar=CalendarProjection(controller),
            stats=StatsAggregator(store),
        )

    async def start(self) -> None:
        """Initialize the backend and load the collection."""
        await self.store.backend.initialize()
        await self.store.refresh()
        logger.info(f"Task board started with {len(self.store.tasks)} tasks")

    async def shutdown(self) -> None:
        """
        Stop observing the store and close the backend.

        Handles errors gracefully to ensure cleanup completes.
        """
        self.stats.close()
        try:
            await self.store.backend.close()
        except Exception as e:
            logger.error(f"Error closing task backend: {e}")
