"""Local task gateway storing the collection as one SQLite document."""

import asyncio
import json
import logging
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import date, datetime
from pathlib import Path
from typing import Any

import aiosqlite

from .config import (
    DEFAULT_DATABASE_PATH,
    DEFAULT_WAL_MODE,
    SCHEMA_VERSION,
    TASKS_DOCUMENT_KEY,
)
from .exceptions import StorageError, TaskNotFoundError
from .interfaces import TaskBackend
from .models import Task, TaskFormDraft, TaskStatus
from .remote_gateway import task_from_record, task_to_record

logger = logging.getLogger(__name__)


def _due_sort_key(task: Task) -> tuple[bool, date]:
    return (task.due_date is None, task.due_date or date.max)


class LocalTaskGateway(TaskBackend):
    """
    Durable local task backend.

    The whole collection lives in a single key-value row as one JSON
    document. It is read once on initialize() and rewritten after every
    mutation; mutations are serialized so each starts from the latest
    collection.
    """

    def __init__(
        self,
        db_path: str = DEFAULT_DATABASE_PATH,
        wal_mode: bool = DEFAULT_WAL_MODE,
        document_key: str = TASKS_DOCUMENT_KEY,
    ) -> None:
        """
        Initialize the local gateway.

        Args:
            db_path: Path to SQLite database file (use ":memory:" for in-memory)
            wal_mode: Enable WAL mode for concurrent access
            document_key: Key under which the task document is stored
        """
        self.db_path = db_path
        self.wal_mode = wal_mode
        self.document_key = document_key
        self._connection: aiosqlite.Connection | None = None
        self._tasks: dict[str, Task] = {}
        self._write_lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Open the database, create the schema and load the task document."""
        if self._connection is None:
            if self.db_path != ":memory:":
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

            try:
                self._connection = await aiosqlite.connect(self.db_path)
            except Exception as e:
                raise StorageError(f"Failed to open {self.db_path}: {e}") from e
            self._connection.row_factory = aiosqlite.Row

            # WAL is not supported for :memory:
            if self.wal_mode and self.db_path != ":memory:":
                await self._connection.execute("PRAGMA journal_mode=WAL")

        await self._create_schema()
        self._tasks = await self._load_document()
        logger.info(
            f"Local task gateway ready with {len(self._tasks)} tasks ({self.db_path})"
        )

    async def _create_schema(self) -> None:
        """Create schema_version and documents tables."""
        async with self._get_connection() as conn:
            await conn.execute(
                """
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY,
                    applied_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
                )
                """
            )

            cursor = await conn.execute("SELECT MAX(version) FROM schema_version")
            result = await cursor.fetchone()
            current_version = result[0] if result and result[0] is not None else 0

            if current_version < SCHEMA_VERSION:
                await self._apply_migrations(conn, current_version)

            await conn.commit()

    async def _apply_migrations(
        self, conn: aiosqlite.Connection, from_version: int
    ) -> None:
        """
        Apply database migrations.

        Args:
            conn: Database connection
            from_version: Current schema version
        """
        if from_version < 1:
            await conn.execute(
                """
                CREATE TABLE IF NOT EXISTS documents (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TIMESTAMP NOT NULL
                )
                """
            )
            await conn.execute(
                "INSERT OR REPLACE INTO schema_version (version) VALUES (?)",
                (SCHEMA_VERSION,),
            )

    @asynccontextmanager
    async def _get_connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Get database connection context manager.

        Raises:
            StorageError: If connection is not initialized
        """
        if self._connection is None:
            raise StorageError("Local storage not initialized")
        yield self._connection

    async def get_schema_version(self) -> int:
        """Return the applied schema version."""
        async with self._get_connection() as conn:
            cursor = await conn.execute("SELECT MAX(version) FROM schema_version")
            result = await cursor.fetchone()
            return result[0] if result and result[0] is not None else 0

    async def close(self) -> None:
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    async def _load_document(self) -> dict[str, Task]:
        async with self._get_connection() as conn:
            cursor = await conn.execute(
                "SELECT value FROM documents WHERE key = ?", (self.document_key,)
            )
            row = await cursor.fetchone()

        if row is None:
            return {}

        try:
            records = json.loads(row["value"])
        except (TypeError, ValueError) as e:
            raise StorageError(f"Corrupt task document '{self.document_key}'") from e

        tasks = [task_from_record(record) for record in records]
        return {task.id: task for task in tasks}

    @staticmethod
    def _serialize(tasks: list[Task]) -> str:
        records: list[dict[str, Any]] = []
        for task in tasks:
            record = task_to_record(task)
            record["CreatedOn"] = task.created_at.isoformat()
            record["ModifiedOn"] = task.updated_at.isoformat()
            records.append(record)
        return json.dumps(records)

    async def _write_document(self, tasks: dict[str, Task]) -> None:
        """
        Rewrite the whole task document.

        Raises:
            StorageError: If the write fails
        """
        document = self._serialize(sorted(tasks.values(), key=_due_sort_key))
        try:
            async with self._get_connection() as conn:
                await conn.execute(
                    """
                    INSERT OR REPLACE INTO documents (key, value, updated_at)
                    VALUES (?, ?, ?)
                    """,
                    (self.document_key, document, datetime.now().isoformat()),
                )
                await conn.commit()
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to write task document: {e}") from e

        self._tasks = tasks

    async def list_tasks(self) -> list[Task]:
        """Return copies of all tasks ordered by ascending due date."""
        return [replace(task) for task in sorted(self._tasks.values(), key=_due_sort_key)]

    async def get_task(self, task_id: str) -> Task | None:
        """Return a copy of one task, or None when unknown."""
        task = self._tasks.get(task_id)
        return replace(task) if task is not None else None

    async def create_task(self, draft: TaskFormDraft) -> Task:
        """
        Create a task with a new UUID. The status is forced to pending.

        Args:
            draft: Validated draft

        Returns:
            Created task
        """
        now = datetime.now()
        task = Task(
            id=str(uuid.uuid4()),
            title=draft.title,
            description=draft.description or "",
            priority=draft.priority,
            status=TaskStatus.PENDING,
            due_date=draft.due_date,
            created_at=now,
            updated_at=now,
        )

        async with self._write_lock:
            await self._write_document({**self._tasks, task.id: task})

        logger.info(f"Created task {task.id}: {task.title}")
        return replace(task)

    async def update_task(self, task: Task) -> Task:
        """
        Update every mutable field of a task.

        Raises:
            TaskNotFoundError: If the task does not exist
        """
        async with self._write_lock:
            current = self._tasks.get(task.id)
            if current is None:
                raise TaskNotFoundError(f"Task with ID {task.id} not found")

            updated = replace(
                current,
                title=task.title,
                description=task.description or "",
                priority=task.priority,
                status=task.status,
                due_date=task.due_date,
                updated_at=datetime.now(),
            )
            await self._write_document({**self._tasks, task.id: updated})

        logger.info(f"Updated task {task.id}")
        return replace(updated)

    async def delete_task(self, task_id: str) -> None:
        """
        Delete a task.

        Raises:
            TaskNotFoundError: If the task does not exist
        """
        async with self._write_lock:
            if task_id not in self._tasks:
                raise TaskNotFoundError(f"Task with ID {task_id} not found")

            remaining = {key: task for key, task in self._tasks.items() if key != task_id}
            await self._write_document(remaining)

        logger.info(f"Deleted task {task_id}")
