"""Remote task gateway backed by an HTTP record API."""

import logging
from datetime import date, datetime
from typing import Any

import httpx

from ..logging_utils import TRACE_LEVEL
from .config import (
    DEFAULT_API_BASE_URL,
    DEFAULT_API_PROJECT_ID,
    DEFAULT_API_PUBLIC_KEY,
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_PAGE_SIZE,
    DEFAULT_TABLE_NAME,
    TASK_RECORD_FIELDS,
)
from .exceptions import GatewayError
from .interfaces import TaskBackend
from .models import Task, TaskFormDraft, TaskPriority, TaskStatus

logger = logging.getLogger(__name__)


def _parse_due_date(value: Any) -> date | None:
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        logger.warning(f"Invalid due date '{value}' in backend record")
        return None


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if value:
        try:
            return datetime.fromisoformat(str(value))
        except ValueError:
            logger.warning(f"Invalid timestamp '{value}' in backend record")
    return datetime.now()


def task_from_record(record: dict[str, Any]) -> Task:
    """
    Map a backend record to a Task.

    Absent fields default to priority=medium, status=pending and
    timestamps=now.

    Args:
        record: Record as returned by the record API

    Returns:
        Task object
    """
    try:
        priority = TaskPriority(record.get("priority") or TaskPriority.MEDIUM.value)
    except ValueError:
        logger.warning(f"Invalid priority '{record.get('priority')}', defaulting to medium")
        priority = TaskPriority.MEDIUM

    try:
        status = TaskStatus(record.get("status") or TaskStatus.PENDING.value)
    except ValueError:
        logger.warning(f"Invalid status '{record.get('status')}', defaulting to pending")
        status = TaskStatus.PENDING

    return Task(
        id=str(record.get("Id", "")),
        title=record.get("title") or "",
        description=record.get("description") or "",
        priority=priority,
        status=status,
        due_date=_parse_due_date(record.get("dueDate")),
        created_at=_parse_timestamp(record.get("CreatedOn")),
        updated_at=_parse_timestamp(record.get("ModifiedOn")),
    )


def task_to_record(task: Task | TaskFormDraft) -> dict[str, Any]:
    """
    Map a Task (or draft) to backend record fields.

    The Id field is only included when the task already has one.

    Args:
        task: Task or draft to map

    Returns:
        Dictionary of backend fields
    """
    record: dict[str, Any] = {
        "title": task.title,
        "description": task.description or "",
        "priority": (task.priority or TaskPriority.MEDIUM).value,
        "status": (task.status or TaskStatus.PENDING).value,
        "dueDate": task.due_date.isoformat() if task.due_date else None,
    }
    if task.id:
        record["Id"] = task.id
    return record


class RemoteTaskGateway(TaskBackend):
    """Task backend talking to a remote record API over HTTP."""

    def __init__(
        self,
        base_url: str = DEFAULT_API_BASE_URL,
        project_id: str = DEFAULT_API_PROJECT_ID,
        public_key: str = DEFAULT_API_PUBLIC_KEY,
        table_name: str = DEFAULT_TABLE_NAME,
        page_size: int = DEFAULT_PAGE_SIZE,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize the remote gateway.

        Args:
            base_url: Record API base URL
            project_id: Project identifier sent with every request
            public_key: Public API key sent with every request
            table_name: Table holding task records
            page_size: Records requested per page when listing
            timeout: HTTP timeout in seconds
            client: Optional preconfigured HTTP client (used by tests)
        """
        self.base_url = base_url
        self.project_id = project_id
        self.public_key = public_key
        self.table_name = table_name
        self.page_size = page_size
        self.timeout = timeout
        self._client = client

    async def initialize(self) -> None:
        """Create the HTTP client if one was not injected."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={
                    "X-Project-Id": self.project_id,
                    "Authorization": f"Bearer {self.public_key}",
                },
            )
        logger.info(f"Remote task gateway ready (table={self.table_name})")

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _records_path(self, suffix: str = "") -> str:
        return f"/tables/{self.table_name}/records{suffix}"

    async def _request(
        self,
        method: str,
        path: str,
        payload: dict[str, Any],
        allow_not_found: bool = False,
    ) -> dict[str, Any] | None:
        """
        Send a JSON request to the record API.

        Returns:
            Decoded JSON body, or None for a 404 when allow_not_found is set

        Raises:
            GatewayError: On transport errors, HTTP errors or invalid JSON
        """
        if self._client is None:
            raise GatewayError("Remote gateway not initialized")

        logger.log(TRACE_LEVEL, f"{method} {path} request: {payload}")
        try:
            response = await self._client.request(method, path, json=payload)
            if allow_not_found and response.status_code == 404:
                return None
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise GatewayError(f"{method} {path} failed: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise GatewayError(f"Invalid JSON response from {path}") from e

        logger.log(TRACE_LEVEL, f"{method} {path} response: {body}")

        if body is not None and not isinstance(body, dict):
            raise GatewayError(f"Unexpected response shape from {path}")
        return body

    @staticmethod
    def _first_result(response: dict[str, Any] | None, action: str) -> dict[str, Any]:
        """
        Extract the first record from a multi-record write response.

        Any unsuccessful per-record result fails the whole operation.

        Raises:
            GatewayError: With all per-record error messages joined
        """
        if not response or not response.get("success") or not response.get("results"):
            message = (response or {}).get("message")
            detail = f": {message}" if message else ""
            raise GatewayError(f"Failed to {action} task{detail}")

        results = response["results"]
        failures = [result for result in results if not result.get("success")]
        if failures:
            messages = [
                error.get("message")
                for result in failures
                for error in (result.get("errors") or [])
                if error.get("message")
            ]
            raise GatewayError(", ".join(messages) or "Unknown error occurred")

        return results[0].get("data") or {}

    async def list_tasks(self) -> list[Task]:
        """
        Fetch all tasks ordered by ascending due date.

        Pages of page_size records are requested until a short page arrives.

        Returns:
            Complete list of tasks
        """
        tasks: list[Task] = []
        offset = 0

        while True:
            payload = {
                "fields": list(TASK_RECORD_FIELDS),
                "orderBy": [{"field": "dueDate", "direction": "asc"}],
                "pagingInfo": {"limit": self.page_size, "offset": offset},
            }
            response = await self._request("POST", self._records_path("/query"), payload)

            if response is not None and response.get("success") is False:
                raise GatewayError(
                    f"Failed to fetch tasks: {response.get('message', 'unknown error')}"
                )

            page = (response or {}).get("data") or []
            tasks.extend(task_from_record(record) for record in page)

            if len(page) < self.page_size:
                break
            offset += self.page_size

        logger.debug(f"Fetched {len(tasks)} tasks from {self.table_name}")
        return tasks

    async def get_task(self, task_id: str) -> Task | None:
        """
        Fetch a single task.

        Args:
            task_id: Task identifier

        Returns:
            Task, or None when the backend has no such record

        Raises:
            GatewayError: If the backend reports a failure
        """
        response = await self._request(
            "POST",
            self._records_path(f"/{task_id}"),
            {"fields": list(TASK_RECORD_FIELDS)},
            allow_not_found=True,
        )
        if response is not None and response.get("success") is False:
            raise GatewayError(
                f"Failed to fetch task {task_id}: {response.get('message', 'unknown error')}"
            )
        if not response or not response.get("data"):
            logger.warning(f"Task {task_id} not found in {self.table_name}")
            return None
        return task_from_record(response["data"])

    async def create_task(self, draft: TaskFormDraft) -> Task:
        """
        Create a task. The status is forced to pending.

        Args:
            draft: Validated draft

        Returns:
            Created task mapped from the backend record
        """
        record = task_to_record(draft)
        record.pop("Id", None)
        record["status"] = TaskStatus.PENDING.value

        response = await self._request(
            "POST", self._records_path(), {"records": [record]}
        )
        created = task_from_record(self._first_result(response, "create"))

        logger.info(f"Created task {created.id}: {created.title}")
        return created

    async def update_task(self, task: Task) -> Task:
        """
        Update every mutable field of a task.

        Args:
            task: Task with new field values

        Returns:
            Updated task mapped from the backend record
        """
        response = await self._request(
            "PATCH", self._records_path(), {"records": [task_to_record(task)]}
        )
        updated = task_from_record(self._first_result(response, "update"))

        logger.info(f"Updated task {task.id}")
        return updated

    async def delete_task(self, task_id: str) -> None:
        """
        Delete a task.

        Args:
            task_id: Task identifier
        """
        response = await self._request(
            "DELETE", self._records_path(), {"RecordIds": [task_id]}
        )
        if not response or not response.get("success"):
            raise GatewayError(f"Failed to delete task {task_id}")
        if response.get("results"):
            self._first_result(response, "delete")

        logger.info(f"Deleted task {task_id}")
