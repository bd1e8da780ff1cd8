"""Tests for the remote record API gateway."""

import json
from datetime import date, datetime
from typing import Any

import httpx
import pytest

from taskboard.logging_utils import TRACE_LEVEL
from taskboard.task_sync.exceptions import GatewayError
from taskboard.task_sync.models import Task, TaskFormDraft, TaskPriority, TaskStatus
from taskboard.task_sync.remote_gateway import (
    RemoteTaskGateway,
    task_from_record,
    task_to_record,
)


def record(record_id: int, title: str = "Task", due: str = "2024-06-01") -> dict[str, Any]:
    return {
        "Id": record_id,
        "title": title,
        "description": "",
        "priority": "high",
        "status": "pending",
        "dueDate": due,
        "CreatedOn": "2024-05-01T10:00:00",
        "ModifiedOn": "2024-05-02T10:00:00",
    }


class RecordingHandler:
    """MockTransport handler that records requests and replays responses."""

    def __init__(self, *responses: httpx.Response | Exception) -> None:
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def body(self, index: int = 0) -> Any:
        return json.loads(self.requests[index].content)


def make_gateway(handler: RecordingHandler, page_size: int = 100) -> RemoteTaskGateway:
    client = httpx.AsyncClient(
        transport=httpx.MockTransport(handler), base_url="http://records.test/api"
    )
    return RemoteTaskGateway(table_name="task27", page_size=page_size, client=client)


@pytest.mark.unit
class TestRecordMapping:
    """Test cases for backend field mapping."""

    def test_from_record_maps_all_fields(self) -> None:
        task = task_from_record(record(7, "Pay invoice"))

        assert task.id == "7"
        assert task.title == "Pay invoice"
        assert task.priority == TaskPriority.HIGH
        assert task.status == TaskStatus.PENDING
        assert task.due_date == date(2024, 6, 1)
        assert task.created_at == datetime(2024, 5, 1, 10, 0)
        assert task.updated_at == datetime(2024, 5, 2, 10, 0)

    def test_from_record_defaults_absent_fields(self) -> None:
        task = task_from_record({"Id": 1, "title": "Bare", "dueDate": "2024-06-01T00:00:00Z"})

        assert task.priority == TaskPriority.MEDIUM
        assert task.status == TaskStatus.PENDING
        assert task.description == ""
        assert task.due_date == date(2024, 6, 1)
        assert isinstance(task.created_at, datetime)
        assert isinstance(task.updated_at, datetime)

    def test_from_record_defaults_unknown_enum_values(self) -> None:
        task = task_from_record({"Id": 1, "priority": "urgent", "status": "archived"})
        assert task.priority == TaskPriority.MEDIUM
        assert task.status == TaskStatus.PENDING

    def test_round_trip_preserves_editable_fields(self) -> None:
        now = datetime(2024, 5, 1, 9, 0)
        task = Task(
            id="42",
            title="Write report",
            description="Quarterly numbers",
            priority=TaskPriority.LOW,
            status=TaskStatus.COMPLETED,
            due_date=date(2024, 7, 4),
            created_at=now,
            updated_at=now,
        )

        restored = task_from_record(task_to_record(task))

        assert restored.id == task.id
        assert restored.title == task.title
        assert restored.description == task.description
        assert restored.priority == task.priority
        assert restored.status == task.status
        assert restored.due_date == task.due_date

    def test_to_record_omits_id_for_new_tasks(self) -> None:
        draft = TaskFormDraft(title="New", due_date=date(2024, 6, 1))
        assert "Id" not in task_to_record(draft)


@pytest.mark.unit
@pytest.mark.asyncio
class TestRemoteGatewayList:
    """Test cases for listing tasks."""

    async def test_list_requests_due_date_order(self) -> None:
        handler = RecordingHandler(
            httpx.Response(200, json={"success": True, "data": [record(1), record(2)]})
        )
        gateway = make_gateway(handler)

        tasks = await gateway.list_tasks()

        assert [task.id for task in tasks] == ["1", "2"]
        assert handler.requests[0].url.path == "/api/tables/task27/records/query"
        body = handler.body()
        assert body["orderBy"] == [{"field": "dueDate", "direction": "asc"}]
        assert body["pagingInfo"] == {"limit": 100, "offset": 0}

    async def test_payloads_logged_at_trace_level(self, caplog: pytest.LogCaptureFixture) -> None:
        handler = RecordingHandler(httpx.Response(200, json={"success": True, "data": []}))
        caplog.set_level(TRACE_LEVEL, logger="taskboard.task_sync.remote_gateway")

        await make_gateway(handler).list_tasks()

        trace_messages = [r.getMessage() for r in caplog.records if r.levelno == TRACE_LEVEL]
        assert any("request" in message and "pagingInfo" in message for message in trace_messages)
        assert any("response" in message for message in trace_messages)

    async def test_list_paginates_until_short_page(self) -> None:
        handler = RecordingHandler(
            httpx.Response(200, json={"success": True, "data": [record(1), record(2)]}),
            httpx.Response(200, json={"success": True, "data": [record(3)]}),
        )
        gateway = make_gateway(handler, page_size=2)

        tasks = await gateway.list_tasks()

        assert [task.id for task in tasks] == ["1", "2", "3"]
        assert [handler.body(i)["pagingInfo"]["offset"] for i in range(2)] == [0, 2]

    async def test_list_without_data_is_empty(self) -> None:
        handler = RecordingHandler(httpx.Response(200, json={"success": True, "data": None}))
        assert await make_gateway(handler).list_tasks() == []

    async def test_list_transport_error_raises_gateway_error(self) -> None:
        handler = RecordingHandler(httpx.ConnectError("connection refused"))

        with pytest.raises(GatewayError):
            await make_gateway(handler).list_tasks()

    async def test_list_http_error_raises_gateway_error(self) -> None:
        handler = RecordingHandler(httpx.Response(500, json={"message": "boom"}))

        with pytest.raises(GatewayError):
            await make_gateway(handler).list_tasks()


@pytest.mark.unit
@pytest.mark.asyncio
class TestRemoteGatewayRecords:
    """Test cases for get/create/update/delete."""

    async def test_get_returns_task(self) -> None:
        handler = RecordingHandler(httpx.Response(200, json={"success": True, "data": record(5)}))

        task = await make_gateway(handler).get_task("5")

        assert task is not None
        assert task.id == "5"
        assert handler.requests[0].url.path == "/api/tables/task27/records/5"

    async def test_get_not_found_returns_none(self) -> None:
        handler = RecordingHandler(httpx.Response(404, json={"success": False}))
        assert await make_gateway(handler).get_task("99") is None

    async def test_get_null_data_returns_none(self) -> None:
        handler = RecordingHandler(httpx.Response(200, json={"success": True, "data": None}))
        assert await make_gateway(handler).get_task("99") is None

    async def test_get_backend_failure_raises(self) -> None:
        handler = RecordingHandler(
            httpx.Response(200, json={"success": False, "message": "Access denied"})
        )

        with pytest.raises(GatewayError, match="Access denied"):
            await make_gateway(handler).get_task("7")

    async def test_create_forces_pending_status(self) -> None:
        handler = RecordingHandler(
            httpx.Response(
                200,
                json={"success": True, "results": [{"success": True, "data": record(10)}]},
            )
        )
        draft = TaskFormDraft(
            title="Pay invoice",
            priority=TaskPriority.HIGH,
            status=TaskStatus.COMPLETED,
            due_date=date(2024, 6, 1),
        )

        created = await make_gateway(handler).create_task(draft)

        sent = handler.body()["records"][0]
        assert sent["status"] == "pending"
        assert sent["priority"] == "high"
        assert sent["dueDate"] == "2024-06-01"
        assert "Id" not in sent
        assert created.id == "10"

    async def test_update_sends_all_mutable_fields(self) -> None:
        handler = RecordingHandler(
            httpx.Response(
                200,
                json={"success": True, "results": [{"success": True, "data": record(3)}]},
            )
        )
        task = task_from_record(record(3, "Renamed"))

        await make_gateway(handler).update_task(task)

        assert handler.requests[0].method == "PATCH"
        sent = handler.body()["records"][0]
        assert set(sent) == {"Id", "title", "description", "priority", "status", "dueDate"}
        assert sent["title"] == "Renamed"

    async def test_partial_failure_aggregates_messages(self) -> None:
        handler = RecordingHandler(
            httpx.Response(
                200,
                json={
                    "success": True,
                    "results": [
                        {"success": True, "data": record(1)},
                        {
                            "success": False,
                            "errors": [{"message": "title too long"}, {"message": "bad date"}],
                        },
                    ],
                },
            )
        )

        with pytest.raises(GatewayError, match="title too long, bad date"):
            await make_gateway(handler).create_task(
                TaskFormDraft(title="x", due_date=date(2024, 6, 1))
            )

    async def test_failed_result_without_errors(self) -> None:
        handler = RecordingHandler(
            httpx.Response(200, json={"success": True, "results": [{"success": False}]})
        )

        with pytest.raises(GatewayError, match="Unknown error occurred"):
            await make_gateway(handler).update_task(task_from_record(record(1)))

    async def test_unsuccessful_envelope_raises(self) -> None:
        handler = RecordingHandler(httpx.Response(200, json={"success": False}))

        with pytest.raises(GatewayError, match="Failed to create task"):
            await make_gateway(handler).create_task(
                TaskFormDraft(title="x", due_date=date(2024, 6, 1))
            )

    async def test_delete_sends_record_ids(self) -> None:
        handler = RecordingHandler(httpx.Response(200, json={"success": True}))

        await make_gateway(handler).delete_task("8")

        assert handler.requests[0].method == "DELETE"
        assert handler.body() == {"RecordIds": ["8"]}

    async def test_delete_failure_raises(self) -> None:
        handler = RecordingHandler(httpx.Response(200, json={"success": False}))

        with pytest.raises(GatewayError):
            await make_gateway(handler).delete_task("8")

    async def test_uninitialized_gateway_raises(self) -> None:
        gateway = RemoteTaskGateway()

        with pytest.raises(GatewayError, match="not initialized"):
            await gateway.list_tasks()
