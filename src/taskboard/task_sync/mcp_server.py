"""MCP Server exposing task board commands using FastMCP."""

import logging
from datetime import date
from typing import Any

from fastmcp import FastMCP

from .config import DEFAULT_MCP_HOST, DEFAULT_MCP_PORT, DEFAULT_MCP_SERVER_NAME
from .exceptions import TaskNotFoundError, ValidationError
from .factory import TaskBoard
from .models import (
    CalendarEvent,
    CalendarGranularity,
    ModalMode,
    MutationResult,
    Task,
)

logger = logging.getLogger(__name__)

# Create FastMCP server instance
mcp = FastMCP(DEFAULT_MCP_SERVER_NAME)

# Global task board (initialized in serve())
_board: TaskBoard | None = None


def get_board() -> TaskBoard:
    """Get the global task board instance."""
    if _board is None:
        raise RuntimeError("Task board not initialized")
    return _board


def set_board(board: TaskBoard | None) -> None:
    """Set the global task board instance (for testing)."""
    global _board
    _board = board


def task_to_dict(task: Task, overdue: bool | None = None) -> dict[str, Any]:
    """Serialize a task for tool responses."""
    data: dict[str, Any] = {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "priority": task.priority.value,
        "status": task.status.value,
        "due_date": task.due_date.isoformat() if task.due_date else None,
        "created_at": task.created_at.isoformat(),
        "updated_at": task.updated_at.isoformat(),
    }
    if overdue is not None:
        data["overdue"] = overdue
    return data


def event_to_dict(event: CalendarEvent) -> dict[str, Any]:
    """Serialize a calendar event for tool responses."""
    return {
        "id": event.id,
        "title": event.title,
        "start": event.start.isoformat(),
        "end": event.end.isoformat(),
        "all_day": event.all_day,
        "class": event.css_class,
        "description": event.task.description if event.show_description else None,
    }


def _mutation_response(result: MutationResult | None) -> dict[str, Any]:
    response: dict[str, Any] = {"success": True}
    if result is None:
        return response
    if result.task is not None:
        response["task"] = task_to_dict(result.task)
    response["refreshed"] = result.refreshed
    if not result.refreshed:
        response["warning"] = f"Saved but could not refresh tasks: {result.refresh_error}"
    return response


async def _submit_form(fields: dict[str, Any], task_id: str | None = None) -> dict[str, Any]:
    """Fill the controller's create/edit form with fields and submit it."""
    controller = get_board().controller

    if task_id is None:
        controller.open_add()
    else:
        controller.open_edit(await controller.store.get_task(task_id))

    try:
        for name, value in fields.items():
            if value is not None:
                controller.edit_field(name, value)
        return _mutation_response(await controller.submit())
    except ValidationError as e:
        return {"success": False, "error": "Invalid task", "errors": e.errors}
    finally:
        if controller.modal_mode != ModalMode.CLOSED:
            controller.close_modal()


async def _list_tasks_impl(status: str = "all") -> dict[str, Any]:
    """Implementation of list_tasks tool."""
    try:
        controller = get_board().controller

        try:
            controller.set_filter(status)
        except ValueError:
            return {"success": False, "error": f"Invalid status filter: {status}"}

        tasks = controller.filtered_tasks()
        response: dict[str, Any] = {
            "success": True,
            "tasks": [task_to_dict(task, controller.is_overdue(task)) for task in tasks],
            "state": controller.store.status.value,
        }
        if not tasks:
            response["message"] = controller.empty_message()
        if controller.store.error:
            response["error"] = controller.store.error
        return response

    except Exception as e:
        logger.error(f"Error listing tasks: {e}")
        return {"success": False, "error": str(e)}


async def _add_task_impl(
    title: str,
    due_date: str | None = None,
    description: str = "",
    priority: str = "medium",
) -> dict[str, Any]:
    """Implementation of add_task tool."""
    try:
        fields: dict[str, Any] = {
            "title": title,
            "description": description,
            "priority": priority,
        }
        if due_date is not None:
            fields["due_date"] = due_date
        return await _submit_form(fields)
    except ValueError as e:
        return {"success": False, "error": f"Invalid value: {e}"}
    except Exception as e:
        logger.error(f"Error adding task: {e}")
        return {"success": False, "error": str(e)}


async def _update_task_impl(
    task_id: str,
    title: str | None = None,
    description: str | None = None,
    priority: str | None = None,
    status: str | None = None,
    due_date: str | None = None,
) -> dict[str, Any]:
    """Implementation of update_task tool."""
    try:
        fields = {
            "title": title,
            "description": description,
            "priority": priority,
            "status": status,
            "due_date": due_date,
        }
        return await _submit_form(fields, task_id=task_id)
    except TaskNotFoundError as e:
        logger.warning(f"Task not found: {e}")
        return {"success": False, "error": str(e)}
    except ValueError as e:
        return {"success": False, "error": f"Invalid value: {e}"}
    except Exception as e:
        logger.error(f"Error updating task: {e}")
        return {"success": False, "error": str(e)}


async def _toggle_task_status_impl(task_id: str) -> dict[str, Any]:
    """Implementation of toggle_task_status tool."""
    try:
        result = await get_board().controller.toggle_status(task_id)
        return _mutation_response(result)
    except TaskNotFoundError as e:
        logger.warning(f"Task not found: {e}")
        return {"success": False, "error": str(e)}
    except Exception as e:
        logger.error(f"Error toggling task status: {e}")
        return {"success": False, "error": str(e)}


async def _delete_task_impl(task_id: str) -> dict[str, Any]:
    """Implementation of delete_task tool."""
    controller = get_board().controller
    try:
        controller.request_delete(await controller.store.get_task(task_id))
        return _mutation_response(await controller.confirm_delete())
    except TaskNotFoundError as e:
        logger.warning(f"Task not found: {e}")
        return {"success": False, "error": str(e)}
    except Exception as e:
        logger.error(f"Error deleting task: {e}")
        return {"success": False, "error": str(e)}
    finally:
        controller.cancel_delete()


async def _reschedule_task_impl(task_id: str, new_date: str) -> dict[str, Any]:
    """Implementation of reschedule_task tool."""
    try:
        try:
            parsed = date.fromisoformat(new_date[:10])
        except ValueError:
            return {"success": False, "error": f"Invalid date format: {new_date}"}

        result = await get_board().calendar.reschedule(task_id, parsed)
        return _mutation_response(result)
    except TaskNotFoundError as e:
        logger.warning(f"Task not found: {e}")
        return {"success": False, "error": str(e)}
    except Exception as e:
        logger.error(f"Error rescheduling task: {e}")
        return {"success": False, "error": str(e)}


async def _get_task_statistics_impl() -> dict[str, Any]:
    """Implementation of get_task_statistics tool."""
    try:
        stats = get_board().stats.stats
        return {
            "success": True,
            "completed": stats.completed,
            "pending": stats.pending,
            "overdue": stats.overdue,
            "total": stats.total,
        }
    except Exception as e:
        logger.error(f"Error getting task statistics: {e}")
        return {"success": False, "error": str(e)}


async def _get_calendar_events_impl(
    view: str = "month", focus_date: str | None = None
) -> dict[str, Any]:
    """Implementation of get_calendar_events tool."""
    try:
        calendar = get_board().calendar

        try:
            calendar.set_granularity(CalendarGranularity(view))
            if focus_date:
                calendar.navigate(date.fromisoformat(focus_date))
        except ValueError as e:
            return {"success": False, "error": f"Invalid calendar argument: {e}"}

        return {
            "success": True,
            "view": calendar.granularity.value,
            "date": calendar.selected_date.isoformat(),
            "events": [event_to_dict(event) for event in calendar.events()],
        }
    except Exception as e:
        logger.error(f"Error getting calendar events: {e}")
        return {"success": False, "error": str(e)}


# FastMCP decorated wrappers (for actual MCP server)
@mcp.tool()
async def list_tasks(status: str = "all") -> dict[str, Any]:
    """
    List tasks, optionally filtered by status.

    Args:
        status: Filter (all, pending, completed)

    Returns:
        Dictionary with tasks list and store state
    """
    return await _list_tasks_impl(status=status)


@mcp.tool()
async def add_task(
    title: str,
    due_date: str | None = None,
    description: str = "",
    priority: str = "medium",
) -> dict[str, Any]:
    """
    Add a new task. New tasks are always pending.

    Args:
        title: Task title (required, at most 100 characters)
        due_date: Due date as YYYY-MM-DD (required)
        description: Optional description (at most 500 characters)
        priority: Task priority (low, medium, high)

    Returns:
        Dictionary with the created task and success status
    """
    return await _add_task_impl(
        title=title, due_date=due_date, description=description, priority=priority
    )


@mcp.tool()
async def update_task(
    task_id: str,
    title: str | None = None,
    description: str | None = None,
    priority: str | None = None,
    status: str | None = None,
    due_date: str | None = None,
) -> dict[str, Any]:
    """
    Edit an existing task. Omitted fields are left unchanged.

    Args:
        task_id: Task identifier
        title: New title
        description: New description
        priority: New priority (low, medium, high)
        status: New status (pending, completed)
        due_date: New due date as YYYY-MM-DD

    Returns:
        Dictionary with the updated task and success status
    """
    return await _update_task_impl(
        task_id=task_id,
        title=title,
        description=description,
        priority=priority,
        status=status,
        due_date=due_date,
    )


@mcp.tool()
async def toggle_task_status(task_id: str) -> dict[str, Any]:
    """
    Flip a task between pending and completed.

    Args:
        task_id: Task identifier

    Returns:
        Dictionary with success status
    """
    return await _toggle_task_status_impl(task_id=task_id)


@mcp.tool()
async def delete_task(task_id: str) -> dict[str, Any]:
    """
    Delete a task.

    Args:
        task_id: Task identifier

    Returns:
        Dictionary with success status
    """
    return await _delete_task_impl(task_id=task_id)


@mcp.tool()
async def reschedule_task(task_id: str, new_date: str) -> dict[str, Any]:
    """
    Move a task to a new due date, as when dragging its calendar event.

    Args:
        task_id: Task identifier
        new_date: Target date as YYYY-MM-DD (a time part is ignored)

    Returns:
        Dictionary with success status
    """
    return await _reschedule_task_impl(task_id=task_id, new_date=new_date)


@mcp.tool()
async def get_task_statistics() -> dict[str, Any]:
    """
    Get completed, pending and overdue task counts.

    Returns:
        Dictionary with task counts
    """
    return await _get_task_statistics_impl()


@mcp.tool()
async def get_calendar_events(
    view: str = "month", focus_date: str | None = None
) -> dict[str, Any]:
    """
    Get the calendar projection of the current task list.

    Args:
        view: Calendar granularity (month, week, day)
        focus_date: Date to show as YYYY-MM-DD (defaults to the current one)

    Returns:
        Dictionary with calendar events
    """
    return await _get_calendar_events_impl(view=view, focus_date=focus_date)


async def serve(board: TaskBoard, transport: str = "stdio") -> None:
    """
    Run the MCP server over an already created task board.

    Args:
        board: Task board to expose
        transport: Transport type - "stdio" for stdio, "sse" for HTTP/SSE
    """
    try:
        await board.start()
        set_board(board)
        logger.info(f"MCP Server initialized (transport={transport})")

        if transport == "stdio":
            await mcp.run_async(transport="stdio")
        else:
            logger.info(f"Server will listen on http://{DEFAULT_MCP_HOST}:{DEFAULT_MCP_PORT}")
            await mcp.run_async(transport="sse", host=DEFAULT_MCP_HOST, port=DEFAULT_MCP_PORT)
    finally:
        set_board(None)
        await board.shutdown()
