"""Configuration constants for task synchronization."""

import os


def _env(name: str, default: str) -> str:
    """Read a TASKBOARD_* environment override, falling back to the default."""
    value = os.getenv(f"TASKBOARD_{name}")
    return default if value is None or not value.strip() else value.strip()


# Backend selection ("local" or "remote")
BACKEND_LOCAL = "local"
BACKEND_REMOTE = "remote"
DEFAULT_BACKEND = _env("BACKEND", BACKEND_LOCAL)

# Local Storage Configuration
DEFAULT_DATABASE_PATH = os.path.expanduser(
    _env("DB_PATH", "~/.taskboard/tasks.db")
)
DEFAULT_WAL_MODE = True
TASKS_DOCUMENT_KEY = "tasks"

# Remote Record API Configuration
DEFAULT_API_BASE_URL = _env("API_BASE_URL", "http://localhost:8080/api")
DEFAULT_API_PROJECT_ID = _env("API_PROJECT_ID", "")
DEFAULT_API_PUBLIC_KEY = _env("API_PUBLIC_KEY", "")
DEFAULT_TABLE_NAME = _env("TABLE_NAME", "task27")
DEFAULT_PAGE_SIZE = int(_env("PAGE_SIZE", "100"))
DEFAULT_HTTP_TIMEOUT = float(_env("HTTP_TIMEOUT", "10.0"))  # seconds

# Fields requested from the record API
TASK_RECORD_FIELDS = (
    "Id",
    "title",
    "description",
    "priority",
    "status",
    "dueDate",
    "CreatedOn",
    "ModifiedOn",
)

# Validation limits
TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500

# Calendar projection
DEFAULT_EVENT_START_HOUR = 9
DEFAULT_EVENT_DURATION_HOURS = 1

# MCP Server Configuration
DEFAULT_MCP_HOST = _env("MCP_HOST", "localhost")
DEFAULT_MCP_PORT = int(_env("MCP_PORT", "3000"))
DEFAULT_MCP_SERVER_NAME = "taskboard"

# Local database schema version
SCHEMA_VERSION = 1
