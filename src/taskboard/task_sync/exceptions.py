"""Custom exceptions for task synchronization."""


class TaskSyncError(Exception):
    """Base exception for task synchronization errors."""

    pass


class ValidationError(TaskSyncError):
    """Exception raised when a task draft fails validation."""

    def __init__(self, errors: dict[str, str]) -> None:
        self.errors = dict(errors)
        super().__init__("; ".join(f"{k}: {v}" for k, v in self.errors.items()))


class GatewayError(TaskSyncError):
    """Exception raised for transport or backend failures."""

    pass


class StorageError(GatewayError):
    """Exception raised for local persistence errors."""

    pass


class TaskNotFoundError(TaskSyncError):
    """Exception raised when a task is not found."""

    pass


class TaskBusyError(TaskSyncError):
    """Exception raised when an operation is already in flight for a task."""

    pass
