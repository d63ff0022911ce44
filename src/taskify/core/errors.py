"""Domain errors raised by the functional core."""


class TaskifyError(Exception):
    """Base class for Taskify errors."""

    pass


class InvalidInput(TaskifyError, ValueError):
    """Raised when a caller passes an out-of-contract value."""

    pass


class InvalidTransition(TaskifyError):
    """Raised when a timer operation does not apply to the current status."""

    def __init__(self, operation: str, status: str):
        self.operation = operation
        self.status = status
        super().__init__(f"Cannot {operation} while timer is {status}")


class TaskNotFoundError(TaskifyError, LookupError):
    """Raised when a task does not exist for the requesting user."""

    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(f"Task not found: {task_id}")
