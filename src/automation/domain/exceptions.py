from src.automation.domain.models.task_state import TaskState


class AutomationError(Exception):
    """Base class for errors surfaced to API callers."""

    kind = "InternalError"


class InvalidDefinitionError(AutomationError):
    """Raised when a submitted task definition is empty or malformed."""

    kind = "InvalidDefinition"


class TaskNotFoundError(AutomationError):
    """Raised when a task identifier does not exist in the task store."""

    kind = "NotFound"

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task with id '{task_id}' was not found.")
        self.task_id = task_id


class TransitionConflictError(AutomationError):
    """Raised when a conditional transition finds the task in another state."""

    kind = "Conflict"

    def __init__(self, task_id: str, expected: TaskState, actual: TaskState) -> None:
        super().__init__(
            f"Task '{task_id}' is {actual.value}, expected {expected.value}."
        )
        self.task_id = task_id
        self.expected = expected
        self.actual = actual


class BackpressureError(AutomationError):
    """Raised when the work queue is at capacity."""

    kind = "Backpressure"

    def __init__(self, capacity: int) -> None:
        super().__init__(f"Task queue is full ({capacity} tasks); retry later.")
        self.capacity = capacity


class ShuttingDownError(AutomationError):
    """Raised when a submission arrives after draining has started."""

    kind = "ShuttingDown"

    def __init__(self) -> None:
        super().__init__("Dispatcher is shutting down and accepts no new tasks.")


class ActionError(Exception):
    """Raised by action runners when a task's work fails."""

    def __init__(self, message: str, *, retryable: bool = False) -> None:
        super().__init__(message)
        self.message = message
        self.retryable = retryable


class TransientActionError(ActionError):
    """
    Retryable action failure that keeps its meaning after crossing a process
    boundary: it rebuilds from its message alone, so a Celery result carries
    the retryable flag back as the exception type.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message, retryable=True)
