from src.automation.domain.models.outcome import EXECUTOR_FAILURE, Outcome
from src.automation.domain.models.payloads import (
    HttpCallPayload,
    ShellCommandPayload,
    TaskPayload,
    is_empty_definition,
)
from src.automation.domain.models.task import Task, TaskError
from src.automation.domain.models.task_state import (
    ALLOWED_TRANSITIONS,
    TERMINAL_STATES,
    TaskState,
    check_transition,
)
from src.automation.domain.models.task_view import StatusSummary, TaskStatusView

__all__ = [
    "Task",
    "TaskError",
    "TaskState",
    "TERMINAL_STATES",
    "ALLOWED_TRANSITIONS",
    "check_transition",
    "Outcome",
    "EXECUTOR_FAILURE",
    "TaskPayload",
    "ShellCommandPayload",
    "HttpCallPayload",
    "is_empty_definition",
    "TaskStatusView",
    "StatusSummary",
]
