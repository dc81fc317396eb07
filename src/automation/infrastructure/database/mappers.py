from __future__ import annotations

from datetime import UTC, datetime

from src.automation.domain.models.task import Task, TaskError
from src.automation.infrastructure.database.orm import TaskRow


def _aware(value: datetime | None) -> datetime | None:
    # SQLite drops tzinfo; every stored timestamp is UTC.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class OrmMapper:
    @staticmethod
    def to_task_row(task: Task) -> TaskRow:
        return TaskRow(
            id=task.id,
            definition=task.definition,
            state=task.state,
            created_at=task.created_at,
            started_at=task.started_at,
            finished_at=task.finished_at,
            result=task.result,
            error=task.error.model_dump() if task.error else None,
            attempt=task.attempt,
        )

    @staticmethod
    def to_domain_task(row: TaskRow) -> Task:
        return Task(
            id=row.id,
            definition=row.definition,
            state=row.state,
            created_at=_aware(row.created_at),
            started_at=_aware(row.started_at),
            finished_at=_aware(row.finished_at),
            result=row.result,
            error=TaskError.model_validate(row.error) if row.error else None,
            attempt=row.attempt,
        )
