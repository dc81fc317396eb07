from __future__ import annotations

from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from sqlalchemy import func, select, update

from src.automation.domain.exceptions import TaskNotFoundError, TransitionConflictError
from src.automation.domain.models.task import Task, TaskError
from src.automation.domain.models.task_state import TaskState, check_transition
from src.automation.domain.repositories import TaskStore
from src.automation.infrastructure.database.mappers import OrmMapper
from src.automation.infrastructure.database.orm import DatabaseOrm, TaskRow


class SqlTaskStore(TaskStore):
    """Database-backed task storage using SQLAlchemy async sessions."""

    def __init__(self, orm: DatabaseOrm) -> None:
        self._orm = orm

    @property
    def orm(self) -> DatabaseOrm:
        return self._orm

    async def create(self, definition: Any) -> Task:
        """Persist a new PENDING task and return it."""
        task = Task(id=uuid4().hex, definition=definition, created_at=datetime.now(UTC))
        async with self._orm.session_factory() as session:
            async with session.begin():
                session.add(OrmMapper.to_task_row(task))
        return task

    async def get(self, task_id: str) -> Task:
        async with self._orm.session_factory() as session:
            row = await session.get(TaskRow, task_id)
            if row is None:
                raise TaskNotFoundError(task_id)
            return OrmMapper.to_domain_task(row)

    async def transition(
        self,
        task_id: str,
        from_state: TaskState,
        to_state: TaskState,
        *,
        result: Any | None = None,
        error: TaskError | None = None,
    ) -> Task:
        """Compare-and-set the task state in a single UPDATE statement."""
        check_transition(from_state, to_state)
        now = datetime.now(UTC)
        values: dict[str, Any] = {"state": to_state}
        if to_state is TaskState.RUNNING:
            values["started_at"] = now
            values["attempt"] = 1
        else:
            values["finished_at"] = now
            if to_state is TaskState.COMPLETED:
                values["result"] = result
            else:
                values["error"] = error.model_dump() if error else None

        statement = (
            update(TaskRow)
            .where(TaskRow.id == task_id, TaskRow.state == from_state)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return await self._conditional_update(task_id, from_state, statement)

    async def begin_attempt(self, task_id: str) -> Task:
        statement = (
            update(TaskRow)
            .where(TaskRow.id == task_id, TaskRow.state == TaskState.RUNNING)
            .values(attempt=TaskRow.attempt + 1)
            .execution_options(synchronize_session=False)
        )
        return await self._conditional_update(task_id, TaskState.RUNNING, statement)

    async def list(
        self,
        *,
        state: TaskState | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Task]:
        statement = select(TaskRow)
        if state is not None:
            statement = statement.where(TaskRow.state == state)
        statement = statement.order_by(TaskRow.created_at, TaskRow.id).limit(limit).offset(offset)

        async with self._orm.session_factory() as session:
            result = await session.execute(statement)
            rows = result.scalars().all()

        return [OrmMapper.to_domain_task(row) for row in rows]

    async def count_by_state(self) -> dict[TaskState, int]:
        counts = {state: 0 for state in TaskState}
        statement = select(TaskRow.state, func.count()).group_by(TaskRow.state)
        async with self._orm.session_factory() as session:
            result = await session.execute(statement)
            for state, count in result.all():
                counts[TaskState(state)] = count
        return counts

    async def _conditional_update(
        self, task_id: str, expected: TaskState, statement: Any
    ) -> Task:
        async with self._orm.session_factory() as session:
            async with session.begin():
                outcome = await session.execute(statement)
                row = await session.get(TaskRow, task_id)
                if row is None:
                    raise TaskNotFoundError(task_id)
                if outcome.rowcount == 0:
                    raise TransitionConflictError(task_id, expected, row.state)
                return OrmMapper.to_domain_task(row)
