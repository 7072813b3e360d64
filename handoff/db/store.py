from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional, Sequence

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlmodel import SQLModel

from ..contracts import Notification, TaskEvent, TaskRecord
from .models import NotificationRow, TaskEventRow, TaskRow


def task_from_row(row: TaskRow) -> TaskRecord:
    return TaskRecord.model_validate(row, from_attributes=True)


def event_from_row(row: TaskEventRow) -> TaskEvent:
    return TaskEvent.model_validate(row, from_attributes=True)


class TaskDB:
    """Async database handle for tasks, their events and notifications.

    Writes that must be atomic with an event go through
    :class:`handoff.mutations.MutationCoordinator`, which opens its own
    transaction through :meth:`session`.
    """

    def __init__(self, database_url: str, echo: bool = False) -> None:
        connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
        self.database_url = database_url
        self.engine = create_async_engine(
            database_url, echo=echo, future=True, connect_args=connect_args
        )

    async def init_db(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        async with AsyncSession(self.engine, expire_on_commit=False) as session:
            yield session

    # ------------------------------------------------------------------
    # Tasks and events
    async def get_task(self, task_id: str) -> Optional[TaskRecord]:
        async with self.session() as session:
            row = await session.get(TaskRow, task_id)
            return task_from_row(row) if row else None

    async def list_tasks(self, assigned_to: Optional[str] = None) -> List[TaskRecord]:
        query = select(TaskRow).order_by(TaskRow.created_at)
        if assigned_to is not None:
            query = query.where(TaskRow.assigned_to == assigned_to)
        async with self.session() as session:
            rows = (await session.execute(query)).scalars().all()
        return [task_from_row(r) for r in rows]

    async def list_events(self, task_id: str) -> List[TaskEvent]:
        """Return the task's history, oldest first."""
        query = (
            select(TaskEventRow)
            .where(TaskEventRow.task_id == task_id)
            .order_by(TaskEventRow.id)
        )
        async with self.session() as session:
            rows = (await session.execute(query)).scalars().all()
        return [event_from_row(r) for r in rows]

    # ------------------------------------------------------------------
    # Notifications
    async def add_notification(self, user_id: str, task_id: str, message: str) -> Notification:
        row = NotificationRow(user_id=user_id, task_id=task_id, message=message)
        async with self.session() as session:
            session.add(row)
            await session.commit()
            await session.refresh(row)
        return Notification.model_validate(row, from_attributes=True)

    async def list_notifications(
        self, user_id: str, unread_only: bool = False
    ) -> List[Notification]:
        query = select(NotificationRow).where(NotificationRow.user_id == user_id)
        if unread_only:
            query = query.where(NotificationRow.read == False)  # noqa: E712
        query = query.order_by(NotificationRow.id.desc())
        async with self.session() as session:
            rows = (await session.execute(query)).scalars().all()
        return [Notification.model_validate(r, from_attributes=True) for r in rows]

    async def unread_count(self, user_id: str) -> int:
        query = (
            select(func.count())
            .select_from(NotificationRow)
            .where(NotificationRow.user_id == user_id, NotificationRow.read == False)  # noqa: E712
        )
        async with self.session() as session:
            return (await session.execute(query)).scalar_one()

    async def mark_notifications_read(
        self, user_id: str, notification_ids: Optional[Sequence[int]] = None
    ) -> int:
        """Mark the user's notifications read; all of them when no ids are given."""
        stmt = (
            update(NotificationRow)
            .where(NotificationRow.user_id == user_id, NotificationRow.read == False)  # noqa: E712
            .values(read=True)
        )
        if notification_ids is not None:
            stmt = stmt.where(NotificationRow.id.in_(list(notification_ids)))
        async with self.session() as session:
            result = await session.execute(stmt)
            await session.commit()
        return result.rowcount or 0
