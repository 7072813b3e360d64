"""Atomic commit of task changes together with their audit events."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .contracts import (
    EventType,
    FieldValue,
    NotificationMessage,
    Priority,
    Status,
    TaskChanges,
    TaskRecord,
)
from .db import TaskDB, TaskEventRow, TaskRow, task_from_row
from .db.models import utcnow
from .errors import CommitFailure, TaskNotFound
from .notifications import BaseNotifier

logger = logging.getLogger(__name__)

DEFAULT_COMMIT_TIMEOUT = 5.0


class _Snapshot:
    __slots__ = ("status", "priority", "assigned_to")

    def __init__(self, row: TaskRow) -> None:
        self.status = row.status
        self.priority = row.priority
        self.assigned_to = row.assigned_to


class MutationCoordinator:
    """Applies already-validated changes to tasks.

    Every task row write lands in the same transaction as exactly one
    ``TaskEventRow`` describing it. Notifications are sent after the commit
    and their failures are only logged.
    """

    def __init__(
        self,
        db: TaskDB,
        notifier: Optional[BaseNotifier] = None,
        commit_timeout: float = DEFAULT_COMMIT_TIMEOUT,
    ) -> None:
        self._db = db
        self._notifier = notifier
        self._commit_timeout = commit_timeout

    # ------------------------------------------------------------------
    # Public API
    async def create_task(
        self,
        title: str,
        created_by_id: str,
        description: Optional[str] = None,
        priority: Priority = Priority.MEDIUM,
        template_id: Optional[str] = None,
        custom_fields: Optional[Dict[str, FieldValue]] = None,
        assigned_to: Optional[str] = None,
        status: Status = Status.OPEN,
    ) -> TaskRecord:
        """Insert a task with its ``CREATED`` event."""
        row = TaskRow(
            title=title,
            description=description,
            status=status.value,
            priority=priority.value,
            template_id=template_id,
            custom_fields=dict(custom_fields or {}),
            assigned_to=assigned_to,
            created_by_id=created_by_id,
        )

        async def work() -> TaskRecord:
            async with self._db.session() as session:
                async with session.begin():
                    session.add(row)
                    await session.flush()
                    await self._append_event(
                        session,
                        TaskEventRow(
                            task_id=row.id,
                            event_type=EventType.CREATED.value,
                            new_status=row.status,
                            new_priority=row.priority,
                            new_assignee=row.assigned_to,
                            changed_by_id=created_by_id,
                        ),
                    )
            return task_from_row(row)

        task = await self._run(row.id, work)
        logger.info(f"Created task {task.id} by {created_by_id}")
        if assigned_to and assigned_to != created_by_id:
            await self._notify(
                NotificationMessage(
                    user_id=assigned_to,
                    task_id=task.id,
                    message=f"{created_by_id} assigned you a task: {task.title}",
                )
            )
        return task

    async def apply_mutation(
        self,
        task_id: str,
        changes: TaskChanges,
        event_type: EventType,
        actor_id: str,
    ) -> TaskRecord:
        """Commit ``changes`` to one task and append its event.

        The caller is expected to have validated any status change already.

        Raises:
            TaskNotFound: The task does not exist at commit time.
            CommitFailure: The store rejected or timed out the write.
        """
        results = await self._run(
            task_id, lambda: self._commit([task_id], changes, event_type, actor_id)
        )
        before, task = results[0]
        logger.info(
            f"Applied {event_type.value} to task {task_id} by {actor_id} "
            f"({before.status} -> {task.status.value})"
        )
        await self._notify_reassignment(changes, before, task, actor_id)
        return task

    async def apply_bulk_mutation(
        self,
        task_ids: Sequence[str],
        changes: TaskChanges,
        event_type: EventType,
        actor_id: str,
    ) -> List[TaskRecord]:
        """Apply the same change to several tasks in one transaction.

        One event is appended per task. If any task is missing nothing is
        committed.
        """
        unique_ids = list(dict.fromkeys(task_ids))
        if not unique_ids:
            return []
        results = await self._run(
            ",".join(unique_ids),
            lambda: self._commit(unique_ids, changes, event_type, actor_id),
        )
        logger.info(f"Applied {event_type.value} to {len(results)} tasks by {actor_id}")
        for before, task in results:
            await self._notify_reassignment(changes, before, task, actor_id)
        return [task for _, task in results]

    # ------------------------------------------------------------------
    # Transaction handling
    async def _run(self, task_ref: str, work):
        try:
            return await asyncio.wait_for(work(), timeout=self._commit_timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"Commit for task {task_ref} timed out after {self._commit_timeout}s")
            raise CommitFailure(task_ref, "commit timed out") from e
        except SQLAlchemyError as e:
            logger.error(f"Commit for task {task_ref} failed: {e}")
            raise CommitFailure(task_ref, str(e)) from e

    async def _commit(
        self,
        task_ids: Sequence[str],
        changes: TaskChanges,
        event_type: EventType,
        actor_id: str,
    ) -> List[Tuple[_Snapshot, TaskRecord]]:
        results: List[Tuple[_Snapshot, TaskRow]] = []
        async with self._db.session() as session:
            async with session.begin():
                for task_id in task_ids:
                    row = await session.get(TaskRow, task_id)
                    if row is None:
                        raise TaskNotFound(task_id)
                    before = _Snapshot(row)
                    self._apply_changes(row, changes)
                    session.add(row)
                    await session.flush()
                    await self._append_event(
                        session,
                        TaskEventRow(
                            task_id=row.id,
                            event_type=event_type.value,
                            old_status=before.status,
                            new_status=row.status,
                            old_priority=before.priority,
                            new_priority=row.priority,
                            old_assignee=before.assigned_to,
                            new_assignee=row.assigned_to,
                            changed_by_id=actor_id,
                        ),
                    )
                    results.append((before, row))
        return [(before, task_from_row(row)) for before, row in results]

    @staticmethod
    def _apply_changes(row: TaskRow, changes: TaskChanges) -> None:
        if changes.status is not None:
            row.status = changes.status.value
        if changes.priority is not None:
            row.priority = changes.priority.value
        if changes.custom_fields is not None:
            # replaced wholesale, never merged
            row.custom_fields = dict(changes.custom_fields)
        if changes.reassigns:
            row.assigned_to = changes.assigned_to
        row.updated_at = utcnow()

    async def _append_event(self, session: AsyncSession, event: TaskEventRow) -> None:
        session.add(event)
        await session.flush()

    # ------------------------------------------------------------------
    # Notifications
    async def _notify_reassignment(
        self, changes: TaskChanges, before: _Snapshot, task: TaskRecord, actor_id: str
    ) -> None:
        if not changes.reassigns or task.assigned_to is None:
            return
        if task.assigned_to == before.assigned_to or task.assigned_to == actor_id:
            return
        await self._notify(
            NotificationMessage(
                user_id=task.assigned_to,
                task_id=task.id,
                message=f"{actor_id} assigned you a task: {task.title}",
            )
        )

    async def _notify(self, message: NotificationMessage) -> None:
        if self._notifier is None:
            return
        try:
            await self._notifier.notify(message)
        except Exception as e:
            logger.warning(
                f"Notification to {message.user_id} for task {message.task_id} failed: {e}"
            )
