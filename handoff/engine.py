"""Validate-then-commit entry points for task changes."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel

from .config import HandoffConfig, load_config
from .contracts import EventType, FieldValue, Priority, Status, TaskChanges, TaskRecord
from .db import TaskDB, get_db
from .errors import TaskNotFound
from .mutations import MutationCoordinator
from .notifications import BaseNotifier, get_notifier
from .templates import TemplateStore
from .transitions import Allowed, Outcome, validate_transition

logger = logging.getLogger(__name__)


class TransitionResult(BaseModel):
    """Decision for a status change and, when allowed, the committed task."""

    outcome: Outcome
    task: Optional[TaskRecord] = None

    @property
    def applied(self) -> bool:
        return self.outcome.allowed and self.task is not None


class BulkResult(BaseModel):
    rejected: Dict[str, Outcome] = {}
    tasks: List[TaskRecord] = []

    @property
    def applied(self) -> bool:
        return not self.rejected


def status_event_type(status: Status) -> EventType:
    return EventType.COMPLETED if status is Status.DONE else EventType.STATUS_CHANGED


class HandoffEngine:
    """Service used by routes, webhooks and jobs to change tasks.

    Human-facing status changes are checked against the task's template
    before they are committed. :meth:`system_set_status` is the unconstrained
    path for integrations.
    """

    def __init__(
        self,
        db: TaskDB,
        templates: Optional[TemplateStore] = None,
        coordinator: Optional[MutationCoordinator] = None,
    ) -> None:
        self.db = db
        self.templates = templates or TemplateStore(db)
        self.coordinator = coordinator or MutationCoordinator(db)

    @classmethod
    def from_config(
        cls,
        config: Optional[HandoffConfig] = None,
        notifier: Optional[BaseNotifier] = None,
    ) -> "HandoffEngine":
        """Wire a database, notifier and coordinator from configuration."""
        config = config or load_config()
        db = get_db(config=config)
        notifier = notifier or get_notifier(config=config, db=db)
        coordinator = MutationCoordinator(
            db, notifier=notifier, commit_timeout=config.commit_timeout
        )
        return cls(db, TemplateStore(db), coordinator)

    async def _load(self, task_id: str) -> TaskRecord:
        task = await self.db.get_task(task_id)
        if task is None:
            raise TaskNotFound(task_id)
        return task

    async def _decide(
        self,
        task: TaskRecord,
        status: Status,
        custom_fields: Optional[Dict[str, FieldValue]],
    ) -> Outcome:
        template = await self.templates.get_template(task.template_id)
        candidate = task.custom_fields if custom_fields is None else custom_fields
        return validate_transition(template, task.status, status, candidate)

    # ------------------------------------------------------------------
    async def check_transition(
        self,
        task_id: str,
        status: Status,
        custom_fields: Optional[Dict[str, FieldValue]] = None,
    ) -> Outcome:
        """Dry run of :meth:`set_status`; nothing is written."""
        task = await self._load(task_id)
        return await self._decide(task, status, custom_fields)

    async def set_status(
        self,
        task_id: str,
        status: Status,
        actor_id: str,
        custom_fields: Optional[Dict[str, FieldValue]] = None,
    ) -> TransitionResult:
        """Validate and commit a status change.

        Args:
            task_id: Task to move.
            status: Requested status.
            actor_id: Authenticated user making the change.
            custom_fields: Full replacement set of custom field values. ``None``
                keeps and validates the stored values.
        """
        task = await self._load(task_id)
        outcome = await self._decide(task, status, custom_fields)
        if not outcome.allowed:
            logger.debug(f"Rejected status change on task {task_id}: {outcome.kind}")
            return TransitionResult(outcome=outcome)

        changes = TaskChanges(status=status, custom_fields=custom_fields)
        updated = await self.coordinator.apply_mutation(
            task_id, changes, status_event_type(status), actor_id
        )
        return TransitionResult(outcome=outcome, task=updated)

    async def system_set_status(self, task_id: str, status: Status, actor_id: str) -> TaskRecord:
        """Move a task without template checks, e.g. when a linked issue closes."""
        return await self.coordinator.apply_mutation(
            task_id, TaskChanges(status=status), status_event_type(status), actor_id
        )

    async def set_priority(self, task_id: str, priority: Priority, actor_id: str) -> TaskRecord:
        return await self.coordinator.apply_mutation(
            task_id, TaskChanges(priority=priority), EventType.PRIORITY_CHANGED, actor_id
        )

    async def reassign(
        self, task_id: str, assignee_id: Optional[str], actor_id: str
    ) -> TaskRecord:
        return await self.coordinator.apply_mutation(
            task_id, TaskChanges(assigned_to=assignee_id), EventType.ASSIGNED, actor_id
        )

    async def update_fields(
        self, task_id: str, custom_fields: Dict[str, FieldValue], actor_id: str
    ) -> TaskRecord:
        """Replace custom fields without moving the task."""
        return await self.coordinator.apply_mutation(
            task_id, TaskChanges(custom_fields=custom_fields), EventType.FIELDS_UPDATED, actor_id
        )

    async def bulk_update(
        self, task_ids: Sequence[str], changes: TaskChanges, actor_id: str
    ) -> BulkResult:
        """Apply one change to many tasks atomically.

        Status changes are validated per task first; any rejection means
        nothing is written.
        """
        if changes.is_empty():
            raise ValueError("No changes given")
        if changes.status is not None:
            event_type = status_event_type(changes.status)
        elif changes.priority is not None:
            event_type = EventType.PRIORITY_CHANGED
        elif changes.reassigns:
            event_type = EventType.ASSIGNED
        else:
            event_type = EventType.FIELDS_UPDATED

        if changes.status is not None:
            rejected: Dict[str, Outcome] = {}
            for task_id in task_ids:
                task = await self._load(task_id)
                outcome = await self._decide(task, changes.status, changes.custom_fields)
                if not isinstance(outcome, Allowed):
                    rejected[task_id] = outcome
            if rejected:
                logger.debug(f"Bulk status change rejected for {sorted(rejected)}")
                return BulkResult(rejected=rejected)

        tasks = await self.coordinator.apply_bulk_mutation(task_ids, changes, event_type, actor_id)
        return BulkResult(tasks=tasks)
