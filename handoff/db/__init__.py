"""Persistence layer for the handoff engine."""

from __future__ import annotations

from typing import Optional

from ..config import HandoffConfig, load_config
from .models import NotificationRow, TaskEventRow, TaskRow, TemplateRow
from .store import TaskDB, event_from_row, task_from_row


def get_db(
    database_url: Optional[str] = None, config: Optional[HandoffConfig] = None
) -> TaskDB:
    """Build a database handle.

    ``database_url`` wins over the loaded configuration, which already folds in
    ``HANDOFF_DATABASE_URL``/``DATABASE_URL``. Each call returns a new handle;
    callers own it and pass it on explicitly.
    """

    if database_url is None:
        config = config or load_config()
        database_url = config.database_url
    if not database_url.startswith(("sqlite", "postgresql")):
        raise ValueError(f"Unsupported database backend: {database_url}")
    return TaskDB(database_url)


__all__ = [
    "NotificationRow",
    "TaskDB",
    "TaskEventRow",
    "TaskRow",
    "TemplateRow",
    "event_from_row",
    "get_db",
    "task_from_row",
]
