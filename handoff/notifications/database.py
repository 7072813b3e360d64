"""Notifier that stores notifications as rows for the in-app inbox."""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from ..contracts import NotificationMessage
from ..db import TaskDB
from ..errors import NotificationFailure
from .base import BaseNotifier

logger = logging.getLogger(__name__)


class DatabaseNotifier(BaseNotifier):
    """Insert a notification row in its own transaction."""

    def __init__(self, db: TaskDB) -> None:
        self._db = db

    async def notify(self, message: NotificationMessage) -> None:
        try:
            await self._db.add_notification(message.user_id, message.task_id, message.message)
        except SQLAlchemyError as e:
            raise NotificationFailure(
                f"Could not store notification for user {message.user_id}: {e}"
            ) from e
        logger.debug(f"Stored notification for user {message.user_id} on task {message.task_id}")
