"""Notifier that only writes notifications to the log."""

from __future__ import annotations

import logging

from ..contracts import NotificationMessage
from .base import BaseNotifier

logger = logging.getLogger(__name__)


class LogNotifier(BaseNotifier):
    async def notify(self, message: NotificationMessage) -> None:
        logger.info(
            f"Notify user {message.user_id} about task {message.task_id}: {message.message}"
        )
