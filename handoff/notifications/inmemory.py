"""In-memory notifier for testing."""

from __future__ import annotations

import asyncio
from typing import List

from ..contracts import NotificationMessage
from .base import BaseNotifier


class InMemoryNotifier(BaseNotifier):
    """Collects notifications in a local list."""

    def __init__(self) -> None:
        self.sent: List[NotificationMessage] = []
        self._lock = asyncio.Lock()

    async def notify(self, message: NotificationMessage) -> None:
        async with self._lock:
            self.sent.append(message)
