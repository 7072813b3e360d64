"""Notifier factory and initialization."""

from __future__ import annotations

import os
from typing import Optional

from ..config import HandoffConfig, load_config
from ..db import TaskDB
from .base import BaseNotifier
from .database import DatabaseNotifier
from .inmemory import InMemoryNotifier
from .log import LogNotifier


def get_notifier(
    backend: Optional[str] = None,
    config: Optional[HandoffConfig] = None,
    db: Optional[TaskDB] = None,
) -> BaseNotifier:
    """Factory function to get the configured notifier."""

    config = config or load_config()
    backend = (
        backend
        or os.getenv("HANDOFF_NOTIFIER")
        or config.notifications.backend
    ).lower()

    if backend == "inmemory":
        return InMemoryNotifier()
    elif backend == "log":
        return LogNotifier()
    elif backend == "database":
        if db is None:
            raise ValueError("The database notifier needs a database handle")
        return DatabaseNotifier(db)
    else:
        raise ValueError(f"Unsupported notifier backend: {backend}")


__all__ = [
    "BaseNotifier",
    "DatabaseNotifier",
    "InMemoryNotifier",
    "LogNotifier",
    "get_notifier",
]
