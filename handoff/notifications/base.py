"""Base notifier interface."""

from __future__ import annotations

import abc

from ..contracts import NotificationMessage


class BaseNotifier(metaclass=abc.ABCMeta):
    """Delivers task notifications to users.

    Called only after a mutation has committed. Implementations raise
    :class:`handoff.errors.NotificationFailure` when delivery fails.
    """

    @abc.abstractmethod
    async def notify(self, message: NotificationMessage) -> None:
        """Deliver one notification."""
        raise NotImplementedError
