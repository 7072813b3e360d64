"""Infrastructure failures raised by the handoff engine.

Rule violations (illegal transitions, missing or invalid fields) are not
errors: they are returned as outcomes from
:func:`handoff.transitions.validate_transition`.
"""

from __future__ import annotations


class HandoffError(Exception):
    """Base class for handoff engine errors."""

    retryable: bool = False


class TemplateNotFound(HandoffError):
    """Template id does not resolve for the requesting owner."""

    def __init__(self, template_id: str) -> None:
        super().__init__(f"Template {template_id} not found")
        self.template_id = template_id


class TaskNotFound(HandoffError):
    """Mutation target does not exist."""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task {task_id} not found")
        self.task_id = task_id


class CommitFailure(HandoffError):
    """The atomic Task+Event write failed at the store layer."""

    retryable = True

    def __init__(self, task_id: str, reason: str) -> None:
        super().__init__(f"Failed to commit mutation for task {task_id}: {reason}")
        self.task_id = task_id
        self.reason = reason


class NotificationFailure(HandoffError):
    """A notifier backend could not deliver a notification."""
