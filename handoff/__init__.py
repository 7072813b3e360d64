"""Handoff: template-driven status workflow engine for team tasks."""

from .contracts import (
    EventType,
    FieldType,
    Priority,
    Status,
    TaskChanges,
    TaskEvent,
    TaskRecord,
    TemplateField,
    TemplateInput,
    TemplateStep,
    WorkflowTemplate,
)
from .db import TaskDB, get_db
from .engine import HandoffEngine, TransitionResult
from .errors import CommitFailure, HandoffError, TaskNotFound, TemplateNotFound
from .fields import FieldErrorReason, validate_field_value, validate_fields
from .mutations import MutationCoordinator
from .notifications import get_notifier
from .templates import TemplateStore
from .transitions import (
    Allowed,
    InvalidFieldValue,
    MissingRequiredFields,
    TransitionNotAllowed,
    validate_transition,
)

__version__ = "0.1.0"
__all__ = [
    "Allowed",
    "CommitFailure",
    "EventType",
    "FieldErrorReason",
    "FieldType",
    "HandoffEngine",
    "HandoffError",
    "InvalidFieldValue",
    "MissingRequiredFields",
    "MutationCoordinator",
    "Priority",
    "Status",
    "TaskChanges",
    "TaskDB",
    "TaskEvent",
    "TaskNotFound",
    "TaskRecord",
    "TemplateField",
    "TemplateInput",
    "TemplateNotFound",
    "TemplateStep",
    "TemplateStore",
    "TransitionNotAllowed",
    "TransitionResult",
    "WorkflowTemplate",
    "get_db",
    "get_notifier",
    "validate_field_value",
    "validate_fields",
    "validate_transition",
]
