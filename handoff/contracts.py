"""Core data contracts for the handoff workflow engine."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

FieldValue = Union[str, int, float, bool, None]


class Status(str, Enum):
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    READY_FOR_REVIEW = "READY_FOR_REVIEW"
    DONE = "DONE"


class Priority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class EventType(str, Enum):
    CREATED = "CREATED"
    ASSIGNED = "ASSIGNED"
    STATUS_CHANGED = "STATUS_CHANGED"
    COMPLETED = "COMPLETED"
    PRIORITY_CHANGED = "PRIORITY_CHANGED"
    FIELDS_UPDATED = "FIELDS_UPDATED"


class FieldType(str, Enum):
    TEXT = "text"
    TEXTAREA = "textarea"
    NUMBER = "number"
    DATE = "date"
    SELECT = "select"


class TemplateField(BaseModel):
    """One dynamically typed data item a step may require."""

    name: str = Field(min_length=1, max_length=50)
    label: str = Field(min_length=1, max_length=100)
    type: FieldType
    required: bool = True
    options: Optional[List[str]] = None

    @model_validator(mode="after")
    def _select_needs_options(self) -> "TemplateField":
        if self.type is FieldType.SELECT and not self.options:
            raise ValueError("Select fields must have options")
        return self


class TemplateStep(BaseModel):
    """Rules for one status within a template."""

    status: Status
    required_fields: List[TemplateField] = Field(default_factory=list)
    allowed_transitions: List[Status] = Field(default_factory=list)

    @field_validator("required_fields")
    @classmethod
    def _unique_field_names(cls, fields: List[TemplateField]) -> List[TemplateField]:
        names = [f.name for f in fields]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate field names in step: {', '.join(duplicates)}")
        return fields


class TemplateInput(BaseModel):
    """Payload used to create or replace a workflow template."""

    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    steps: List[TemplateStep] = Field(min_length=1)

    @field_validator("steps")
    @classmethod
    def _one_step_per_status(cls, steps: List[TemplateStep]) -> List[TemplateStep]:
        seen: set[Status] = set()
        for step in steps:
            if step.status in seen:
                raise ValueError(f"Duplicate step for status {step.status.value}")
            seen.add(step.status)
        return steps


class WorkflowTemplate(BaseModel):
    """A reusable handoff checklist as stored.

    Stored templates are not re-validated for duplicate steps; lookups resolve
    to the first step declared for a status.
    """

    id: str
    name: str
    description: Optional[str] = None
    owner_id: str
    steps: List[TemplateStep] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def step_for(self, status: Status) -> Optional[TemplateStep]:
        """Return the first step declared for ``status``."""
        for step in self.steps:
            if step.status == status:
                return step
        return None


class TaskRecord(BaseModel):
    """Snapshot of a task row."""

    id: str
    title: str
    description: Optional[str] = None
    status: Status = Status.OPEN
    priority: Priority = Priority.MEDIUM
    template_id: Optional[str] = None
    custom_fields: Dict[str, FieldValue] = Field(default_factory=dict)
    assigned_to: Optional[str] = None
    created_by_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TaskEvent(BaseModel):
    """Immutable audit record of one applied change."""

    id: int
    task_id: str
    event_type: EventType
    old_status: Optional[Status] = None
    new_status: Optional[Status] = None
    old_priority: Optional[Priority] = None
    new_priority: Optional[Priority] = None
    old_assignee: Optional[str] = None
    new_assignee: Optional[str] = None
    changed_by_id: str
    created_at: datetime


class Notification(BaseModel):
    id: int
    user_id: str
    task_id: str
    message: str
    read: bool = False
    created_at: datetime


class NotificationMessage(BaseModel):
    """Payload handed to a notifier backend."""

    user_id: str
    task_id: str
    message: str


class TaskChanges(BaseModel):
    """Requested changes for one mutation.

    ``assigned_to`` only counts when explicitly provided, so passing ``None``
    unassigns the task while omitting it leaves the assignee untouched.
    """

    status: Optional[Status] = None
    priority: Optional[Priority] = None
    custom_fields: Optional[Dict[str, FieldValue]] = None
    assigned_to: Optional[str] = None

    @property
    def reassigns(self) -> bool:
        return "assigned_to" in self.model_fields_set

    def is_empty(self) -> bool:
        return (
            self.status is None
            and self.priority is None
            and self.custom_fields is None
            and not self.reassigns
        )
