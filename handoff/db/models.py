from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid4())


class TemplateRow(SQLModel, table=True):
    """Stored workflow template; ``steps`` holds the serialized step list."""

    __tablename__ = "handoff_templates"

    id: str = Field(default_factory=new_id, primary_key=True)
    name: str
    description: Optional[str] = None
    owner_id: str = Field(index=True)
    steps: list = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class TaskRow(SQLModel, table=True):
    """Mutable task state.

    ``template_id`` is a plain reference: deleting a template leaves tasks
    pointing at an id that no longer resolves.
    """

    __tablename__ = "tasks"

    id: str = Field(default_factory=new_id, primary_key=True)
    title: str
    description: Optional[str] = None
    status: str = Field(default="OPEN")
    priority: str = Field(default="MEDIUM")
    template_id: Optional[str] = Field(default=None, index=True)
    custom_fields: dict = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    assigned_to: Optional[str] = Field(default=None, index=True)
    created_by_id: str
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class TaskEventRow(SQLModel, table=True):
    """Append-only audit record. Rows are never updated or deleted."""

    __tablename__ = "task_events"

    id: Optional[int] = Field(default=None, primary_key=True)
    task_id: str = Field(foreign_key="tasks.id", index=True)
    event_type: str
    old_status: Optional[str] = None
    new_status: Optional[str] = None
    old_priority: Optional[str] = None
    new_priority: Optional[str] = None
    old_assignee: Optional[str] = None
    new_assignee: Optional[str] = None
    changed_by_id: str
    created_at: datetime = Field(default_factory=utcnow)


class NotificationRow(SQLModel, table=True):
    __tablename__ = "notifications"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    task_id: str
    message: str
    read: bool = False
    created_at: datetime = Field(default_factory=utcnow)
