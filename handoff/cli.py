"""Command line interface for the handoff workflow engine."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Awaitable, Callable, Dict, List, Optional, TypeVar

import typer
import yaml
from pydantic import ValidationError

from handoff import HandoffEngine
from handoff.contracts import FieldValue, Priority, Status, TemplateInput
from handoff.errors import CommitFailure, TaskNotFound, TemplateNotFound
from handoff.transitions import (
    InvalidFieldValue,
    MissingRequiredFields,
    Outcome,
    TransitionNotAllowed,
)

T = TypeVar("T")

app = typer.Typer(help="CLI for handoff task workflows")

# Command groups
template_app = typer.Typer(help="Commands for managing workflow templates")
task_app = typer.Typer(help="Commands for inspecting and moving tasks")

app.add_typer(template_app, name="template")
app.add_typer(task_app, name="task")


@app.callback()
def main() -> None:
    """Handoff CLI entry point."""
    pass


def _run(action: Callable[[HandoffEngine], Awaitable[T]]) -> T:
    async def runner() -> T:
        engine = HandoffEngine.from_config()
        await engine.db.init_db()
        try:
            return await action(engine)
        finally:
            await engine.db.dispose()

    try:
        return asyncio.run(runner())
    except (TaskNotFound, TemplateNotFound) as e:
        typer.secho(str(e), fg=typer.colors.RED)
        raise typer.Exit(code=1)
    except CommitFailure as e:
        typer.secho(f"{e} (safe to retry)", fg=typer.colors.RED)
        raise typer.Exit(code=2)


def _parse_fields(pairs: Optional[List[str]]) -> Optional[Dict[str, FieldValue]]:
    """Parse ``name=value`` pairs.

    Values stay strings; number fields accept numeric strings.
    """
    if not pairs:
        return None
    fields: Dict[str, FieldValue] = {}
    for pair in pairs:
        name, sep, raw = pair.partition("=")
        if not sep or not name:
            raise typer.BadParameter(f"Expected name=value, got {pair!r}")
        fields[name] = raw
    return fields


def describe_outcome(outcome: Outcome) -> str:
    if isinstance(outcome, TransitionNotAllowed):
        allowed = ", ".join(s.value for s in outcome.allowed_transitions) or "none"
        return (
            f"Status transition not allowed: {outcome.current_status.value} -> "
            f"{outcome.requested_status.value} (allowed: {allowed})"
        )
    if isinstance(outcome, MissingRequiredFields):
        text = f"Missing required fields: {', '.join(outcome.names)}"
        if outcome.invalid:
            text += f"; invalid: {', '.join(e.message or e.name for e in outcome.invalid)}"
        return text
    if isinstance(outcome, InvalidFieldValue):
        return f"Invalid custom fields: {', '.join(e.message or e.name for e in outcome.errors)}"
    return "Allowed"


@app.command("init-db")
def init_db() -> None:
    """Create the database tables."""
    _run(lambda engine: asyncio.sleep(0))
    typer.echo("Database initialized")


# ----------------------------------------------------------------------
# Templates
@template_app.command("list")
def template_list(owner: str = typer.Option(..., help="Owner user id")) -> None:
    """List the owner's templates, newest first."""
    templates = _run(lambda engine: engine.templates.list_templates(owner))
    if not templates:
        typer.echo("No templates found")
        return
    for tpl in templates:
        statuses = " -> ".join(step.status.value for step in tpl.steps)
        typer.echo(f"{tpl.id}\t{tpl.name}\t{statuses}")


@template_app.command("show")
def template_show(template_id: str) -> None:
    """Show a template's steps, transitions and required fields."""
    tpl = _run(lambda engine: engine.templates.get_template(template_id))
    if tpl is None:
        typer.echo("Template not found")
        raise typer.Exit(code=1)
    typer.echo(f"Template {tpl.id}: {tpl.name}")
    if tpl.description:
        typer.echo(tpl.description)
    for step in tpl.steps:
        targets = ", ".join(s.value for s in step.allowed_transitions) or "terminal"
        typer.echo(f"- {step.status.value} -> {targets}")
        for field in step.required_fields:
            flag = "required" if field.required else "optional"
            typer.echo(f"    {field.name} ({field.type.value}, {flag}): {field.label}")


@template_app.command("create")
def template_create(
    path: Path,
    owner: str = typer.Option(..., help="Owner user id"),
) -> None:
    """Create a template from a YAML or JSON file."""
    if not path.exists():
        typer.secho("Specified path does not exist", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    data = yaml.safe_load(path.read_text()) or {}
    try:
        template = TemplateInput.model_validate(data)
    except ValidationError as e:
        typer.secho(f"Invalid template: {e}", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    created = _run(lambda engine: engine.templates.create_template(owner, template))
    typer.echo(created.id)


@template_app.command("delete")
def template_delete(
    template_id: str,
    owner: str = typer.Option(..., help="Owner user id"),
) -> None:
    """Delete a template. Tasks that use it become unconstrained."""
    _run(lambda engine: engine.templates.delete_template(template_id, owner))
    typer.echo(f"Deleted template {template_id}")


# ----------------------------------------------------------------------
# Tasks
@task_app.command("create")
def task_create(
    title: str,
    actor: str = typer.Option(..., help="User creating the task"),
    template: Optional[str] = typer.Option(None, help="Workflow template id"),
    priority: Priority = typer.Option(Priority.MEDIUM, help="Task priority"),
    assign: Optional[str] = typer.Option(None, help="Assignee user id"),
    description: Optional[str] = typer.Option(None, help="Task description"),
) -> None:
    """Create a task and print its id."""
    task = _run(
        lambda engine: engine.coordinator.create_task(
            title,
            created_by_id=actor,
            description=description,
            priority=priority,
            template_id=template,
            assigned_to=assign,
        )
    )
    typer.echo(task.id)


@task_app.command("show")
def task_show(task_id: str) -> None:
    """Show a task's current state."""
    task = _run(lambda engine: engine.db.get_task(task_id))
    if task is None:
        typer.echo("Task not found")
        raise typer.Exit(code=1)
    typer.echo(f"Task {task.id}: {task.title}")
    typer.echo(f"Status: {task.status.value}")
    typer.echo(f"Priority: {task.priority.value}")
    typer.echo(f"Assigned to: {task.assigned_to or '-'}")
    if task.template_id:
        typer.echo(f"Template: {task.template_id}")
    if task.custom_fields:
        typer.echo(f"Fields: {json.dumps(task.custom_fields, sort_keys=True)}")


@task_app.command("history")
def task_history(task_id: str) -> None:
    """Print the task's event log, oldest first."""
    events = _run(lambda engine: engine.db.list_events(task_id))
    if not events:
        typer.echo("No events found")
        return
    for ev in events:
        line = f"{ev.created_at.isoformat()}\t{ev.event_type.value}\t{ev.changed_by_id}"
        if ev.old_status != ev.new_status:
            old = ev.old_status.value if ev.old_status else "-"
            line += f"\t{old} -> {ev.new_status.value if ev.new_status else '-'}"
        typer.echo(line)


@task_app.command("check")
def task_check(
    task_id: str,
    status: Status,
    field: Optional[List[str]] = typer.Option(None, help="Custom field as name=value"),
) -> None:
    """Check whether a status change would be accepted, without applying it."""
    fields = _parse_fields(field)
    outcome = _run(lambda engine: engine.check_transition(task_id, status, fields))
    typer.echo(describe_outcome(outcome))
    if not outcome.allowed:
        raise typer.Exit(code=1)


@task_app.command("set-status")
def task_set_status(
    task_id: str,
    status: Status,
    actor: str = typer.Option(..., help="User making the change"),
    field: Optional[List[str]] = typer.Option(
        None, help="Custom field as name=value; replaces all stored fields"
    ),
) -> None:
    """Move a task to a new status, enforcing its template."""
    fields = _parse_fields(field)
    result = _run(lambda engine: engine.set_status(task_id, status, actor, fields))
    if not result.applied:
        typer.secho(describe_outcome(result.outcome), fg=typer.colors.RED)
        raise typer.Exit(code=1)
    typer.echo(f"Task {task_id}: {result.task.status.value}")


@task_app.command("set-priority")
def task_set_priority(
    task_id: str,
    priority: Priority,
    actor: str = typer.Option(..., help="User making the change"),
) -> None:
    """Change a task's priority."""
    task = _run(lambda engine: engine.set_priority(task_id, priority, actor))
    typer.echo(f"Task {task_id}: {task.priority.value}")


@task_app.command("assign")
def task_assign(
    task_id: str,
    assignee: Optional[str] = typer.Argument(None, help="New assignee; omit to unassign"),
    actor: str = typer.Option(..., help="User making the change"),
) -> None:
    """Reassign a task and notify the new assignee."""
    task = _run(lambda engine: engine.reassign(task_id, assignee, actor))
    typer.echo(f"Task {task_id}: assigned to {task.assigned_to or '-'}")
