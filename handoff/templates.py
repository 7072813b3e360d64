"""Template lookup and owner-scoped template management."""

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import select

from .contracts import TemplateInput, TemplateStep, WorkflowTemplate
from .db import TaskDB, TemplateRow
from .db.models import utcnow
from .errors import TemplateNotFound

logger = logging.getLogger(__name__)


def template_from_row(row: TemplateRow) -> WorkflowTemplate:
    return WorkflowTemplate(
        id=row.id,
        name=row.name,
        description=row.description,
        owner_id=row.owner_id,
        steps=[TemplateStep.model_validate(s) for s in row.steps or []],
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _dump_steps(template: TemplateInput) -> list:
    return [step.model_dump(mode="json") for step in template.steps]


class TemplateStore:
    """Read templates for the engine and manage them for their owners."""

    def __init__(self, db: TaskDB) -> None:
        self._db = db

    async def get_template(self, template_id: Optional[str]) -> Optional[WorkflowTemplate]:
        """Return the template or ``None``.

        A missing id means no workflow constraints apply to the task.
        """
        if template_id is None:
            return None
        async with self._db.session() as session:
            row = await session.get(TemplateRow, template_id)
        if row is None:
            logger.debug(f"Template {template_id} not found; treating task as unconstrained")
            return None
        return template_from_row(row)

    async def list_templates(self, owner_id: str) -> List[WorkflowTemplate]:
        query = (
            select(TemplateRow)
            .where(TemplateRow.owner_id == owner_id)
            .order_by(TemplateRow.created_at.desc())
        )
        async with self._db.session() as session:
            rows = (await session.execute(query)).scalars().all()
        return [template_from_row(r) for r in rows]

    async def create_template(self, owner_id: str, template: TemplateInput) -> WorkflowTemplate:
        row = TemplateRow(
            name=template.name,
            description=template.description,
            owner_id=owner_id,
            steps=_dump_steps(template),
        )
        async with self._db.session() as session:
            session.add(row)
            await session.commit()
            await session.refresh(row)
        logger.info(f"Created template {row.id} for owner {owner_id}")
        return template_from_row(row)

    async def _owned_row(self, session, template_id: str, owner_id: str) -> TemplateRow:
        row = await session.get(TemplateRow, template_id)
        if row is None or row.owner_id != owner_id:
            raise TemplateNotFound(template_id)
        return row

    async def update_template(
        self, template_id: str, owner_id: str, template: TemplateInput
    ) -> WorkflowTemplate:
        """Replace the template's content. Tasks using it are not re-validated."""
        async with self._db.session() as session:
            row = await self._owned_row(session, template_id, owner_id)
            row.name = template.name
            row.description = template.description
            row.steps = _dump_steps(template)
            row.updated_at = utcnow()
            session.add(row)
            await session.commit()
            await session.refresh(row)
        logger.info(f"Updated template {template_id}")
        return template_from_row(row)

    async def delete_template(self, template_id: str, owner_id: str) -> None:
        """Delete the template. Tasks keep their now dangling reference."""
        async with self._db.session() as session:
            row = await self._owned_row(session, template_id, owner_id)
            await session.delete(row)
            await session.commit()
        logger.info(f"Deleted template {template_id}")
