"""Template store tests."""

import pytest

from handoff.contracts import Status, TemplateInput, TemplateStep
from handoff.errors import TemplateNotFound


@pytest.mark.asyncio
async def test_template_crud(templates, review_template):
    created = await templates.create_template("owner-1", review_template)
    assert created.owner_id == "owner-1"
    assert [s.status for s in created.steps] == [
        Status.OPEN,
        Status.IN_PROGRESS,
        Status.READY_FOR_REVIEW,
        Status.DONE,
    ]

    fetched = await templates.get_template(created.id)
    assert fetched is not None
    assert fetched.name == "Code review handoff"
    reviewer = fetched.step_for(Status.READY_FOR_REVIEW).required_fields[1]
    assert reviewer.options == ["alice", "bob"]

    replacement = TemplateInput(
        name="Lean",
        steps=[TemplateStep(status=Status.OPEN, allowed_transitions=[Status.DONE])],
    )
    updated = await templates.update_template(created.id, "owner-1", replacement)
    assert updated.name == "Lean"
    assert len(updated.steps) == 1

    listed = await templates.list_templates("owner-1")
    assert [t.id for t in listed] == [created.id]
    assert await templates.list_templates("someone-else") == []

    await templates.delete_template(created.id, "owner-1")
    assert await templates.get_template(created.id) is None


@pytest.mark.asyncio
async def test_missing_template_is_none(templates):
    assert await templates.get_template("does-not-exist") is None
    assert await templates.get_template(None) is None


@pytest.mark.asyncio
async def test_only_owner_can_change_template(templates, review_template):
    created = await templates.create_template("owner-1", review_template)

    with pytest.raises(TemplateNotFound):
        await templates.update_template(created.id, "intruder", review_template)
    with pytest.raises(TemplateNotFound):
        await templates.delete_template(created.id, "intruder")
    with pytest.raises(TemplateNotFound):
        await templates.delete_template("missing", "owner-1")

    assert await templates.get_template(created.id) is not None
