import pytest
import pytest_asyncio

from handoff.contracts import (
    FieldType,
    Status,
    TemplateField,
    TemplateInput,
    TemplateStep,
)
from handoff.db import TaskDB
from handoff.engine import HandoffEngine
from handoff.mutations import MutationCoordinator
from handoff.notifications import InMemoryNotifier
from handoff.templates import TemplateStore


def build_review_template() -> TemplateInput:
    """OPEN -> IN_PROGRESS -> READY_FOR_REVIEW -> DONE with field checks."""
    return TemplateInput(
        name="Code review handoff",
        description="Hand a change over for review",
        steps=[
            TemplateStep(status=Status.OPEN, allowed_transitions=[Status.IN_PROGRESS]),
            TemplateStep(
                status=Status.IN_PROGRESS,
                allowed_transitions=[Status.READY_FOR_REVIEW, Status.DONE],
            ),
            TemplateStep(
                status=Status.READY_FOR_REVIEW,
                required_fields=[
                    TemplateField(name="pr_url", label="PR URL", type=FieldType.TEXT),
                    TemplateField(
                        name="reviewer",
                        label="Reviewer",
                        type=FieldType.SELECT,
                        options=["alice", "bob"],
                    ),
                ],
                allowed_transitions=[Status.IN_PROGRESS, Status.DONE],
            ),
            TemplateStep(
                status=Status.DONE,
                required_fields=[
                    TemplateField(name="summary", label="Summary", type=FieldType.TEXT),
                ],
                allowed_transitions=[],
            ),
        ],
    )


@pytest.fixture
def review_template() -> TemplateInput:
    return build_review_template()


@pytest_asyncio.fixture
async def db(tmp_path):
    database = TaskDB(f"sqlite+aiosqlite:///{tmp_path / 'handoff.db'}")
    await database.init_db()
    yield database
    await database.dispose()


@pytest.fixture
def notifier() -> InMemoryNotifier:
    return InMemoryNotifier()


@pytest.fixture
def coordinator(db, notifier) -> MutationCoordinator:
    return MutationCoordinator(db, notifier=notifier)


@pytest.fixture
def templates(db) -> TemplateStore:
    return TemplateStore(db)


@pytest.fixture
def engine(db, templates, coordinator) -> HandoffEngine:
    return HandoffEngine(db, templates, coordinator)
