"""Transition legality and field-completeness checks for task status changes."""

from __future__ import annotations

import logging
from typing import Annotated, Any, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, Field

from .contracts import Status, WorkflowTemplate
from .fields import FieldErrorReason, FieldValidation, validate_field_value

logger = logging.getLogger(__name__)


class Allowed(BaseModel):
    kind: Literal["allowed"] = "allowed"

    @property
    def allowed(self) -> bool:
        return True


class TransitionNotAllowed(BaseModel):
    """The current step does not list the requested status."""

    kind: Literal["transition_not_allowed"] = "transition_not_allowed"
    current_status: Status
    requested_status: Status
    allowed_transitions: List[Status]

    @property
    def allowed(self) -> bool:
        return False


class MissingRequiredFields(BaseModel):
    """Required fields of the target step were not supplied.

    ``invalid`` carries type failures found in the same pass so the caller
    can fix the whole form at once.
    """

    kind: Literal["missing_required_fields"] = "missing_required_fields"
    names: List[str]
    invalid: List[FieldValidation] = Field(default_factory=list)

    @property
    def allowed(self) -> bool:
        return False


class InvalidFieldValue(BaseModel):
    """All required fields are present but at least one fails validation."""

    kind: Literal["invalid_field_value"] = "invalid_field_value"
    name: str
    reason: FieldErrorReason
    errors: List[FieldValidation]

    @property
    def allowed(self) -> bool:
        return False


Outcome = Annotated[
    Union[Allowed, TransitionNotAllowed, MissingRequiredFields, InvalidFieldValue],
    Field(discriminator="kind"),
]


def validate_transition(
    template: Optional[WorkflowTemplate],
    current_status: Status,
    requested_status: Status,
    candidate_fields: Optional[Mapping[str, Any]] = None,
) -> Outcome:
    """Decide whether ``current_status -> requested_status`` may be committed.

    Args:
        template: Resolved template for the task, or ``None`` when the task has
            none or its template no longer exists.
        current_status: Status the task is in now.
        requested_status: Status the caller wants to move to.
        candidate_fields: Full replacement set of custom field values intended
            after the transition. Nothing is merged with stored values.

    Returns:
        ``Allowed`` or the rule that rejected the transition.
    """
    if template is None:
        return Allowed()

    current_step = template.step_for(current_status)
    if current_step is None:
        return Allowed()

    if requested_status not in current_step.allowed_transitions:
        logger.debug(
            f"Template {template.id} rejects {current_status.value} -> {requested_status.value}"
        )
        return TransitionNotAllowed(
            current_status=current_status,
            requested_status=requested_status,
            allowed_transitions=list(current_step.allowed_transitions),
        )

    target_step = template.step_for(requested_status)
    if target_step is None or not target_step.required_fields:
        return Allowed()

    values = candidate_fields or {}
    missing: List[str] = []
    invalid: List[FieldValidation] = []
    for field in target_step.required_fields:
        result = validate_field_value(field, values.get(field.name))
        if result.reason is FieldErrorReason.MISSING:
            missing.append(field.name)
        elif not result.ok:
            invalid.append(result)

    if missing:
        logger.debug(f"Transition to {requested_status.value} missing fields: {missing}")
        return MissingRequiredFields(names=missing, invalid=invalid)
    if invalid:
        first = invalid[0]
        logger.debug(
            f"Transition to {requested_status.value} has invalid fields: "
            f"{[e.name for e in invalid]}"
        )
        return InvalidFieldValue(name=first.name, reason=first.reason, errors=invalid)
    return Allowed()
