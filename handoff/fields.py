"""Validation of dynamic custom field values against their declared kind."""

from __future__ import annotations

import math
import re
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from pydantic import BaseModel

from .contracts import FieldType, TemplateField


class FieldErrorReason(str, Enum):
    MISSING = "MISSING"
    WRONG_TYPE = "WRONG_TYPE"
    NOT_IN_OPTIONS = "NOT_IN_OPTIONS"


class FieldValidation(BaseModel):
    """Result of validating one field value."""

    name: str
    reason: Optional[FieldErrorReason] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.reason is None


_TEXT_KINDS = (FieldType.TEXT, FieldType.TEXTAREA)

_DECIMAL = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)


def is_missing(value: Any, kind: Optional[FieldType] = None) -> bool:
    """``None`` and ``""`` count as missing; ``0`` and ``False`` do not.

    Whitespace-only strings are also missing for text kinds.
    """
    if value is None or value == "":
        return True
    return kind in _TEXT_KINDS and isinstance(value, str) and not value.strip()


def _check_text(field: TemplateField, value: Any) -> Optional[FieldValidation]:
    if not isinstance(value, str):
        return _fail(field, FieldErrorReason.WRONG_TYPE, "must be a string")
    return None


def _check_number(field: TemplateField, value: Any) -> Optional[FieldValidation]:
    if isinstance(value, bool):
        return _fail(field, FieldErrorReason.WRONG_TYPE, "must be a number")
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not _DECIMAL.fullmatch(text):
            return _fail(field, FieldErrorReason.WRONG_TYPE, "must be a number")
        number = float(text)
    else:
        return _fail(field, FieldErrorReason.WRONG_TYPE, "must be a number")
    if not math.isfinite(number):
        return _fail(field, FieldErrorReason.WRONG_TYPE, "must be a finite number")
    return None


def _check_date(field: TemplateField, value: Any) -> Optional[FieldValidation]:
    if not isinstance(value, str):
        return _fail(field, FieldErrorReason.WRONG_TYPE, "must be an ISO 8601 date")
    text = value.strip()
    try:
        date.fromisoformat(text)
        return None
    except ValueError:
        pass
    try:
        datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return _fail(field, FieldErrorReason.WRONG_TYPE, "must be an ISO 8601 date")
    return None


def _check_select(field: TemplateField, value: Any) -> Optional[FieldValidation]:
    if not isinstance(value, str):
        return _fail(field, FieldErrorReason.WRONG_TYPE, "must be one of the options")
    if value not in (field.options or []):
        return _fail(
            field,
            FieldErrorReason.NOT_IN_OPTIONS,
            f"must be one of: {', '.join(field.options or [])}",
        )
    return None


_CHECKS: Dict[FieldType, Callable[[TemplateField, Any], Optional[FieldValidation]]] = {
    FieldType.TEXT: _check_text,
    FieldType.TEXTAREA: _check_text,
    FieldType.NUMBER: _check_number,
    FieldType.DATE: _check_date,
    FieldType.SELECT: _check_select,
}


def _fail(field: TemplateField, reason: FieldErrorReason, detail: str) -> FieldValidation:
    return FieldValidation(name=field.name, reason=reason, message=f"{field.label} {detail}")


def validate_field_value(field: TemplateField, value: Any) -> FieldValidation:
    """Validate ``value`` for ``field`` without raising.

    Absent values pass for optional fields and are reported as ``MISSING``
    for required ones.
    """
    if is_missing(value, field.type):
        if field.required:
            return _fail(field, FieldErrorReason.MISSING, "is required")
        return FieldValidation(name=field.name)
    failure = _CHECKS[field.type](field, value)
    return failure or FieldValidation(name=field.name)


def validate_fields(
    fields: Iterable[TemplateField], values: Optional[Mapping[str, Any]]
) -> List[FieldValidation]:
    """Validate a whole form, returning every failure in field order."""
    values = values or {}
    failures = []
    for field in fields:
        result = validate_field_value(field, values.get(field.name))
        if not result.ok:
            failures.append(result)
    return failures
