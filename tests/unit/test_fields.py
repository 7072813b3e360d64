"""Field schema validator tests."""

import pytest

from handoff.contracts import FieldType, TemplateField
from handoff.fields import FieldErrorReason, validate_field_value, validate_fields


def make_field(kind: FieldType, required: bool = True, **kwargs) -> TemplateField:
    return TemplateField(name="f", label="Field", type=kind, required=required, **kwargs)


@pytest.mark.parametrize("kind", [FieldType.TEXT, FieldType.TEXTAREA])
def test_text_kinds_accept_strings_and_reject_other_types(kind):
    field = make_field(kind)
    assert validate_field_value(field, "hello").ok
    result = validate_field_value(field, 12)
    assert result.reason is FieldErrorReason.WRONG_TYPE


@pytest.mark.parametrize("value", [None, "", "   "])
def test_required_field_rejects_absent_values(value):
    result = validate_field_value(make_field(FieldType.TEXT), value)
    assert result.reason is FieldErrorReason.MISSING
    assert result.name == "f"
    assert "required" in result.message


def test_optional_field_accepts_absent_value_but_checks_type_when_present():
    field = make_field(FieldType.NUMBER, required=False)
    assert validate_field_value(field, None).ok
    assert validate_field_value(field, "abc").reason is FieldErrorReason.WRONG_TYPE


def test_number_zero_is_present():
    field = make_field(FieldType.NUMBER)
    assert validate_field_value(field, 0).ok
    assert validate_field_value(field, 0.0).ok
    assert validate_field_value(field, "0").ok


@pytest.mark.parametrize("value", ["abc", True, "nan", "inf"])
def test_number_rejects_non_numeric(value):
    result = validate_field_value(make_field(FieldType.NUMBER), value)
    assert result.reason is FieldErrorReason.WRONG_TYPE


def test_number_accepts_numeric_strings_and_floats():
    field = make_field(FieldType.NUMBER)
    assert validate_field_value(field, "3.5").ok
    assert validate_field_value(field, -2).ok


def test_date_accepts_iso_dates_and_datetimes():
    field = make_field(FieldType.DATE)
    assert validate_field_value(field, "2024-02-29").ok
    assert validate_field_value(field, "2024-02-29T10:15:00Z").ok


@pytest.mark.parametrize("value", ["2023-02-30", "next tuesday", 20240101])
def test_date_rejects_non_calendar_values(value):
    result = validate_field_value(make_field(FieldType.DATE), value)
    assert result.reason is FieldErrorReason.WRONG_TYPE


def test_select_requires_member_of_options():
    field = make_field(FieldType.SELECT, options=["low", "high"])
    assert validate_field_value(field, "low").ok
    assert validate_field_value(field, "medium").reason is FieldErrorReason.NOT_IN_OPTIONS
    assert validate_field_value(field, 1).reason is FieldErrorReason.WRONG_TYPE


def test_validate_fields_collects_every_failure_in_order():
    fields = [
        TemplateField(name="a", label="A", type=FieldType.TEXT),
        TemplateField(name="b", label="B", type=FieldType.NUMBER),
        TemplateField(name="c", label="C", type=FieldType.TEXT, required=False),
    ]
    failures = validate_fields(fields, {"b": "x"})
    assert [(f.name, f.reason) for f in failures] == [
        ("a", FieldErrorReason.MISSING),
        ("b", FieldErrorReason.WRONG_TYPE),
    ]
    assert validate_fields(fields, {"a": "ok", "b": 1}) == []


@pytest.mark.parametrize("value", ["1_000", "١٢", "0x10", "1e999"])
def test_number_rejects_non_decimal_strings(value):
    result = validate_field_value(make_field(FieldType.NUMBER), value)
    assert result.reason is FieldErrorReason.WRONG_TYPE


@pytest.mark.parametrize("value", ["-4", "+2.5", ".5", "1e3", " 7 "])
def test_number_accepts_plain_decimal_strings(value):
    assert validate_field_value(make_field(FieldType.NUMBER), value).ok


@pytest.mark.parametrize(
    "kind,options",
    [(FieldType.NUMBER, None), (FieldType.DATE, None), (FieldType.SELECT, ["a"])],
)
def test_whitespace_is_only_missing_for_text_kinds(kind, options):
    result = validate_field_value(make_field(kind, options=options), "   ")
    assert result.reason is not FieldErrorReason.MISSING
    assert not result.ok
