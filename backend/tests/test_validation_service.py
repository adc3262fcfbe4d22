"""
Validation adapter unit tests.

Covers:
  - violation paths (nested objects, array indices, path params)
  - required properties are reported at the missing property's path
  - enum / pattern / date-time format
  - composite references and broken references
  - meta-validation of Service forms
"""

import pytest

from app.core.errors import InternalError, ValidationFailedError
from app.services.schema_registry import FORM_SCHEMA_ID, REQUEST, SERVICE, schema_for
from app.services.validation_service import (
    Violation,
    check_form_schema,
    ensure_valid,
    format_path,
    validate,
)


def _by_property(result):
    return {v.property: v for v in result.violations}


def test_format_path():
    assert format_path("body", []) == "request.body"
    assert format_path("body", ["data", "items", 2, "name"]) == "request.body.data.items[2].name"
    assert format_path("params", ["machine_name"]) == "request.params.machine_name"


def test_valid_service_payload(service_payload):
    assert validate(service_payload(), schema_for(SERVICE)).valid


def test_missing_required_fields_are_addressed_individually():
    result = validate({"name": "x"}, schema_for(SERVICE))

    props = _by_property(result)
    assert not result.valid
    for name in ("machine_name", "form", "category", "ca_info"):
        violation = props[f"request.body.{name}"]
        assert violation.messages == ("is required",)
        assert violation.constraints == ("required",)


def test_nested_and_enum_violations(service_payload):
    payload = service_payload(
        machine_name="Bad-Name",
        ca_info={"sa_category": "DB.Maint", "sa_type": "XX"},
        notifications=[{"type": "email", "data_format": {}}, {"type": "fax", "data_format": {}}],
    )

    props = _by_property(validate(payload, schema_for(SERVICE)))

    assert "pattern" in props["request.body.machine_name"].constraints
    assert "enum" in props["request.body.ca_info.sa_type"].constraints
    assert "enum" in props["request.body.notifications[1].type"].constraints
    assert "request.body.notifications[0].type" not in props


def test_date_time_format_is_checked():
    schema = {"type": "object", "properties": {"due": {"type": "string", "format": "date-time"}}}

    assert validate({"due": "2026-10-19T09:00:00Z"}, schema).valid
    result = validate({"due": "next tuesday"}, schema)
    assert not result.valid
    assert result.violations[0].property == "request.body.due"
    assert result.violations[0].constraints == ("format",)


def test_composite_reference_resolves():
    form = {
        "$id": FORM_SCHEMA_ID,
        "type": "object",
        "properties": {"x": {"type": "string"}},
        "required": ["x"],
    }
    schema = schema_for(REQUEST)

    ok = validate({"service_name": "bd_maintenance", "data": {"x": "hello"}}, schema, {FORM_SCHEMA_ID: form})
    bad = validate({"service_name": "bd_maintenance", "data": {}}, schema, {FORM_SCHEMA_ID: form})

    assert ok.valid
    assert [v.property for v in bad.violations] == ["request.body.data.x"]


def test_unresolvable_reference_is_internal_error():
    with pytest.raises(InternalError):
        validate({"service_name": "bd_maintenance", "data": {"x": "y"}}, schema_for(REQUEST))


def test_ensure_valid_raises_with_violation_data():
    with pytest.raises(ValidationFailedError) as excinfo:
        ensure_valid({"machine_name": "NOPE"}, {"type": "object", "properties": {"machine_name": {"pattern": "^[a-z]+$"}}}, location="params")

    err = excinfo.value
    assert err.status_code == 400
    assert err.data[0]["property"] == "request.params.machine_name"
    assert err.data[0]["constraints"] == ["pattern"]


def test_violation_to_dict():
    violation = Violation(property="request.body.x", messages=("is required",), constraints=("required",))
    assert violation.to_dict() == {
        "property": "request.body.x",
        "messages": ["is required"],
        "constraints": ["required"],
    }


def test_check_form_schema():
    assert check_form_schema({"type": "object", "properties": {"x": {"type": "string"}}}) == []

    violations = check_form_schema({"type": "object", "properties": {"x": {"type": "strnig"}}})
    assert violations
    assert violations[0].property.startswith("request.body.form.properties.x")
    assert violations[0].messages[0].startswith("not a valid JSON Schema")
