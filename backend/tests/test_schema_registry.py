"""
Schema registry unit tests.

Covers:
  - derived properties and required sets for Service and Request
  - internal storage keys never reach the Service schema
  - augmentation (patterns, ca_info shape, data placeholder, status enum)
  - every call returns an independent document
"""

import pytest

from app.core.config import Settings
from app.services.schema_registry import (
    FORM_SCHEMA_ID,
    JSON_SCHEMA_DIALECT,
    MACHINE_NAME_PATTERN,
    REQUEST,
    SERVICE,
    identifier_field,
    schema_for,
)
from app.services.validation_service import validate


# ─── Service ───────────────────────────────────────────


def test_service_schema_required_fields():
    schema = schema_for(SERVICE)

    assert schema["$schema"] == JSON_SCHEMA_DIALECT
    assert schema["type"] == "object"
    assert set(schema["required"]) == {"machine_name", "name", "form", "category", "ca_info"}


def test_service_schema_hides_internal_key():
    props = schema_for(SERVICE)["properties"]

    assert "id" not in props
    assert "_id" not in props
    assert "__v" not in props
    assert {"description", "notifications", "published", "created_at", "updated_at"} <= set(props)


def test_service_schema_augmentation():
    props = schema_for(SERVICE)["properties"]

    assert props["machine_name"]["pattern"] == MACHINE_NAME_PATTERN
    assert props["machine_name"]["maxLength"] == 33
    assert props["ca_info"]["required"] == ["sa_category", "sa_type"]
    assert props["ca_info"]["properties"]["sa_type"]["enum"] == ["IN", "CR"]
    assert props["form"]["required"] == ["type"]
    assert props["notifications"]["type"] == "array"
    assert props["notifications"]["items"]["properties"]["type"]["enum"] == ["email"]
    assert props["published"] == {"type": "boolean"}


# ─── Request ───────────────────────────────────────────


def test_request_schema_required_fields():
    schema = schema_for(REQUEST)

    assert set(schema["required"]) == {"service_name", "data"}
    assert schema["properties"]["data"] == {"$ref": FORM_SCHEMA_ID}
    assert schema["properties"]["service_name"]["pattern"] == MACHINE_NAME_PATTERN


def test_request_status_enum_comes_from_settings():
    settings = Settings(request_statuses="open,closed", request_initial_status="open")

    schema = schema_for(REQUEST, settings)

    assert schema["properties"]["status"]["enum"] == ["open", "closed"]


# ─── Freshness ─────────────────────────────────────────


def test_each_call_returns_independent_document():
    first = schema_for(REQUEST)
    first["properties"]["data"] = {"type": "object", "properties": {"leak": {"type": "string"}}}
    first["required"].append("leak")
    first["properties"]["status"]["enum"].append("bogus")

    second = schema_for(REQUEST)

    assert second["properties"]["data"] == {"$ref": FORM_SCHEMA_ID}
    assert "leak" not in second["required"]
    assert "bogus" not in second["properties"]["status"]["enum"]


def test_unknown_entity_type():
    with pytest.raises(ValueError):
        schema_for("invoice")
    with pytest.raises(ValueError):
        identifier_field("invoice")


def test_identifier_fields():
    assert identifier_field(SERVICE) == "machine_name"
    assert identifier_field(REQUEST) == "id"


@pytest.mark.parametrize(
    "entity_type,field,value",
    [
        (SERVICE, "machine_name", "abc\n"),
        (REQUEST, "service_name", "bd_maintenance\n"),
        (REQUEST, "id", "6f1c2a4e-8d3b-4b8e-9a7c-2f5d1e0b3c4a\n"),
    ],
)
def test_patterns_reject_trailing_newline(entity_type, field, value):
    prop = schema_for(entity_type)["properties"][field]

    assert validate({field: value.rstrip("\n")}, {"properties": {field: prop}}).valid
    result = validate({field: value}, {"properties": {field: prop}})

    assert not result.valid
    assert result.violations[0].constraints == ("pattern",)
