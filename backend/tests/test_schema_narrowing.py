"""
Schema narrowing unit tests.

Covers:
  - narrow() keeps only the allowed properties and required names
  - narrow_for_update() ignores fields outside the allow-list
  - an update with nothing updatable is rejected before any persistence
  - identifier schemas for path parameters
"""

import pytest

from app.core.errors import InvalidUpdateError
from app.services.schema_narrowing import (
    UPDATABLE_FIELDS,
    identifier_schema,
    narrow,
    narrow_for_update,
    pick_updatable,
)
from app.services.schema_registry import REQUEST, SERVICE, schema_for


def test_narrow_intersects_properties_and_required():
    full = schema_for(SERVICE)
    allowed = {"name", "category", "description", "not_a_field"}

    narrowed = narrow(full, allowed)

    assert set(narrowed["properties"]) == set(full["properties"]) & allowed
    assert set(narrowed["required"]) == set(full["required"]) & allowed
    assert narrowed["type"] == "object"
    assert narrowed["$schema"] == full["$schema"]


def test_narrow_does_not_touch_source():
    full = schema_for(SERVICE)
    narrowed = narrow(full, ["name"])
    narrowed["properties"]["name"]["maxLength"] = 1

    assert full["properties"]["name"]["maxLength"] == 255
    assert "machine_name" in full["properties"]


@pytest.mark.parametrize(
    "entity_type,payload,expected",
    [
        (SERVICE, {"machine_name": "other", "category": "X"}, {"category"}),
        (SERVICE, {"name": "N", "published": False, "id": "abc"}, {"name", "published"}),
        (REQUEST, {"service_name": "x", "status": "new"}, {"status"}),
        (REQUEST, {"data": {"x": "y"}, "id": "123", "notifications": []}, {"data", "notifications"}),
    ],
)
def test_narrow_for_update_uses_allow_list(entity_type, payload, expected):
    full = schema_for(entity_type)

    update_data, narrowed = narrow_for_update(entity_type, full, payload)

    assert set(update_data) == expected
    assert set(narrowed["properties"]) == expected
    assert set(narrowed["required"]) == set(full["required"]) & expected
    assert set(update_data) <= set(UPDATABLE_FIELDS[entity_type])


@pytest.mark.parametrize(
    "entity_type,payload",
    [
        (SERVICE, {"machine_name": "other"}),
        (SERVICE, {}),
        (SERVICE, None),
        (REQUEST, {"service_name": "x"}),
        (REQUEST, {"id": "123", "created_at": "2026-01-01T00:00:00Z"}),
    ],
)
def test_narrow_for_update_rejects_nothing_updatable(entity_type, payload):
    with pytest.raises(InvalidUpdateError) as excinfo:
        narrow_for_update(entity_type, schema_for(entity_type), payload)

    assert excinfo.value.status_code == 400
    assert excinfo.value.message == "update data is not valid"


def test_pick_updatable_drops_unknown_keys():
    assert pick_updatable(REQUEST, {"status": "caOpened", "foo": 1}) == {"status": "caOpened"}


def test_identifier_schema():
    schema = identifier_schema(SERVICE)
    assert list(schema["properties"]) == ["machine_name"]
    assert schema["required"] == ["machine_name"]

    schema = identifier_schema(REQUEST)
    assert list(schema["properties"]) == ["id"]
    assert schema["required"] == ["id"]
    assert "pattern" in schema["properties"]["id"]
