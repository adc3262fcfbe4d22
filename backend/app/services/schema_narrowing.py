"""Restrict an entity schema to a subset of its fields (partial updates, identifier checks)."""

from __future__ import annotations

import copy
from collections.abc import Iterable
from typing import Any, Mapping, Optional

from app.core.config import Settings
from app.core.errors import InvalidUpdateError
from app.services.schema_registry import REQUEST, SERVICE, identifier_field, schema_for

# Explicit allow-lists; never inferred from the schema itself.
UPDATABLE_FIELDS: dict[str, tuple[str, ...]] = {
    SERVICE: ("name", "description", "form", "category", "ca_info", "published", "notifications"),
    REQUEST: ("data", "notifications", "status"),
}


def updatable_fields(entity_type: str) -> tuple[str, ...]:
    try:
        return UPDATABLE_FIELDS[entity_type]
    except KeyError:
        raise ValueError(f"Unknown entity type: {entity_type!r}") from None


def narrow(schema: Mapping[str, Any], field_names: Iterable[str]) -> dict[str, Any]:
    """Return a copy of ``schema`` keeping only ``field_names`` in properties/required."""
    allowed = set(field_names)
    narrowed = {key: copy.deepcopy(value) for key, value in schema.items() if key not in ("properties", "required")}
    narrowed["properties"] = {
        name: copy.deepcopy(prop)
        for name, prop in (schema.get("properties") or {}).items()
        if name in allowed
    }
    narrowed["required"] = [name for name in (schema.get("required") or []) if name in allowed]
    return narrowed


def pick_updatable(entity_type: str, payload: Optional[Mapping[str, Any]]) -> dict[str, Any]:
    allowed = updatable_fields(entity_type)
    return {key: value for key, value in (payload or {}).items() if key in allowed}


def narrow_for_update(
    entity_type: str,
    schema: Mapping[str, Any],
    payload: Optional[Mapping[str, Any]],
) -> tuple[dict[str, Any], dict[str, Any]]:
    """Pick the updatable part of ``payload`` and the schema narrowed to it.

    Raises InvalidUpdateError when the client sent nothing updatable.
    """
    update_data = pick_updatable(entity_type, payload)
    if not update_data:
        raise InvalidUpdateError()

    narrowed = narrow(schema, update_data.keys())
    if not narrowed["properties"]:
        raise InvalidUpdateError()
    return update_data, narrowed


def identifier_schema(entity_type: str, settings: Optional[Settings] = None) -> dict[str, Any]:
    field = identifier_field(entity_type)
    narrowed = narrow(schema_for(entity_type, settings), [field])
    narrowed["required"] = [field]
    return narrowed
