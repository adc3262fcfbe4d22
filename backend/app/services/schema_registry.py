"""
Schema Registry: JSON Schema documents for the Service and Request entities.

A schema is produced in two passes:
  1. derivation from the ORM column declarations (type, length, nullability, defaults)
  2. augmentation with constraints the storage layer cannot express
     (patterns, nested object shapes, enums, the ``data`` -> form reference)

Every call builds a new document. Callers may mutate what they get back.
"""

from __future__ import annotations

import copy
from typing import Any, Callable, Optional

from sqlalchemy import JSON, Boolean, DateTime, Integer, String

from app.core.config import Settings, get_settings
from app.models.helpdesk import GUID, Service, ServiceRequest

JSON_SCHEMA_DIALECT = "http://json-schema.org/draft-07/schema#"
FORM_SCHEMA_ID = "/ServiceFormSchema"

MACHINE_NAME_PATTERN = r"^[_a-z][_a-z0-9]{0,32}(?!\n)$"
NON_BLANK_PATTERN = r"\S"
UUID_PATTERN = r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}(?!\n)$"

CA_TYPES = ("IN", "CR")
NOTIFICATION_TYPES = ("email",)

SERVICE = "service"
REQUEST = "request"

ENTITY_MODELS = {
    SERVICE: Service,
    REQUEST: ServiceRequest,
}

IDENTIFIER_FIELDS = {
    SERVICE: "machine_name",
    REQUEST: "id",
}


# ─── Derivation ────────────────────────────────────────


def _column_schema(column) -> dict[str, Any]:
    col_type = column.type
    if isinstance(col_type, GUID):
        return {"type": "string", "pattern": UUID_PATTERN}
    if isinstance(col_type, Boolean):
        return {"type": "boolean"}
    if isinstance(col_type, Integer):
        return {"type": "integer"}
    if isinstance(col_type, DateTime):
        return {"type": "string", "format": "date-time"}
    if isinstance(col_type, JSON):
        return {"type": column.info.get("json_type", "object")}
    if isinstance(col_type, String):
        schema: dict[str, Any] = {"type": "string"}
        if col_type.length:
            schema["maxLength"] = col_type.length
        return schema
    raise TypeError(f"No JSON Schema mapping for column {column.name!r} ({col_type!r})")


def _is_required(column) -> bool:
    return (
        not column.nullable
        and not column.primary_key
        and column.default is None
        and column.server_default is None
    )


def derive_schema(model) -> dict[str, Any]:
    """Base schema from a model's table, skipping columns flagged ``internal``."""
    properties: dict[str, Any] = {}
    required: list[str] = []
    for column in model.__table__.columns:
        if column.info.get("internal"):
            continue
        properties[column.name] = _column_schema(column)
        if _is_required(column):
            required.append(column.name)
    return {
        "$schema": JSON_SCHEMA_DIALECT,
        "type": "object",
        "properties": properties,
        "required": required,
    }


# ─── Augmentation ──────────────────────────────────────

_SERVICE_FORM = {
    "type": "object",
    "properties": {
        "type": {"type": "string", "enum": ["object"]},
        "properties": {"type": "object"},
        "required": {
            "type": "array",
            "items": {"type": "string"},
            "uniqueItems": True,
        },
    },
    "required": ["type"],
}

_SERVICE_CA_INFO = {
    "type": "object",
    "properties": {
        "sa_category": {"type": "string"},
        "sa_type": {"type": "string", "enum": list(CA_TYPES)},
    },
    "required": ["sa_category", "sa_type"],
}

_SERVICE_NOTIFICATION = {
    "type": "object",
    "properties": {
        "type": {"type": "string", "enum": list(NOTIFICATION_TYPES)},
        "data_format": {"type": "object"},
    },
    "required": ["type", "data_format"],
}

_REQUEST_NOTIFICATION = {
    "type": "object",
    "properties": {
        "type": {"type": "string", "enum": list(NOTIFICATION_TYPES)},
        "data": {"type": "object"},
    },
    "required": ["type"],
}

_REQUEST_CA_INFO = {
    "type": "object",
    "properties": {
        "ca_type": {"type": "string", "enum": list(CA_TYPES)},
        "sa_status": {"type": "string"},
    },
}


def _augment_service(schema: dict[str, Any], settings: Settings) -> None:
    props = schema["properties"]
    props["machine_name"]["pattern"] = MACHINE_NAME_PATTERN
    props["name"]["pattern"] = NON_BLANK_PATTERN
    props["form"] = copy.deepcopy(_SERVICE_FORM)
    props["ca_info"] = copy.deepcopy(_SERVICE_CA_INFO)
    props["notifications"]["items"] = copy.deepcopy(_SERVICE_NOTIFICATION)


def _augment_request(schema: dict[str, Any], settings: Settings) -> None:
    props = schema["properties"]
    props["service_name"]["pattern"] = MACHINE_NAME_PATTERN
    # Placeholder bound to the owning Service's form at validation time.
    props["data"] = {"$ref": FORM_SCHEMA_ID}
    props["status"]["enum"] = list(settings.request_statuses)
    props["notifications"]["items"] = copy.deepcopy(_REQUEST_NOTIFICATION)
    props["ca_info"] = copy.deepcopy(_REQUEST_CA_INFO)


_AUGMENTERS: dict[str, Callable[[dict[str, Any], Settings], None]] = {
    SERVICE: _augment_service,
    REQUEST: _augment_request,
}


# ─── Public API ────────────────────────────────────────


def schema_for(entity_type: str, settings: Optional[Settings] = None) -> dict[str, Any]:
    """Return a fresh, fully augmented schema for ``entity_type``."""
    model = ENTITY_MODELS.get(entity_type)
    if model is None:
        raise ValueError(f"Unknown entity type: {entity_type!r}")
    schema = derive_schema(model)
    _AUGMENTERS[entity_type](schema, settings or get_settings())
    return schema


def identifier_field(entity_type: str) -> str:
    try:
        return IDENTIFIER_FIELDS[entity_type]
    except KeyError:
        raise ValueError(f"Unknown entity type: {entity_type!r}") from None
