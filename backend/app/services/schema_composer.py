"""
Schema Composer: binds a Request schema to the form of the Service it targets.

The Request schema from the registry carries ``data: {"$ref": FORM_SCHEMA_ID}``.
Composition looks the Service up by ``service_name`` and returns its form,
re-identified as FORM_SCHEMA_ID, as the reference target for the validator.

Nothing is cached: each call reads the Service and builds new documents, so
concurrent compositions for different Services never share schema objects.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.errors import BadRequestError, NotFoundError
from app.models.helpdesk import Service, ServiceRequest
from app.services.schema_narrowing import narrow_for_update
from app.services.schema_registry import FORM_SCHEMA_ID, REQUEST, schema_for

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ComposedSchema:
    schema: dict[str, Any]
    referenced: dict[str, dict[str, Any]]


@dataclass(frozen=True)
class ComposedUpdate:
    update_data: dict[str, Any]
    schema: dict[str, Any]
    referenced: dict[str, dict[str, Any]]


def _find_service(db: Session, service_name: str) -> Optional[Service]:
    return db.execute(select(Service).where(Service.machine_name == service_name)).scalar_one_or_none()


def form_to_reference_target(form: Mapping[str, Any]) -> dict[str, Any]:
    """Copy of ``form`` re-identified as FORM_SCHEMA_ID.

    Any ``id``/``$id`` the form declares is dropped so its own identifier cannot
    shadow the binding. Everything else is kept as is.
    """
    target = {key: copy.deepcopy(value) for key, value in form.items() if key not in ("id", "$id")}
    target["$id"] = FORM_SCHEMA_ID
    return target


def compose_data_schema(db: Session, service_name: Any) -> dict[str, Any]:
    if not isinstance(service_name, str) or not service_name.strip():
        raise BadRequestError("Missing/invalid service_name")

    service = _find_service(db, service_name)
    if service is None:
        raise NotFoundError("Service for this Request does not exist")
    if not isinstance(service.form, dict):
        logger.error("Service %s has no usable form (type=%s)", service_name, type(service.form).__name__)
        raise NotFoundError("Service for this Request does not exist")
    return form_to_reference_target(service.form)


def compose_request_schema(
    db: Session,
    service_name: Any,
    settings: Optional[Settings] = None,
) -> tuple[dict[str, Any], dict[str, Any]]:
    """(base_schema, data_schema) for validating a new Request against ``service_name``."""
    data_schema = compose_data_schema(db, service_name)
    return schema_for(REQUEST, settings), data_schema


def compose_creation(db: Session, service_name: Any, settings: Optional[Settings] = None) -> ComposedSchema:
    base_schema, data_schema = compose_request_schema(db, service_name, settings)
    return ComposedSchema(schema=base_schema, referenced={FORM_SCHEMA_ID: data_schema})


def compose_update_schema(
    db: Session,
    request_row: ServiceRequest,
    payload: Optional[Mapping[str, Any]],
    settings: Optional[Settings] = None,
) -> ComposedUpdate:
    """Narrow the Request schema to the updatable fields in ``payload``.

    The Service form is only looked up when ``data`` is part of the update.
    """
    update_data, narrowed = narrow_for_update(REQUEST, schema_for(REQUEST, settings), payload)

    referenced: dict[str, dict[str, Any]] = {}
    if "data" in narrowed["properties"]:
        referenced[FORM_SCHEMA_ID] = compose_data_schema(db, request_row.service_name)
    return ComposedUpdate(update_data=update_data, schema=narrowed, referenced=referenced)
