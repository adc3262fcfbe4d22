"""
Service catalog: CRUD over Services keyed by machine_name.

Every write goes through the registry schema (narrowed for updates) before it
reaches the database. ``machine_name`` is the external key and never changes.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import ConflictError, NotFoundError, ValidationFailedError
from app.models.helpdesk import Service
from app.schemas.helpdesk import ServiceOut
from app.services.schema_narrowing import identifier_schema, narrow_for_update
from app.services.schema_registry import SERVICE, schema_for
from app.services.validation_service import Violation, check_form_schema, ensure_valid, validate

logger = logging.getLogger(__name__)

_MACHINE_NAME_TAKEN = Violation(
    property="request.body.machine_name",
    messages=("already used",),
    constraints=("unique",),
)


def service_info(service: Service) -> dict[str, Any]:
    return ServiceOut.model_validate(service).model_dump(mode="json")


def find_service(db: Session, machine_name: str) -> Optional[Service]:
    return db.execute(select(Service).where(Service.machine_name == machine_name)).scalar_one_or_none()


def list_published(db: Session) -> list[Service]:
    return list(
        db.execute(select(Service).where(Service.published.is_(True)).order_by(Service.machine_name))
        .scalars()
        .all()
    )


def get_by_machine_name(db: Session, machine_name: str) -> Service:
    ensure_valid({"machine_name": machine_name}, identifier_schema(SERVICE), location="params")
    service = find_service(db, machine_name)
    if service is None:
        raise NotFoundError("Service not found")
    return service


def _ensure_form_is_schema(payload: Mapping[str, Any]) -> None:
    if "form" not in payload:
        return
    violations = check_form_schema(payload["form"])
    if violations:
        raise ValidationFailedError(violations)


def _conflict() -> ConflictError:
    return ConflictError("machine_name already used", data=[_MACHINE_NAME_TAKEN.to_dict()])


def create_service(db: Session, payload: Mapping[str, Any]) -> Service:
    result = validate(payload, schema_for(SERVICE))
    if not result.valid:
        raise ValidationFailedError(result.violations)
    _ensure_form_is_schema(payload)

    if find_service(db, payload["machine_name"]) is not None:
        raise _conflict()

    service = Service(
        machine_name=payload["machine_name"],
        name=payload["name"],
        description=payload.get("description"),
        form=payload["form"],
        category=payload["category"],
        ca_info=payload["ca_info"],
        notifications=payload.get("notifications") or [],
        published=payload.get("published", True),
    )
    db.add(service)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        # Lost a race with a concurrent insert of the same machine_name.
        logger.debug("Duplicate machine_name on insert: %s", exc)
        raise _conflict() from exc
    db.refresh(service)
    logger.info("Service created machine_name=%s", service.machine_name)
    return service


def update_service(db: Session, service: Service, payload: Optional[Mapping[str, Any]]) -> Service:
    update_data, narrowed = narrow_for_update(SERVICE, schema_for(SERVICE), payload)
    ensure_valid(update_data, narrowed)
    _ensure_form_is_schema(update_data)

    for key, value in update_data.items():
        setattr(service, key, value)
    db.commit()
    db.refresh(service)
    logger.info("Service updated machine_name=%s fields=%s", service.machine_name, sorted(update_data))
    return service


def delete_service(db: Session, service: Service) -> str:
    machine_name = service.machine_name
    db.delete(service)
    db.commit()
    logger.info("Service removed machine_name=%s", machine_name)
    return machine_name
