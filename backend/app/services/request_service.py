"""
Requests: creation through the composed schema and partial updates.

Creation pipeline:
  resolve Service by name -> compose schema -> validate -> insert
  -> render notifications -> submit jobs to the scheduler -> commit

With a scheduler configured, a Request is only persisted once its jobs were
accepted; an unreachable scheduler rolls the insert back and surfaces 503.
Jobs are sent one by one, and ones accepted before a later failure are not recalled.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.errors import HelpdeskError, NotFoundError, ValidationFailedError
from app.models.helpdesk import ServiceRequest
from app.schemas.helpdesk import RequestOut
from app.services.catalog_service import find_service
from app.services.notification_templates import render_notifications
from app.services.scheduler_client import SchedulerClient
from app.services.schema_composer import compose_creation, compose_update_schema
from app.services.schema_narrowing import identifier_schema
from app.services.schema_registry import REQUEST
from app.services.validation_service import Violation, ensure_valid

logger = logging.getLogger(__name__)


def request_info(db: Session, row: ServiceRequest) -> dict[str, Any]:
    """Public view of a Request; a deleted Service is shown, not raised."""
    return RequestOut(
        id=str(row.id),
        service_name=row.service_name,
        service_available=find_service(db, row.service_name) is not None,
        data=row.data or {},
        notifications=row.notifications or [],
        status=row.status,
        ca_info=row.ca_info,
        created_at=row.created_at,
        updated_at=row.updated_at,
    ).model_dump(mode="json")


def list_requests(db: Session) -> list[ServiceRequest]:
    return list(db.execute(select(ServiceRequest).order_by(ServiceRequest.created_at)).scalars().all())


def get_request(db: Session, request_id: str) -> ServiceRequest:
    ensure_valid({"id": request_id}, identifier_schema(REQUEST), location="params")
    try:
        key = uuid.UUID(request_id)
    except ValueError as exc:
        violation = Violation(property="request.params.id", messages=("is not a valid UUID",), constraints=("format",))
        raise ValidationFailedError([violation]) from exc
    row = db.get(ServiceRequest, key)
    if row is None:
        raise NotFoundError("Request not found")
    return row


async def create_request(
    db: Session,
    payload: Mapping[str, Any],
    scheduler: Optional[SchedulerClient] = None,
) -> ServiceRequest:
    settings = get_settings()
    composed = compose_creation(db, payload.get("service_name"), settings)
    ensure_valid(payload, composed.schema, composed.referenced)

    service = find_service(db, payload["service_name"])
    if service is None:
        # Deleted between composition and insert.
        raise NotFoundError("Service for this Request does not exist")

    notifications = payload.get("notifications")
    if notifications is None:
        notifications = render_notifications(service, payload["data"])

    row = ServiceRequest(
        service_name=service.machine_name,
        data=payload["data"],
        notifications=notifications,
        status=settings.request_initial_status,
        ca_info=payload.get("ca_info"),
    )
    db.add(row)
    db.flush()

    if scheduler is None:
        logger.debug("No scheduler configured; request %s keeps status %s", row.id, row.status)
    elif notifications:
        try:
            await scheduler.submit_jobs(
                [{"type": item.get("type"), "data": item.get("data") or {}} for item in notifications]
            )
        except HelpdeskError:
            db.rollback()
            raise
        row.status = settings.request_scheduled_status

    db.commit()
    db.refresh(row)
    logger.info("Request created id=%s service=%s status=%s", row.id, row.service_name, row.status)
    return row


def update_request(db: Session, row: ServiceRequest, payload: Optional[Mapping[str, Any]]) -> ServiceRequest:
    composed = compose_update_schema(db, row, payload, get_settings())
    ensure_valid(composed.update_data, composed.schema, composed.referenced)

    for key, value in composed.update_data.items():
        setattr(row, key, value)
    db.commit()
    db.refresh(row)
    logger.info("Request updated id=%s fields=%s", row.id, sorted(composed.update_data))
    return row

