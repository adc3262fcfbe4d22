"""Request endpoints."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from app.core.dependencies import get_db
from app.services import request_service
from app.services.scheduler_client import SchedulerClient, get_scheduler_client
from app.utils import jsend

router = APIRouter()


def get_scheduler() -> Optional[SchedulerClient]:
    return get_scheduler_client()


@router.get("/requests")
async def list_requests(db: Session = Depends(get_db)):
    rows = request_service.list_requests(db)
    return jsend.success([request_service.request_info(db, row) for row in rows])


@router.post("/requests", status_code=201)
async def create_request(
    payload: Optional[dict[str, Any]] = Body(default=None),
    db: Session = Depends(get_db),
    scheduler: Optional[SchedulerClient] = Depends(get_scheduler),
):
    row = await request_service.create_request(db, payload or {}, scheduler=scheduler)
    return jsend.success(request_service.request_info(db, row), status_code=201)


@router.get("/requests/{request_id}")
async def view_request(request_id: str, db: Session = Depends(get_db)):
    row = request_service.get_request(db, request_id)
    return jsend.success(request_service.request_info(db, row))


@router.put("/requests/{request_id}")
async def update_request(
    request_id: str,
    payload: Optional[dict[str, Any]] = Body(default=None),
    db: Session = Depends(get_db),
):
    row = request_service.get_request(db, request_id)
    row = request_service.update_request(db, row, payload)
    return jsend.success(request_service.request_info(db, row))
