"""Service catalog endpoints."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from app.core.dependencies import get_db
from app.services import catalog_service
from app.utils import jsend

router = APIRouter()


@router.get("/services")
async def list_services(db: Session = Depends(get_db)):
    services = catalog_service.list_published(db)
    return jsend.success([catalog_service.service_info(service) for service in services])


@router.post("/services", status_code=201)
async def create_service(
    payload: Optional[dict[str, Any]] = Body(default=None),
    db: Session = Depends(get_db),
):
    service = catalog_service.create_service(db, payload or {})
    return jsend.success(catalog_service.service_info(service), status_code=201)


@router.get("/services/{machine_name}")
async def view_service(machine_name: str, db: Session = Depends(get_db)):
    service = catalog_service.get_by_machine_name(db, machine_name)
    return jsend.success(catalog_service.service_info(service))


@router.put("/services/{machine_name}")
async def update_service(
    machine_name: str,
    payload: Optional[dict[str, Any]] = Body(default=None),
    db: Session = Depends(get_db),
):
    service = catalog_service.get_by_machine_name(db, machine_name)
    service = catalog_service.update_service(db, service, payload)
    return jsend.success(catalog_service.service_info(service))


@router.delete("/services/{machine_name}")
async def delete_service(machine_name: str, db: Session = Depends(get_db)):
    service = catalog_service.get_by_machine_name(db, machine_name)
    removed = catalog_service.delete_service(db, service)
    return jsend.success(f"Service {removed} removed.")
