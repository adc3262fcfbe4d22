"""Public representations of Services and Requests (internal keys are never exposed)."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ServiceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    machine_name: str
    name: str
    description: Optional[str] = None
    form: Dict[str, Any]
    category: str
    ca_info: Dict[str, Any]
    notifications: List[Dict[str, Any]] = Field(default_factory=list)
    published: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class RequestOut(BaseModel):
    id: str
    service_name: str
    # False once the referenced Service has been deleted.
    service_available: bool
    data: Dict[str, Any]
    notifications: List[Dict[str, Any]] = Field(default_factory=list)
    status: str
    ca_info: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
