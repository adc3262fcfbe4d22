import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, Column, DateTime, Index, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func
from sqlalchemy.types import CHAR, TypeDecorator

from app.core.config import get_settings

Base = declarative_base()

MACHINE_NAME_MAX_LENGTH = 33


class GUID(TypeDecorator):
    impl = CHAR
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(PGUUID(as_uuid=True))
        return dialect.type_descriptor(CHAR(36))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, uuid.UUID):
            return value if dialect.name == "postgresql" else str(value)
        if isinstance(value, str):
            try:
                parsed = uuid.UUID(value)
            except ValueError:
                return value
            return parsed if dialect.name == "postgresql" else str(parsed)
        return value

    def process_result_value(self, value, dialect):
        if value is None or isinstance(value, uuid.UUID):
            return value
        try:
            return uuid.UUID(value)
        except ValueError:
            return value


UUID_TYPE = GUID()
JSON_TYPE = JSON().with_variant(JSONB, "postgresql")


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _initial_request_status() -> str:
    return get_settings().request_initial_status


class Service(Base):
    __tablename__ = "services"
    __table_args__ = (UniqueConstraint("machine_name", name="uniq_services_machine_name"),)

    id = Column(UUID_TYPE, primary_key=True, default=uuid.uuid4, info={"internal": True})
    machine_name = Column(String(MACHINE_NAME_MAX_LENGTH), nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    form = Column(JSON_TYPE, nullable=False, info={"json_type": "object"})
    category = Column(String(255), nullable=False)
    ca_info = Column(JSON_TYPE, nullable=False, info={"json_type": "object"})
    notifications = Column(JSON_TYPE, nullable=False, default=list, info={"json_type": "array"})
    published = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=_now_utc, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=_now_utc,
        onupdate=_now_utc,
        server_default=func.now(),
        nullable=False,
    )


class ServiceRequest(Base):
    """A client Request against a Service.

    ``service_name`` is a weak reference by value: no foreign key, so a Service
    can be deleted while Requests still point at it.
    """

    __tablename__ = "requests"
    __table_args__ = (Index("idx_requests_service_name", "service_name"),)

    id = Column(UUID_TYPE, primary_key=True, default=uuid.uuid4)
    service_name = Column(String(MACHINE_NAME_MAX_LENGTH), nullable=False)
    data = Column(JSON_TYPE, nullable=False, info={"json_type": "object"})
    notifications = Column(JSON_TYPE, nullable=False, default=list, info={"json_type": "array"})
    status = Column(String(64), nullable=False, default=_initial_request_status)
    ca_info = Column(JSON_TYPE, info={"json_type": "object"})
    created_at = Column(DateTime(timezone=True), default=_now_utc, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=_now_utc,
        onupdate=_now_utc,
        server_default=func.now(),
        nullable=False,
    )
