"""Error taxonomy shared by the validation pipeline and the HTTP layer.

Every error maps to a fixed HTTP status. Client faults (4xx) are rendered as
JSend ``fail`` envelopes, server faults (5xx) as ``error`` envelopes.
"""

from __future__ import annotations

from typing import Any, Optional


class HelpdeskError(Exception):
    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, data: Any = None) -> None:
        self.message = message or self.default_message
        self.data = data
        super().__init__(self.message)

    @property
    def is_server_error(self) -> bool:
        return self.status_code >= 500


class BadRequestError(HelpdeskError):
    status_code = 400
    default_message = "Bad request"


class InvalidUpdateError(BadRequestError):
    default_message = "update data is not valid"


class ValidationFailedError(BadRequestError):
    default_message = "Data validation failed"

    def __init__(self, violations: list, message: Optional[str] = None) -> None:
        self.violations = list(violations)
        super().__init__(message, data=[v.to_dict() for v in self.violations])


class NotFoundError(HelpdeskError):
    status_code = 404
    default_message = "Not found"


class ConflictError(HelpdeskError):
    status_code = 409
    default_message = "Conflict"


class ServiceUnavailableError(HelpdeskError):
    status_code = 503
    default_message = "Service unavailable"


class InternalError(HelpdeskError):
    status_code = 500
