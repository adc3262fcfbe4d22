"""
JSON Schema validation adapter.

Runs a (possibly composed) schema against an inbound payload and turns the
library's errors into field-addressable violations such as
``request.body.data.summary``. Referenced schemas (the Service form bound to
the Request ``data`` placeholder) are registered per call.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional

from jsonschema import Draft7Validator
from jsonschema.exceptions import SchemaError
from referencing import Registry
from referencing.exceptions import Unresolvable
from referencing.jsonschema import DRAFT7

from app.core.errors import InternalError, ValidationFailedError

logger = logging.getLogger(__name__)

REQUIRED_MESSAGE = "is required"


@dataclass(frozen=True)
class Violation:
    property: str
    messages: tuple[str, ...]
    constraints: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "property": self.property,
            "messages": list(self.messages),
            "constraints": list(self.constraints),
        }


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    violations: tuple[Violation, ...] = field(default_factory=tuple)

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(valid=True)

    @classmethod
    def invalid(cls, violations: Iterable[Violation]) -> "ValidationResult":
        return cls(valid=False, violations=tuple(violations))


class _ViolationCollector:
    """Groups messages by property path, keeping first-seen order and dropping duplicates."""

    def __init__(self) -> None:
        self._messages: dict[str, list[str]] = {}
        self._constraints: dict[str, list[str]] = {}

    def add(self, path: str, message: str, constraint: str) -> None:
        messages = self._messages.setdefault(path, [])
        constraints = self._constraints.setdefault(path, [])
        if message not in messages:
            messages.append(message)
        if constraint not in constraints:
            constraints.append(constraint)

    def violations(self) -> list[Violation]:
        return [
            Violation(property=path, messages=tuple(messages), constraints=tuple(self._constraints[path]))
            for path, messages in self._messages.items()
        ]


def format_path(location: str, path: Iterable[Any]) -> str:
    out = f"request.{location}"
    for part in path:
        if isinstance(part, int):
            out += f"[{part}]"
        else:
            out += f".{part}"
    return out


def _build_registry(referenced_schemas: Optional[Mapping[str, Mapping[str, Any]]]) -> Registry:
    registry = Registry()
    for uri, contents in (referenced_schemas or {}).items():
        registry = registry.with_resource(uri, DRAFT7.create_resource(contents))
    return registry


def validate(
    payload: Any,
    schema: Mapping[str, Any],
    referenced_schemas: Optional[Mapping[str, Mapping[str, Any]]] = None,
    *,
    location: str = "body",
) -> ValidationResult:
    validator = Draft7Validator(
        schema,
        registry=_build_registry(referenced_schemas),
        format_checker=Draft7Validator.FORMAT_CHECKER,
    )
    collector = _ViolationCollector()
    try:
        for error in validator.iter_errors(payload):
            path = list(error.absolute_path)
            if error.validator == "required":
                instance = error.instance if isinstance(error.instance, dict) else {}
                for name in error.validator_value:
                    if name not in instance:
                        collector.add(format_path(location, path + [name]), REQUIRED_MESSAGE, "required")
                continue
            collector.add(format_path(location, path), error.message, str(error.validator))
    except (Unresolvable, SchemaError, re.error) as exc:
        logger.error("Schema could not be applied: %s", exc)
        raise InternalError("Validation schema is broken") from exc

    violations = collector.violations()
    if violations:
        return ValidationResult.invalid(violations)
    return ValidationResult.ok()


def check_form_schema(form: Any, *, path: Iterable[Any] = ("form",)) -> list[Violation]:
    """Violations for a Service form that is not itself a valid JSON Schema."""
    meta_validator = Draft7Validator(Draft7Validator.META_SCHEMA, format_checker=Draft7Validator.FORMAT_CHECKER)
    collector = _ViolationCollector()
    base = list(path)
    for error in meta_validator.iter_errors(form):
        collector.add(
            format_path("body", base + list(error.absolute_path)),
            f"not a valid JSON Schema: {error.message}",
            str(error.validator),
        )
    return collector.violations()


def ensure_valid(
    payload: Any,
    schema: Mapping[str, Any],
    referenced_schemas: Optional[Mapping[str, Mapping[str, Any]]] = None,
    *,
    location: str = "body",
) -> None:
    result = validate(payload, schema, referenced_schemas, location=location)
    if not result.valid:
        raise ValidationFailedError(result.violations)
