"""Render Service notification templates into per-Request notification payloads.

Templates are the Service ``notifications[*].data_format`` objects. Every string
inside them may contain ``${form.<path>}``, ``${data.<path>}`` or
``${service.<path>}`` placeholders; ``form`` and ``data`` both address the
Request data. Unknown placeholders render as an empty string.
"""

from __future__ import annotations

import re
from typing import Any, Mapping

_PLACEHOLDER_RE = re.compile(r"\$\{\s*(form|data|service)\.([A-Za-z0-9_.]+)\s*\}")


def _lookup(source: Any, dotted: str) -> Any:
    current = source
    for part in dotted.split("."):
        if isinstance(current, Mapping) and part in current:
            current = current[part]
        elif isinstance(current, list) and part.isdigit() and int(part) < len(current):
            current = current[int(part)]
        else:
            return None
    return current


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def render_value(value: Any, context: Mapping[str, Any]) -> Any:
    if isinstance(value, str):
        return _PLACEHOLDER_RE.sub(lambda m: _to_text(_lookup(context.get(m.group(1)), m.group(2))), value)
    if isinstance(value, list):
        return [render_value(item, context) for item in value]
    if isinstance(value, dict):
        return {key: render_value(item, context) for key, item in value.items()}
    return value


def service_context(service) -> dict[str, Any]:
    ca_info = dict(service.ca_info or {})
    return {
        "machine_name": service.machine_name,
        "name": service.name,
        "description": service.description,
        "category": service.category,
        "ca_info": ca_info,
        "sa_category": ca_info.get("sa_category"),
        "sa_type": ca_info.get("sa_type"),
    }


def render_notifications(service, request_data: Mapping[str, Any]) -> list[dict[str, Any]]:
    """One ``{type, data}`` record per Service notification template, in template order."""
    context = {
        "form": request_data,
        "data": request_data,
        "service": service_context(service),
    }
    rendered: list[dict[str, Any]] = []
    for template in service.notifications or []:
        rendered.append(
            {
                "type": template.get("type", "email"),
                "data": render_value(template.get("data_format") or {}, context),
            }
        )
    return rendered
