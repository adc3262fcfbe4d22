import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.v1.requests import router as requests_router
from app.api.v1.services import router as services_router
from app.core.config import get_settings
from app.core.errors import HelpdeskError
from app.utils import jsend

settings = get_settings()

logging.getLogger("app").setLevel(settings.log_level.upper())
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Helpdesk Forms API",
    version="1.0.0",
    docs_url="/docs" if settings.docs_enabled else None,
    openapi_url="/openapi.json" if settings.openapi_enabled else None,
)


@app.on_event("startup")
async def _startup_jobs():
    current = get_settings()
    errors = current.validate_required_config()
    if not errors:
        return
    if current.is_production:
        raise RuntimeError("Configuration validation failed in production environment: " + "; ".join(errors))
    for message in errors:
        logger.warning("Configuration problem: %s", message)


if settings.cors_allow_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(services_router, prefix=settings.api_prefix, tags=["services"])
app.include_router(requests_router, prefix=settings.api_prefix, tags=["requests"])


def _violation_path(loc) -> str:
    parts = ["request"]
    for item in loc:
        if isinstance(item, int):
            parts[-1] = f"{parts[-1]}[{item}]"
        else:
            parts.append(str(item))
    return ".".join(parts)


@app.exception_handler(HelpdeskError)
async def _helpdesk_error_handler(request: Request, exc: HelpdeskError):
    if exc.is_server_error:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return jsend.error(exc.message, code=exc.status_code)
    logger.debug("%s %s -> %s %s", request.method, request.url.path, exc.status_code, exc.message)
    data = exc.data if exc.data is not None else exc.message
    return jsend.fail(data, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def _request_validation_handler(request: Request, exc: RequestValidationError):
    violations = [
        {
            "property": _violation_path(err.get("loc", ())),
            "messages": [err.get("msg", "is not valid")],
            "constraints": [err.get("type", "")],
        }
        for err in exc.errors()
    ]
    return jsend.fail(violations, status_code=400)


@app.exception_handler(StarletteHTTPException)
async def _http_exception_handler(request: Request, exc: StarletteHTTPException):
    # Hide internal details for 5xx unless explicitly enabled.
    if exc.status_code >= 500:
        message = str(exc.detail) if settings.expose_error_details else "Internal server error"
        return jsend.error(message, code=exc.status_code)
    return jsend.fail(exc.detail, status_code=exc.status_code)


@app.exception_handler(Exception)
async def _unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception")
    if settings.expose_error_details:
        return jsend.error(str(exc), code=500)
    return jsend.error("Internal server error", code=500)


@app.get("/health")
async def health_check():
    return {"status": "ok"}
