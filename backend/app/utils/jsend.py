"""JSend response envelopes (https://github.com/omniti-labs/jsend)."""

from __future__ import annotations

from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def success(data: Any = None, status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"status": "success", "data": jsonable_encoder(data)},
    )


def fail(data: Any, status_code: int = 400) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"status": "fail", "data": jsonable_encoder(data)},
    )


def error(message: str, code: int = 500, data: Optional[Any] = None) -> JSONResponse:
    content: dict[str, Any] = {"status": "error", "message": message, "code": code}
    if data is not None:
        content["data"] = jsonable_encoder(data)
    return JSONResponse(status_code=code, content=content)
