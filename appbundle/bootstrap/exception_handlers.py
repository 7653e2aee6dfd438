from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from appbundle.errors import error_response, normalize_http_exception

ERROR_LOCATIONS = frozenset({"body", "query", "path", "header", "headers", "cookie"})


def _field_name(loc: Sequence[Any]) -> str:
    # ("body", "email") -> "email"; only the leading location is dropped.
    parts = [str(part) for part in loc]
    if parts and parts[0] in ERROR_LOCATIONS:
        parts = parts[1:]
    return ".".join(parts)


def validation_message(errors: Sequence[dict[str, Any]]) -> str:
    messages = []
    for err in errors:
        msg = err.get("msg", "invalid request")
        field = _field_name(err.get("loc") or ())
        messages.append(f"{field}: {msg}" if field else msg)
    return "; ".join(messages)


def register_exception_handlers(api: FastAPI, *, logger: logging.Logger) -> None:
    @api.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return normalize_http_exception(request, exc)

    @api.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        return error_response(
            request,
            status_code=400,
            code="VALIDATION_ERROR",
            message=validation_message(errors) or "invalid request",
            details=errors,
        )

    @api.exception_handler(Exception)
    async def server_error_handler(request: Request, _exc: Exception) -> JSONResponse:
        logger.exception("unhandled_exception", extra={"request_id": getattr(request.state, "request_id", None)})
        return error_response(
            request,
            status_code=500,
            code="INTERNAL_ERROR",
            message="Internal Server Error",
        )
