from __future__ import annotations

import logging
import time
from uuid import uuid4

from fastapi import Request
from starlette.responses import Response

from appbundle.bootstrap.contracts import CallNext
from appbundle.errors import error_response
from appbundle.observability import (
    build_request_log_payload,
    metric_path_label,
    observe_request_metrics,
    status_code_from_exception,
)

REQUEST_ID_HEADER = "X-Request-Id"


class InvalidUrlFilter:
    """Terminal filter: anything that reaches it matched no route."""

    async def filter(self, request: Request, call_next: CallNext) -> Response:
        return error_response(
            request,
            status_code=404,
            code="INVALID_URL",
            message="Invalid URL",
            details={"method": request.method, "path": request.url.path},
        )


class RequestIdFilter:
    async def filter(self, request: Request, call_next: CallNext) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or getattr(request.state, "request_id", None) or str(uuid4())
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class RequestLogFilter:
    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger("appbundle.access")

    async def filter(self, request: Request, call_next: CallNext) -> Response:
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            status_code = status_code_from_exception(exc)
            payload = self._observe(request, status_code=status_code, started=started)
            if status_code >= 500:
                self.logger.exception("request_failed", extra=payload)
            else:
                self.logger.warning("request_failed", extra=payload)
            raise

        payload = self._observe(request, status_code=response.status_code, started=started)
        self.logger.info("request_completed", extra=payload)
        return response

    def _observe(self, request: Request, *, status_code: int, started: float) -> dict[str, str | int | float | None]:
        elapsed = time.perf_counter() - started
        path = metric_path_label(request)
        observe_request_metrics(method=request.method, path=path, status_code=status_code, elapsed_seconds=elapsed)
        return build_request_log_payload(
            request_id=getattr(request.state, "request_id", None),
            method=request.method,
            path=path,
            status_code=status_code,
            elapsed_seconds=elapsed,
            client_ip=request.client.host if request.client else None,
        )
