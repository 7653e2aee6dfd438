from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.routing import Match
from starlette.types import Scope

REQUEST_COUNT = Counter(
    "appbundle_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status_code"],
)
REQUEST_LATENCY = Histogram(
    "appbundle_http_request_duration_seconds",
    "HTTP request latency (seconds)",
    ["method", "path"],
)
ALLOWED_HTTP_METHOD_LABELS = {"GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"}
MAX_PATH_LABEL_LENGTH = 96
UNMATCHED_PATH_LABEL = "/_unmatched"
METRICS_CONTENT_TYPE = CONTENT_TYPE_LATEST


def metric_method_label(method: str | None) -> str:
    normalized = (method or "").upper()
    if normalized in ALLOWED_HTTP_METHOD_LABELS:
        return normalized
    return "OTHER"


def _route_template(route: Any, child_scope: Scope) -> str | None:
    route_path = getattr(route, "path", None)
    if isinstance(route_path, str) and route_path:
        return route_path
    # Lazily included routers report the matched inner route in the child scope.
    inner_path = getattr(child_scope.get("route"), "path", None)
    if isinstance(inner_path, str) and inner_path:
        return inner_path
    return None


def _resolve_route_template_from_router(request: Request) -> str | None:
    router = getattr(request.scope.get("app"), "router", None)
    for route in getattr(router, "routes", ()):
        try:
            matched, child_scope = route.matches(request.scope)
        except (AttributeError, KeyError, TypeError, ValueError):
            continue
        if matched != Match.FULL:
            continue
        return _route_template(route, child_scope)
    return None


def metric_path_label(request: Request) -> str:
    # Route templates keep label cardinality bounded; raw paths never become labels.
    route_path = _route_template(request.scope.get("route"), {}) or _resolve_route_template_from_router(request)
    if not route_path:
        return UNMATCHED_PATH_LABEL
    if len(route_path) > MAX_PATH_LABEL_LENGTH:
        return "/_label_too_long"
    return route_path


def metric_status_label(status_code: int) -> str:
    if 100 <= int(status_code) <= 599:
        return str(int(status_code))
    return "000"


def status_code_from_exception(exc: Exception) -> int:
    if isinstance(exc, RequestValidationError):
        return 400
    if isinstance(exc, StarletteHTTPException):
        return int(exc.status_code)
    return 500


def build_request_log_payload(
    *,
    request_id: str | None,
    method: str,
    path: str,
    status_code: int,
    elapsed_seconds: float,
    client_ip: str | None,
) -> dict[str, str | int | float | None]:
    return {
        "request_id": request_id,
        "method": method,
        "path": path,
        "status_code": int(status_code),
        "duration_ms": round(elapsed_seconds * 1000, 2),
        "client_ip": client_ip,
    }


def observe_request_metrics(*, method: str, path: str, status_code: int, elapsed_seconds: float) -> None:
    method_label = metric_method_label(method)
    status_label = metric_status_label(status_code)
    REQUEST_COUNT.labels(method_label, path, status_label).inc()
    REQUEST_LATENCY.labels(method_label, path).observe(elapsed_seconds)


def render_metrics() -> bytes:
    return generate_latest()
