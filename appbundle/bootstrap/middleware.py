from __future__ import annotations

import json
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any
from urllib.parse import parse_qsl, urlencode

from starlette.datastructures import MutableHeaders
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from appbundle.errors import error_response

JSON_MEDIA_TYPE = "application/json"
FORM_MEDIA_TYPE = "application/x-www-form-urlencoded"
HTTP_METHODS = frozenset({"GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "TRACE", "CONNECT"})
METHOD_OVERRIDE_HEADER = "X-HTTP-Method-Override"
METHOD_OVERRIDE_FIELD = "_method"
PARSED_BODY_STATE_KEY = "parsed_body"
BODY_STATE_KEY = "body"
ORIGINAL_METHOD_STATE_KEY = "original_method"

MethodGetter = Callable[[Scope], "str | None"]


@dataclass
class ParsedBody:
    raw: bytes
    media_type: str
    value: Any
    modified: bool = False

    def has_field(self, name: str) -> bool:
        return isinstance(self.value, dict) and name in self.value

    def pop_field(self, name: str) -> Any:
        self.modified = True
        return self.value.pop(name)

    def encode(self) -> bytes:
        if not self.modified:
            return self.raw
        if self.media_type == FORM_MEDIA_TYPE:
            return urlencode(self.value).encode("utf-8")
        return json.dumps(self.value, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def _media_type(scope: Scope) -> str | None:
    for key, value in scope.get("headers") or []:
        if key.lower() != b"content-type":
            continue
        media_type = value.decode("latin-1").split(";", 1)[0].strip().lower()
        if media_type == JSON_MEDIA_TYPE or media_type.endswith("+json"):
            return JSON_MEDIA_TYPE
        if media_type == FORM_MEDIA_TYPE:
            return FORM_MEDIA_TYPE
        return None
    return None


def _payload_too_large_response(request: Request, *, details: dict[str, Any]) -> Response:
    return error_response(
        request,
        status_code=413,
        code="PAYLOAD_TOO_LARGE",
        message="Payload Too Large",
        details=details,
    )


def _invalid_content_length_response(request: Request) -> Response:
    return error_response(
        request,
        status_code=400,
        code="BAD_REQUEST",
        message="Invalid Content-Length header",
    )


def _malformed_body_response(request: Request, media_type: str) -> Response:
    return error_response(
        request,
        status_code=400,
        code="BAD_REQUEST",
        message="Malformed request body",
        details={"content_type": media_type},
    )


def _parse_body(raw: bytes, media_type: str) -> Any:
    if not raw:
        return {}
    if media_type == FORM_MEDIA_TYPE:
        return dict(parse_qsl(raw.decode("utf-8"), keep_blank_values=True))
    return json.loads(raw)


class BodyParserMiddleware:
    """Parse JSON and URL-encoded bodies into ``request.state.body``.

    The raw body is buffered once, bounded by ``max_body_bytes``, and replayed
    to the rest of the stack. Middleware further down may edit the parsed value
    (see :func:`body_method_getter`); the replayed bytes follow those edits.
    """

    def __init__(self, app: ASGIApp, *, max_body_bytes: int) -> None:
        self.app = app
        self.max_body_bytes = int(max_body_bytes)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return
        media_type = _media_type(scope)
        if media_type is None:
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        content_length = None
        content_length_raw = (request.headers.get("content-length") or "").strip()
        if content_length_raw:
            try:
                content_length = int(content_length_raw)
            except ValueError:
                await _invalid_content_length_response(request)(scope, receive, send)
                return
            if content_length > self.max_body_bytes:
                response = _payload_too_large_response(
                    request,
                    details={"max_request_body_bytes": self.max_body_bytes, "content_length": content_length},
                )
                await response(scope, receive, send)
                return

        chunks: list[bytes] = []
        received_bytes = 0
        more_body = True
        while more_body:
            message = await receive()
            if message["type"] != "http.request":
                break
            chunk = message.get("body", b"") or b""
            received_bytes += len(chunk)
            if received_bytes > self.max_body_bytes:
                overflow_details = {
                    "max_request_body_bytes": self.max_body_bytes,
                    "request_body_bytes": received_bytes,
                }
                if content_length is not None:
                    overflow_details["content_length"] = content_length
                await _payload_too_large_response(request, details=overflow_details)(scope, receive, send)
                return
            chunks.append(chunk)
            more_body = bool(message.get("more_body", False))

        raw = b"".join(chunks)
        try:
            value = _parse_body(raw, media_type)
        except (json.JSONDecodeError, UnicodeDecodeError):
            await _malformed_body_response(request, media_type)(scope, receive, send)
            return

        parsed = ParsedBody(raw=raw, media_type=media_type, value=value)
        state = scope.setdefault("state", {})
        state[PARSED_BODY_STATE_KEY] = parsed
        state[BODY_STATE_KEY] = parsed.value

        body_replayed = False

        async def replay_receive() -> Message:
            nonlocal body_replayed
            if body_replayed:
                return await receive()
            body_replayed = True
            return {"type": "http.request", "body": parsed.encode(), "more_body": False}

        await self.app(scope, replay_receive, send)


class MethodOverrideMiddleware:
    """Rewrite the request method from ``getter`` for requests sent as one of ``methods``."""

    def __init__(self, app: ASGIApp, *, getter: MethodGetter, methods: Iterable[str] = ("POST",)) -> None:
        self.app = app
        self.getter = getter
        self.methods = frozenset(method.upper() for method in methods)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            state = scope.setdefault("state", {})
            # Decided by the method the client sent, even after an earlier override.
            if state.get(ORIGINAL_METHOD_STATE_KEY, scope["method"]) in self.methods:
                method = (self.getter(scope) or "").strip().upper()
                if method in HTTP_METHODS:
                    state.setdefault(ORIGINAL_METHOD_STATE_KEY, scope["method"])
                    scope["method"] = method
        await self.app(scope, receive, send)


def header_method_getter(name: str = METHOD_OVERRIDE_HEADER) -> MethodGetter:
    header_name = name.lower().encode("latin-1")

    def _getter(scope: Scope) -> str | None:
        for key, value in scope.get("headers") or []:
            if key.lower() == header_name:
                return value.decode("latin-1").split(",", 1)[0]
        return None

    return _getter


def body_method_getter(field: str = METHOD_OVERRIDE_FIELD) -> MethodGetter:
    def _getter(scope: Scope) -> str | None:
        parsed = scope.get("state", {}).get(PARSED_BODY_STATE_KEY)
        if not isinstance(parsed, ParsedBody) or not parsed.has_field(field):
            return None
        value = parsed.pop_field(field)
        MutableHeaders(scope=scope)["content-length"] = str(len(parsed.encode()))
        return value if isinstance(value, str) else None

    return _getter
