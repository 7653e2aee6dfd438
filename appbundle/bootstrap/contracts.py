from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, Protocol, TypeAlias

from fastapi import APIRouter, Request
from starlette.responses import Response

CallNext: TypeAlias = Callable[[Request], Awaitable[Response]]
FilterFunction: TypeAlias = Callable[[Request, CallNext], Awaitable[Response]]
OpenAPIDocument: TypeAlias = dict[str, Any]


class Resolver(Protocol):
    def resolve(self) -> APIRouter:
        ...

    async def resolve_async(self) -> None:
        ...


class Filter(Protocol):
    filter: FilterFunction


class SwaggerSource(Protocol):
    @property
    def instance(self) -> OpenAPIDocument | None:
        ...


def has_capability(value: Any, name: str) -> bool:
    return callable(getattr(value, name, None))
