import asyncio

import pytest
from fastapi import APIRouter, FastAPI
from fastapi.testclient import TestClient

from appbundle.bootstrap import ModuleResolver, RouteModule, SwaggerBuilder
from appbundle.errors import InvalidModule


def _router(path: str) -> APIRouter:
    router = APIRouter()

    @router.get(path)
    async def endpoint():
        return {}

    return router


def _tagged_router(path: str, tag: str) -> APIRouter:
    router = APIRouter()

    @router.get(path)
    async def endpoint():
        return {"module": tag}

    return router


def test_resolve_includes_modules_in_order_and_returns_fresh_router():
    resolver = ModuleResolver(
        [
            RouteModule("a", _tagged_router("/a", "a")),
            RouteModule("shadowed", _tagged_router("/a", "shadowed")),
            RouteModule("b", _tagged_router("/b", "b")),
        ]
    )

    first = resolver.resolve()
    second = resolver.resolve()
    assert first is not second

    api = FastAPI()
    api.include_router(first)
    with TestClient(api) as client:
        assert client.get("/a").json() == {"module": "a"}
        assert client.get("/b").json() == {"module": "b"}


def test_add_rejects_module_without_router():
    resolver = ModuleResolver()

    with pytest.raises(InvalidModule):
        resolver.add(RouteModule("broken", router=None))  # type: ignore[arg-type]
    assert resolver.modules == ()


def test_resolve_async_runs_hooks_in_order_and_stops_on_failure():
    calls: list[str] = []

    async def ready_a():
        calls.append("a")

    async def ready_b():
        raise ConnectionError("b unavailable")

    async def ready_c():
        calls.append("c")

    resolver = ModuleResolver(
        [
            RouteModule("a", _router("/a"), on_ready=ready_a),
            RouteModule("plain", _router("/plain")),
            RouteModule("b", _router("/b"), on_ready=ready_b),
            RouteModule("c", _router("/c"), on_ready=ready_c),
        ]
    )

    with pytest.raises(ConnectionError, match="b unavailable"):
        asyncio.run(resolver.resolve_async())
    assert calls == ["a"]


def test_swagger_builder_renders_included_routes_with_prefix():
    builder = SwaggerBuilder(title="Bundle", version="1.2.3", description="docs").include(_router("/items"), prefix="/api")

    document = builder.instance

    assert document["info"] == {"title": "Bundle", "version": "1.2.3", "description": "docs"}
    assert list(document["paths"]) == ["/api/items"]
    assert builder.instance is document
