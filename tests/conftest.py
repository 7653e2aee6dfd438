import asyncio
from typing import Any, Callable, List, Optional

import pytest
from fastapi import APIRouter, FastAPI
from fastapi.testclient import TestClient

from appbundle.bootstrap import AppBundle
from appbundle.config import Config


def build_test_config(**overrides: Any) -> Config:
    defaults: dict[str, Any] = {
        "APP_ENV": "test",
        "LOG_LEVEL": "WARNING",
        "LOG_JSON": False,
        "CORS_ALLOW": "*",
        "SECURITY_STRICT_MODE": False,
    }
    defaults.update(overrides)
    return Config.model_validate(defaults)


class StubResolver:
    def __init__(
        self,
        router: Optional[APIRouter] = None,
        *,
        on_ready: Optional[Callable[[], Any]] = None,
    ) -> None:
        self.router = router or APIRouter()
        self.on_ready = on_ready
        self.calls: List[str] = []

    def resolve(self) -> APIRouter:
        self.calls.append("resolve")
        return self.router

    async def resolve_async(self) -> None:
        self.calls.append("resolve_async")
        if self.on_ready is not None:
            self.on_ready()


class RecordingFilter:
    def __init__(self, name: str, journal: List[str]) -> None:
        self.name = name
        self.journal = journal

    async def filter(self, request, call_next):
        self.journal.append(self.name)
        return await call_next(request)


def run_bundle(bundle: AppBundle) -> FastAPI:
    asyncio.run(bundle.run())
    return bundle.app


def build_bundle(**config_overrides: Any) -> AppBundle:
    return AppBundle(FastAPI(docs_url=None, redoc_url=None, openapi_url=None), config=build_test_config(**config_overrides))


@pytest.fixture(scope="session")
def app_instance():
    from appbundle import build_app

    return asyncio.run(build_app(build_test_config()))


@pytest.fixture
def client(app_instance):
    with TestClient(app_instance) as tc:
        yield tc
