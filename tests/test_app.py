import asyncio

import pytest
from conftest import build_test_config
from fastapi.testclient import TestClient

from appbundle import build_app, create_bundle
from appbundle.bootstrap import ModuleResolver, RequestIdFilter, RequestLogFilter, RouteModule
from appbundle.errors import InvalidResolver
from appbundle.modules.system import router as system_router


def test_health_is_mounted_under_api_base_path(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert response.headers["X-Request-Id"]


def test_request_id_header_is_echoed(client):
    response = client.get("/api/health", headers={"X-Request-Id": "req-42"})

    assert response.headers["X-Request-Id"] == "req-42"


def test_unmatched_api_path_returns_invalid_url(client):
    response = client.get("/api/does-not-exist", headers={"X-Request-Id": "req-404"})

    assert response.status_code == 404
    payload = response.json()
    assert payload["code"] == "INVALID_URL"
    assert payload["message"] == "Invalid URL"
    assert payload["request_id"] == "req-404"
    assert payload["details"] == {"method": "GET", "path": "/api/does-not-exist"}


def test_wrong_method_on_known_path_falls_through_to_invalid_url(client):
    response = client.delete("/api/health")

    assert response.status_code == 404
    assert response.json()["code"] == "INVALID_URL"


def test_docs_are_served_with_module_routes(client):
    ui = client.get("/docs")
    assert ui.status_code == 200
    assert "swagger-ui" in ui.text

    document = client.get("/docs/swagger.json").json()
    assert "/api/auth/forgot-password" in document["paths"]
    assert "/api/health" in document["paths"]
    assert "/api/metrics" not in document["paths"]


def test_framework_default_docs_are_disabled(client):
    response = client.get("/openapi.json")

    assert response.status_code == 404
    assert response.json()["code"] == "INVALID_URL"


def test_metrics_record_route_templates(client):
    client.get("/api/health")
    client.get("/api/nowhere/at/all")

    metrics = client.get("/api/metrics")
    assert metrics.status_code == 200
    assert 'appbundle_http_requests_total{method="GET",path="/api/health",status_code="200"}' in metrics.text
    assert 'path="/{path:path}",status_code="404"' in metrics.text
    assert "/api/nowhere/at/all" not in metrics.text


def test_create_bundle_applies_default_filters_and_docs():
    bundle = create_bundle(build_test_config())

    assert [type(item) for item in bundle.filters] == [RequestIdFilter, RequestLogFilter]
    assert "/api/auth/forgot-password" in bundle.swagger_instance["paths"]
    assert bundle.app.state.config.APP_ENV == "test"


def test_build_app_awaits_module_ready_hooks():
    ready: list[str] = []

    async def on_ready():
        ready.append("system")

    resolver = ModuleResolver([RouteModule(name="system", router=system_router, on_ready=on_ready)])
    api = asyncio.run(build_app(build_test_config(), resolver=resolver))

    assert ready == ["system"]
    with TestClient(api) as client:
        assert client.get("/api/health").status_code == 200
        assert client.post("/api/auth/forgot-password", json={}).json()["code"] == "INVALID_URL"


def test_build_app_rejects_wildcard_cors_in_production():
    with pytest.raises(RuntimeError, match="explicit CORS_ALLOW"):
        asyncio.run(build_app(build_test_config(APP_ENV="production")))


def test_extension_methods_on_unmatched_path_return_invalid_url(client):
    response = client.request("PROPFIND", "/api/does-not-exist")

    assert response.status_code == 404
    assert response.json()["code"] == "INVALID_URL"
    assert response.json()["details"] == {"method": "PROPFIND", "path": "/api/does-not-exist"}


def test_trace_override_on_unmatched_path_returns_invalid_url(client):
    response = client.post("/api/does-not-exist", json={"_method": "TRACE"})

    assert response.status_code == 404
    assert response.json()["code"] == "INVALID_URL"
    assert response.json()["details"]["method"] == "TRACE"


def test_create_bundle_rejects_resolver_without_resolve():
    bogus = object()

    with pytest.raises(InvalidResolver) as exc_info:
        create_bundle(build_test_config(), resolver=bogus)

    assert exc_info.value.value is bogus
