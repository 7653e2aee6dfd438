from __future__ import annotations

from functools import cached_property

from fastapi import APIRouter, FastAPI, Request
from fastapi.openapi.docs import get_swagger_ui_html
from fastapi.openapi.utils import get_openapi
from fastapi.responses import HTMLResponse, JSONResponse

from appbundle.bootstrap.contracts import OpenAPIDocument

SWAGGER_DOCUMENT_NAME = "swagger.json"


class SwaggerBuilder:
    """Renders the OpenAPI document for the routers it is given.

    ``instance`` is computed on first access, so every ``include`` call must
    happen before the builder is applied to a bundle.
    """

    def __init__(
        self,
        *,
        title: str,
        version: str,
        description: str | None = None,
        tags: list[dict[str, str]] | None = None,
    ) -> None:
        self.title = title
        self.version = version
        self.description = description
        self.tags = tags
        self._router = APIRouter()

    def include(self, router: APIRouter, *, prefix: str = "") -> SwaggerBuilder:
        self._router.include_router(router, prefix=prefix)
        return self

    @cached_property
    def instance(self) -> OpenAPIDocument:
        return get_openapi(
            title=self.title,
            version=self.version,
            description=self.description,
            routes=self._router.routes,
            tags=self.tags,
        )


def register_swagger_ui(api: FastAPI, path: str, document: OpenAPIDocument | None) -> None:
    document_url = f"{path.rstrip('/')}/{SWAGGER_DOCUMENT_NAME}"

    async def swagger_document(_request: Request) -> JSONResponse:
        if document is None:
            return JSONResponse(api.openapi())
        return JSONResponse(document)

    async def swagger_ui(_request: Request) -> HTMLResponse:
        title = (document or {}).get("info", {}).get("title") or api.title
        return get_swagger_ui_html(openapi_url=document_url, title=f"{title} - Swagger UI")

    api.add_route(document_url, swagger_document, methods=["GET"], include_in_schema=False)
    api.add_route(path, swagger_ui, methods=["GET"], include_in_schema=False)
