from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from fastapi import FastAPI, Request
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import Response

from appbundle.bootstrap.contracts import Filter, OpenAPIDocument, Resolver, SwaggerSource, has_capability
from appbundle.bootstrap.docs import register_swagger_ui
from appbundle.bootstrap.exception_handlers import register_exception_handlers
from appbundle.bootstrap.filters import InvalidUrlFilter
from appbundle.bootstrap.middleware import (
    METHOD_OVERRIDE_FIELD,
    METHOD_OVERRIDE_HEADER,
    BodyParserMiddleware,
    MethodOverrideMiddleware,
    body_method_getter,
    header_method_getter,
)
from appbundle.config import Config
from appbundle.errors import InvalidFilter, InvalidResolver

CATCH_ALL_PATH = "/{path:path}"


async def _no_route(request: Request) -> Response:
    raise StarletteHTTPException(status_code=404)


class AppBundle:
    """Wires middleware, route modules and API docs onto a FastAPI app.

    Construction runs :meth:`init`, which registers CORS, body parsing and
    method override. The builder methods then collect a resolver, global
    filters and a Swagger document, and :meth:`run` mounts them.

    Middleware registered here dispatches in registration order: the first
    ``use`` sees the request first. Routes are matched in the order
    ``run`` adds them, with the invalid-URL catch-all last.
    """

    BASE_PATH = "/api"
    BASE_PATH_SWAGGER = "/docs"

    def __init__(
        self,
        app: FastAPI,
        *,
        config: Config | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.app = app
        self.config = config if config is not None else Config()
        self.logger = logger or logging.getLogger("appbundle.bundle")
        self._resolver: Resolver | None = None
        self._filters: list[Filter] = []
        self._swagger_instance: OpenAPIDocument | None = None

        self.logger.info("bundle_starting")
        self.init()

    @property
    def resolver(self) -> Resolver | None:
        return self._resolver

    @property
    def filters(self) -> tuple[Filter, ...]:
        return tuple(self._filters)

    @property
    def swagger_instance(self) -> OpenAPIDocument | None:
        return self._swagger_instance

    def apply_resolver(self, resolver: Any) -> AppBundle:
        if not has_capability(resolver, "resolve"):
            raise InvalidResolver(resolver)

        self._resolver = resolver
        return self

    def apply_global_filters(self, filters: Iterable[Any]) -> AppBundle:
        # Filters accepted before an invalid one stay registered.
        for candidate in filters:
            if not has_capability(candidate, "filter"):
                raise InvalidFilter(candidate)
            self._filters.append(candidate)

        return self

    def apply_swagger(self, swagger_builder: SwaggerSource) -> AppBundle:
        self._swagger_instance = swagger_builder.instance
        return self

    def use(self, middleware_class: type, **options: Any) -> None:
        if self.app.middleware_stack is not None:
            raise RuntimeError("Cannot add middleware after an application has started")
        self.app.user_middleware.append(Middleware(middleware_class, **options))

    def init(self) -> AppBundle:
        self.logger.info("application_mode", extra={"app_env": self.config.app_env})

        self.use(
            CORSMiddleware,
            allow_origins=self.config.cors_allow_list,
            allow_methods=self.config.cors_allow_methods_list,
            allow_headers=self.config.cors_allow_headers_list,
        )
        self.use(BodyParserMiddleware, max_body_bytes=self.config.MAX_REQUEST_BODY_BYTES)

        # PUT, PATCH and DELETE from clients that can only send POST.
        self.use(MethodOverrideMiddleware, getter=header_method_getter(METHOD_OVERRIDE_HEADER))
        self.use(MethodOverrideMiddleware, getter=body_method_getter(METHOD_OVERRIDE_FIELD))

        register_exception_handlers(self.app, logger=self.logger)
        self.logger.info("initial_config_built")
        return self

    async def run(self) -> None:
        if self._resolver is None:
            raise InvalidResolver(None)
        self.logger.info("async_config_building")

        for global_filter in self._filters:
            self.use(BaseHTTPMiddleware, dispatch=global_filter.filter)

        resolved_modules = self._resolver.resolve()
        self.app.include_router(resolved_modules, prefix=self.BASE_PATH)

        register_swagger_ui(self.app, self.BASE_PATH_SWAGGER, self._swagger_instance)
        self.logger.info("swagger_built")
        self.logger.info("swagger_hosted", extra={"mount_path": self.BASE_PATH_SWAGGER})

        self._mount_terminal_filter(InvalidUrlFilter())

        await self._resolver.resolve_async()

    def _mount_terminal_filter(self, terminal: Filter) -> None:
        async def terminal_endpoint(request: Request) -> Response:
            return await terminal.filter(request, _no_route)

        # Every method: unmatched paths always answer INVALID_URL.
        self.app.router.add_route(CATCH_ALL_PATH, terminal_endpoint, include_in_schema=False)
