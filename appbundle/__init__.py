import logging

from fastapi import FastAPI

from appbundle.bootstrap import (
    AppBundle,
    ModuleResolver,
    RequestIdFilter,
    RequestLogFilter,
    SwaggerBuilder,
    validate_startup_config,
)
from appbundle.bootstrap.contracts import Resolver
from appbundle.config import Config
from appbundle.logging_config import configure_logging
from appbundle.modules import default_modules
from appbundle.version import APP_VERSION

OPENAPI_TAGS: list[dict[str, str]] = [
    {"name": "system", "description": "Health and metrics endpoints"},
    {"name": "auth", "description": "Account recovery"},
]

logger = logging.getLogger("appbundle.bundle")


def create_bundle(app_config: Config | None = None, *, resolver: Resolver | None = None) -> AppBundle:
    if app_config is None:
        app_config = Config()

    configure_logging(level=app_config.LOG_LEVEL, json_logs=app_config.LOG_JSON, app_env=app_config.app_env)
    validate_startup_config(app_config)

    # The bundle serves its own docs under /docs.
    api = FastAPI(
        title=app_config.DOCS_TITLE,
        version=APP_VERSION,
        openapi_tags=OPENAPI_TAGS,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        debug=app_config.DEBUG,
    )
    api.state.config = app_config

    bundle = (
        AppBundle(api, config=app_config, logger=logger)
        .apply_resolver(resolver if resolver is not None else ModuleResolver(default_modules()))
        .apply_global_filters([RequestIdFilter(), RequestLogFilter()])
    )
    # Documented from the resolver the bundle accepted.
    swagger = SwaggerBuilder(title=app_config.DOCS_TITLE, version=APP_VERSION, tags=OPENAPI_TAGS).include(
        bundle.resolver.resolve(), prefix=AppBundle.BASE_PATH
    )
    return bundle.apply_swagger(swagger)


async def build_app(app_config: Config | None = None, *, resolver: Resolver | None = None) -> FastAPI:
    bundle = create_bundle(app_config, resolver=resolver)
    await bundle.run()
    return bundle.app
