from appbundle.bootstrap.bundle import AppBundle
from appbundle.bootstrap.docs import SwaggerBuilder, register_swagger_ui
from appbundle.bootstrap.exception_handlers import register_exception_handlers
from appbundle.bootstrap.filters import InvalidUrlFilter, RequestIdFilter, RequestLogFilter
from appbundle.bootstrap.resolver import ModuleResolver, RouteModule
from appbundle.bootstrap.validation import validate_startup_config

__all__ = [
    "AppBundle",
    "ModuleResolver",
    "RouteModule",
    "SwaggerBuilder",
    "InvalidUrlFilter",
    "RequestIdFilter",
    "RequestLogFilter",
    "register_swagger_ui",
    "register_exception_handlers",
    "validate_startup_config",
]
