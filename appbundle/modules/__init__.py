from appbundle.bootstrap.resolver import RouteModule
from appbundle.modules.auth import auth_module
from appbundle.modules.system import system_module


def default_modules() -> list[RouteModule]:
    return [system_module, auth_module]


__all__ = ["auth_module", "system_module", "default_modules"]
