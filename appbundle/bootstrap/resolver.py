from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass

from fastapi import APIRouter

from appbundle.errors import InvalidModule

logger = logging.getLogger("appbundle.resolver")


@dataclass(frozen=True)
class RouteModule:
    name: str
    router: APIRouter
    on_ready: Callable[[], Awaitable[None]] | None = None


class ModuleResolver:
    """Collects route modules and mounts them as one router.

    ``resolve`` is synchronous and may be called more than once; every call
    returns a fresh router. ``resolve_async`` runs each module's ``on_ready``
    hook in registration order and stops at the first failure.
    """

    def __init__(self, modules: Iterable[RouteModule] = ()) -> None:
        self._modules: list[RouteModule] = []
        for module in modules:
            self.add(module)

    @property
    def modules(self) -> tuple[RouteModule, ...]:
        return tuple(self._modules)

    def add(self, module: RouteModule) -> ModuleResolver:
        if not isinstance(getattr(module, "router", None), APIRouter):
            raise InvalidModule(module)
        self._modules.append(module)
        return self

    def resolve(self) -> APIRouter:
        router = APIRouter()
        for module in self._modules:
            router.include_router(module.router)
        return router

    async def resolve_async(self) -> None:
        for module in self._modules:
            if module.on_ready is None:
                continue
            logger.info("module_ready", extra={"route_module": module.name})
            await module.on_ready()
