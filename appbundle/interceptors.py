from typing import Any, Generic, TypeVar

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError

from appbundle.bootstrap.middleware import BODY_STATE_KEY

SchemaT = TypeVar("SchemaT", bound=BaseModel)

INTERCEPTOR_SOURCES = ("body", "query", "path", "headers")


def _parsed_body(request: Request) -> Any:
    # Only what the body parser accepted; other media types validate as an empty object.
    state = request.scope.get("state") or {}
    return state.get(BODY_STATE_KEY, {})


class DefaultValidatorInterceptor(Generic[SchemaT]):
    """Validate one part of the request against ``schema``.

    Instances are FastAPI dependencies::

        @router.post("/login", dependencies=[Depends(login_interceptor)])

    A failing payload raises ``RequestValidationError`` with pydantic's error
    list, located under the configured ``source``. A passing payload leaves the
    request as it was and the validated model is returned to the caller.
    """

    def __init__(self, schema: type[SchemaT], *, source: str = "body") -> None:
        if source not in INTERCEPTOR_SOURCES:
            raise ValueError(f"source must be one of: {', '.join(INTERCEPTOR_SOURCES)}.")
        self.schema = schema
        self.source = source

    async def extract(self, request: Request) -> Any:
        if self.source == "body":
            return _parsed_body(request)
        if self.source == "query":
            return dict(request.query_params)
        if self.source == "path":
            return dict(request.path_params)
        return dict(request.headers)

    def validate(self, data: Any) -> SchemaT:
        try:
            return self.schema.model_validate(data)
        except ValidationError as exc:
            errors = [{**err, "loc": (self.source, *err.get("loc", ()))} for err in exc.errors()]
            raise RequestValidationError(errors, body=data if self.source == "body" else None) from exc

    async def __call__(self, request: Request) -> SchemaT:
        return self.validate(await self.extract(request))
