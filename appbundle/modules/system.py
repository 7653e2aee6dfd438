from fastapi import APIRouter, Response

from appbundle.bootstrap.resolver import RouteModule
from appbundle.modules.common import ERROR_RESPONSES
from appbundle.observability import METRICS_CONTENT_TYPE, render_metrics
from appbundle.schemas import HealthResponse

router = APIRouter(tags=["system"])


@router.get("/health", response_model=HealthResponse, responses=ERROR_RESPONSES)
async def health() -> HealthResponse:
    return HealthResponse(status="ok")


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    return Response(content=render_metrics(), media_type=METRICS_CONTENT_TYPE)


system_module = RouteModule(name="system", router=router)
