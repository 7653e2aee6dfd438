import logging

from fastapi import APIRouter, Depends

from appbundle.modules.auth.interceptors import forgot_password_interceptor
from appbundle.modules.common import ERROR_RESPONSES
from appbundle.schemas import AcceptedResponse, ForgotPasswordPayload

logger = logging.getLogger("appbundle.auth")

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/forgot-password",
    summary="Request a password reset link",
    response_model=AcceptedResponse,
    status_code=202,
    responses=ERROR_RESPONSES,
    dependencies=[Depends(forgot_password_interceptor)],
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": ForgotPasswordPayload.model_json_schema()}},
        }
    },
)
async def forgot_password() -> AcceptedResponse:
    # Same reply whether or not the address belongs to an account.
    logger.info("password_reset_requested")
    return AcceptedResponse(status="accepted")
