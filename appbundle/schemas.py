from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class StrictRequestModel(BaseModel):
    model_config = ConfigDict(extra="forbid")


class ErrorResponse(BaseModel):
    code: str = Field(examples=["INVALID_URL"])
    message: str = Field(examples=["Invalid URL"])
    error: str = Field(examples=["Invalid URL"])
    request_id: Optional[str] = Field(default=None, examples=["c752262e-cf42-4075-917b-95ffcb5ceeeb"])
    details: Any = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "code": "VALIDATION_ERROR",
                "message": "email: value is not a valid email address",
                "error": "email: value is not a valid email address",
                "request_id": "c752262e-cf42-4075-917b-95ffcb5ceeeb",
                "details": [{"loc": ["body", "email"], "msg": "value is not a valid email address"}],
            }
        }
    )


class HealthResponse(BaseModel):
    status: str = Field(examples=["ok"])


class AcceptedResponse(BaseModel):
    status: str = Field(examples=["accepted"])


class ForgotPasswordPayload(StrictRequestModel):
    email: EmailStr

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={"example": {"email": "user@example.com"}},
    )
