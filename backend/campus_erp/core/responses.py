"""Response envelope models.

Every endpoint answers with a ``success`` flag so the frontend can branch on
a single field:

- success: {"success": true, "message": ..., "data": ...}
- error:   {"success": false, "code": ..., "message": ..., "details": ...}
"""

from typing import Generic, Literal, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class MessageResponse(BaseModel):
    """Success envelope carrying only a human-readable message.

    Usage:
        @router.post("/request-otp")
        async def request_otp(...) -> MessageResponse:
            ...
            return MessageResponse(message="OTP sent successfully")
    """

    success: Literal[True] = True
    message: str


class DataResponse(BaseModel, Generic[T]):
    """Success envelope for a single resource."""

    success: Literal[True] = True
    message: str | None = None
    data: T


class TokenResponse(MessageResponse):
    """Success envelope that hands a signed credential back to the caller."""

    token: str


class ErrorResponse(BaseModel):
    """Standard error envelope.

    Usage in exception handlers:
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(code=exc.code, message=exc.message).model_dump(),
        )

    Attributes:
        code: Machine-readable error code (e.g., "NOT_FOUND").
        message: Human-readable error message.
        details: Optional list of field-level errors (for validation).
    """

    success: Literal[False] = False
    code: str
    message: str
    details: list[dict] | None = None
