# app/utils/response.py

from typing import TypeVar, Generic, Optional, Dict, Any
from pydantic import BaseModel

T = TypeVar("T")


def success_response(message: str, data: Optional[T] = None) -> Dict[str, Any]:
    return {
        "success": True,
        "message": message,
        "data": data,
    }


class APIResponse(BaseModel, Generic[T]):
    success: bool = True
    message: str
    data: Optional[T] = None


class ErrorResponse(BaseModel):
    """Shape rendered by the global exception handlers."""

    success: bool = False
    message: str
    error_code: str
    details: Optional[Any] = None


# documented failure modes for the payment endpoints
PAYMENT_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid details or signature"},
    401: {"model": ErrorResponse, "description": "Session missing or expired"},
    402: {"model": ErrorResponse, "description": "Payment not captured"},
    422: {"model": ErrorResponse, "description": "Payment method degraded upstream"},
    502: {"model": ErrorResponse, "description": "Gateway rejected the request"},
    503: {"model": ErrorResponse, "description": "Gateway or store unavailable, retry"},
}
