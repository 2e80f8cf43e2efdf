"""Error response models"""
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field


class AgentProtocolError(BaseModel):
    """Standard error response body"""
    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")


def get_error_type(status_code: int) -> str:
    """Map HTTP status codes to error types"""
    error_map = {
        400: "bad_request",
        404: "not_found",
        409: "conflict",
        422: "validation_error",
        500: "internal_error",
        503: "service_unavailable"
    }
    return error_map.get(status_code, "unknown_error")
