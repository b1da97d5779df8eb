"""Common schemas for the InspectFlow API."""

from typing import List, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Body of every classified error response."""
    error: str
    missing_item_ids: Optional[List[str]] = None
    missing_count: Optional[int] = None


class SuccessResponse(BaseModel):
    success: bool = True


# Documented on every API router; the body is produced by the error handlers in main
ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Validation failure or invalid state"},
    401: {"model": ErrorResponse, "description": "Not authenticated"},
    403: {"model": ErrorResponse, "description": "Not allowed"},
    404: {"model": ErrorResponse, "description": "Not found"},
}
