"""
Common schema types used across the API.
"""

from typing import Any, Optional

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response."""
    
    detail: str
    code: Optional[str] = None
    field: Optional[str] = None


class SuccessResponse(BaseModel):
    """Standard success response."""
    
    message: str
    data: Optional[Any] = None


class HealthResponse(BaseModel):
    """Health check response."""
    
    status: str = "ok"
    version: str
    database: str = "connected"
