"""
ProjectRepo Backend - Shared Response Schemas
==============================================

What:  Models used across routers: the error envelope, the health report,
       and navigation links.
"""

from typing import Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Standardized error body for every non-2xx response.

    Example:
        {
            "error": "invalid_transition",
            "message": "This project cannot be approved while it is REJECTED.",
            "request_id": "550e8400-e29b-41d4-a716-446655440000"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Returned by GET /health for monitoring and load balancer checks."""
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    mailer: str = Field(description="Mail transport: smtp or disabled")
    uptime_seconds: float = Field(description="Seconds since service started")


class NavLink(BaseModel):
    route: str
    label: str
