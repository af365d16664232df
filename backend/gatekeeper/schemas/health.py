"""
Gatekeeper — Pydantic Response Schemas
========================================

What:  Pydantic models for the JSON the application returns.
Why:   Automatic serialization and OpenAPI doc generation.
"""

from typing import List

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """
    What:  Health check response showing service status and pipeline layout.
    Who:   Returned by GET /health for monitoring and load balancer health checks.
    """
    status: str = Field(description="Overall service status: healthy")
    version: str = Field(description="Application version")
    rules: List[str] = Field(description="Interception rules in execution order")
    uptime_seconds: float = Field(description="Seconds since service started")
