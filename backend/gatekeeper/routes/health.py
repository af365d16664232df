"""
Gatekeeper — Health Check Route
=================================

What:  Health check endpoint for monitoring and load balancer probes.
Why:   Probes must not need credentials, so /health is excluded from
       interception by default.
How:   Reports the version, the rules of the running chain and uptime.
"""

import time

from fastapi import APIRouter, Request

from gatekeeper import __version__
from gatekeeper.middleware.rule import rule_name
from gatekeeper.schemas.health import HealthResponse

router = APIRouter(tags=["Health"])

# Initialized once when the module loads
_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(request: Request) -> HealthResponse:
    """
    Report service status.

    The chain is read from `app.state.chain`, set by the application factory.
    """
    chain = getattr(request.app.state, "chain", None)
    rules = [rule_name(rule) for rule in chain] if chain is not None else []

    return HealthResponse(
        status="healthy",
        version=__version__,
        rules=rules,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
