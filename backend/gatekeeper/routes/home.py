"""
Gatekeeper — Landing Page Route
=================================

What:  The protected landing page.
Why:   Only reachable after the interception chain lets the request through,
       so it doubles as a smoke test for authentication.
"""

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

router = APIRouter(tags=["Home"])


@router.get("/", response_class=PlainTextResponse, summary="Protected landing page")
async def home() -> str:
    return "Welcome. You are authenticated."
