"""
Gatekeeper — Host Server Adapter
==================================

What:  Connects the rule chain to the Starlette/FastAPI request cycle.
How:   `InterceptionMiddleware` runs the chain for every intercepted path.
       A `PassThrough` result means "continue normal processing": the
       downstream app is called and any headers rules put on the
       pass-through are copied onto its response. Any other response
       short-circuits the request.

Path matching:
    Requests whose path equals or starts with an excluded prefix
    (default: /api, /static, /favicon.ico, /health) skip the chain.
"""

import logging
from functools import lru_cache
from typing import Iterable, Optional, Sequence

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from gatekeeper.config import Settings, settings
from gatekeeper.middleware.basic_auth import BasicAuthRule
from gatekeeper.middleware.chain import Chain
from gatekeeper.middleware.logging import LoggingRule
from gatekeeper.middleware.rule import PassThrough

logger = logging.getLogger(__name__)

# Describe the pass-through's own (empty) body, never the downstream one
_BODY_HEADERS = {"content-length", "content-type"}


def is_intercepted(path: str, excluded_prefixes: Iterable[str]) -> bool:
    """True unless `path` is one of the excluded prefixes or lies beneath one."""
    for prefix in excluded_prefixes:
        prefix = prefix.rstrip("/")
        if not prefix:
            continue
        if path == prefix or path.startswith(prefix + "/"):
            return False
    return True


def build_chain(config: Settings = settings) -> Chain:
    """
    The application chain: log every request, then require Basic auth.

    Raises:
        ConfigurationError: the credentials are not configured
    """
    return Chain(
        [LoggingRule(), BasicAuthRule.from_settings(config)],
        on_error=config.rule_failure_policy,
    )


@lru_cache(maxsize=1)
def get_chain() -> Chain:
    """Process-wide chain, built on first use from the global settings."""
    return build_chain(settings)


async def handler(request: Request) -> Response:
    """Entry point for the host: run `request` through the default chain."""
    return await get_chain().handle(request)


def merge_pass_through_headers(source: PassThrough, target: Response) -> Response:
    """Copy headers set on a pass-through onto the real downstream response."""
    for key, value in source.headers.items():
        if key not in _BODY_HEADERS:
            target.headers[key] = value
    return target


class InterceptionMiddleware(BaseHTTPMiddleware):
    """
    Runs the rule chain ahead of the routes.

    Args:
        app:                Downstream ASGI app
        chain:              Chain to run; defaults to the process-wide chain
        excluded_prefixes:  Path prefixes that bypass the chain
    """

    def __init__(
        self,
        app: ASGIApp,
        chain: Optional[Chain] = None,
        excluded_prefixes: Optional[Sequence[str]] = None,
    ):
        super().__init__(app)
        self.chain = chain if chain is not None else get_chain()
        self.excluded_prefixes = (
            list(excluded_prefixes)
            if excluded_prefixes is not None
            else settings.excluded_paths_list
        )

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if not is_intercepted(request.url.path, self.excluded_prefixes):
            return await call_next(request)

        result = await self.chain.handle(request)

        if isinstance(result, PassThrough):
            response = await call_next(request)
            return merge_pass_through_headers(result, response)

        logger.debug(
            "Request %s %s intercepted with status %d",
            request.method,
            request.url.path,
            result.status_code,
        )
        return result
