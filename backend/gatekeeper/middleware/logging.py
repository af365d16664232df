"""
Gatekeeper — Request Logging Rule
===================================

What:  Records the method and path of every intercepted request.
Why:   Gives an access trail for requests before authentication decides
       their fate (rejected requests are logged too).
How:   Logs one line with structured `extra` fields, then hands the request
       to the rest of the chain unchanged.
When:  First rule of the application chain.

Log Format:
    2024-01-15T12:00:00 [INFO] gatekeeper.access: [Logger] GET /dashboard

What we log vs what we DON'T log (privacy):
    ✅ Log: method, path
    ❌ Don't log: query string, headers (Authorization carries credentials)
"""

import logging

from starlette.requests import Request

from gatekeeper.middleware.rule import Continuation, RuleResult

logger = logging.getLogger("gatekeeper.access")


class LoggingRule:
    """
    Pass-through rule that logs each request.

    Synchronous on purpose: it returns the continuation's awaitable without
    touching the downstream response, and the chain awaits it.
    Logging errors are reported by the logging module's own handler error
    hook and never raised into the chain.
    """

    def process(self, request: Request, call_next: Continuation) -> RuleResult:
        method = request.method
        path = request.url.path

        logger.info(
            "[Logger] %s %s",
            method,
            path,
            extra={"method": method, "path": path},
        )

        return call_next()
