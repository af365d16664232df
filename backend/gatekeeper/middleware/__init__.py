# Middleware package init
"""
Gatekeeper — Middleware Package
=================================

What:  The request-interception pipeline that runs ahead of the routes.
Why:   Cross-cutting checks live here instead of in every route handler.

Rule Chain (order matters!):
    Request → [LoggingRule] → [BasicAuthRule] → PassThrough → Route Handler

    Why this order:
    1. Logging FIRST: every request is recorded, including rejected ones
    2. Basic auth: requests without valid credentials stop here with a 401

    Responses travel back through the same rules in reverse, so a rule that
    awaits its continuation can adjust the response on the way out.

Modules:
    rule          Rule protocol, PassThrough terminal response
    chain         Chain composition engine
    logging       LoggingRule
    basic_auth    BasicAuthRule
    interception  Starlette adapter, path matching, handler() entry point
"""
