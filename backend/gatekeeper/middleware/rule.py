"""
Gatekeeper — Rule Contract
============================

What:  The single extension point for pipeline behavior.
Why:   Rules are written independently (logging, auth, ...) and composed by
       the Chain; they only need to agree on one method.
How:   `Rule` is a structural Protocol: any object with a matching
       `process(request, call_next)` method is a rule, no base class needed.

Contract:
    process(request, call_next) -> Response | Awaitable[Response]

    - `call_next()` runs the rest of the chain and returns an awaitable of
      its response. It may be called at most once.
    - Returning without calling `call_next` short-circuits the chain.
    - A synchronous rule may `return call_next()` as-is; the chain awaits it.
    - An async rule may `await call_next()` and transform the response
      before returning it.
    - A rule must await or return the awaitable `call_next()` gave it before
      `process` finishes. If it calls `call_next()` and then returns its own
      response, the chain closes the unstarted downstream call and later
      rules never run.

The terminal response of a chain is a `PassThrough`: "do not intercept,
continue with normal handling".
"""

from enum import Enum
from typing import Awaitable, Callable, Protocol, Union, runtime_checkable

from starlette.requests import Request
from starlette.responses import Response

Continuation = Callable[[], Awaitable[Response]]
RuleResult = Union[Response, Awaitable[Response]]


@runtime_checkable
class Rule(Protocol):
    """A unit of middleware logic."""

    def process(self, request: Request, call_next: Continuation) -> RuleResult:
        ...


class FailurePolicy(str, Enum):
    """What a chain does when a rule raises unexpectedly."""

    PROPAGATE = "propagate"          # re-raise as RuleFailure to the host
    PASS_THROUGH = "pass_through"    # log, then behave as if the chain ended
    SERVER_ERROR = "server_error"    # log, then answer 500 from that rule


class PassThrough(Response):
    """
    Terminal response meaning "proceed with normal request handling".

    It never reaches the client itself. Headers set on it by rules are
    merged into the downstream response by the host adapter, so a rule can
    decorate the eventual response without knowing what it will be.
    """

    def __init__(self) -> None:
        super().__init__(status_code=200)


def rule_name(rule: object) -> str:
    """Readable rule identifier used in logs and error context."""
    return type(rule).__name__
