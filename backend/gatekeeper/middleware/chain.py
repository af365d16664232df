"""
Gatekeeper — Rule Chain
=========================

What:  Composes an ordered list of rules into a single request handler.
Why:   Rules stay independent; the chain alone decides who runs next.
How:   Each `handle()` call creates a private cursor. The cursor runs the rule
       at its position and hands it a single-use continuation that advances
       the same cursor. When no rules remain, the terminal response
       (a `PassThrough` by default) is returned.

Execution order for Chain([A, B, C]):
    handle → A → B → C → terminal
    response ← A ← B ← C ←

    A rule that returns without calling its continuation stops the walk;
    later rules never run and its response is the chain's result.

Concurrency:
    The rule tuple is immutable and every invocation owns its cursor, so one
    Chain instance serves any number of concurrent requests without locks.
"""

import inspect
import logging
from typing import Awaitable, Callable, Iterable, Iterator, Tuple, Union

from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response

from gatekeeper.exceptions import ContinuationReusedError, RuleFailure
from gatekeeper.middleware.rule import FailurePolicy, PassThrough, Rule, rule_name

logger = logging.getLogger(__name__)


class Chain:
    """
    An ordered, immutable sequence of rules.

    Args:
        rules:     Rules in execution order
        terminal:  Factory for the response returned once every rule continued
        on_error:  FailurePolicy (or its string value) for unexpected rule errors
    """

    def __init__(
        self,
        rules: Iterable[Rule],
        terminal: Callable[[], Response] = PassThrough,
        on_error: Union[FailurePolicy, str] = FailurePolicy.PROPAGATE,
    ):
        self._rules: Tuple[Rule, ...] = tuple(rules)
        self._terminal = terminal
        self.on_error = FailurePolicy(on_error)

    @property
    def rules(self) -> Tuple[Rule, ...]:
        return self._rules

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)

    def __repr__(self) -> str:
        names = ", ".join(rule_name(rule) for rule in self._rules)
        return f"Chain([{names}], on_error={self.on_error.value!r})"

    async def handle(self, request: Request) -> Response:
        """Run the request through every rule; the cursor lives only for this call."""
        return await _Cursor(self, request).advance()

    async def _run(self, rule: Rule, request: Request, call_next: "_Continuation") -> Response:
        try:
            result = rule.process(request, call_next)
            if inspect.isawaitable(result):
                result = await result
            return result
        except (RuleFailure, ContinuationReusedError):
            # Already attributed to the rule that raised it
            raise
        except Exception as exc:
            return self._on_rule_failure(rule, exc)
        finally:
            call_next.discard_unstarted()

    def _on_rule_failure(self, rule: Rule, exc: Exception) -> Response:
        name = rule_name(rule)
        if self.on_error is FailurePolicy.PROPAGATE:
            raise RuleFailure(name, context={"error": repr(exc)}) from exc

        logger.error("Rule %s failed: %s", name, exc, exc_info=exc)
        if self.on_error is FailurePolicy.PASS_THROUGH:
            return self._terminal()
        return PlainTextResponse("Internal Server Error", status_code=500)


class _Cursor:
    """Position of one `handle()` call within its chain."""

    __slots__ = ("_chain", "_request", "_index")

    def __init__(self, chain: Chain, request: Request):
        self._chain = chain
        self._request = request
        self._index = 0

    async def advance(self) -> Response:
        rules = self._chain.rules
        if self._index >= len(rules):
            return self._chain._terminal()

        rule = rules[self._index]
        self._index += 1
        return await self._chain._run(rule, self._request, _Continuation(self, rule))


class _Continuation:
    """The `call_next` handed to a single rule; usable once."""

    __slots__ = ("_cursor", "_rule", "_called", "_pending")

    def __init__(self, cursor: _Cursor, rule: Rule):
        self._cursor = cursor
        self._rule = rule
        self._called = False
        self._pending = None

    def __call__(self) -> Awaitable[Response]:
        if self._called:
            raise ContinuationReusedError(rule_name(self._rule))
        self._called = True
        self._pending = self._cursor.advance()
        return self._pending

    def discard_unstarted(self) -> None:
        """Close the downstream call if the rule dropped it without awaiting."""
        pending = self._pending
        if pending is not None and inspect.getcoroutinestate(pending) == inspect.CORO_CREATED:
            pending.close()
