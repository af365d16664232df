"""
Gatekeeper — Custom Exception Hierarchy
=========================================

What:  Defines the application-specific exceptions raised by the pipeline.
Why:   Each failure class has a different fate: configuration problems stop
       the server, authentication problems become a 401, and unexpected rule
       errors are handled by the chain's failure policy.
How:   Each exception class carries a message and optional context dict.
       The catch-all handler registered in main.py turns anything that
       escapes the pipeline into a generic 500 response.
Who:   Raised by config, rules and the chain; caught by the chain or the host.
When:  At startup (configuration) or during request interception.

Exception Hierarchy:
    GatekeeperError (base)
    ├── ConfigurationError        → fatal, server refuses to start
    ├── AuthenticationFailure     → 401 Unauthorized (never leaves BasicAuthRule)
    ├── RuleFailure               → handled per failure policy, 500 by default
    └── ContinuationReusedError   → programming error in a rule, always raised
"""

from typing import Any, Dict, Optional


class GatekeeperError(Exception):
    """
    Base exception for all Gatekeeper errors.

    Attributes:
        message:  Human-readable error description
        context:  Additional debug info (logged but NOT returned to clients)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ConfigurationError(GatekeeperError):
    """
    Raised when required configuration is missing or invalid.

    When:    Credentials are empty at startup, or a setting has an invalid value.
    Effect:  Fatal. The application factory and the lifespan hook let it
             propagate so the server never starts with a broken pipeline.
    """

    def __init__(
        self,
        message: str = "Configuration validation failed",
        missing: Optional[list] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if missing:
            ctx["missing"] = list(missing)
        super().__init__(message=message, context=ctx)
        self.missing = list(missing or [])


class AuthenticationFailure(GatekeeperError):
    """
    Raised while decoding Basic credentials that cannot be trusted.

    When:    Malformed base64, invalid UTF-8, or no colon separator.
    Effect:  Caught inside BasicAuthRule and normalized to a 401 response.
    """

    def __init__(
        self,
        reason: str = "invalid credentials",
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["reason"] = reason
        super().__init__(message=f"Authentication failed: {reason}", context=ctx)
        self.reason = reason


class RuleFailure(GatekeeperError):
    """
    Raised when a rule fails unexpectedly while processing a request.

    The original exception is available as ``__cause__``.
    """

    def __init__(
        self,
        rule: str,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["rule"] = rule
        super().__init__(message=f"Rule {rule} failed while processing the request", context=ctx)
        self.rule = rule


class ContinuationReusedError(GatekeeperError):
    """
    Raised when a rule calls its continuation more than once.

    Running the downstream rules twice would produce two competing responses,
    so the second call is rejected instead of silently re-running them.
    """

    def __init__(
        self,
        rule: str,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["rule"] = rule
        super().__init__(
            message=f"Rule {rule} called its continuation more than once",
            context=ctx,
        )
        self.rule = rule
