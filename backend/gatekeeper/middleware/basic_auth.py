"""
Gatekeeper — HTTP Basic Authentication Rule
=============================================

What:  Rejects requests that do not carry the configured Basic credentials.
Why:   Puts the whole site behind a single shared username/password without
       a session or user store.
How:   Reads the Authorization header, decodes the `Basic` payload and
       compares it against the expected pair. Any problem ends in a 401.
When:  After LoggingRule in the application chain.

Decision flow (per request, nothing persisted):
    no header / not "Basic "   → 401
    undecodable payload        → 401
    username or password wrong → 401
    credentials match          → continue

401 response:
    WWW-Authenticate: Basic realm="Authorization Required"
    Cache-Control: no-store
    Content-Type: text/plain;charset=UTF-8
    body: Unauthorized
"""

import base64
import hmac
import logging
from typing import Tuple

from starlette.requests import Request
from starlette.responses import Response

from gatekeeper.config import Settings
from gatekeeper.exceptions import AuthenticationFailure, ConfigurationError
from gatekeeper.middleware.rule import Continuation, RuleResult

logger = logging.getLogger(__name__)

SCHEME_PREFIX = "Basic "


def parse_basic_credentials(payload: str) -> Tuple[str, str]:
    """
    Decode a Basic auth payload into (username, password).

    The split happens at the first colon, so passwords may contain colons.

    Raises:
        AuthenticationFailure: payload is not ASCII base64, not UTF-8, or has no colon
    """
    try:
        decoded = base64.b64decode(payload.strip(), validate=True).decode("utf-8")
    except ValueError as exc:
        # binascii.Error, UnicodeDecodeError and non-ASCII input are all ValueErrors
        raise AuthenticationFailure("malformed credentials") from exc

    username, sep, password = decoded.partition(":")
    if not sep:
        raise AuthenticationFailure("missing username/password separator")
    return username, password


class BasicAuthRule:
    """
    Short-circuits with a 401 unless the request presents the expected credentials.

    Args:
        username: Expected username (non-empty)
        password: Expected password (non-empty)
        realm:    Realm advertised in the WWW-Authenticate challenge

    Raises:
        ConfigurationError: username or password is empty
    """

    def __init__(self, username: str, password: str, realm: str = "Authorization Required"):
        missing = [
            name
            for name, value in (("username", username), ("password", password))
            if not value
        ]
        if missing:
            raise ConfigurationError(
                "Basic authentication requires a non-empty username and password",
                missing=missing,
            )
        self._username = username.encode("utf-8")
        self._password = password.encode("utf-8")
        self.realm = realm

    @classmethod
    def from_settings(cls, config: Settings) -> "BasicAuthRule":
        config.validate_credentials()
        return cls(
            username=config.basic_auth_username,
            password=config.basic_auth_password,
            realm=config.basic_auth_realm,
        )

    def process(self, request: Request, call_next: Continuation) -> RuleResult:
        auth_header = request.headers.get("authorization", "")

        if not auth_header.startswith(SCHEME_PREFIX):
            logger.debug("[BasicAuth] No credentials supplied for %s", request.url.path)
            return self.challenge()

        try:
            username, password = parse_basic_credentials(auth_header[len(SCHEME_PREFIX):])
        except AuthenticationFailure as exc:
            logger.warning("[BasicAuth] Invalid credentials (%s)", exc.reason)
            return self.challenge()

        if not self._matches(username, password):
            logger.warning("[BasicAuth] Invalid credentials")
            return self.challenge()

        logger.info("[BasicAuth] Authentication successful")
        return call_next()

    def _matches(self, username: str, password: str) -> bool:
        # Both comparisons always run
        user_ok = hmac.compare_digest(username.encode("utf-8"), self._username)
        password_ok = hmac.compare_digest(password.encode("utf-8"), self._password)
        return user_ok and password_ok

    def challenge(self) -> Response:
        """Build the 401 response asking the client for Basic credentials."""
        return Response(
            content="Unauthorized",
            status_code=401,
            headers={
                "WWW-Authenticate": f'Basic realm="{self.realm}"',
                "Cache-Control": "no-store",
                "Content-Type": "text/plain;charset=UTF-8",
            },
        )
