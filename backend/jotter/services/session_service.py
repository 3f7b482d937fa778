"""
Jotter Backend — Session Codec and Session Guard
==================================================

What:  Turns an authenticated account id into a session cookie value and
       back, and decides on every request whether that cookie is still good.
How:   The cookie value is URL-safe base64 (padding stripped) of compact JSON
       {"userId": ..., "exp": <unix seconds>}.
Who:   The login route encodes; the require_user dependency authenticates.

KNOWN WEAKNESS: the session is NOT signed.
    The encoding is reversible and carries no MAC. Anyone who knows the
    format can mint a cookie for any user id with any expiry. Closing this
    changes the trust model (an HMAC over the payload with a server secret,
    or an opaque id pointing at a server-side session table) and needs an
    explicit decision; it is recorded in DESIGN.md rather than patched here.

Guard Outcomes:
    authenticated  cookie decoded and exp >= now
    missing        no cookie on the request
    malformed      cookie present but not a valid encoding (error logged, swallowed)
    expired        cookie decoded but exp < now
    Only "authenticated" lets a request through; the other three are the same
    401 to the client.
"""

import base64
import binascii
import enum
import json
import logging
import time
from dataclasses import dataclass
from typing import Optional

from jotter.exceptions import SessionDecodeError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Session:
    user_id: str
    exp: int


class SessionOutcome(str, enum.Enum):
    AUTHENTICATED = "authenticated"
    MISSING = "missing"
    MALFORMED = "malformed"
    EXPIRED = "expired"


@dataclass(frozen=True)
class SessionCheck:
    """Result of SessionGuard.authenticate(); user_id is set only when authenticated."""

    outcome: SessionOutcome
    user_id: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.outcome is SessionOutcome.AUTHENTICATED


def _now() -> int:
    return int(time.time())


class SessionCodec:
    """Reversible session encoding. See the module docstring: it is unsigned."""

    @staticmethod
    def encode(user_id: str, ttl_seconds: int, now: Optional[int] = None) -> str:
        issued_at = _now() if now is None else now
        payload = {"userId": user_id, "exp": issued_at + ttl_seconds}
        raw = json.dumps(payload, separators=(",", ":")).encode("utf-8")
        return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")

    @staticmethod
    def decode(value: str) -> Session:
        """
        Reverse encode().

        Raises:
            SessionDecodeError: for anything that is not a well-formed session.
        """
        padded = value + "=" * (-len(value) % 4)
        try:
            raw = base64.b64decode(padded, altchars=b"-_", validate=True)
            payload = json.loads(raw.decode("utf-8"))
        except (binascii.Error, UnicodeDecodeError, ValueError) as e:
            raise SessionDecodeError(reason=f"undecodable value ({type(e).__name__})") from e

        if not isinstance(payload, dict):
            raise SessionDecodeError(reason="payload is not an object")

        user_id = payload.get("userId")
        if not isinstance(user_id, str) or not user_id:
            raise SessionDecodeError(reason="missing userId")

        exp = payload.get("exp")
        # bool is an int subclass; a literal true is not an expiry. Floats
        # (1.5, NaN, Infinity, 1e400) are rejected rather than truncated
        if isinstance(exp, bool) or not isinstance(exp, int):
            raise SessionDecodeError(reason="missing or non-integer exp")

        return Session(user_id=user_id, exp=exp)


class SessionGuard:
    """
    Validates the session cookie of a request.

    authenticate() never raises: every failure becomes a SessionCheck with a
    non-authenticated outcome.
    """

    def __init__(self, codec: Optional[SessionCodec] = None):
        self.codec = codec or SessionCodec()

    def authenticate(self, cookie_value: Optional[str], now: Optional[int] = None) -> SessionCheck:
        if not cookie_value:
            return SessionCheck(SessionOutcome.MISSING)

        try:
            session = self.codec.decode(cookie_value)
        except SessionDecodeError as e:
            logger.warning("Rejected session cookie: %s", e.reason)
            return SessionCheck(SessionOutcome.MALFORMED)

        current = _now() if now is None else now
        if session.exp < current:
            logger.info("Rejected expired session (expired %ds ago)", current - session.exp)
            return SessionCheck(SessionOutcome.EXPIRED)

        return SessionCheck(SessionOutcome.AUTHENTICATED, user_id=session.user_id)


session_codec = SessionCodec()
session_guard = SessionGuard(session_codec)
