"""
Jotter Backend — Custom Exception Hierarchy
=============================================

What:  Defines application-specific exceptions for different error scenarios.
Why:   Custom exceptions enable targeted error handling with appropriate HTTP
       status codes and user-friendly messages, without leaking internals.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by services and dependencies; caught by global handlers.

Exception Hierarchy:
    JotterError (base)
    ├── AuthenticationError        → 401 Unauthorized
    ├── NotFoundError              → 404 Not Found (also covers "not yours")
    ├── DatabaseError              → 500 Internal Server Error
    ├── IdentityVerificationError  → converted to 401 by the login route
    └── SessionDecodeError         → swallowed by the session guard

Only the first three ever reach a client. The last two are internal signals:
login and session checks are fail-closed, so both collapse into a plain 401.
"""

from typing import Any, Dict, Optional


class JotterError(Exception):
    """
    Base exception for all Jotter application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class AuthenticationError(JotterError):
    """
    Raised when a request cannot be tied to an authenticated user.

    When:    Missing, malformed or expired session cookie; failed login.
    HTTP:    401 Unauthorized

    The message is deliberately identical for every cause. The reason is kept
    in context for the server log only.
    """

    def __init__(
        self,
        message: str = "Unauthorized",
        reason: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if reason:
            ctx["reason"] = reason
        super().__init__(message=message, context=ctx)
        self.reason = reason


class NotFoundError(JotterError):
    """
    Raised when a requested resource does not exist for the current user.

    When:    PUT/DELETE /notes with an id that matches no row owned by the caller.
    HTTP:    404 Not Found

    A note owned by somebody else produces exactly the same error as a note
    that does not exist, so the response never confirms another user's ids.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource.capitalize()} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class DatabaseError(JotterError):
    """
    Raised when database operations fail unexpectedly.

    When:    Connection lost mid-query, constraint violation, deadlock, etc.
    HTTP:    500 Internal Server Error

    Security Note:
        The message returned to the client is always generic.
        Detailed error info is logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class IdentityVerificationError(JotterError):
    """
    Raised by the identity verifier when a token cannot be exchanged for a user id.

    Causes: empty token, transport failure, non-2xx status, unreadable body,
    or a response without a matched account. There are no retries, so any of
    these is final for the request.
    """

    def __init__(
        self,
        reason: str = "verification failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["reason"] = reason
        super().__init__(message="Identity token could not be verified", context=ctx)
        self.reason = reason


class SessionDecodeError(JotterError):
    """Raised when a session cookie value cannot be decoded into a session."""

    def __init__(self, reason: str = "malformed session"):
        super().__init__(message="Invalid session", context={"reason": reason})
        self.reason = reason
