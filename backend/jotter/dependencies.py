"""
Jotter Backend — Request Dependencies
=======================================

What:  FastAPI dependencies shared by the route modules.
How:   Shared objects live on app.state (built once by create_app()); these
       functions hand them to handlers through Depends().

require_user is the only gate in front of the notes handlers. It runs before
the body is validated and before a database session is used, so a request
without a valid session never issues a query.
"""

import logging
from typing import Annotated, Optional

from fastapi import Depends, Request

from jotter.exceptions import AuthenticationError
from jotter.services.identity_service import IdentityVerifier
from jotter.services.session_service import SessionGuard, session_guard

logger = logging.getLogger(__name__)


def get_identity_verifier(request: Request) -> IdentityVerifier:
    return request.app.state.identity_verifier


def get_session_guard() -> SessionGuard:
    return session_guard


async def require_user(
    request: Request,
    guard: Annotated[SessionGuard, Depends(get_session_guard)],
) -> str:
    """Return the authenticated user id or raise AuthenticationError (401)."""
    cookie_name = request.app.state.settings.session_cookie_name
    cookie_value: Optional[str] = request.cookies.get(cookie_name)

    check = guard.authenticate(cookie_value)
    if not check.is_authenticated:
        raise AuthenticationError(reason=check.outcome.value)
    return check.user_id


CurrentUser = Annotated[str, Depends(require_user)]
IdentityVerifierDep = Annotated[IdentityVerifier, Depends(get_identity_verifier)]
