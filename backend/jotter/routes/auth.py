"""
Jotter Backend — Login Route
==============================

What:  POST /auth exchanges a third-party ID token for a session cookie.
How:   IdentityVerifier.verify() → SessionCodec.encode() → Set-Cookie.
Who:   Called once by the frontend right after the provider's sign-in.

Fail-Closed:
    Every failure, expected or not, ends as 401 with no cookie set. An
    ambiguous answer from the provider is a rejection, never a retry.
"""

import logging

from fastapi import APIRouter, Request, Response
from pydantic import ValidationError

from jotter.dependencies import IdentityVerifierDep
from jotter.exceptions import AuthenticationError, IdentityVerificationError
from jotter.schemas.note import ErrorResponse, LoginRequest, LoginResponse
from jotter.services.session_service import session_codec

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])


@router.post(
    "/auth",
    response_model=LoginResponse,
    responses={
        200: {"description": "Session cookie issued", "model": LoginResponse},
        401: {"description": "Token rejected or body unreadable", "model": ErrorResponse},
    },
    summary="Log in with an identity provider token",
    description=(
        "Verifies the ID token with the identity provider and, on success, sets an "
        "HttpOnly `session` cookie valid for five days."
    ),
    # The body is parsed inside the handler so a bad body is a 401, not a 422
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {
                "application/json": {"schema": LoginRequest.model_json_schema(by_alias=True)}
            },
        }
    },
)
async def login(
    request: Request,
    response: Response,
    verifier: IdentityVerifierDep,
) -> LoginResponse:
    app_settings = request.app.state.settings

    try:
        body = LoginRequest.model_validate(await request.json())
        user_id = await verifier.verify(body.id_token)
        session_value = session_codec.encode(user_id, app_settings.session_ttl_seconds)
    except (ValueError, ValidationError) as e:
        # json.JSONDecodeError is a ValueError
        logger.warning("Login rejected: unreadable body (%s)", type(e).__name__)
        raise AuthenticationError(reason="unreadable body")
    except IdentityVerificationError as e:
        logger.warning("Login rejected: %s", e.reason)
        raise AuthenticationError(reason=e.reason)
    except Exception as e:
        logger.error("Authentication error: %s", str(e), exc_info=True)
        raise AuthenticationError(reason="unexpected error")

    response.set_cookie(
        key=app_settings.session_cookie_name,
        value=session_value,
        max_age=app_settings.session_ttl_seconds,
        path="/",
        httponly=True,
        secure=app_settings.is_production,
        samesite="lax",
    )
    logger.info("Session issued")
    return LoginResponse(status="success")
