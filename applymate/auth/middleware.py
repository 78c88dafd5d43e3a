"""
Request authentication - cookie handling and route decorators

Protected routes read the access and id tokens from HttpOnly cookies,
verify them, make sure the user has a local row, and expose the user
as flask.g.user.
"""

import functools
import logging
from dataclasses import dataclass, asdict
from typing import Optional

from flask import g, jsonify, request

from applymate.config import get_config
from .tokens import get_user_from_token, verify_access_token
from .users import ensure_user_exists

logger = logging.getLogger(__name__)

ACCESS_TOKEN_COOKIE = "applymate_access_token"
ID_TOKEN_COOKIE = "applymate_id_token"
REFRESH_TOKEN_COOKIE = "applymate_refresh_token"

TOKEN_MAX_AGE = 60 * 60  # 1 hour, matches Cognito token lifetime
REFRESH_TOKEN_MAX_AGE = 30 * 24 * 60 * 60  # 30 days


@dataclass
class AuthenticatedUser:
    id: str
    email: str
    name: Optional[str] = None
    email_verified: bool = False

    def to_dict(self) -> dict:
        data = asdict(self)
        data["emailVerified"] = data.pop("email_verified")
        return data


def _unauthorized(message: str, code: str):
    return jsonify({"error": message, "code": code}), 401


def _resolve_user():
    """
    Authenticate the current request from its cookies.

    Returns:
        (AuthenticatedUser, access_token, None) on success,
        (None, None, (message, code)) on failure
    """
    access_token = request.cookies.get(ACCESS_TOKEN_COOKIE)
    id_token = request.cookies.get(ID_TOKEN_COOKIE)

    if not access_token or not id_token:
        return None, None, ("Authentication required", "UNAUTHENTICATED")

    if not verify_access_token(access_token):
        return None, None, ("Invalid or expired token", "INVALID_TOKEN")

    info = get_user_from_token(id_token)
    if not info:
        return None, None, ("Could not get user information", "USER_INFO_ERROR")

    user = AuthenticatedUser(
        id=info["sub"],
        email=info["email"],
        name=info.get("name"),
        email_verified=info.get("email_verified", False),
    )
    return user, access_token, None


def login_required(f):
    """Reject the request with 401 unless both auth cookies verify."""

    @functools.wraps(f)
    def decorated(*args, **kwargs):
        try:
            user, access_token, failure = _resolve_user()
            if failure:
                return _unauthorized(*failure)
            ensure_user_exists(user)
        except Exception as e:
            logger.error(f"Authentication error on {request.path}: {e}")
            return _unauthorized("Authentication failed", "AUTH_ERROR")

        g.user = user
        g.access_token = access_token
        return f(*args, **kwargs)

    return decorated


def _cookie_options() -> dict:
    return {
        "httponly": True,
        "secure": get_config().is_production,
        "samesite": "Lax",
        "path": "/",
    }


def set_auth_cookies(response, tokens):
    """Attach the three token cookies to a response."""
    options = _cookie_options()
    response.set_cookie(ACCESS_TOKEN_COOKIE, tokens.access_token, max_age=TOKEN_MAX_AGE, **options)
    response.set_cookie(ID_TOKEN_COOKIE, tokens.id_token, max_age=TOKEN_MAX_AGE, **options)
    if tokens.refresh_token:
        response.set_cookie(
            REFRESH_TOKEN_COOKIE, tokens.refresh_token, max_age=REFRESH_TOKEN_MAX_AGE, **options
        )
    return response


def clear_auth_cookies(response):
    """Expire all auth cookies."""
    options = _cookie_options()
    for name in (ACCESS_TOKEN_COOKIE, ID_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE):
        response.set_cookie(name, "", max_age=0, expires=0, **options)
    return response
