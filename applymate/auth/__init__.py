"""
Auth Module - Cognito sign-in, token verification and request protection

Usage:
    from applymate.auth import login_required

    @bp.route('/api/jobs')
    @login_required
    def list_jobs():
        user_id = g.user.id
"""

from .cognito import AuthError, AuthTokens
from .middleware import (
    AuthenticatedUser,
    login_required,
    set_auth_cookies,
    clear_auth_cookies,
    ACCESS_TOKEN_COOKIE,
    ID_TOKEN_COOKIE,
    REFRESH_TOKEN_COOKIE,
)
from .users import sync_user, ensure_user_exists, get_db_user

__all__ = [
    "AuthError",
    "AuthTokens",
    "AuthenticatedUser",
    "login_required",
    "set_auth_cookies",
    "clear_auth_cookies",
    "ACCESS_TOKEN_COOKIE",
    "ID_TOKEN_COOKIE",
    "REFRESH_TOKEN_COOKIE",
    "sync_user",
    "ensure_user_exists",
    "get_db_user",
]
