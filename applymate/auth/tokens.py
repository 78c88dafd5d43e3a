"""
Token verification for Cognito-issued JWTs

Signatures are checked against the user pool's published JWKS. The JWKS
client caches keys, so only the first request (or a key rotation) hits
the network.
"""

import logging
import time
from typing import Any, Dict, Optional

import jwt
from jwt import PyJWKClient

from applymate.config import get_config

logger = logging.getLogger(__name__)

# Tokens this close to expiry are treated as expired
EXPIRY_SKEW_SECONDS = 30

_jwks_clients: Dict[str, PyJWKClient] = {}


def issuer_url() -> str:
    config = get_config()
    return f"https://cognito-idp.{config.cognito_region}.amazonaws.com/{config.cognito_user_pool_id}"


def _get_jwks_client() -> PyJWKClient:
    url = f"{issuer_url()}/.well-known/jwks.json"
    client = _jwks_clients.get(url)
    if client is None:
        client = PyJWKClient(url, cache_keys=True)
        _jwks_clients[url] = client
    return client


def _verify(token: str, token_use: str) -> Optional[Dict[str, Any]]:
    if not token:
        return None

    client_id = get_config().cognito_client_id
    try:
        signing_key = _get_jwks_client().get_signing_key_from_jwt(token)
        claims = jwt.decode(
            token,
            signing_key.key,
            algorithms=["RS256"],
            issuer=issuer_url(),
            # Access tokens carry client_id instead of aud
            audience=client_id if token_use == "id" else None,
            options={"verify_aud": token_use == "id", "require": ["exp", "iss", "sub"]},
        )
    except jwt.PyJWTError as e:
        logger.debug(f"{token_use} token rejected: {e}")
        return None

    if claims.get("token_use") != token_use:
        logger.debug(f"Token use mismatch: expected {token_use}, got {claims.get('token_use')}")
        return None

    if token_use == "access" and claims.get("client_id") != client_id:
        logger.debug("Access token issued to a different client")
        return None

    return claims


def verify_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Verify an access token. Returns its claims or None."""
    return _verify(token, "access")


def verify_id_token(token: str) -> Optional[Dict[str, Any]]:
    """Verify an id token. Returns its claims or None."""
    return _verify(token, "id")


def get_user_from_token(id_token: str) -> Optional[Dict[str, Any]]:
    """
    Read the user profile out of a verified id token.

    Returns:
        {"sub", "email", "name", "email_verified"} or None
    """
    claims = verify_id_token(id_token)
    if not claims:
        return None

    email_verified = claims.get("email_verified", False)
    if isinstance(email_verified, str):
        email_verified = email_verified.lower() == "true"

    return {
        "sub": claims["sub"],
        "email": claims.get("email", ""),
        "name": claims.get("name"),
        "email_verified": bool(email_verified),
    }


def decode_token_unsafe(token: str) -> Optional[Dict[str, Any]]:
    """Decode a JWT payload WITHOUT verifying it. Never use for authorization."""
    try:
        return jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError:
        return None


def is_token_expired(token: str) -> bool:
    """True if the token is malformed, has no exp, or expires within the skew window."""
    payload = decode_token_unsafe(token)
    if not payload or "exp" not in payload:
        return True
    try:
        return float(payload["exp"]) <= time.time() + EXPIRY_SKEW_SECONDS
    except (TypeError, ValueError):
        return True
