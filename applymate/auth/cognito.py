"""
Cognito client - thin wrapper over the cognito-idp API

Every call that names a user includes a SecretHash when the app client
was created with a secret. Provider failures surface as
botocore.exceptions.ClientError so callers can map error codes.
"""

import base64
import hashlib
import hmac
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import ClientError

from applymate.config import get_config

logger = logging.getLogger(__name__)

# Initialize client (lazy loaded)
_cognito = None


class AuthError(Exception):
    """Authentication flow failed in a way the provider did not report as an error code."""


@dataclass
class AuthTokens:
    access_token: str
    id_token: str
    refresh_token: Optional[str] = None


def error_code(error: ClientError) -> str:
    """Provider error code, e.g. 'UsernameExistsException'."""
    return error.response.get("Error", {}).get("Code", "")


def error_message(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Message", "") or str(error)


def get_cognito():
    global _cognito
    if _cognito is None:
        _cognito = boto3.client('cognito-idp', region_name=get_config().cognito_region)
    return _cognito


def compute_secret_hash(username: str) -> Optional[str]:
    """
    Base64(HMAC_SHA256(client_secret, username + client_id)).

    Returns None when the app client has no secret.
    """
    config = get_config()
    secret = config.cognito_client_secret
    if not secret:
        return None
    message = (username + config.cognito_client_id).encode("utf-8")
    digest = hmac.new(secret.encode("utf-8"), message, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("utf-8")


def _with_secret_hash(params: Dict[str, Any], username: str) -> Dict[str, Any]:
    secret_hash = compute_secret_hash(username)
    if secret_hash:
        params["SecretHash"] = secret_hash
    return params


def sign_up(email: str, password: str, name: str) -> Dict[str, Any]:
    """
    Register a new user. Cognito emails a verification code.

    Returns:
        {"user_confirmed": bool, "user_sub": str}
    """
    params = _with_secret_hash(
        {
            "ClientId": get_config().cognito_client_id,
            "Username": email,
            "Password": password,
            "UserAttributes": [
                {"Name": "email", "Value": email},
                {"Name": "name", "Value": name},
            ],
        },
        email,
    )
    response = get_cognito().sign_up(**params)
    logger.info(f"Signed up {email} (confirmed={response.get('UserConfirmed', False)})")
    return {
        "user_confirmed": bool(response.get("UserConfirmed", False)),
        "user_sub": response.get("UserSub"),
    }


def confirm_sign_up(email: str, code: str) -> None:
    params = _with_secret_hash(
        {"ClientId": get_config().cognito_client_id, "Username": email, "ConfirmationCode": code},
        email,
    )
    get_cognito().confirm_sign_up(**params)
    logger.info(f"Confirmed sign-up for {email}")


def resend_confirmation_code(email: str) -> None:
    params = _with_secret_hash(
        {"ClientId": get_config().cognito_client_id, "Username": email}, email
    )
    get_cognito().resend_confirmation_code(**params)


def sign_in(email: str, password: str) -> AuthTokens:
    """
    Authenticate with USER_PASSWORD_AUTH.

    Raises:
        AuthError: If the flow is disabled on the app client or no tokens come back
        ClientError: For provider errors (bad password, unconfirmed user, ...)
    """
    auth_parameters = {"USERNAME": email, "PASSWORD": password}
    secret_hash = compute_secret_hash(email)
    if secret_hash:
        auth_parameters["SECRET_HASH"] = secret_hash

    try:
        response = get_cognito().initiate_auth(
            ClientId=get_config().cognito_client_id,
            AuthFlow="USER_PASSWORD_AUTH",
            AuthParameters=auth_parameters,
        )
    except ClientError as e:
        if error_code(e) == "InvalidParameterException" and "USER_PASSWORD_AUTH" in str(e):
            raise AuthError(
                "USER_PASSWORD_AUTH flow is not enabled for this app client. "
                "Enable ALLOW_USER_PASSWORD_AUTH in the Cognito console."
            ) from e
        raise

    result = response.get("AuthenticationResult") or {}
    if not result.get("AccessToken") or not result.get("IdToken"):
        challenge = response.get("ChallengeName")
        raise AuthError(
            f"Authentication requires an additional challenge: {challenge}"
            if challenge
            else "Authentication failed - no tokens received"
        )

    return AuthTokens(
        access_token=result["AccessToken"],
        id_token=result["IdToken"],
        refresh_token=result.get("RefreshToken"),
    )


def global_sign_out(access_token: str) -> None:
    """Invalidate every token issued to the user."""
    get_cognito().global_sign_out(AccessToken=access_token)


def forgot_password(email: str) -> None:
    params = _with_secret_hash(
        {"ClientId": get_config().cognito_client_id, "Username": email}, email
    )
    get_cognito().forgot_password(**params)


def confirm_forgot_password(email: str, code: str, new_password: str) -> None:
    params = _with_secret_hash(
        {
            "ClientId": get_config().cognito_client_id,
            "Username": email,
            "ConfirmationCode": code,
            "Password": new_password,
        },
        email,
    )
    get_cognito().confirm_forgot_password(**params)
