"""
Auth Routes Blueprint - sign-up, verification, login and password reset

All identity operations go to Cognito; tokens come back to the browser
as HttpOnly cookies.
"""

import logging

from botocore.exceptions import ClientError
from flask import Blueprint, jsonify, request

from applymate.auth import cognito, tokens
from applymate.auth.cognito import AuthError, error_code, error_message
from applymate.auth.middleware import (
    ACCESS_TOKEN_COOKIE,
    ID_TOKEN_COOKIE,
    AuthenticatedUser,
    clear_auth_cookies,
    set_auth_cookies,
)
from applymate.auth.users import sync_user
from applymate.validation import (
    validate_email_only,
    validate_login,
    validate_password_reset,
    validate_signup,
    validate_verification,
    validation_error,
)

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _body() -> dict:
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def _failure(message: str, status: int, **extra):
    payload = {"success": False, "error": message}
    payload.update(extra)
    return jsonify(payload), status


@auth_bp.route("/signup", methods=["POST"])
def signup():
    """
    Create a Cognito account. Cognito emails a 6-digit verification code.

    Route: POST /api/auth/signup
    Body: {name, email, password, confirmPassword}
    """
    data, errors = validate_signup(_body())
    if errors:
        return validation_error(errors)

    try:
        result = cognito.sign_up(data["email"], data["password"], data["name"])
    except ClientError as e:
        code = error_code(e)
        logger.warning(f"Signup failed for {data['email']}: {code}")
        if code == "UsernameExistsException":
            return _failure("An account with this email already exists", 400)
        if code == "InvalidPasswordException":
            return _failure("Password does not meet requirements", 400)
        if code == "InvalidParameterException":
            return _failure(error_message(e) or "Invalid input provided", 400)
        logger.error(f"Unhandled Cognito error during signup: {code}")
        return _failure("Failed to create account. Please try again.", 500)
    except Exception as e:
        logger.error(f"Signup error: {e}")
        return _failure("Failed to create account. Please try again.", 500)

    return jsonify({
        "success": True,
        "message": (
            "Account created successfully"
            if result["user_confirmed"]
            else "Account created. Please check your email for verification code."
        ),
        "userConfirmed": result["user_confirmed"],
        "email": data["email"],
    }), 200


@auth_bp.route("/verify", methods=["POST"])
def verify_email():
    """Confirm sign-up with the emailed code."""
    data, errors = validate_verification(_body())
    if errors:
        return validation_error(errors)

    try:
        cognito.confirm_sign_up(data["email"], data["code"])
    except ClientError as e:
        code = error_code(e)
        if code == "CodeMismatchException":
            return _failure("Invalid verification code", 400)
        if code == "ExpiredCodeException":
            return _failure("Verification code has expired. Please request a new one.", 400)
        if code == "NotAuthorizedException":
            return _failure("This account is already verified", 400)
        if code == "UserNotFoundException":
            return _failure("No account found with this email", 404)
        logger.error(f"Unhandled Cognito error during verification: {code}")
        return _failure("Verification failed. Please try again.", 500)
    except Exception as e:
        logger.error(f"Verification error: {e}")
        return _failure("Verification failed. Please try again.", 500)

    return jsonify({
        "success": True,
        "message": "Email verified successfully. You can now sign in.",
    }), 200


@auth_bp.route("/verify", methods=["PUT"])
def resend_code():
    """Send a fresh verification code."""
    data, errors = validate_email_only(_body())
    if errors:
        return _failure("Please provide a valid email address", 400)

    try:
        cognito.resend_confirmation_code(data["email"])
    except ClientError as e:
        code = error_code(e)
        if code == "UserNotFoundException":
            # Don't reveal whether the account exists
            return jsonify({
                "success": True,
                "message": "If an account exists, a verification code has been sent.",
            }), 200
        if code == "LimitExceededException":
            return _failure("Too many attempts. Please try again later.", 429)
        logger.error(f"Unhandled Cognito error during resend: {code}")
        return _failure("Failed to send code. Please try again.", 500)
    except Exception as e:
        logger.error(f"Resend code error: {e}")
        return _failure("Failed to send code. Please try again.", 500)

    return jsonify({
        "success": True,
        "message": "Verification code sent. Please check your email.",
    }), 200


@auth_bp.route("/login", methods=["POST"])
def login():
    """
    Sign in and set the auth cookies.

    Route: POST /api/auth/login
    Body: {email, password}
    """
    data, errors = validate_login(_body())
    if errors:
        return validation_error(errors)

    try:
        auth_tokens = cognito.sign_in(data["email"], data["password"])
    except ClientError as e:
        code = error_code(e)
        if code in ("NotAuthorizedException", "UserNotFoundException"):
            return _failure("Invalid email or password", 401)
        if code == "UserNotConfirmedException":
            return _failure(
                "Please verify your email before logging in", 401, needsVerification=True
            )
        if code == "PasswordResetRequiredException":
            return _failure(
                "You must reset your password before logging in", 401, needsPasswordReset=True
            )
        logger.error(f"Unhandled Cognito error during login: {code}")
        return _failure("Login failed. Please try again.", 500)
    except AuthError as e:
        logger.error(f"Login error: {e}")
        return _failure("Login failed. Please try again.", 500)
    except Exception as e:
        logger.error(f"Error in POST /api/auth/login: {e}")
        return _failure("Login failed. Please try again.", 500)

    try:
        info = tokens.get_user_from_token(auth_tokens.id_token)
        if info:
            sync_user(AuthenticatedUser(
                id=info["sub"],
                email=info["email"],
                name=info.get("name"),
                email_verified=info.get("email_verified", False),
            ))
    except Exception as e:
        logger.error(f"Failed to sync user after login: {e}")
        return _failure("Login failed. Please try again.", 500)

    response = jsonify({"success": True, "message": "Login successful"})
    set_auth_cookies(response, auth_tokens)
    return response, 200


@auth_bp.route("/logout", methods=["POST"])
def logout():
    """Revoke tokens when possible and clear the cookies."""
    access_token = request.cookies.get(ACCESS_TOKEN_COOKIE)
    if access_token:
        try:
            cognito.global_sign_out(access_token)
        except Exception as e:
            # Cookies are cleared regardless
            logger.warning(f"Global sign-out failed: {e}")

    response = jsonify({"success": True, "message": "Logged out successfully"})
    clear_auth_cookies(response)
    return response, 200


@auth_bp.route("/me", methods=["GET"])
def me():
    """Return the signed-in user, read from the auth cookies."""
    access_token = request.cookies.get(ACCESS_TOKEN_COOKIE)
    id_token = request.cookies.get(ID_TOKEN_COOKIE)

    if not access_token or not id_token:
        return _failure("Not authenticated", 401)

    try:
        if not tokens.verify_access_token(access_token):
            return _failure("Invalid or expired session", 401)

        info = tokens.get_user_from_token(id_token)
        if not info:
            return _failure("Failed to get user information", 401)
    except Exception as e:
        logger.error(f"Get current user error: {e}")
        return _failure("Failed to get user information", 500)

    user = AuthenticatedUser(
        id=info["sub"],
        email=info["email"],
        name=info.get("name"),
        email_verified=info.get("email_verified", False),
    )
    return jsonify({"success": True, "user": user.to_dict()}), 200


@auth_bp.route("/forgot-password", methods=["POST"])
def forgot_password():
    """Email a password reset code."""
    data, errors = validate_email_only(_body())
    if errors:
        return validation_error(errors)

    neutral = jsonify({
        "success": True,
        "message": "If an account exists, a password reset code has been sent.",
    })

    try:
        cognito.forgot_password(data["email"])
    except ClientError as e:
        code = error_code(e)
        if code == "UserNotFoundException":
            return neutral, 200
        if code == "LimitExceededException":
            return _failure("Too many attempts. Please try again later.", 429)
        logger.error(f"Unhandled Cognito error during forgot-password: {code}")
        return _failure("Failed to start password reset. Please try again.", 500)
    except Exception as e:
        logger.error(f"Forgot password error: {e}")
        return _failure("Failed to start password reset. Please try again.", 500)

    return neutral, 200


@auth_bp.route("/reset-password", methods=["POST"])
def reset_password():
    """Set a new password using the emailed reset code."""
    data, errors = validate_password_reset(_body())
    if errors:
        return validation_error(errors)

    try:
        cognito.confirm_forgot_password(data["email"], data["code"], data["new_password"])
    except ClientError as e:
        code = error_code(e)
        if code == "CodeMismatchException":
            return _failure("Invalid reset code", 400)
        if code == "ExpiredCodeException":
            return _failure("Reset code has expired. Please request a new one.", 400)
        if code == "InvalidPasswordException":
            return _failure("Password does not meet requirements", 400)
        if code == "UserNotFoundException":
            return _failure("No account found with this email", 404)
        if code == "LimitExceededException":
            return _failure("Too many attempts. Please try again later.", 429)
        logger.error(f"Unhandled Cognito error during password reset: {code}")
        return _failure("Password reset failed. Please try again.", 500)
    except Exception as e:
        logger.error(f"Password reset error: {e}")
        return _failure("Password reset failed. Please try again.", 500)

    return jsonify({
        "success": True,
        "message": "Password reset successfully. You can now sign in.",
    }), 200
