"""
Startup validation for ApplyMate.

Validates environment, configuration, and service dependencies
before the application starts.
"""

import os
from typing import List, Optional, Tuple

from applymate.logging_config import get_logger

logger = get_logger(__name__)


class ValidationResult:
    """Result of a validation check."""

    def __init__(
        self,
        name: str,
        passed: bool,
        message: str,
        severity: str = "error",  # error, warning, info
        fix_hint: Optional[str] = None,
    ):
        self.name = name
        self.passed = passed
        self.message = message
        self.severity = severity
        self.fix_hint = fix_hint

    def __str__(self) -> str:
        status = "PASS" if self.passed else self.severity.upper()
        return f"[{status}] {self.name}: {self.message}"


REQUIRED_ENV = [
    ("COGNITO_USER_POOL_ID", "Cognito user pool"),
    ("COGNITO_CLIENT_ID", "Cognito app client"),
    ("AWS_S3_BUCKET", "S3 bucket for uploads"),
]


def validate_environment() -> List[ValidationResult]:
    """
    Validate environment variables and configuration.

    Returns:
        List of validation results
    """
    from applymate.ai.factory import PROVIDER_API_KEYS, has_api_key
    from applymate.config import get_config

    results = []

    for env_var, description in REQUIRED_ENV:
        if os.environ.get(env_var):
            results.append(
                ValidationResult(
                    name=env_var, passed=True, message=f"{description} configured", severity="info"
                )
            )
        else:
            results.append(
                ValidationResult(
                    name=env_var,
                    passed=False,
                    message=f"{description} not configured",
                    severity="error",
                    fix_hint=f"Set {env_var} in your .env file",
                )
            )

    try:
        config = get_config()
    except (OSError, ValueError) as e:
        results.append(
            ValidationResult(
                name="Configuration",
                passed=False,
                message=str(e),
                severity="error",
                fix_hint="Fix config.yaml or remove it to use the defaults",
            )
        )
        return results

    provider = config.ai_provider
    if has_api_key(provider):
        results.append(
            ValidationResult(
                name=f"AI Provider: {provider}",
                passed=True,
                message=f"{provider} API key configured",
                severity="info",
            )
        )
    else:
        results.append(
            ValidationResult(
                name=f"AI Provider: {provider}",
                passed=False,
                message=f"{provider} API key not set, AI features will fail",
                severity="warning",
                fix_hint=f"Set {PROVIDER_API_KEYS[provider]} in your .env file",
            )
        )

    if config.cognito_client_secret:
        results.append(
            ValidationResult(
                name="Cognito Client Secret",
                passed=True,
                message="Requests will carry a SecretHash",
                severity="info",
            )
        )

    results.append(
        ValidationResult(
            name="Flask Environment",
            passed=True,
            message=f"Running in {config.environment} mode",
            severity="info",
        )
    )

    return results


def validate_database() -> List[ValidationResult]:
    """Create or migrate the schema and check the database answers."""
    from applymate.database import DB_PATH, check_db, init_db

    db_dir = DB_PATH.parent
    if db_dir.exists() and not os.access(db_dir, os.W_OK):
        return [
            ValidationResult(
                name="Database Directory",
                passed=False,
                message=f"No write permission for database directory: {db_dir}",
                severity="error",
                fix_hint="Fix directory permissions or set APPLYMATE_DB_PATH",
            )
        ]

    init_db()

    if check_db():
        return [
            ValidationResult(
                name="Database Connection",
                passed=True,
                message=f"Database ready at {DB_PATH}",
                severity="info",
            )
        ]
    return [
        ValidationResult(
            name="Database Connection",
            passed=False,
            message=f"Database at {DB_PATH} did not answer",
            severity="error",
            fix_hint="Check database file permissions and integrity",
        )
    ]


def validate_dependencies() -> List[ValidationResult]:
    """
    Validate Python package dependencies.

    Returns:
        List of validation results
    """
    results = []

    critical_packages = [
        ("flask", "Flask web framework"),
        ("boto3", "AWS SDK (Cognito, S3)"),
        ("jwt", "PyJWT token verification"),
        ("pypdf", "PDF text extraction"),
        ("bs4", "HTML parsing"),
    ]

    optional_packages = [
        ("anthropic", "Claude AI SDK"),
        ("google.genai", "Google Gemini SDK"),
    ]

    for package, description in critical_packages:
        try:
            __import__(package)
            results.append(
                ValidationResult(
                    name=f"Package: {package}",
                    passed=True,
                    message=f"{description} available",
                    severity="info",
                )
            )
        except ImportError:
            results.append(
                ValidationResult(
                    name=f"Package: {package}",
                    passed=False,
                    message=f"{description} not installed",
                    severity="error",
                    fix_hint="Run: pip install -e .",
                )
            )

    for package, description in optional_packages:
        try:
            __import__(package)
            results.append(
                ValidationResult(
                    name=f"Package: {package}",
                    passed=True,
                    message=f"{description} available",
                    severity="info",
                )
            )
        except ImportError:
            results.append(
                ValidationResult(
                    name=f"Package: {package}",
                    passed=False,
                    message=f"{description} not installed (optional)",
                    severity="info",
                )
            )

    return results


def run_startup_validation(
    strict: bool = False, log_results: bool = True
) -> Tuple[bool, List[ValidationResult]]:
    """
    Run all startup validations.

    Args:
        strict: If True, treat warnings as errors
        log_results: If True, log validation results

    Returns:
        Tuple of (all_passed, results)
    """
    all_results = []

    validators = [
        ("Environment", validate_environment),
        ("Database", validate_database),
        ("Dependencies", validate_dependencies),
    ]

    for category, validator in validators:
        try:
            all_results.extend(validator())
        except Exception as e:
            all_results.append(
                ValidationResult(
                    name=f"{category} Validation",
                    passed=False,
                    message=f"Validation failed with error: {e}",
                    severity="error",
                )
            )

    if log_results:
        logger.info("=" * 60)
        logger.info("STARTUP VALIDATION RESULTS")
        logger.info("=" * 60)

        for result in all_results:
            if result.passed:
                logger.info(str(result))
            elif result.severity == "error":
                logger.error(str(result))
                if result.fix_hint:
                    logger.error(f"  Hint: {result.fix_hint}")
            elif result.severity == "warning":
                logger.warning(str(result))
                if result.fix_hint:
                    logger.warning(f"  Hint: {result.fix_hint}")
            else:
                logger.info(str(result))

        logger.info("=" * 60)

    errors = [r for r in all_results if not r.passed and r.severity == "error"]
    warnings = [r for r in all_results if not r.passed and r.severity == "warning"]

    if errors:
        logger.error(f"Startup validation failed with {len(errors)} error(s)")
        return False, all_results

    if strict and warnings:
        logger.error(f"Startup validation failed with {len(warnings)} warning(s) (strict mode)")
        return False, all_results

    logger.info("Startup validation passed")
    return True, all_results
