#!/usr/bin/env python3
"""
ApplyMate - Main Entry Point

Uses the application factory pattern via applymate.create_app().

Usage:
    python run.py

Environment Variables:
    FLASK_ENV: development (default), production, testing
    LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (optional)
    PORT: Port to listen on (default 5000)
    HOST: Interface to bind (default 127.0.0.1, 0.0.0.0 in production)
"""

import os
import sys
from pathlib import Path

APP_DIR = Path(__file__).parent

# Load environment variables from .env file
from dotenv import load_dotenv

load_dotenv(APP_DIR / ".env")

# Initialize logging first
from applymate.logging_config import setup_logging, get_logger

flask_env = os.environ.get("FLASK_ENV", "development")
log_level = os.environ.get("LOG_LEVEL")
json_logs = flask_env == "production"

setup_logging(level=log_level, json_logs=json_logs)
logger = get_logger(__name__)


def main():
    """Main entry point for ApplyMate."""

    logger.info("=" * 60)
    logger.info("ApplyMate - Starting Up")
    logger.info("=" * 60)

    from applymate.startup import run_startup_validation

    logger.info("Running startup validation...")
    validation_passed, results = run_startup_validation(
        strict=False, log_results=True  # Allow warnings in development
    )

    if not validation_passed:
        logger.error("Startup validation failed. Please fix the errors above.")
        sys.exit(1)

    from applymate import create_app
    from applymate.config import get_config
    from applymate.database import DB_PATH

    app = create_app()
    config = get_config()
    port = int(os.environ.get("PORT", 5000))

    logger.info("")
    logger.info("=" * 60)
    logger.info("  ApplyMate")
    logger.info("=" * 60)
    logger.info(f"  Environment: {flask_env}")
    logger.info(f"  AI provider: {config.ai_provider}")
    logger.info(f"  Configuration: {config.config_path}")
    logger.info(f"  Database: {DB_PATH}")
    logger.info(f"  S3 bucket: {config.s3_bucket}")
    logger.info("")
    logger.info(f"  Listening on: {config.bind_host}:{port}")
    logger.info(f"  API: http://localhost:{port}/api")
    logger.info(f"  Health Check: http://localhost:{port}/api/health")
    logger.info("=" * 60)
    logger.info("")

    debug_mode = flask_env != "production"
    app.run(debug=debug_mode, host=config.bind_host, port=port)


if __name__ == "__main__":
    main()
