"""
ApplyMate - Application Factory

Job application tracker with resume scoring, AI coaching and a
networking CRM, backed by Cognito auth and S3 file storage.
"""

import logging
from flask import Flask
from flask_cors import CORS

from applymate.config import get_config
from applymate.database import init_db

logger = logging.getLogger(__name__)


def create_app(config_path=None, testing=False):
    """
    Application factory for creating Flask app instances.

    Args:
        config_path: Optional path to config.yaml file
        testing: Enable Flask testing mode

    Returns:
        Configured Flask application instance
    """
    # Load environment variables
    from dotenv import load_dotenv

    load_dotenv()

    # Load configuration
    try:
        config = get_config(config_path)
    except (OSError, ValueError) as e:
        logger.error(f"Configuration Error: {e}")
        raise

    app = Flask(__name__)
    app.config["TESTING"] = testing
    app.config["MAX_CONTENT_LENGTH"] = config.max_upload_bytes
    app.config["APPLYMATE_CONFIG"] = config

    # Cookies carry the session, so the browser must send credentials
    CORS(app, supports_credentials=True)

    init_db()

    register_blueprints(app)

    return app


def register_blueprints(app):
    """Register all Flask blueprints."""
    from applymate.routes import register_all_blueprints

    register_all_blueprints(app)
