"""
Routes Package - Flask Blueprints for ApplyMate

Blueprint structure:
- main_bp: Health check (/api/health)
- auth_bp: Sign-up, login, logout, password reset (/api/auth)
- resumes_bp: Resume upload and ATS analysis (/api/resume)
- jobs_bp: Job CRUD, match scoring, coach chat, files (/api/jobs)
- contacts_bp: Contacts, interactions, reminders, networking coach (/api/contacts)
- dashboard_bp: Aggregate stats (/api/dashboard)
"""

import logging

from .auth import auth_bp
from .contacts import contacts_bp
from .dashboard import dashboard_bp
from .jobs import jobs_bp
from .main import main_bp
from .resumes import resumes_bp

logger = logging.getLogger(__name__)


def register_all_blueprints(app):
    """
    Register all Flask blueprints with the application.

    Args:
        app: Flask application instance
    """
    for blueprint in (main_bp, auth_bp, resumes_bp, jobs_bp, contacts_bp, dashboard_bp):
        app.register_blueprint(blueprint)
        logger.debug(f"Registered {blueprint.name} blueprint")

    logger.info("Registered API routes")


__all__ = [
    "register_all_blueprints",
    "auth_bp",
    "contacts_bp",
    "dashboard_bp",
    "jobs_bp",
    "main_bp",
    "resumes_bp",
]
