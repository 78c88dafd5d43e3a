"""
User sync - keep the local users table in step with Cognito
"""

import logging
from typing import Optional

from applymate.database import get_db, utc_now

logger = logging.getLogger(__name__)


def sync_user(user) -> dict:
    """
    Create or update the local row for an authenticated user.

    Args:
        user: AuthenticatedUser

    Returns:
        The stored user row as a dict
    """
    now = utc_now()
    conn = get_db()
    try:
        conn.execute(
            """
            INSERT INTO users (id, email, name, email_verified, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                email = excluded.email,
                name = COALESCE(excluded.name, users.name),
                email_verified = excluded.email_verified,
                updated_at = excluded.updated_at
            """,
            (user.id, user.email, user.name, int(bool(user.email_verified)), now, now),
        )
        conn.commit()
        row = conn.execute("SELECT * FROM users WHERE id = ?", (user.id,)).fetchone()
    finally:
        conn.close()
    return dict(row)


def ensure_user_exists(user) -> dict:
    """Insert the user if missing; existing rows are left untouched."""
    existing = get_db_user(user.id)
    if existing:
        return existing

    now = utc_now()
    conn = get_db()
    try:
        conn.execute(
            """
            INSERT OR IGNORE INTO users (id, email, name, email_verified, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (user.id, user.email, user.name, int(bool(user.email_verified)), now, now),
        )
        conn.commit()
        row = conn.execute("SELECT * FROM users WHERE id = ?", (user.id,)).fetchone()
    finally:
        conn.close()
    logger.info(f"Created local user record for {user.email}")
    return dict(row)


def get_db_user(user_id: str) -> Optional[dict]:
    conn = get_db()
    try:
        row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
    finally:
        conn.close()
    return dict(row) if row else None
