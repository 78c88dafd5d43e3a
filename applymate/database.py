"""
Database - Database operations for ApplyMate

This module handles database initialization, connection management,
and migrations for the SQLite database.
"""

import json
import os
import sqlite3
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional

logger = logging.getLogger(__name__)

# Database path (relative to app root unless overridden)
DB_PATH = Path(os.environ.get("APPLYMATE_DB_PATH", Path(__file__).parent.parent / "applymate.db"))


def init_db():
    """
    Initialize SQLite database with required tables.

    Creates tables for:
    - users: Local mirror of identity-provider users
    - resumes: Uploaded resume files with extracted text and ATS results
    - job_applications: Tracked job postings
    - job_resumes_used: Which resume was used for which job
    - resume_suggestions: Stored AI match analysis, one per job
    - chat_messages: Job coach conversation
    - contacts: Networking contacts
    - contact_interactions: Logged touchpoints with a contact
    - contact_reminders: Follow-up reminders for a contact
    - contact_chat_messages: Networking coach conversation

    Uses WAL (Write-Ahead Logging) mode for better concurrency.
    """
    DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(DB_PATH, timeout=30.0)

    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")

    conn.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id TEXT PRIMARY KEY,
            email TEXT NOT NULL UNIQUE,
            name TEXT,
            email_verified INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS resumes (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            name TEXT,
            file_url TEXT NOT NULL,
            parsed_text TEXT,
            created_at TEXT NOT NULL,
            FOREIGN KEY (user_id) REFERENCES users(id)
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS job_applications (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            company TEXT NOT NULL,
            role TEXT NOT NULL,
            location TEXT,
            job_url TEXT,
            job_description TEXT,
            notes TEXT,
            status TEXT NOT NULL DEFAULT 'saved',
            uploaded_resume_key TEXT,
            uploaded_cover_letter_key TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            FOREIGN KEY (user_id) REFERENCES users(id)
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS job_resumes_used (
            id TEXT PRIMARY KEY,
            job_id TEXT NOT NULL,
            resume_id TEXT NOT NULL,
            created_at TEXT NOT NULL,
            UNIQUE (job_id, resume_id),
            FOREIGN KEY (job_id) REFERENCES job_applications(id),
            FOREIGN KEY (resume_id) REFERENCES resumes(id)
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS resume_suggestions (
            id TEXT PRIMARY KEY,
            job_id TEXT NOT NULL UNIQUE,
            match_score INTEGER,
            missing_skills TEXT,
            suggested_bullets TEXT,
            improved_summary TEXT,
            ats_keywords TEXT,
            created_at TEXT NOT NULL,
            FOREIGN KEY (job_id) REFERENCES job_applications(id)
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS chat_messages (
            id TEXT PRIMARY KEY,
            job_id TEXT NOT NULL,
            role TEXT NOT NULL,
            message TEXT NOT NULL,
            created_at TEXT NOT NULL,
            FOREIGN KEY (job_id) REFERENCES job_applications(id)
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS contacts (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            name TEXT NOT NULL,
            company TEXT,
            role TEXT,
            linkedin_url TEXT,
            email TEXT,
            notes TEXT,
            status TEXT NOT NULL DEFAULT 'not_contacted',
            last_contacted_at TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            FOREIGN KEY (user_id) REFERENCES users(id)
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS contact_interactions (
            id TEXT PRIMARY KEY,
            contact_id TEXT NOT NULL,
            type TEXT NOT NULL,
            notes TEXT,
            created_at TEXT NOT NULL,
            FOREIGN KEY (contact_id) REFERENCES contacts(id) ON DELETE CASCADE
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS contact_reminders (
            id TEXT PRIMARY KEY,
            contact_id TEXT NOT NULL,
            title TEXT NOT NULL,
            description TEXT,
            due_date TEXT NOT NULL,
            completed INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            FOREIGN KEY (contact_id) REFERENCES contacts(id) ON DELETE CASCADE
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS contact_chat_messages (
            id TEXT PRIMARY KEY,
            contact_id TEXT NOT NULL,
            role TEXT NOT NULL,
            message TEXT NOT NULL,
            created_at TEXT NOT NULL,
            FOREIGN KEY (contact_id) REFERENCES contacts(id) ON DELETE CASCADE
        )
    """)

    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_interactions_contact ON contact_interactions(contact_id)"
    )
    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_reminders_contact ON contact_reminders(contact_id)"
    )
    conn.execute("CREATE INDEX IF NOT EXISTS idx_reminders_due ON contact_reminders(due_date)")
    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_contact_chat_contact ON contact_chat_messages(contact_id)"
    )

    run_migrations(conn)

    conn.commit()
    conn.close()
    logger.debug(f"Database ready at {DB_PATH}")


def _columns(conn, table: str) -> set:
    return {row[1] for row in conn.execute(f"PRAGMA table_info({table})").fetchall()}


def run_migrations(conn):
    """
    Run database migrations to add new columns as needed.

    Uses PRAGMA table_info() to check for missing columns and adds them
    with ALTER TABLE.

    Args:
        conn: SQLite connection
    """
    resume_columns = _columns(conn, "resumes")

    # Migration: ATS analysis results on resumes
    if "ats_score" not in resume_columns:
        logger.info("Migrating database: adding ATS columns to resumes...")
        conn.execute("ALTER TABLE resumes ADD COLUMN ats_score INTEGER")
        conn.execute("ALTER TABLE resumes ADD COLUMN ats_grade TEXT")
        conn.execute("ALTER TABLE resumes ADD COLUMN improvement_actions TEXT")

    # Migration: store full match analysis
    suggestion_columns = _columns(conn, "resume_suggestions")
    if "relevant_experience" not in suggestion_columns:
        logger.info("Migrating database: adding full match analysis to resume_suggestions...")
        conn.execute("ALTER TABLE resume_suggestions ADD COLUMN relevant_experience TEXT DEFAULT '[]'")
        conn.execute("ALTER TABLE resume_suggestions ADD COLUMN improvements TEXT")
        conn.execute("ALTER TABLE resume_suggestions ADD COLUMN updated_at TEXT")


def _casefold(value):
    return value.casefold() if isinstance(value, str) else value


def get_db():
    """
    Create and return a database connection with Row factory.

    Establishes a SQLite connection with a 30-second timeout to handle
    concurrent access. The Row factory allows dict-like access to rows.
    Foreign keys are enforced so contact children cascade on delete.
    CASEFOLD(text) applies Unicode case folding, which SQLite LOWER() and
    LIKE only do for ASCII.

    Returns:
        sqlite3.Connection: Database connection with Row factory enabled

    Examples:
        >>> conn = get_db()
        >>> job = conn.execute("SELECT * FROM job_applications WHERE id = ?", (id,)).fetchone()
        >>> print(job['company'])  # Access by column name
    """
    conn = sqlite3.connect(DB_PATH, timeout=30.0)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys=ON")
    conn.create_function("CASEFOLD", 1, _casefold, deterministic=True)
    return conn


def check_db() -> bool:
    """Return True when the database answers a trivial query."""
    try:
        conn = get_db()
        try:
            conn.execute("SELECT 1").fetchone()
        finally:
            conn.close()
        return True
    except sqlite3.Error as e:
        logger.error(f"Database health check failed: {e}")
        return False


def new_id() -> str:
    """Generate a new row id."""
    return uuid.uuid4().hex


def utc_now() -> str:
    """Current UTC time as a fixed-width ISO-8601 string (sortable as text)."""
    return to_timestamp(datetime.now(timezone.utc))


def to_timestamp(value: datetime) -> str:
    """Normalize a datetime to the stored ISO-8601 UTC format."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds")


def like_pattern(term: str) -> str:
    """Substring LIKE pattern (use with ESCAPE '\\') matched against CASEFOLD(column)."""
    escaped = term.casefold().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def dump_list(values: Optional[List[Any]]) -> str:
    """Serialize a list-valued column."""
    return json.dumps(list(values or []))


def load_list(raw: Optional[str]) -> List[Any]:
    """Deserialize a list-valued column, tolerating NULL and bad data."""
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        logger.warning("Discarding malformed list column value")
        return []
    return value if isinstance(value, list) else []
