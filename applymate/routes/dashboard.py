"""
Dashboard Routes Blueprint - aggregate counters for the dashboard home page
"""

import logging
from datetime import datetime, timedelta, timezone

from flask import Blueprint, g, jsonify

from applymate.auth import login_required
from applymate.database import get_db, to_timestamp

logger = logging.getLogger(__name__)

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


def period_starts(now: datetime):
    """
    Start of today and start of the current week, in UTC.

    Weeks start on Sunday.
    """
    start_of_today = now.astimezone(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
    days_since_sunday = (start_of_today.weekday() + 1) % 7
    start_of_week = start_of_today - timedelta(days=days_since_sunday)
    return start_of_today, start_of_week


@dashboard_bp.route("/stats", methods=["GET"])
@login_required
def stats():
    """
    Dashboard statistics.

    Route: GET /api/dashboard/stats

    Returns:
        JSON {"stats": {...}} with job counts by status, jobs created today
        and this week, contact counts and the number of resumes.
    """
    try:
        start_of_today, start_of_week = period_starts(datetime.now(timezone.utc))
        today = to_timestamp(start_of_today)
        week = to_timestamp(start_of_week)

        conn = get_db()
        try:
            jobs = conn.execute(
                "SELECT status, created_at FROM job_applications WHERE user_id = ?",
                (g.user.id,),
            ).fetchall()

            contacts = conn.execute(
                """
                SELECT COUNT(*) AS total,
                       SUM(CASE WHEN created_at >= ? THEN 1 ELSE 0 END) AS today,
                       SUM(CASE WHEN created_at >= ? THEN 1 ELSE 0 END) AS week
                FROM contacts WHERE user_id = ?
                """,
                (today, week, g.user.id),
            ).fetchone()

            total_resumes = conn.execute(
                "SELECT COUNT(*) FROM resumes WHERE user_id = ?", (g.user.id,)
            ).fetchone()[0]
        finally:
            conn.close()

        jobs_by_status = {}
        for job in jobs:
            jobs_by_status[job["status"]] = jobs_by_status.get(job["status"], 0) + 1

        return jsonify({
            "stats": {
                "jobsByStatus": jobs_by_status,
                "totalJobs": len(jobs),
                "totalJobsApplied": sum(1 for job in jobs if job["status"] != "saved"),
                "jobsAppliedToday": sum(1 for job in jobs if job["created_at"] >= today),
                "jobsAppliedThisWeek": sum(1 for job in jobs if job["created_at"] >= week),
                "totalContacts": contacts["total"],
                "contactsAddedToday": contacts["today"] or 0,
                "contactsAddedThisWeek": contacts["week"] or 0,
                "totalResumes": total_resumes,
            }
        }), 200
    except Exception as e:
        logger.error(f"Error in GET /api/dashboard/stats: {e}")
        return jsonify({"error": "Failed to fetch dashboard stats"}), 500
