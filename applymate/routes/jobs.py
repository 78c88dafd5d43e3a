"""
Job Routes Blueprint - job applications, AI match scoring, coach chat and files

Every query is scoped to the signed-in user; a job owned by someone else
answers 404 exactly like a missing one.
"""

import logging

from flask import Blueprint, g, jsonify, redirect, request

from applymate import documents, storage
from applymate.ai import (
    AIResponseError,
    analyze_resume_against_job,
    job_coach_reply,
    parse_job_from_html,
)
from applymate.auth import login_required
from applymate.database import dump_list, get_db, like_pattern, new_id, utc_now
from applymate.serializers import (
    serialize_chat_message,
    serialize_job,
    serialize_resume,
    serialize_suggestion,
)
from applymate.validation import (
    is_valid_url,
    validate_chat_message,
    validate_job_create,
    validate_job_update,
    validation_error,
)

logger = logging.getLogger(__name__)

jobs_bp = Blueprint("jobs", __name__, url_prefix="/api/jobs")

# Upload type -> job column holding the object key
FILE_COLUMNS = {
    "resume": "uploaded_resume_key",
    "coverLetter": "uploaded_cover_letter_key",
}


def _body() -> dict:
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def _get_owned_job(conn, job_id: str, user_id: str):
    return conn.execute(
        "SELECT * FROM job_applications WHERE id = ? AND user_id = ?", (job_id, user_id)
    ).fetchone()


def _get_owned_resume(conn, resume_id: str, user_id: str):
    return conn.execute(
        "SELECT * FROM resumes WHERE id = ? AND user_id = ?", (resume_id, user_id)
    ).fetchone()


def _linked_resume(conn, job_id: str):
    """The resume used for a job (first link), or None."""
    return conn.execute(
        """
        SELECT r.* FROM job_resumes_used u
        JOIN resumes r ON r.id = u.resume_id
        WHERE u.job_id = ?
        ORDER BY u.created_at ASC
        LIMIT 1
        """,
        (job_id,),
    ).fetchone()


def _job_detail(conn, job_row) -> dict:
    job = serialize_job(job_row)
    resume = _linked_resume(conn, job_row["id"])
    suggestion = conn.execute(
        "SELECT * FROM resume_suggestions WHERE job_id = ?", (job_row["id"],)
    ).fetchone()
    chats = conn.execute(
        "SELECT * FROM chat_messages WHERE job_id = ? ORDER BY created_at ASC, rowid ASC",
        (job_row["id"],),
    ).fetchall()

    job["resume"] = serialize_resume(resume) if resume else None
    job["aiResult"] = serialize_suggestion(suggestion)
    job["chats"] = [serialize_chat_message(c) for c in chats]
    return job


@jobs_bp.route("", methods=["GET"])
@login_required
def list_jobs():
    """
    List the caller's jobs.

    Route: GET /api/jobs

    Query Parameters:
        status (str, optional): Filter by status ('all' means no filter)
        search (str, optional): Case-insensitive match on company or role
        sort (str, optional): 'newest' (default) or 'oldest'

    Examples:
        GET /api/jobs?status=applied&search=acme
    """
    try:
        status = request.args.get("status", "")
        search = request.args.get("search", "").strip()
        sort = request.args.get("sort", "newest")

        query = """
            SELECT j.*,
                (SELECT r.name FROM job_resumes_used u JOIN resumes r ON r.id = u.resume_id
                 WHERE u.job_id = j.id ORDER BY u.created_at ASC LIMIT 1) AS resume_name,
                (SELECT u.resume_id FROM job_resumes_used u
                 WHERE u.job_id = j.id ORDER BY u.created_at ASC LIMIT 1) AS linked_resume_id,
                (SELECT s.match_score FROM resume_suggestions s WHERE s.job_id = j.id) AS match_score
            FROM job_applications j
            WHERE j.user_id = ?
        """
        params = [g.user.id]

        if status and status != "all":
            query += " AND j.status = ?"
            params.append(status)

        if search:
            pattern = like_pattern(search)
            query += " AND (CASEFOLD(j.company) LIKE ? ESCAPE '\\' OR CASEFOLD(j.role) LIKE ? ESCAPE '\\')"
            params.extend([pattern, pattern])

        direction = "ASC" if sort == "oldest" else "DESC"
        query += f" ORDER BY j.created_at {direction}, j.rowid {direction}"

        conn = get_db()
        try:
            rows = conn.execute(query, params).fetchall()
        finally:
            conn.close()

        jobs = []
        for row in rows:
            job = serialize_job(row)
            job["resumeUsed"] = row["resume_name"]
            job["resumeId"] = row["linked_resume_id"]
            job["matchScore"] = row["match_score"] or None
            jobs.append(job)

        return jsonify({"jobs": jobs}), 200
    except Exception as e:
        logger.error(f"Error in GET /api/jobs: {e}")
        return jsonify({"error": "Failed to fetch jobs"}), 500


@jobs_bp.route("", methods=["POST"])
@jobs_bp.route("/add", methods=["POST"])
@login_required
def create_job():
    """
    Create a job application linked to one of the caller's resumes.

    Also creates the job-resume link and an empty suggestion row that
    match scoring fills in later.
    """
    data, errors = validate_job_create(_body())
    if errors:
        return validation_error(errors)

    try:
        conn = get_db()
        try:
            if not _get_owned_resume(conn, data["resume_id"], g.user.id):
                return jsonify({"error": "Resume not found"}), 404

            job_id = new_id()
            now = utc_now()
            conn.execute(
                """
                INSERT INTO job_applications
                    (id, user_id, company, role, location, job_url, job_description,
                     notes, status, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    job_id, g.user.id, data["company"], data["role"], data["location"],
                    data["job_url"], data["job_description"], data["notes"], data["status"],
                    now, now,
                ),
            )
            conn.execute(
                "INSERT INTO job_resumes_used (id, job_id, resume_id, created_at) VALUES (?, ?, ?, ?)",
                (new_id(), job_id, data["resume_id"], now),
            )
            conn.execute(
                """
                INSERT INTO resume_suggestions
                    (id, job_id, match_score, missing_skills, suggested_bullets,
                     improved_summary, ats_keywords, relevant_experience, improvements,
                     created_at, updated_at)
                VALUES (?, ?, 0, '[]', '[]', '', '[]', '[]', '[]', ?, ?)
                """,
                (new_id(), job_id, now, now),
            )
            conn.commit()

            job = _get_owned_job(conn, job_id, g.user.id)
            suggestion = conn.execute(
                "SELECT * FROM resume_suggestions WHERE job_id = ?", (job_id,)
            ).fetchone()
        finally:
            conn.close()

        logger.info(f"Job added: {data['role']} at {data['company']}")
        return jsonify({
            "message": "Job added successfully",
            "job": serialize_job(job),
            "suggestion": serialize_suggestion(suggestion),
        }), 201
    except Exception as e:
        logger.error(f"Error in POST /api/jobs: {e}")
        return jsonify({"error": "Failed to create job"}), 500


@jobs_bp.route("/parse-url", methods=["POST"])
@login_required
def parse_job_url():
    """
    Fetch a job posting and let the LLM fill in the add-job form.

    Route: POST /api/jobs/parse-url
    Body: {url}
    """
    url = _body().get("url")
    if not isinstance(url, str) or not is_valid_url(url.strip()):
        return jsonify({"error": "Invalid URL"}), 400
    url = url.strip()

    try:
        html = documents.fetch_page(url)
    except documents.DocumentError as e:
        logger.warning(f"parse-url fetch failed: {e}")
        return jsonify({
            "error": "Failed to fetch job posting. Please check the URL and try again."
        }), 400

    try:
        parsed = parse_job_from_html(html, url)
    except AIResponseError as e:
        logger.error(f"Failed to parse job from {url}: {e}")
        return jsonify({
            "error": "Failed to parse job information. Please try adding the job manually."
        }), 500
    except Exception as e:
        logger.error(f"Error in POST /api/jobs/parse-url: {e}")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"success": True, "job": parsed}), 200


@jobs_bp.route("/<job_id>", methods=["GET"])
@login_required
def get_job(job_id):
    """Job with its resume, AI result and chat history."""
    try:
        conn = get_db()
        try:
            row = _get_owned_job(conn, job_id, g.user.id)
            if not row:
                return jsonify({"error": "Job not found"}), 404
            job = _job_detail(conn, row)
        finally:
            conn.close()
        return jsonify({"job": job}), 200
    except Exception as e:
        logger.error(f"Error in GET /api/jobs/{job_id}: {e}")
        return jsonify({"error": "Failed to fetch job"}), 500


@jobs_bp.route("/<job_id>", methods=["PATCH"])
@login_required
def update_job(job_id):
    """
    Update job fields.

    Route: PATCH /api/jobs/<job_id>
    Body: any of company, role, location, jobUrl, jobDescription, notes, status, resumeId
    """
    data, errors = validate_job_update(_body())
    if errors:
        return validation_error(errors)

    try:
        conn = get_db()
        try:
            if not _get_owned_job(conn, job_id, g.user.id):
                return jsonify({"error": "Job not found"}), 404

            resume_id = data.pop("resume_id", None)
            if resume_id and not _get_owned_resume(conn, resume_id, g.user.id):
                return jsonify({"error": "Resume not found"}), 404

            now = utc_now()
            if data:
                assignments = ", ".join(f"{column} = ?" for column in data)
                conn.execute(
                    f"UPDATE job_applications SET {assignments}, updated_at = ? WHERE id = ?",
                    [*data.values(), now, job_id],
                )

            if resume_id:
                conn.execute("DELETE FROM job_resumes_used WHERE job_id = ?", (job_id,))
                conn.execute(
                    "INSERT INTO job_resumes_used (id, job_id, resume_id, created_at) VALUES (?, ?, ?, ?)",
                    (new_id(), job_id, resume_id, now),
                )
                if not data:
                    conn.execute(
                        "UPDATE job_applications SET updated_at = ? WHERE id = ?", (now, job_id)
                    )

            conn.commit()
            job = _job_detail(conn, _get_owned_job(conn, job_id, g.user.id))
        finally:
            conn.close()

        return jsonify({"job": job}), 200
    except Exception as e:
        logger.error(f"Error in PATCH /api/jobs/{job_id}: {e}")
        return jsonify({"error": "Failed to update job"}), 500


@jobs_bp.route("/<job_id>", methods=["DELETE"])
@login_required
def delete_job(job_id):
    """Delete a job, its uploaded files (best effort), chat, suggestion and links."""
    try:
        conn = get_db()
        try:
            row = _get_owned_job(conn, job_id, g.user.id)
            if not row:
                return jsonify({"error": "Job not found"}), 404

            for column in FILE_COLUMNS.values():
                if row[column]:
                    storage.delete_file(row[column])

            conn.execute("DELETE FROM chat_messages WHERE job_id = ?", (job_id,))
            conn.execute("DELETE FROM resume_suggestions WHERE job_id = ?", (job_id,))
            conn.execute("DELETE FROM job_resumes_used WHERE job_id = ?", (job_id,))
            conn.execute("DELETE FROM job_applications WHERE id = ?", (job_id,))
            conn.commit()
        finally:
            conn.close()

        return jsonify({"message": "Job deleted successfully"}), 200
    except Exception as e:
        logger.error(f"Error in DELETE /api/jobs/{job_id}: {e}")
        return jsonify({"error": "Failed to delete job"}), 500


@jobs_bp.route("/<job_id>/match-score", methods=["POST"])
@login_required
def match_score(job_id):
    """
    Compare the linked resume with the job description and store the result.

    missingSkills stores the missing items and atsKeywords the matched skills.
    """
    try:
        conn = get_db()
        try:
            job = _get_owned_job(conn, job_id, g.user.id)
            resume = _linked_resume(conn, job_id) if job else None
        finally:
            conn.close()

        if not job:
            return jsonify({"error": "Job not found"}), 404
        if not job["job_description"]:
            return jsonify({"error": "Job description is required to calculate match score"}), 400
        if not resume:
            return jsonify({"error": "No resume attached to this job"}), 400
        if not resume["parsed_text"]:
            return jsonify({"error": "Resume text not available for analysis"}), 400

        analysis = analyze_resume_against_job(resume["parsed_text"], job["job_description"])

        now = utc_now()
        conn = get_db()
        try:
            conn.execute(
                """
                INSERT INTO resume_suggestions
                    (id, job_id, match_score, missing_skills, suggested_bullets,
                     improved_summary, ats_keywords, relevant_experience, improvements,
                     created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(job_id) DO UPDATE SET
                    match_score = excluded.match_score,
                    missing_skills = excluded.missing_skills,
                    suggested_bullets = excluded.suggested_bullets,
                    improved_summary = excluded.improved_summary,
                    ats_keywords = excluded.ats_keywords,
                    relevant_experience = excluded.relevant_experience,
                    improvements = excluded.improvements,
                    updated_at = excluded.updated_at
                """,
                (
                    new_id(), job_id, analysis["matchScore"],
                    dump_list(analysis["missingItems"]),
                    dump_list(analysis["suggestedBullets"]),
                    analysis["improvedSummary"],
                    dump_list(analysis["skillsMatched"]),
                    dump_list(analysis["relevantExperience"]),
                    dump_list(analysis["improvements"]),
                    now, now,
                ),
            )
            conn.commit()
            suggestion = conn.execute(
                "SELECT * FROM resume_suggestions WHERE job_id = ?", (job_id,)
            ).fetchone()
        finally:
            conn.close()

        return jsonify({
            "suggestion": serialize_suggestion(suggestion),
            "analysis": analysis,
        }), 200
    except Exception as e:
        logger.error(f"Error in POST /api/jobs/{job_id}/match-score: {e}")
        return jsonify({"error": "Failed to calculate match score"}), 500


@jobs_bp.route("/<job_id>/chat", methods=["GET"])
@login_required
def get_job_chat(job_id):
    try:
        conn = get_db()
        try:
            if not _get_owned_job(conn, job_id, g.user.id):
                return jsonify({"error": "Job not found"}), 404
            rows = conn.execute(
                "SELECT * FROM chat_messages WHERE job_id = ? ORDER BY created_at ASC, rowid ASC",
                (job_id,),
            ).fetchall()
        finally:
            conn.close()
        return jsonify({"messages": [serialize_chat_message(r) for r in rows]}), 200
    except Exception as e:
        logger.error(f"Error in GET /api/jobs/{job_id}/chat: {e}")
        return jsonify({"error": "Failed to fetch chat messages"}), 500


def _store_chat_message(conn, job_id: str, role: str, message: str):
    message_id = new_id()
    conn.execute(
        "INSERT INTO chat_messages (id, job_id, role, message, created_at) VALUES (?, ?, ?, ?, ?)",
        (message_id, job_id, role, message, utc_now()),
    )
    conn.commit()
    return conn.execute("SELECT * FROM chat_messages WHERE id = ?", (message_id,)).fetchone()


@jobs_bp.route("/<job_id>/chat", methods=["POST"])
@login_required
def post_job_chat(job_id):
    """
    Send a message to the job coach.

    role=user stores the message, asks the coach and stores its answer.
    role=assistant stores the message as an assistant turn without calling the AI.
    """
    data, errors = validate_chat_message(_body())
    if errors:
        return validation_error(errors)

    try:
        conn = get_db()
        try:
            job = _get_owned_job(conn, job_id, g.user.id)
            if not job:
                return jsonify({"error": "Job not found"}), 404

            if data["role"] == "assistant":
                stored = _store_chat_message(conn, job_id, "assistant", data["message"])
                return jsonify({"message": serialize_chat_message(stored)}), 201

            user_message = _store_chat_message(conn, job_id, "user", data["message"])
            history = [
                dict(r) for r in conn.execute(
                    "SELECT role, message FROM chat_messages WHERE job_id = ? "
                    "ORDER BY created_at ASC, rowid ASC",
                    (job_id,),
                ).fetchall()
            ]
            resume = _linked_resume(conn, job_id)
        finally:
            conn.close()

        resume_text = (resume["parsed_text"] if resume else "") or ""
        reply = job_coach_reply(dict(job), resume_text, history, data["message"])

        conn = get_db()
        try:
            assistant_message = _store_chat_message(conn, job_id, "assistant", reply)
        finally:
            conn.close()

        return jsonify({
            "userMessage": serialize_chat_message(user_message),
            "assistantMessage": serialize_chat_message(assistant_message),
        }), 201
    except Exception as e:
        logger.error(f"Error in POST /api/jobs/{job_id}/chat: {e}")
        return jsonify({"error": "Failed to process chat message"}), 500


@jobs_bp.route("/<job_id>/upload", methods=["POST"])
@login_required
def upload_job_file(job_id):
    """
    Attach the tailored resume or cover letter actually sent for this job.

    Route: POST /api/jobs/<job_id>/upload
    Form: file (PDF), type ('resume' | 'coverLetter')
    """
    upload = request.files.get("file")
    file_type = request.form.get("type", "")

    try:
        conn = get_db()
        try:
            job = _get_owned_job(conn, job_id, g.user.id)
        finally:
            conn.close()
        if not job:
            return jsonify({"error": "Job not found"}), 404

        if upload is None or not upload.filename:
            return jsonify({"error": "No file uploaded"}), 400
        if file_type not in FILE_COLUMNS:
            return jsonify({"error": "Invalid file type. Must be 'resume' or 'coverLetter'"}), 400
        if not documents.is_pdf_upload(upload.filename, upload.mimetype):
            return jsonify({"error": "Only PDF files are allowed"}), 400

        data = upload.read()
        if not data:
            return jsonify({"error": "Uploaded file is empty"}), 400

        column = FILE_COLUMNS[file_type]
        if job[column]:
            storage.delete_file(job[column])

        key = storage.upload_file(
            storage.job_file_key(g.user.id, job_id, file_type, upload.filename),
            data,
            "application/pdf",
        )

        conn = get_db()
        try:
            conn.execute(
                f"UPDATE job_applications SET {column} = ?, updated_at = ? WHERE id = ?",
                (key, utc_now(), job_id),
            )
            conn.commit()
            updated = _get_owned_job(conn, job_id, g.user.id)
        finally:
            conn.close()

        label = "Resume" if file_type == "resume" else "Cover letter"
        return jsonify({
            "message": f"{label} uploaded successfully",
            "job": serialize_job(updated),
        }), 200
    except Exception as e:
        logger.error(f"Error in POST /api/jobs/{job_id}/upload: {e}")
        return jsonify({"error": "Failed to upload file"}), 500


@jobs_bp.route("/<job_id>/files", methods=["GET"])
@login_required
def get_job_files(job_id):
    """Presigned URLs for the files uploaded to this job."""
    try:
        conn = get_db()
        try:
            job = _get_owned_job(conn, job_id, g.user.id)
        finally:
            conn.close()
        if not job:
            return jsonify({"error": "Job not found"}), 404

        files = {}
        for file_type, column in FILE_COLUMNS.items():
            if job[column]:
                files[file_type] = {
                    "url": storage.get_presigned_url(job[column]),
                    "key": job[column],
                }
        return jsonify({"files": files}), 200
    except Exception as e:
        logger.error(f"Error in GET /api/jobs/{job_id}/files: {e}")
        return jsonify({"error": "Failed to get file URLs"}), 500


@jobs_bp.route("/<job_id>/files/<file_type>", methods=["GET"])
@login_required
def view_job_file(job_id, file_type):
    """Redirect to an inline presigned URL so the browser shows the PDF."""
    if file_type not in FILE_COLUMNS:
        return jsonify({"error": "Invalid file type. Must be 'resume' or 'coverLetter'"}), 400

    try:
        conn = get_db()
        try:
            job = _get_owned_job(conn, job_id, g.user.id)
        finally:
            conn.close()
        if not job:
            return jsonify({"error": "Job not found"}), 404

        key = job[FILE_COLUMNS[file_type]]
        if not key:
            return jsonify({"error": "File not found"}), 404

        return redirect(storage.get_presigned_url(key, inline=True), code=302)
    except Exception as e:
        logger.error(f"Error in GET /api/jobs/{job_id}/files/{file_type}: {e}")
        return jsonify({"error": "Failed to get file URL"}), 500
