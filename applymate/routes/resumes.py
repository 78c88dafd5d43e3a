"""
Resume Routes Blueprint - upload, list, view, delete and ATS analysis
"""

import logging
import os

from flask import Blueprint, g, jsonify, request

from applymate import documents, storage
from applymate.ai import analyze_resume_ats
from applymate.auth import login_required
from applymate.database import dump_list, get_db, new_id, utc_now
from applymate.serializers import serialize_resume

logger = logging.getLogger(__name__)

resumes_bp = Blueprint("resumes", __name__, url_prefix="/api/resume")


def _get_owned_resume(conn, resume_id: str, user_id: str):
    return conn.execute(
        "SELECT * FROM resumes WHERE id = ? AND user_id = ?", (resume_id, user_id)
    ).fetchone()


@resumes_bp.route("", methods=["GET"])
@login_required
def list_resumes():
    """
    List the caller's resumes, newest first.

    Route: GET /api/resume
    """
    try:
        conn = get_db()
        try:
            rows = conn.execute(
                "SELECT * FROM resumes WHERE user_id = ? ORDER BY created_at DESC",
                (g.user.id,),
            ).fetchall()
        finally:
            conn.close()
        return jsonify({"resumes": [serialize_resume(r) for r in rows]}), 200
    except Exception as e:
        logger.error(f"Error in GET /api/resume: {e}")
        return jsonify({"error": "Failed to fetch resumes"}), 500


@resumes_bp.route("/upload", methods=["POST"])
@login_required
def upload_resume():
    """
    Upload a PDF resume.

    Route: POST /api/resume/upload
    Form: file (PDF), name (optional display name)

    The text is extracted before the file is stored, so unreadable PDFs
    never reach S3.
    """
    upload = request.files.get("file")
    if upload is None or not upload.filename:
        return jsonify({"error": "No file uploaded"}), 400

    if not documents.is_pdf_upload(upload.filename, upload.mimetype):
        return jsonify({"error": "Only PDF files are allowed"}), 400

    data = upload.read()
    if not data:
        return jsonify({"error": "Uploaded file is empty"}), 400

    try:
        parsed_text = documents.extract_pdf_text(data)
    except documents.DocumentError:
        return jsonify({"error": "Could not read PDF file"}), 400

    name = (request.form.get("name") or "").strip() or os.path.splitext(upload.filename)[0]

    try:
        key = storage.upload_file(
            storage.resume_key(g.user.id, upload.filename), data, "application/pdf"
        )

        resume_id = new_id()
        conn = get_db()
        try:
            conn.execute(
                """
                INSERT INTO resumes (id, user_id, name, file_url, parsed_text, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (resume_id, g.user.id, name, key, parsed_text, utc_now()),
            )
            conn.commit()
            row = conn.execute("SELECT * FROM resumes WHERE id = ?", (resume_id,)).fetchone()
        finally:
            conn.close()

        logger.info(f"Resume uploaded: {name} ({len(parsed_text)} chars extracted)")
        return jsonify({"resume": serialize_resume(row)}), 201
    except Exception as e:
        logger.error(f"Error in POST /api/resume/upload: {e}")
        return jsonify({"error": "Resume upload failed"}), 500


@resumes_bp.route("/<resume_id>", methods=["GET"])
@login_required
def get_resume(resume_id):
    """Resume with fileUrl replaced by a presigned download URL."""
    try:
        conn = get_db()
        try:
            row = _get_owned_resume(conn, resume_id, g.user.id)
        finally:
            conn.close()

        if not row:
            return jsonify({"error": "Resume not found"}), 404

        url = storage.get_presigned_url(row["file_url"])
        return jsonify({"resume": serialize_resume(row, file_url=url)}), 200
    except Exception as e:
        logger.error(f"Error in GET /api/resume/{resume_id}: {e}")
        return jsonify({"error": "Failed to fetch resume"}), 500


@resumes_bp.route("/<resume_id>", methods=["DELETE"])
@login_required
def delete_resume(resume_id):
    """
    Delete a resume.

    The S3 object is removed best-effort; jobs that used the resume keep
    existing but lose the link.
    """
    try:
        conn = get_db()
        try:
            row = _get_owned_resume(conn, resume_id, g.user.id)
            if not row:
                return jsonify({"error": "Resume not found"}), 404

            # Continue with database deletion even if S3 deletion fails
            storage.delete_file(row["file_url"])

            conn.execute("DELETE FROM job_resumes_used WHERE resume_id = ?", (resume_id,))
            conn.execute("DELETE FROM resumes WHERE id = ?", (resume_id,))
            conn.commit()
        finally:
            conn.close()

        return jsonify({"message": "Resume deleted successfully"}), 200
    except Exception as e:
        logger.error(f"Error in DELETE /api/resume/{resume_id}: {e}")
        return jsonify({"error": "Failed to delete resume"}), 500


@resumes_bp.route("/<resume_id>/analyze", methods=["POST"])
@login_required
def analyze_resume(resume_id):
    """
    Run ATS analysis and store the result on the resume.

    Route: POST /api/resume/<id>/analyze
    """
    try:
        conn = get_db()
        try:
            row = _get_owned_resume(conn, resume_id, g.user.id)
        finally:
            conn.close()

        if not row:
            return jsonify({"error": "Resume not found"}), 404

        if not row["parsed_text"]:
            return jsonify({"error": "Resume text not available for analysis"}), 400

        analysis = analyze_resume_ats(row["parsed_text"])

        conn = get_db()
        try:
            conn.execute(
                """
                UPDATE resumes SET ats_score = ?, ats_grade = ?, improvement_actions = ?
                WHERE id = ?
                """,
                (
                    analysis["atsScore"],
                    analysis["grade"],
                    dump_list(analysis["improvementActions"]),
                    resume_id,
                ),
            )
            conn.commit()
            row = conn.execute("SELECT * FROM resumes WHERE id = ?", (resume_id,)).fetchone()
        finally:
            conn.close()

        return jsonify({"resume": serialize_resume(row)}), 200
    except Exception as e:
        logger.error(f"Error in POST /api/resume/{resume_id}/analyze: {e}")
        return jsonify({"error": "Failed to analyze resume"}), 500
