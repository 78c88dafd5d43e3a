"""
Row serializers - sqlite rows to the camelCase JSON the API returns
"""

from typing import Any, Dict, Optional

from applymate.database import load_list


def _row(row) -> Dict[str, Any]:
    return dict(row) if not isinstance(row, dict) else row


def serialize_resume(row, file_url: Optional[str] = None) -> Dict[str, Any]:
    row = _row(row)
    return {
        "id": row["id"],
        "userId": row["user_id"],
        "name": row.get("name"),
        "fileUrl": file_url or row.get("file_url"),
        "parsedText": row.get("parsed_text"),
        "atsScore": row.get("ats_score"),
        "atsGrade": row.get("ats_grade"),
        "improvementActions": load_list(row.get("improvement_actions")),
        "createdAt": row.get("created_at"),
    }


def serialize_job(row) -> Dict[str, Any]:
    row = _row(row)
    return {
        "id": row["id"],
        "userId": row["user_id"],
        "company": row["company"],
        "role": row["role"],
        "location": row.get("location"),
        "jobUrl": row.get("job_url"),
        "jobDescription": row.get("job_description"),
        "notes": row.get("notes"),
        "status": row["status"],
        "uploadedResumeKey": row.get("uploaded_resume_key"),
        "uploadedCoverLetterKey": row.get("uploaded_cover_letter_key"),
        "createdAt": row.get("created_at"),
        "updatedAt": row.get("updated_at"),
    }


def serialize_suggestion(row) -> Optional[Dict[str, Any]]:
    if row is None:
        return None
    row = _row(row)
    return {
        "id": row["id"],
        "jobId": row["job_id"],
        "matchScore": row.get("match_score"),
        "missingSkills": load_list(row.get("missing_skills")),
        "suggestedBullets": load_list(row.get("suggested_bullets")),
        "improvedSummary": row.get("improved_summary"),
        "atsKeywords": load_list(row.get("ats_keywords")),
        "relevantExperience": load_list(row.get("relevant_experience")),
        "improvements": load_list(row.get("improvements")),
        "createdAt": row.get("created_at"),
        "updatedAt": row.get("updated_at"),
    }


def serialize_chat_message(row) -> Dict[str, Any]:
    row = _row(row)
    return {
        "id": row["id"],
        "role": row["role"],
        "message": row["message"],
        "createdAt": row["created_at"],
    }


def serialize_contact(row) -> Dict[str, Any]:
    row = _row(row)
    return {
        "id": row["id"],
        "userId": row["user_id"],
        "name": row["name"],
        "company": row.get("company"),
        "role": row.get("role"),
        "linkedInUrl": row.get("linkedin_url"),
        "email": row.get("email"),
        "notes": row.get("notes"),
        "status": row["status"],
        "lastContactedAt": row.get("last_contacted_at"),
        "createdAt": row.get("created_at"),
        "updatedAt": row.get("updated_at"),
    }


def serialize_interaction(row) -> Dict[str, Any]:
    row = _row(row)
    return {
        "id": row["id"],
        "contactId": row["contact_id"],
        "type": row["type"],
        "notes": row.get("notes"),
        "createdAt": row["created_at"],
    }


def serialize_reminder(row) -> Dict[str, Any]:
    row = _row(row)
    return {
        "id": row["id"],
        "contactId": row["contact_id"],
        "title": row["title"],
        "description": row.get("description"),
        "dueDate": row["due_date"],
        "completed": bool(row["completed"]),
        "createdAt": row.get("created_at"),
        "updatedAt": row.get("updated_at"),
    }
