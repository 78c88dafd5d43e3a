"""
Request payload validation

Each validate_* function takes a decoded JSON body and returns
(cleaned_data, field_errors). field_errors maps a camelCase field name
to a list of messages and is empty when the payload is valid.
"""

import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse

from flask import jsonify

JOB_STATUSES = ("saved", "applied", "interview", "offer", "rejected")
DEFAULT_JOB_STATUS = "saved"

DEFAULT_CONTACT_STATUS = "not_contacted"

# Interaction types that count as reaching the contact
CONTACTING_INTERACTIONS = ("messaged", "replied", "scheduled_call", "met", "connected")

CHAT_ROLES = ("user", "assistant")

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
CODE_PATTERN = re.compile(r"^\d{6}$")
SPECIAL_CHARACTER_PATTERN = re.compile(r"[^A-Za-z0-9]")

Errors = Dict[str, List[str]]


def validation_error(errors: Errors):
    """Standard 400 response for a failed validation."""
    return jsonify({"error": "Validation failed", "fieldErrors": errors}), 400


def _add(errors: Errors, field: str, message: str) -> None:
    errors.setdefault(field, []).append(message)


def _text(body: Dict[str, Any], field: str) -> Optional[str]:
    """Trimmed string value, None if absent or not a string."""
    value = body.get(field)
    if not isinstance(value, str):
        return None
    return value.strip()


def _optional_text(body: Dict[str, Any], field: str) -> Optional[str]:
    """Trimmed string value with blanks turned into None."""
    value = _text(body, field)
    return value or None


def is_valid_email(value: str) -> bool:
    return bool(value) and bool(EMAIL_PATTERN.match(value))


def is_valid_url(value: str) -> bool:
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 date or datetime from a client.

    Naive values are taken as UTC. Returns None for anything unparseable.
    """
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_bool(value: Any) -> bool:
    """Query-string style boolean."""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


# ===== AUTH =====


def _check_email(body: Dict[str, Any], errors: Errors) -> str:
    email = (_text(body, "email") or "").lower()
    if not email:
        _add(errors, "email", "Email is required")
    elif not is_valid_email(email):
        _add(errors, "email", "Please enter a valid email address")
    return email


def _check_password_strength(password: str, field: str, errors: Errors) -> None:
    if not password:
        _add(errors, field, "Password is required")
        return
    if len(password) < 8:
        _add(errors, field, "Password must be at least 8 characters")
    if not re.search(r"[A-Z]", password):
        _add(errors, field, "Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        _add(errors, field, "Password must contain at least one lowercase letter")
    if not re.search(r"[0-9]", password):
        _add(errors, field, "Password must contain at least one number")
    if not SPECIAL_CHARACTER_PATTERN.search(password):
        _add(errors, field, "Password must contain at least one special character")


def _check_code(body: Dict[str, Any], errors: Errors) -> str:
    code = _text(body, "code") or ""
    if not code:
        _add(errors, "code", "Verification code is required")
    elif not CODE_PATTERN.match(code):
        _add(errors, "code", "Verification code must be 6 digits")
    return code


def validate_signup(body: Dict[str, Any]) -> Tuple[Dict[str, Any], Errors]:
    errors: Errors = {}
    email = _check_email(body, errors)

    name = _text(body, "name") or ""
    if not name:
        _add(errors, "name", "Name is required")
    elif len(name) < 2:
        _add(errors, "name", "Name must be at least 2 characters")
    elif len(name) > 50:
        _add(errors, "name", "Name must be less than 50 characters")

    password = body.get("password") if isinstance(body.get("password"), str) else ""
    _check_password_strength(password, "password", errors)

    confirm = body.get("confirmPassword") if isinstance(body.get("confirmPassword"), str) else ""
    if not confirm:
        _add(errors, "confirmPassword", "Please confirm your password")
    elif password and confirm != password:
        _add(errors, "confirmPassword", "Passwords don't match")

    return {"email": email, "name": name, "password": password}, errors


def validate_login(body: Dict[str, Any]) -> Tuple[Dict[str, Any], Errors]:
    errors: Errors = {}
    email = _check_email(body, errors)
    password = body.get("password") if isinstance(body.get("password"), str) else ""
    if not password:
        _add(errors, "password", "Password is required")
    return {"email": email, "password": password}, errors


def validate_verification(body: Dict[str, Any]) -> Tuple[Dict[str, Any], Errors]:
    errors: Errors = {}
    email = _check_email(body, errors)
    code = _check_code(body, errors)
    return {"email": email, "code": code}, errors


def validate_email_only(body: Dict[str, Any]) -> Tuple[Dict[str, Any], Errors]:
    errors: Errors = {}
    email = _check_email(body, errors)
    return {"email": email}, errors


def validate_password_reset(body: Dict[str, Any]) -> Tuple[Dict[str, Any], Errors]:
    errors: Errors = {}
    email = _check_email(body, errors)
    code = _check_code(body, errors)

    password = body.get("newPassword") if isinstance(body.get("newPassword"), str) else ""
    _check_password_strength(password, "newPassword", errors)

    confirm = body.get("confirmPassword") if isinstance(body.get("confirmPassword"), str) else ""
    if not confirm:
        _add(errors, "confirmPassword", "Please confirm your password")
    elif password and confirm != password:
        _add(errors, "confirmPassword", "Passwords don't match")

    return {"email": email, "code": code, "new_password": password}, errors


# ===== JOBS =====


def _check_job_status(body: Dict[str, Any], errors: Errors) -> Optional[str]:
    status = _text(body, "status")
    if status is None:
        return None
    if status not in JOB_STATUSES:
        _add(errors, "status", f"Status must be one of: {', '.join(JOB_STATUSES)}")
    return status


def validate_job_create(body: Dict[str, Any]) -> Tuple[Dict[str, Any], Errors]:
    errors: Errors = {}

    company = _text(body, "company") or ""
    if not company:
        _add(errors, "company", "Company is required")

    role = _text(body, "role") or ""
    if not role:
        _add(errors, "role", "Role is required")

    job_url = _text(body, "jobUrl") or ""
    if not job_url:
        _add(errors, "jobUrl", "Job URL is required")
    elif not is_valid_url(job_url):
        _add(errors, "jobUrl", "Invalid job URL")

    job_description = _optional_text(body, "jobDescription")
    if job_description is not None and len(job_description) < 20:
        _add(errors, "jobDescription", "Job description is too short")

    status = _check_job_status(body, errors) or DEFAULT_JOB_STATUS

    resume_id = _text(body, "resumeId") or ""
    if not resume_id:
        _add(errors, "resumeId", "Resume selection is required")

    data = {
        "company": company,
        "role": role,
        "job_url": job_url,
        "job_description": job_description,
        "location": _optional_text(body, "location"),
        "notes": _optional_text(body, "notes"),
        "status": status,
        "resume_id": resume_id,
    }
    return data, errors


# camelCase request field -> column
JOB_UPDATE_FIELDS = {
    "company": "company",
    "role": "role",
    "location": "location",
    "jobUrl": "job_url",
    "jobDescription": "job_description",
    "notes": "notes",
    "status": "status",
}


def validate_job_update(body: Dict[str, Any]) -> Tuple[Dict[str, Any], Errors]:
    """Only fields present in the body end up in the cleaned data."""
    errors: Errors = {}
    data: Dict[str, Any] = {}

    for field, column in JOB_UPDATE_FIELDS.items():
        if field not in body:
            continue
        value = body[field]
        if value is not None and not isinstance(value, str):
            _add(errors, field, "Must be a string")
            continue
        data[column] = value.strip() if isinstance(value, str) else None

    for field in ("company", "role"):
        if field in data and not data[field]:
            _add(errors, field, f"{field.capitalize()} cannot be empty")

    if data.get("job_url"):
        if not is_valid_url(data["job_url"]):
            _add(errors, "jobUrl", "Invalid job URL")
    elif "job_url" in data:
        data["job_url"] = None

    for column in ("location", "job_description", "notes"):
        if column in data and not data[column]:
            data[column] = None

    if "status" in data and data["status"] not in JOB_STATUSES:
        _add(errors, "status", f"Status must be one of: {', '.join(JOB_STATUSES)}")

    if "resumeId" in body:
        resume_id = _text(body, "resumeId")
        if not resume_id:
            _add(errors, "resumeId", "Resume selection is required")
        else:
            data["resume_id"] = resume_id

    return data, errors


# ===== CONTACTS =====

CONTACT_TEXT_FIELDS = {
    "company": "company",
    "role": "role",
    "notes": "notes",
}


def _contact_fields(body: Dict[str, Any], errors: Errors, partial: bool) -> Dict[str, Any]:
    data: Dict[str, Any] = {}

    if not partial or "name" in body:
        name = _text(body, "name") or ""
        if not name:
            _add(errors, "name", "Name is required")
        data["name"] = name

    for field, column in CONTACT_TEXT_FIELDS.items():
        if not partial or field in body:
            data[column] = _optional_text(body, field)

    if not partial or "linkedInUrl" in body:
        linkedin_url = _optional_text(body, "linkedInUrl")
        if linkedin_url and not is_valid_url(linkedin_url):
            _add(errors, "linkedInUrl", "Invalid LinkedIn URL")
        data["linkedin_url"] = linkedin_url

    if not partial or "email" in body:
        email = _optional_text(body, "email")
        if email and not is_valid_email(email):
            _add(errors, "email", "Invalid email address")
        data["email"] = email

    if not partial or "status" in body:
        status = _optional_text(body, "status")
        if partial and status is None:
            _add(errors, "status", "Status cannot be empty")
        data["status"] = status or DEFAULT_CONTACT_STATUS

    return data


def validate_contact_create(body: Dict[str, Any]) -> Tuple[Dict[str, Any], Errors]:
    errors: Errors = {}
    data = _contact_fields(body, errors, partial=False)
    return data, errors


def validate_contact_update(body: Dict[str, Any]) -> Tuple[Dict[str, Any], Errors]:
    errors: Errors = {}
    data = _contact_fields(body, errors, partial=True)

    if "lastContactedAt" in body:
        raw = body["lastContactedAt"]
        if raw is None or raw == "":
            data["last_contacted_at"] = None
        else:
            parsed = parse_datetime(raw)
            if parsed is None:
                _add(errors, "lastContactedAt", "Invalid date")
            data["last_contacted_at"] = parsed

    return data, errors


def validate_interaction(body: Dict[str, Any]) -> Tuple[Dict[str, Any], Errors]:
    errors: Errors = {}
    interaction_type = _text(body, "type") or ""
    if not interaction_type:
        _add(errors, "type", "Interaction type is required")
    return {"type": interaction_type, "notes": _optional_text(body, "notes")}, errors


def validate_reminder_create(body: Dict[str, Any]) -> Tuple[Dict[str, Any], Errors]:
    errors: Errors = {}

    title = _text(body, "title") or ""
    if not title:
        _add(errors, "title", "Title is required")

    due_date = parse_datetime(body.get("dueDate"))
    if due_date is None:
        _add(errors, "dueDate", "A valid due date is required")

    data = {
        "title": title,
        "description": _optional_text(body, "description"),
        "due_date": due_date,
    }
    return data, errors


def validate_reminder_update(body: Dict[str, Any]) -> Tuple[Dict[str, Any], Errors]:
    errors: Errors = {}
    data: Dict[str, Any] = {}

    if "title" in body:
        title = _text(body, "title") or ""
        if not title:
            _add(errors, "title", "Title cannot be empty")
        data["title"] = title

    if "description" in body:
        data["description"] = _optional_text(body, "description")

    if "dueDate" in body:
        due_date = parse_datetime(body.get("dueDate"))
        if due_date is None:
            _add(errors, "dueDate", "Invalid date")
        data["due_date"] = due_date

    if "completed" in body:
        if not isinstance(body["completed"], bool):
            _add(errors, "completed", "Must be true or false")
        data["completed"] = bool(body["completed"])

    return data, errors


def validate_chat_message(body: Dict[str, Any]) -> Tuple[Dict[str, Any], Errors]:
    errors: Errors = {}

    message = body.get("message")
    if not isinstance(message, str) or not message.strip():
        _add(errors, "message", "Message is required")
        message = ""

    role = body.get("role") or "user"
    if role not in CHAT_ROLES:
        _add(errors, "role", "Role must be 'user' or 'assistant'")

    return {"message": message, "role": role}, errors
