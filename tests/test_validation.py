"""
Tests for request payload validation.
"""

from datetime import datetime, timezone

import pytest

from applymate.validation import (
    parse_bool,
    parse_datetime,
    validate_chat_message,
    validate_contact_create,
    validate_contact_update,
    validate_job_create,
    validate_job_update,
    validate_reminder_create,
    validate_reminder_update,
    validate_signup,
)

VALID_JOB = {
    "company": " Acme ",
    "role": "Engineer",
    "jobUrl": "https://jobs.example.com/1",
    "resumeId": "resume-1",
}


@pytest.mark.parametrize(
    "password,message",
    [
        ("Sh0rt!", "Password must be at least 8 characters"),
        ("nouppercase1!", "Password must contain at least one uppercase letter"),
        ("NOLOWERCASE1!", "Password must contain at least one lowercase letter"),
        ("NoNumbers!!", "Password must contain at least one number"),
        ("NoSpecial123", "Password must contain at least one special character"),
    ],
)
def test_signup_password_rules(password, message):
    _, errors = validate_signup({
        "name": "Alice",
        "email": "alice@example.com",
        "password": password,
        "confirmPassword": password,
    })

    assert message in errors["password"]


def test_signup_name_length():
    _, errors = validate_signup({"name": "A", "email": "a@example.com"})
    assert errors["name"] == ["Name must be at least 2 characters"]

    _, errors = validate_signup({"name": "A" * 51, "email": "a@example.com"})
    assert errors["name"] == ["Name must be less than 50 characters"]


def test_job_create_valid():
    data, errors = validate_job_create(VALID_JOB)

    assert errors == {}
    assert data["company"] == "Acme"
    assert data["status"] == "saved"
    assert data["job_description"] is None


def test_job_create_requires_url_and_resume():
    _, errors = validate_job_create({"company": "Acme", "role": "Engineer", "jobUrl": "not a url"})

    assert errors["jobUrl"] == ["Invalid job URL"]
    assert errors["resumeId"] == ["Resume selection is required"]


def test_job_create_short_description():
    _, errors = validate_job_create(dict(VALID_JOB, jobDescription="too short"))

    assert "jobDescription" in errors


def test_job_create_rejects_unknown_status():
    _, errors = validate_job_create(dict(VALID_JOB, status="ghosted"))

    assert "status" in errors


def test_job_update_only_present_fields():
    data, errors = validate_job_update({"status": "interview", "notes": "  ", "jobUrl": ""})

    assert errors == {}
    assert data == {"status": "interview", "notes": None, "job_url": None}


def test_job_update_rejects_empty_company():
    _, errors = validate_job_update({"company": "   "})

    assert errors["company"] == ["Company cannot be empty"]


def test_contact_create_defaults():
    data, errors = validate_contact_create({"name": "Dana", "company": "", "linkedInUrl": None})

    assert errors == {}
    assert data == {
        "name": "Dana",
        "company": None,
        "role": None,
        "notes": None,
        "linkedin_url": None,
        "email": None,
        "status": "not_contacted",
    }


def test_contact_create_checks_formats():
    _, errors = validate_contact_create({"name": "", "email": "nope", "linkedInUrl": "linkedin"})

    assert set(errors) == {"name", "email", "linkedInUrl"}


def test_contact_update_last_contacted():
    data, errors = validate_contact_update({"lastContactedAt": "2024-03-01T10:00:00Z"})

    assert errors == {}
    assert data == {"last_contacted_at": datetime(2024, 3, 1, 10, tzinfo=timezone.utc)}

    data, errors = validate_contact_update({"lastContactedAt": None})
    assert data == {"last_contacted_at": None}

    _, errors = validate_contact_update({"lastContactedAt": "yesterday"})
    assert "lastContactedAt" in errors


def test_reminder_create_needs_valid_date():
    _, errors = validate_reminder_create({"title": "Follow up", "dueDate": "not-a-date"})

    assert "dueDate" in errors


def test_reminder_update_completed_must_be_bool():
    data, errors = validate_reminder_update({"completed": True})
    assert errors == {}
    assert data == {"completed": True}

    _, errors = validate_reminder_update({"completed": "yes"})
    assert "completed" in errors


def test_chat_message():
    data, errors = validate_chat_message({"message": "hello"})
    assert errors == {}
    assert data["role"] == "user"

    _, errors = validate_chat_message({"message": "  ", "role": "system"})
    assert set(errors) == {"message", "role"}


def test_parse_datetime():
    assert parse_datetime("2024-03-01") == datetime(2024, 3, 1, tzinfo=timezone.utc)
    assert parse_datetime("2024-03-01T10:00:00+02:00").utcoffset().total_seconds() == 7200
    assert parse_datetime("") is None
    assert parse_datetime(12) is None


def test_parse_bool():
    assert parse_bool("true") is True
    assert parse_bool("1") is True
    assert parse_bool("false") is False
    assert parse_bool(None) is False
