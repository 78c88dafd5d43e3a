"""
Pytest configuration and shared fixtures for ApplyMate tests.
"""

import io
from unittest.mock import MagicMock

import pytest
from pypdf import PdfWriter

from applymate.auth.middleware import ACCESS_TOKEN_COOKIE, ID_TOKEN_COOKIE

USERS = {
    "alice": {
        "sub": "user-alice",
        "email": "alice@example.com",
        "name": "Alice Example",
        "email_verified": True,
    },
    "bob": {
        "sub": "user-bob",
        "email": "bob@example.com",
        "name": "Bob Example",
        "email_verified": True,
    },
}


class FakeProvider:
    """
    Stand-in AI provider.

    Returns queued responses in order (the last one repeats); an exception
    in the queue is raised instead of returned. Every prompt is recorded.
    """

    provider_name = "fake"
    model_name = "fake-model"

    def __init__(self):
        self.responses = ['{"ok": true}']
        self.prompts = []
        self.calls = []

    def queue(self, *responses):
        self.responses = list(responses)

    def generate(self, prompt, max_tokens=1000, model=None):
        self.prompts.append(prompt)
        self.calls.append({"max_tokens": max_tokens, "model": model})
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def app_env(tmp_path, monkeypatch):
    """Environment and database for an isolated app instance."""
    from applymate.config import reset_config

    monkeypatch.setattr("applymate.database.DB_PATH", tmp_path / "test.db")
    monkeypatch.setenv("APPLYMATE_CONFIG", str(tmp_path / "config.yaml"))
    monkeypatch.setenv("FLASK_ENV", "testing")
    monkeypatch.setenv("COGNITO_USER_POOL_ID", "us-east-1_TestPool")
    monkeypatch.setenv("COGNITO_CLIENT_ID", "test-client-id")
    monkeypatch.setenv("COGNITO_REGION", "us-east-1")
    monkeypatch.delenv("COGNITO_CLIENT_SECRET", raising=False)
    monkeypatch.setenv("AWS_REGION", "us-east-1")
    monkeypatch.setenv("AWS_S3_BUCKET", "test-bucket")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "test-anthropic-key")

    reset_config()
    yield tmp_path
    reset_config()


@pytest.fixture
def fast_limits(monkeypatch):
    """Rate limiters that never make a test wait."""
    from applymate.resilience import APIRateLimiters, RateLimiter

    for name in ("llm", "chat", "web_fetch"):
        monkeypatch.setattr(APIRateLimiters, name, RateLimiter(calls_per_minute=100000))


@pytest.fixture
def s3(monkeypatch):
    """Mocked S3 client."""
    client = MagicMock()
    client.generate_presigned_url.return_value = "https://signed.example.com/object"
    monkeypatch.setattr("applymate.storage._s3", client)
    return client


@pytest.fixture
def ai(monkeypatch, fast_limits):
    """Fake AI provider wired into the analyzer, with retries that don't sleep."""
    provider = FakeProvider()
    monkeypatch.setattr("applymate.ai.analyzer.get_provider", lambda: provider)
    monkeypatch.setattr("applymate.ai.analyzer.AI_BASE_DELAY", 0)
    return provider


@pytest.fixture
def app(app_env, s3, ai):
    from applymate import create_app

    return create_app(testing=True)


@pytest.fixture
def client(app):
    return app.test_client()


def _verify_access(token):
    if not token or not token.startswith("access-"):
        return None
    name = token[len("access-"):]
    if name not in USERS:
        return None
    return {"sub": USERS[name]["sub"], "token_use": "access", "client_id": "test-client-id"}


def _user_from_id_token(token):
    if not token or not token.startswith("id-"):
        return None
    user = USERS.get(token[len("id-"):])
    return dict(user) if user else None


@pytest.fixture
def fake_tokens(monkeypatch):
    """Accept 'access-<name>' / 'id-<name>' tokens for the users in USERS."""
    monkeypatch.setattr("applymate.auth.middleware.verify_access_token", _verify_access)
    monkeypatch.setattr("applymate.auth.middleware.get_user_from_token", _user_from_id_token)
    monkeypatch.setattr("applymate.auth.tokens.verify_access_token", _verify_access)
    monkeypatch.setattr("applymate.auth.tokens.get_user_from_token", _user_from_id_token)


def login(test_client, name):
    test_client.set_cookie(ACCESS_TOKEN_COOKIE, f"access-{name}")
    test_client.set_cookie(ID_TOKEN_COOKIE, f"id-{name}")
    return test_client


@pytest.fixture
def auth_client(client, fake_tokens):
    """Test client signed in as alice."""
    return login(client, "alice")


@pytest.fixture
def other_client(app, fake_tokens):
    """Test client signed in as bob."""
    return login(app.test_client(), "bob")


@pytest.fixture
def make_resume(app):
    """Insert a resume row directly, bypassing upload."""
    from applymate.database import get_db, new_id, utc_now

    def _make(user="alice", name="Backend Resume", text="Python Flask PostgreSQL AWS engineer"):
        info = USERS[user]
        resume_id = new_id()
        now = utc_now()
        conn = get_db()
        try:
            conn.execute(
                """
                INSERT OR IGNORE INTO users (id, email, name, email_verified, created_at, updated_at)
                VALUES (?, ?, ?, 1, ?, ?)
                """,
                (info["sub"], info["email"], info["name"], now, now),
            )
            conn.execute(
                """
                INSERT INTO resumes (id, user_id, name, file_url, parsed_text, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (resume_id, info["sub"], name, f"resumes/{info['sub']}/1-resume.pdf", text, now),
            )
            conn.commit()
        finally:
            conn.close()
        return resume_id

    return _make


@pytest.fixture
def make_job(auth_client, make_resume):
    """Create a job for alice through the API."""

    def _make(**overrides):
        payload = {
            "company": "Acme Corp",
            "role": "Backend Engineer",
            "jobUrl": "https://jobs.example.com/acme/123",
            "jobDescription": "Build Python services on AWS with Flask and PostgreSQL.",
            "location": "Remote",
        }
        payload.update(overrides)
        if "resumeId" not in payload:
            payload["resumeId"] = make_resume()
        response = auth_client.post("/api/jobs", json=payload)
        assert response.status_code == 201, response.get_json()
        return response.get_json()["job"]

    return _make


@pytest.fixture
def pdf_bytes():
    """A valid single-page PDF with no text."""
    writer = PdfWriter()
    writer.add_blank_page(width=612, height=792)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()
