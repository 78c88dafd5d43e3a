"""
Tests for AI response handling: JSON extraction, result normalization,
fallbacks and prompt construction. No real provider is called.
"""

import json
from unittest.mock import MagicMock

import anthropic
import httpx
import pytest

from applymate.ai import analyzer, factory
from applymate.ai.base import AIProviderError, AIResponseError, AITransientError, extract_json
from applymate.ai.claude import ClaudeProvider
from applymate.resilience import RetryError


class TestExtractJson:
    def test_plain_json(self):
        assert extract_json('{"a": 1}') == {"a": 1}

    def test_fenced_json(self):
        assert extract_json('```json\n{"a": 1}\n```') == {"a": 1}

    def test_json_after_preamble(self):
        assert extract_json('Sure! Here is the result: {"a": {"b": 2}} Hope it helps.') == {
            "a": {"b": 2}
        }

    def test_array(self):
        assert extract_json("The list: [1, 2, 3]") == [1, 2, 3]

    def test_no_json(self):
        with pytest.raises(ValueError):
            extract_json("I cannot help with that.")

    def test_empty(self):
        with pytest.raises(ValueError):
            extract_json("")


class TestAtsAnalysis:
    def test_normalizes_result(self, app_env, ai):
        ai.queue(json.dumps({
            "atsScore": 142.6,
            "grade": "A",
            "improvementActions": ["Add metrics", 7],
        }))

        result = analyzer.analyze_resume_ats("resume text")

        assert result == {"atsScore": 100, "grade": "A", "improvementActions": ["Add metrics", "7"]}
        assert "resume text" in ai.prompts[0]

    def test_invalid_json_falls_back(self, app_env, ai):
        ai.queue("Great resume, 8/10")

        result = analyzer.analyze_resume_ats("resume text")

        assert result == {"atsScore": 0, "grade": "", "improvementActions": []}

    def test_provider_failure_falls_back_after_retries(self, app_env, ai):
        ai.queue(ConnectionError("down"))

        result = analyzer.analyze_resume_ats("resume text")

        assert result["atsScore"] == 0
        assert len(ai.prompts) == analyzer.AI_MAX_RETRIES + 1

    def test_recovers_on_retry(self, app_env, ai):
        ai.queue(TimeoutError("slow"), '{"atsScore": 70, "grade": "B", "improvementActions": []}')

        result = analyzer.analyze_resume_ats("resume text")

        assert result["atsScore"] == 70
        assert len(ai.prompts) == 2

    def test_transient_provider_error_is_retried(self, app_env, ai):
        ai.queue(AITransientError("overloaded"), '{"atsScore": 55, "grade": "C", "improvementActions": []}')

        assert analyzer.analyze_resume_ats("resume text")["atsScore"] == 55
        assert len(ai.prompts) == 2

    @pytest.mark.parametrize(
        "error",
        [ValueError("ANTHROPIC_API_KEY not found"), AIProviderError("invalid x-api-key")],
    )
    def test_permanent_failure_is_not_retried(self, app_env, ai, error):
        ai.queue(error)

        result = analyzer.analyze_resume_ats("resume text")

        assert result == {"atsScore": 0, "grade": "", "improvementActions": []}
        assert len(ai.prompts) == 1


class TestMatchAnalysis:
    def test_normalizes_result(self, app_env, ai):
        ai.queue("```json\n" + json.dumps({
            "matchScore": "85",
            "missingItems": "Kubernetes",
            "skillsMatched": ["Python", "AWS"],
            "suggestedBullets": ["Led migration"],
            "improvedSummary": None,
            "relevantExperience": ["Backend at Acme"],
            "improvements": [
                {"type": "bullet", "current": "Did stuff", "suggested": "Shipped X", "explanation": "Impact"},
                "not an object",
            ],
        }) + "\n```")

        result = analyzer.analyze_resume_against_job("resume", "job description")

        assert result["matchScore"] == 85
        assert result["missingItems"] == ["Kubernetes"]
        assert result["skillsMatched"] == ["Python", "AWS"]
        assert result["improvedSummary"] == ""
        assert result["improvements"] == [
            {"type": "bullet", "current": "Did stuff", "suggested": "Shipped X", "explanation": "Impact"}
        ]

    def test_non_object_falls_back(self, app_env, ai):
        ai.queue("[1, 2]")

        result = analyzer.analyze_resume_against_job("resume", "job description")

        assert result["matchScore"] == 0
        assert result["improvements"] == []


class TestParseJob:
    HTML = """
    <html><head><style>.x{color:red}</style><script>var secret = 1;</script></head>
    <body><h1>Senior Engineer</h1><p>Acme   Corp is hiring.</p></body></html>
    """

    def test_parses_fields(self, app_env, ai):
        ai.queue(json.dumps({
            "jobTitle": "Senior Engineer",
            "company": "Acme Corp",
            "location": "",
            "jobDescription": "Build things",
            "responsibilities": ["Code"],
            "requirements": "Python",
        }))

        result = analyzer.parse_job_from_html(self.HTML, "https://jobs.example.com/1")

        assert result == {
            "jobTitle": "Senior Engineer",
            "company": "Acme Corp",
            "location": None,
            "jobDescription": "Build things",
            "responsibilities": ["Code"],
            "requirements": None,
        }
        prompt = ai.prompts[0]
        assert "Acme Corp is hiring." in prompt
        assert "var secret" not in prompt
        assert "https://jobs.example.com/1" in prompt

    def test_garbage_raises(self, app_env, ai):
        ai.queue("no idea")

        with pytest.raises(AIResponseError):
            analyzer.parse_job_from_html(self.HTML, "https://jobs.example.com/1")


class TestCoaches:
    def test_job_coach_truncates_context(self, app_env, ai, tmp_path):
        (tmp_path / "config.yaml").write_text("chat:\n  context_char_limit: 50\nai:\n  chat_model: chat-x\n")
        ai.queue("Here is your cover letter")
        job = {
            "company": "Acme",
            "role": "Engineer",
            "location": None,
            "status": "applied",
            "job_description": "D" * 200,
        }
        history = [{"role": "user", "message": "Hi"}, {"role": "assistant", "message": "Hello"}]

        reply = analyzer.job_coach_reply(job, "R" * 200, history, "Write a cover letter")

        assert reply == "Here is your cover letter"
        prompt = ai.prompts[0]
        assert "D" * 50 in prompt and "D" * 51 not in prompt
        assert "R" * 50 in prompt and "R" * 51 not in prompt
        assert "user: Hi" in prompt
        assert "Location: Not specified" in prompt
        assert ai.calls[0]["model"] == "chat-x"

    def test_job_coach_failure_propagates(self, app_env, ai):
        ai.queue(ConnectionError("down"))

        with pytest.raises(RetryError):
            analyzer.job_coach_reply({"company": "Acme", "role": "Engineer"}, "", [], "hello")

    def test_job_coach_rejection_fails_fast(self, app_env, ai):
        ai.queue(AIProviderError("invalid x-api-key"))

        with pytest.raises(AIProviderError):
            analyzer.job_coach_reply({"company": "Acme", "role": "Engineer"}, "", [], "hello")
        assert len(ai.prompts) == 1

    def test_networking_coach_uses_oldest_messages(self, app_env, ai, tmp_path):
        (tmp_path / "config.yaml").write_text("chat:\n  networking_history_limit: 2\n")
        ai.queue("Try this message")
        contact = {"name": "Dana", "company": "Globex", "role": None, "status": "not_contacted"}
        history = [
            {"role": "user", "message": "first"},
            {"role": "assistant", "message": "second"},
            {"role": "user", "message": "third"},
        ]

        analyzer.networking_coach_reply(contact, history, "third")

        prompt = ai.prompts[0]
        assert "User: first" in prompt
        assert "Assistant: second" in prompt
        assert "User: third\n\nAssistant:" in prompt
        assert "Previous conversation:\nUser: first\nAssistant: second\n\n" in prompt
        assert "Contact Name: Dana" in prompt
        assert "Role: Unknown" in prompt
        assert prompt.endswith("Assistant:")


class TestFactory:
    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="Unknown AI provider"):
            factory.get_provider({"ai": {"provider": "openai"}})

    def test_missing_key(self, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        with pytest.raises(ValueError, match="ANTHROPIC_API_KEY"):
            factory.get_provider({"ai": {"provider": "claude"}})

    def test_has_api_key(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "g-key")
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)

        assert factory.has_api_key("gemini") is True
        assert factory.has_api_key("claude") is False
        assert factory.has_api_key("unknown") is False

    def test_claude_generate(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "test-key")
        provider = factory.get_provider({"ai": {"provider": "claude", "model": "claude-test"}})
        assert isinstance(provider, ClaudeProvider)

        fake_client = MagicMock()
        fake_client.messages.create.return_value = MagicMock(content=[MagicMock(text="  hi  ")])
        provider._client = fake_client

        assert provider.generate("prompt", max_tokens=10) == "hi"
        kwargs = fake_client.messages.create.call_args.kwargs
        assert kwargs["model"] == "claude-test"
        assert kwargs["max_tokens"] == 10
        assert kwargs["messages"] == [{"role": "user", "content": "prompt"}]

    def test_claude_error_translation(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "test-key")
        provider = factory.get_provider({"ai": {"provider": "claude"}})
        request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        provider._client = MagicMock()

        provider._client.messages.create.side_effect = anthropic.APIConnectionError(request=request)
        with pytest.raises(AITransientError):
            provider.generate("prompt")

        provider._client.messages.create.side_effect = anthropic.AuthenticationError(
            "invalid x-api-key", response=httpx.Response(401, request=request), body=None
        )
        with pytest.raises(AIProviderError) as excinfo:
            provider.generate("prompt")
        assert not isinstance(excinfo.value, AITransientError)
