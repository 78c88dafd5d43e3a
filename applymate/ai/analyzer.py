"""
AI Analyzer - High-level AI analysis functions

This module provides convenient functions for resume scoring, job matching,
job posting parsing and the two chat assistants, using the configured AI
provider. Supports Claude and Gemini providers.

All AI calls are wrapped with retry logic and rate limiting for production reliability.
"""

from typing import Any, Dict, List, Optional

from .base import AIProviderError, AIResponseError, AITransientError, extract_json
from .factory import get_provider
from .prompts import (
    build_ats_prompt,
    build_match_score_prompt,
    build_job_parser_prompt,
    build_job_coach_prompt,
    build_networking_coach_prompt,
)
from applymate.config import get_config
from applymate.documents import html_to_text
from applymate.resilience import retry_with_backoff, APIRateLimiters, RateLimiter, RetryError
from applymate.logging_config import get_logger, LogContext

logger = get_logger(__name__)

# Retryable exceptions for AI calls; a missing key or rejected request fails at once
AI_RETRYABLE_EXCEPTIONS = (
    ConnectionError,
    TimeoutError,
    AITransientError,
)

AI_MAX_RETRIES = 3
AI_BASE_DELAY = 2.0

ATS_DEFAULTS = {"atsScore": 0, "grade": "", "improvementActions": []}

MATCH_LIST_FIELDS = ("missingItems", "skillsMatched", "suggestedBullets", "relevantExperience")


def _generate(
    prompt: str,
    operation: str,
    limiter: RateLimiter,
    max_tokens: int = 1000,
    model: Optional[str] = None,
) -> str:
    """Run one prompt through the provider with rate limiting and retries."""

    @retry_with_backoff(
        max_retries=AI_MAX_RETRIES,
        base_delay=AI_BASE_DELAY,
        retryable_exceptions=AI_RETRYABLE_EXCEPTIONS,
        on_retry=lambda e, attempt: logger.warning(
            f"Retry {attempt}/{AI_MAX_RETRIES} for {operation}: {e}"
        ),
    )
    def _call_with_retry():
        if not limiter.acquire(timeout=30):
            raise TimeoutError(f"Rate limit wait exceeded for {operation}")
        provider = get_provider()
        return provider.generate(prompt, max_tokens=max_tokens, model=model)

    with LogContext(logger, operation=operation):
        logger.debug(f"AI call: {operation} ({len(prompt)} chars)")
        return _call_with_retry()


def _clamp_score(value: Any) -> int:
    try:
        score = int(round(float(value)))
    except (TypeError, ValueError):
        return 0
    return max(0, min(100, score))


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def analyze_resume_ats(resume_text: str) -> Dict[str, Any]:
    """
    Score a resume for ATS friendliness.

    Args:
        resume_text: Extracted resume text

    Returns:
        {"atsScore": 0-100, "grade": str, "improvementActions": [str]};
        zeroed defaults when the model fails or answers with something other than JSON.
    """
    try:
        response = _generate(build_ats_prompt(resume_text), "ats_analysis", APIRateLimiters.llm)
        result = extract_json(response)
    except (RetryError, AIProviderError) as e:
        logger.error(f"ATS analysis failed: {e}")
        return dict(ATS_DEFAULTS, improvementActions=[])
    except ValueError as e:
        logger.error(f"ATS analysis returned no usable JSON: {e}")
        return dict(ATS_DEFAULTS, improvementActions=[])

    if not isinstance(result, dict):
        logger.error("ATS analysis returned a non-object JSON value")
        return dict(ATS_DEFAULTS, improvementActions=[])

    return {
        "atsScore": _clamp_score(result.get("atsScore")),
        "grade": _as_text(result.get("grade")),
        "improvementActions": [_as_text(a) for a in _as_list(result.get("improvementActions"))],
    }


def _empty_match() -> Dict[str, Any]:
    return {
        "matchScore": 0,
        "missingItems": [],
        "skillsMatched": [],
        "suggestedBullets": [],
        "improvedSummary": "",
        "relevantExperience": [],
        "improvements": [],
    }


def _normalize_improvement(item: Any) -> Optional[Dict[str, str]]:
    if not isinstance(item, dict):
        return None
    return {
        "type": _as_text(item.get("type")),
        "current": _as_text(item.get("current")),
        "suggested": _as_text(item.get("suggested")),
        "explanation": _as_text(item.get("explanation")),
    }


def analyze_resume_against_job(resume_text: str, job_description: str) -> Dict[str, Any]:
    """
    Compare a resume with a job description.

    Args:
        resume_text: Extracted resume text
        job_description: Job posting description

    Returns:
        Match analysis dict (matchScore, missingItems, skillsMatched, suggestedBullets,
        improvedSummary, relevantExperience, improvements); zeroed defaults on failure.
    """
    prompt = build_match_score_prompt(resume_text, job_description)
    try:
        response = _generate(prompt, "match_score", APIRateLimiters.llm, max_tokens=3000)
        result = extract_json(response)
    except (RetryError, AIProviderError) as e:
        logger.error(f"Match analysis failed: {e}")
        return _empty_match()
    except ValueError as e:
        logger.error(f"Match analysis returned no usable JSON: {e}")
        return _empty_match()

    if not isinstance(result, dict):
        logger.error("Match analysis returned a non-object JSON value")
        return _empty_match()

    analysis = _empty_match()
    analysis["matchScore"] = _clamp_score(result.get("matchScore"))
    for field in MATCH_LIST_FIELDS:
        analysis[field] = _as_list(result.get(field))
    analysis["improvedSummary"] = _as_text(result.get("improvedSummary"))
    analysis["improvements"] = [
        improvement
        for improvement in map(_normalize_improvement, _as_list(result.get("improvements")))
        if improvement is not None
    ]
    return analysis


def parse_job_from_html(html: str, url: str) -> Dict[str, Any]:
    """
    Extract job posting fields from a fetched page.

    Args:
        html: Raw page HTML
        url: URL the page came from

    Returns:
        {"jobTitle", "company", "location", "jobDescription", "responsibilities", "requirements"}
        with optional fields set to None when the model could not determine them.

    Raises:
        AIResponseError: If the model fails or the answer is not a JSON object
    """
    prompt = build_job_parser_prompt(html_to_text(html), url)
    try:
        response = _generate(prompt, "parse_job", APIRateLimiters.llm, max_tokens=4000)
        parsed = extract_json(response)
    except RetryError as e:
        raise AIResponseError(f"Job parsing failed: {e.last_exception}") from e
    except AIProviderError as e:
        raise AIResponseError(f"Job parsing failed: {e}") from e
    except ValueError as e:
        raise AIResponseError("Failed to parse job information from URL") from e

    if not isinstance(parsed, dict):
        raise AIResponseError("Failed to parse job information from URL")

    responsibilities = parsed.get("responsibilities")
    requirements = parsed.get("requirements")
    return {
        "jobTitle": _as_text(parsed.get("jobTitle")),
        "company": _as_text(parsed.get("company")),
        "location": parsed.get("location") or None,
        "jobDescription": parsed.get("jobDescription") or None,
        "responsibilities": responsibilities if isinstance(responsibilities, list) else None,
        "requirements": requirements if isinstance(requirements, list) else None,
    }


def job_coach_reply(
    job: Dict[str, Any], resume_text: str, history: List[Dict[str, Any]], message: str
) -> str:
    """
    Answer a question about one job application.

    Raises:
        RetryError: If the provider keeps failing
        AIProviderError: If the provider rejects the request
    """
    config = get_config()
    prompt = build_job_coach_prompt(
        job, resume_text, history, message, char_limit=config.context_char_limit
    )
    return _generate(
        prompt, "job_coach", APIRateLimiters.chat, max_tokens=4000, model=config.ai_chat_model
    )


def networking_coach_reply(
    contact: Dict[str, Any], history: List[Dict[str, Any]], message: str
) -> str:
    """
    Answer a networking outreach question about one contact.

    Only the oldest `chat.networking_history_limit` stored messages are sent.

    Raises:
        RetryError: If the provider keeps failing
        AIProviderError: If the provider rejects the request
    """
    config = get_config()
    window = history[: config.networking_history_limit]
    prompt = build_networking_coach_prompt(contact, window, message)
    return _generate(
        prompt, "networking_coach", APIRateLimiters.chat, max_tokens=2000, model=config.ai_chat_model
    )
