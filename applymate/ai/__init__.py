"""
AI Module - Provider abstraction and analysis functions

Usage:
    from applymate.ai import analyze_resume_ats, job_coach_reply

    result = analyze_resume_ats(resume_text)
"""

from .base import AIProvider, AIProviderError, AIResponseError, AITransientError
from .factory import get_provider, has_api_key
from .analyzer import (
    analyze_resume_ats,
    analyze_resume_against_job,
    parse_job_from_html,
    job_coach_reply,
    networking_coach_reply,
)

__all__ = [
    "AIProvider",
    "AIResponseError",
    "AIProviderError",
    "AITransientError",
    "get_provider",
    "has_api_key",
    "analyze_resume_ats",
    "analyze_resume_against_job",
    "parse_job_from_html",
    "job_coach_reply",
    "networking_coach_reply",
]
