"""
Shared AI Prompt Templates

This package contains prompt templates that are shared across all AI providers.
Using the same prompts ensures consistent output format regardless of which
AI backend is used.
"""

from .ats import build_ats_prompt
from .match_score import build_match_score_prompt
from .job_parser import build_job_parser_prompt
from .job_coach import build_job_coach_prompt
from .networking_coach import build_networking_coach_prompt

__all__ = [
    'build_ats_prompt',
    'build_match_score_prompt',
    'build_job_parser_prompt',
    'build_job_coach_prompt',
    'build_networking_coach_prompt',
]
