"""
ATS Prompt Template

This prompt is used for scoring a resume on its own, without a job description.
"""


def build_ats_prompt(resume_text: str) -> str:
    """
    Build the prompt for standalone ATS resume scoring.

    Args:
        resume_text: Extracted resume text

    Returns:
        str: Formatted prompt string
    """
    return f"""You are an expert ATS (Applicant Tracking System) evaluator and resume reviewer.

Score the resume below on how well it would pass automated resume screening:
formatting that parses cleanly, clear section headings, quantified achievements,
strong action verbs, relevant keywords, and concise bullet points.

RESUME:
{resume_text}

Return ONLY this JSON (no markdown, no code blocks):
{{
  "atsScore": <number 0-100>,
  "grade": "<letter grade A, B, C, D or F>",
  "improvementActions": [
    "<specific, actionable change the candidate should make>"
  ]
}}

Give 3-8 improvement actions, most impactful first."""
