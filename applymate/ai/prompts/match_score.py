"""
Match Score Prompt Template

This prompt compares a resume against a specific job description.
"""


def build_match_score_prompt(resume_text: str, job_description: str) -> str:
    """
    Build the prompt for resume-to-job match analysis.

    Args:
        resume_text: Extracted resume text
        job_description: The job posting's description

    Returns:
        str: Formatted prompt string
    """
    return f"""You are an expert ATS evaluator. Compare the resume against the job description.

RESUME:
{resume_text}

JOB DESCRIPTION:
{job_description}

CRITICAL RULES:
1. Only count a skill as matched if the resume actually shows it
2. Missing items are requirements from the job description the resume does not cover
3. Suggested bullets must be grounded in real resume experience, reworded for this job
4. Improvements must quote the current resume text they would replace

Return ONLY this JSON (no markdown, no code blocks):
{{
  "matchScore": <number 0-100>,
  "missingItems": ["<missing skill, tool or qualification>"],
  "skillsMatched": ["<skill present in both>"],
  "suggestedBullets": ["<rewritten resume bullet>"],
  "improvedSummary": "<rewritten professional summary tailored to this job>",
  "relevantExperience": ["<resume experience most relevant to this job>"],
  "improvements": [
    {{
      "type": "<summary|bullet|skills|keywords|formatting>",
      "current": "<current resume text>",
      "suggested": "<replacement text>",
      "explanation": "<why this helps for this job>"
    }}
  ]
}}"""
