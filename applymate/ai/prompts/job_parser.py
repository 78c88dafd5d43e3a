"""
Job Parser Prompt Template

Extracts structured job information from the text of a job posting page.
"""


def build_job_parser_prompt(page_text: str, url: str) -> str:
    """
    Build the prompt for parsing a job posting page.

    Args:
        page_text: Visible text of the page (already stripped of markup)
        url: URL the page was fetched from

    Returns:
        str: Formatted prompt string
    """
    return f"""You are a job posting parser. Extract job information from this webpage content.

Webpage URL: {url}

Webpage Content:
{page_text}

Return ONLY valid JSON (no markdown, no code blocks):
{{
  "jobTitle": string,
  "company": string,
  "location": string (optional),
  "jobDescription": string (optional, full job description),
  "responsibilities": string[] (optional, array of key responsibilities),
  "requirements": string[] (optional, array of key requirements/qualifications)
}}

If any field cannot be determined, use null or empty string. Be as accurate as possible."""
