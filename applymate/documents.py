"""
Document helpers - PDF text extraction and job posting page fetching
"""

import io
import logging
import re

import requests
from bs4 import BeautifulSoup
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from applymate.resilience import APIRateLimiters

logger = logging.getLogger(__name__)

# Enough to carry a full posting without blowing up the prompt
HTML_TEXT_LIMIT = 50000

FETCH_TIMEOUT = 15

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class DocumentError(Exception):
    """Raised when a document cannot be read or fetched."""


def is_pdf_upload(filename: str, content_type: str) -> bool:
    """Accept a browser upload as PDF by its declared type or extension."""
    return (content_type or "").lower() == "application/pdf" or (
        (filename or "").lower().endswith(".pdf")
    )


def extract_pdf_text(data: bytes) -> str:
    """
    Extract text from a PDF.

    Args:
        data: Raw PDF bytes

    Returns:
        Page texts joined by blank lines (may be empty for scanned PDFs)

    Raises:
        DocumentError: If the bytes are not a readable PDF
    """
    try:
        reader = PdfReader(io.BytesIO(data))
        text_parts = [page.extract_text() or "" for page in reader.pages]
    except (PdfReadError, ValueError, KeyError) as e:
        logger.warning(f"PDF extraction failed: {e}")
        raise DocumentError(f"Could not read PDF: {e}") from e

    return "\n\n".join(text_parts).strip()


def html_to_text(html: str, limit: int = HTML_TEXT_LIMIT) -> str:
    """Strip scripts, styles and tags from a page and collapse whitespace."""
    soup = BeautifulSoup(html or "", "html.parser")
    for tag in soup(["script", "style"]):
        tag.decompose()

    text = soup.get_text(separator=" ")
    text = re.sub(r"\s+", " ", text).strip()
    return text[:limit]


def fetch_page(url: str, timeout: int = FETCH_TIMEOUT) -> str:
    """
    Download a job posting page.

    Raises:
        DocumentError: On network errors or a non-2xx status
    """
    if not APIRateLimiters.web_fetch.acquire(timeout=10):
        raise DocumentError("Too many page fetches, try again shortly")

    headers = {
        "User-Agent": USER_AGENT,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
    }
    try:
        response = requests.get(url, headers=headers, timeout=timeout)
    except requests.RequestException as e:
        logger.warning(f"Failed to fetch {url}: {e}")
        raise DocumentError(f"Failed to fetch {url}") from e

    if not response.ok:
        logger.warning(f"Fetching {url} returned HTTP {response.status_code}")
        raise DocumentError(f"Failed to fetch {url}: HTTP {response.status_code}")

    return response.text
