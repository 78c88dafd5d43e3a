"""
Base AI Provider - Abstract base class for AI providers

This module defines the interface for AI providers (Claude, Gemini).
Providers only turn a prompt into text; prompt construction and response
shaping live in the analyzer so every backend behaves identically.
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Optional

logger = logging.getLogger(__name__)


class AIResponseError(Exception):
    """Raised when the model answer cannot be turned into the expected structure."""


class AIProviderError(Exception):
    """Raised by a provider when the API rejects or fails a request."""


class AITransientError(AIProviderError):
    """Provider failure worth retrying: connection problems, rate limits, 5xx."""


def extract_json(text: str) -> Any:
    """
    Extract JSON from an AI response that might include markdown fences or preamble.

    AI models often wrap JSON in markdown code blocks or add explanatory text.
    This function handles those cases and extracts the JSON value.

    Args:
        text: Raw AI response text

    Returns:
        Parsed JSON value (normally a dict)

    Raises:
        ValueError: If no valid JSON can be extracted

    Example:
        >>> extract_json('```json\\n{"key": "value"}\\n```')
        {'key': 'value'}
        >>> extract_json('Here is the result: {"key": "value"}')
        {'key': 'value'}
    """
    if not text:
        raise ValueError("Empty response text")

    text = text.strip()

    # Try 1: Direct parse (ideal case)
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    # Try 2: markdown json code fence, then any code fence
    for pattern in (r"```json\s*([\s\S]*?)\s*```", r"```\s*([\s\S]*?)\s*```"):
        match = re.search(pattern, text)
        if match:
            try:
                return json.loads(match.group(1))
            except json.JSONDecodeError:
                pass

    # Try 3: outermost braces, then outermost brackets
    for pattern in (r"\{[\s\S]*\}", r"\[[\s\S]*\]"):
        match = re.search(pattern, text)
        if match:
            try:
                return json.loads(match.group())
            except json.JSONDecodeError:
                pass

    raise ValueError(
        f"Could not extract valid JSON from response. "
        f"Raw text (first 500 chars): {text[:500]}"
    )


class AIProvider(ABC):
    """
    Abstract base class for AI providers.

    All providers must return plain text from generate() so the analyzer
    can apply the same JSON extraction regardless of which AI is used.
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """
        Return the name of this AI provider.

        Returns:
            str: Provider name (e.g., 'claude', 'gemini')
        """
        pass

    @property
    @abstractmethod
    def model_name(self) -> str:
        """
        Return the default model being used.

        Returns:
            str: Model identifier (e.g., 'claude-sonnet-4-20250514', 'gemini-2.0-flash')
        """
        pass

    @abstractmethod
    def generate(self, prompt: str, max_tokens: int = 1000, model: Optional[str] = None) -> str:
        """
        Send a single-turn prompt and return the text answer.

        Args:
            prompt: Full prompt text
            max_tokens: Upper bound on answer length
            model: Override the provider's default model

        Returns:
            str: Answer text, stripped of surrounding whitespace
        """
        pass
