"""
Gemini AI Provider - Google Gemini implementation
"""

import logging
import os
from typing import Dict, Optional

from google import genai
from google.genai import errors, types

from .base import AIProvider, AIProviderError, AITransientError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.0-flash"


class GeminiProvider(AIProvider):
    """Gemini AI provider using the Google Gen AI SDK."""

    def __init__(self, config: Optional[Dict] = None):
        config = config or {}
        ai_config = config.get('ai', {})
        self._model = ai_config.get('model') or DEFAULT_MODEL

        api_key = os.environ.get('GEMINI_API_KEY')
        if not api_key:
            raise ValueError(
                "GEMINI_API_KEY not found. "
                "Set it in .env or environment variables."
            )

        self._client = genai.Client(api_key=api_key)

    @property
    def provider_name(self) -> str:
        return 'gemini'

    @property
    def model_name(self) -> str:
        return self._model

    def generate(
        self,
        prompt: str,
        max_tokens: int = 1000,
        model: Optional[str] = None
    ) -> str:
        """Generate a response using Gemini."""
        try:
            response = self._client.models.generate_content(
                model=model or self._model,
                contents=prompt,
                config=types.GenerateContentConfig(max_output_tokens=max_tokens),
            )
            return (response.text or "").strip()
        except errors.ServerError as e:
            logger.warning(f"Gemini transient error: {e}")
            raise AITransientError(str(e)) from e
        except errors.APIError as e:
            if e.code == 429:
                logger.warning(f"Gemini rate limited: {e}")
                raise AITransientError(str(e)) from e
            logger.error(f"Gemini generation error: {e}")
            raise AIProviderError(str(e)) from e
