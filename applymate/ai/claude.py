"""
Claude AI Provider - Anthropic Claude implementation
"""

import logging
import os
from typing import Dict, Optional

import anthropic

from .base import AIProvider, AIProviderError, AITransientError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-20250514"


class ClaudeProvider(AIProvider):
    """Claude AI provider using the Anthropic API."""

    def __init__(self, config: Optional[Dict] = None):
        """
        Initialize Claude provider.

        Args:
            config: Configuration dict with optional 'ai.model' setting
        """
        config = config or {}
        ai_config = config.get('ai', {})
        self._model = ai_config.get('model') or DEFAULT_MODEL

        api_key = os.environ.get('ANTHROPIC_API_KEY')
        if not api_key:
            raise ValueError(
                "ANTHROPIC_API_KEY not found. "
                "Set it in .env or environment variables."
            )

        self._client = anthropic.Anthropic(api_key=api_key)

    @property
    def provider_name(self) -> str:
        return 'claude'

    @property
    def model_name(self) -> str:
        return self._model

    def generate(
        self,
        prompt: str,
        max_tokens: int = 1000,
        model: Optional[str] = None
    ) -> str:
        """Generate a response using Claude."""
        try:
            response = self._client.messages.create(
                model=model or self._model,
                max_tokens=max_tokens,
                messages=[{"role": "user", "content": prompt}]
            )
            return response.content[0].text.strip()
        except (
            anthropic.APIConnectionError,
            anthropic.RateLimitError,
            anthropic.InternalServerError,
        ) as e:
            logger.warning(f"Claude transient error: {e}")
            raise AITransientError(str(e)) from e
        except anthropic.APIError as e:
            logger.error(f"Claude generation error: {e}")
            raise AIProviderError(str(e)) from e
