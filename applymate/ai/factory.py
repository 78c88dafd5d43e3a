"""
AI Provider Factory - Creates the appropriate AI provider based on configuration

This module provides a factory function that reads the AI provider setting
from the config and instantiates the correct provider class.
"""

import importlib
import logging
import os
from typing import Any, Dict, Optional

from .base import AIProvider

logger = logging.getLogger(__name__)

# Registry of available providers
PROVIDERS = {
    "claude": "applymate.ai.claude.ClaudeProvider",
    "gemini": "applymate.ai.gemini.GeminiProvider",
}

PROVIDER_API_KEYS = {
    "claude": "ANTHROPIC_API_KEY",
    "gemini": "GEMINI_API_KEY",
}

# Default provider if none specified
DEFAULT_PROVIDER = "claude"


def get_provider(config: Optional[Dict[str, Any]] = None) -> AIProvider:
    """
    Get the configured AI provider instance.

    Reads the 'ai.provider' setting from config and instantiates the
    appropriate provider class. Falls back to Claude if not specified.

    Args:
        config: Optional configuration dict. If not provided, reads from
                applymate.config.get_config()

    Returns:
        AIProvider: An instance of the configured AI provider

    Raises:
        ValueError: If the specified provider is not supported or its key is missing
        ImportError: If the provider's package is not installed

    Example:
        >>> provider = get_provider({'ai': {'provider': 'gemini'}})
        >>> provider.provider_name
        'gemini'
    """
    if config is None:
        from applymate.config import get_config

        config = get_config().to_dict()

    ai_config = config.get("ai", {})
    provider_name = (ai_config.get("provider") or DEFAULT_PROVIDER).lower()

    if provider_name not in PROVIDERS:
        available = ", ".join(PROVIDERS.keys())
        raise ValueError(
            f"Unknown AI provider: '{provider_name}'. " f"Available providers: {available}"
        )

    module_path, class_name = PROVIDERS[provider_name].rsplit(".", 1)

    try:
        module = importlib.import_module(module_path)
    except ImportError as e:
        logger.error(f"Failed to import {provider_name} provider: {e}")
        raise ImportError(
            f"Failed to load {provider_name} provider. "
            f"Ensure the required package is installed. Error: {e}"
        )

    provider_class = getattr(module, class_name)
    return provider_class(config)


def has_api_key(provider_name: str) -> bool:
    """Whether the API key for a provider is present in the environment."""
    env_var = PROVIDER_API_KEYS.get(provider_name.lower())
    return bool(env_var and os.environ.get(env_var))
