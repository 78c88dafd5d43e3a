"""
Configuration Loader for ApplyMate

Secrets and deployment settings come from the environment (.env);
optional tuning comes from config.yaml.
"""

import os
import yaml
from pathlib import Path
from typing import Any, Dict, Optional

APP_DIR = Path(__file__).parent.parent

DEFAULT_CONFIG_PATH = APP_DIR / "config.yaml"

DEFAULTS: Dict[str, Any] = {
    "ai": {
        "provider": "claude",
        "model": None,
        "chat_model": None,
    },
    "uploads": {
        "max_file_mb": 10,
    },
    "storage": {
        "presigned_url_ttl": 3600,
    },
    "chat": {
        "networking_history_limit": 10,
        "context_char_limit": 8000,
    },
}

SUPPORTED_PROVIDERS = ("claude", "gemini")


class Config:
    """Configuration manager for ApplyMate."""

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize configuration from YAML file and environment.

        Args:
            config_path: Path to config.yaml (defaults to $APPLYMATE_CONFIG or ./config.yaml)
        """
        if config_path is None:
            env_path = os.environ.get("APPLYMATE_CONFIG")
            config_path = Path(env_path) if env_path else DEFAULT_CONFIG_PATH

        self.config_path = Path(config_path)
        self._config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file, merged over defaults."""
        merged = {section: dict(values) for section, values in DEFAULTS.items()}

        if not self.config_path.exists():
            return merged

        with open(self.config_path, "r") as f:
            loaded = yaml.safe_load(f) or {}

        if not isinstance(loaded, dict):
            raise ValueError(f"Config file must contain a mapping: {self.config_path}")

        for section, values in loaded.items():
            if section not in DEFAULTS:
                continue
            if not isinstance(values, dict):
                raise ValueError(f"Config section '{section}' must be a mapping")
            merged[section].update(values)

        self._validate_config(merged)
        return merged

    def _validate_config(self, config: Dict[str, Any]) -> None:
        """Validate tuning values."""
        provider = str(config["ai"].get("provider") or "").lower()
        if provider not in SUPPORTED_PROVIDERS:
            raise ValueError(
                f"Unknown AI provider in config: '{provider}'. "
                f"Supported: {', '.join(SUPPORTED_PROVIDERS)}"
            )

        if int(config["uploads"].get("max_file_mb", 0)) <= 0:
            raise ValueError("uploads.max_file_mb must be a positive number")

        if int(config["storage"].get("presigned_url_ttl", 0)) <= 0:
            raise ValueError("storage.presigned_url_ttl must be a positive number of seconds")

    def to_dict(self) -> Dict[str, Any]:
        """Return a copy of the merged configuration."""
        return {section: dict(values) for section, values in self._config.items()}

    # ===== ENVIRONMENT =====

    @property
    def environment(self) -> str:
        return os.environ.get("FLASK_ENV", "development")

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def bind_host(self) -> str:
        """Interface for the built-in server; loopback unless production or HOST is set."""
        return os.environ.get("HOST") or ("0.0.0.0" if self.is_production else "127.0.0.1")

    # ===== COGNITO =====

    @property
    def cognito_user_pool_id(self) -> str:
        return os.environ.get("COGNITO_USER_POOL_ID", "")

    @property
    def cognito_client_id(self) -> str:
        return os.environ.get("COGNITO_CLIENT_ID", "")

    @property
    def cognito_region(self) -> str:
        return os.environ.get("COGNITO_REGION", "us-east-1")

    @property
    def cognito_client_secret(self) -> Optional[str]:
        """Client secret, if the app client was created with one."""
        return os.environ.get("COGNITO_CLIENT_SECRET") or None

    # ===== STORAGE =====

    @property
    def aws_region(self) -> str:
        return os.environ.get("AWS_REGION", "us-east-1")

    @property
    def s3_bucket(self) -> str:
        return os.environ.get("AWS_S3_BUCKET", "")

    @property
    def presigned_url_ttl(self) -> int:
        """Seconds a presigned download URL stays valid."""
        return int(self._config["storage"]["presigned_url_ttl"])

    @property
    def max_upload_bytes(self) -> int:
        return int(self._config["uploads"]["max_file_mb"]) * 1024 * 1024

    # ===== AI =====

    @property
    def ai_provider(self) -> str:
        return str(self._config["ai"]["provider"]).lower()

    @property
    def ai_model(self) -> Optional[str]:
        return self._config["ai"].get("model")

    @property
    def ai_chat_model(self) -> Optional[str]:
        return self._config["ai"].get("chat_model") or self.ai_model

    @property
    def networking_history_limit(self) -> int:
        """How many stored messages the networking coach sees."""
        return int(self._config["chat"]["networking_history_limit"])

    @property
    def context_char_limit(self) -> int:
        """Max characters of resume / job description sent to the job coach."""
        return int(self._config["chat"]["context_char_limit"])


_config_instance: Optional[Config] = None


def get_config(config_path: Optional[Path] = None) -> Config:
    """
    Get the shared configuration instance.

    Args:
        config_path: Optional path to config.yaml (only used on first call)

    Returns:
        Config instance
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = Config(config_path)
    return _config_instance


def reset_config() -> None:
    """Drop the cached configuration (used by tests)."""
    global _config_instance
    _config_instance = None
