"""
Configuration singleton for the compliance API.

This module provides direct access to configuration values
without requiring service imports.
"""

import os
from typing import Any

from dotenv import load_dotenv

# Load environment variables
load_dotenv(verbose=True)

# Global configuration dictionary
_config = {}


def _load_config_from_env() -> None:
    """Load configuration from environment variables."""

    # LLM configuration
    _config["gemini_api_key"] = os.getenv("GEMINI_API_KEY", "")
    _config["gemini_model_name"] = os.getenv("GEMINI_MODEL_NAME", "gemini-2.0-flash")
    _config["gemini_temperature"] = float(os.getenv("GEMINI_TEMPERATURE", "0.7"))
    _config["gemini_max_output_tokens"] = int(os.getenv("GEMINI_MAX_OUTPUT_TOKENS", "4000"))
    # Retry only applies to overload answers (HTTP 429/503).
    _config["llm_max_retries"] = int(os.getenv("LLM_MAX_RETRIES", "2"))
    _config["llm_retry_delay"] = float(os.getenv("LLM_RETRY_DELAY", "3.0"))
    _config["rag_document_max_chars"] = int(os.getenv("RAG_DOCUMENT_MAX_CHARS", "8000"))

    # Persistence and sessions
    _config["database_url"] = os.getenv("DATABASE_URL", "sqlite:///./rgpd_compliance.db")
    _config["session_secret"] = os.getenv("SESSION_SECRET", "change-me-in-production")
    _config["session_max_age"] = int(os.getenv("SESSION_MAX_AGE", str(7 * 24 * 3600)))

    # Business rules
    _config["invitation_ttl_days"] = int(os.getenv("INVITATION_TTL_DAYS", "7"))
    _config["dsr_response_months"] = int(os.getenv("DSR_RESPONSE_MONTHS", "1"))

    # API configuration
    _config["api_port"] = int(os.getenv("API_PORT", "8000"))
    _config["api_host"] = os.getenv("API_HOST", "0.0.0.0")
    _config["debug"] = os.getenv("DEBUG", "false").lower() == "true"
    _config["environment"] = os.getenv("ENVIRONMENT", "development")
    _config["rate_limit_enabled"] = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
    _config["ai_rate_limit"] = os.getenv("AI_RATE_LIMIT", "20/minute")
    _config["max_upload_size"] = int(os.getenv("MAX_UPLOAD_SIZE", str(10 * 1024 * 1024)))


def get_config(key: str, default: Any = None) -> Any:
    """
    Get configuration value by key.

    Args:
        key: Configuration key
        default: Default value if key not found

    Returns:
        Configuration value
    """
    # Make sure config is loaded
    if not _config:
        _load_config_from_env()
    return _config.get(key, default)


def set_config(key: str, value: Any) -> None:
    """
    Set configuration value.

    Args:
        key: Configuration key
        value: Configuration value
    """
    _config[key] = value


# Initialize configuration
_load_config_from_env()
