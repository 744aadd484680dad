"""
Application configuration (env, settings, constants).

Responsibility: Centralize config loading, environment variables, and app-wide
constants. Keeps the rest of the app decoupled from how config is sourced.
"""

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

from app.core.errors import ConfigurationError

load_dotenv()

# OpenAI (generation + vector store search share one credential)
OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "").strip()
OPENAI_VECTOR_STORE_ID: str = os.getenv("OPENAI_VECTOR_STORE_ID", "").strip()

# Vision-capable model for image attachments and the fallback path; lighter model otherwise.
OPENAI_VISION_MODEL: str = os.getenv("OPENAI_VISION_MODEL", "gpt-4o").strip() or "gpt-4o"
OPENAI_TEXT_MODEL: str = (
    os.getenv("OPENAI_TEXT_MODEL", "gpt-4o-mini").strip() or "gpt-4o-mini"
)


def _log_level(value: str) -> str:
    """Normalise a level name; unknown names fall back to INFO."""
    name = value.strip().upper()
    return name if isinstance(logging.getLevelName(name), int) else "INFO"


LOG_LEVEL: str = _log_level(os.getenv("LOG_LEVEL", "INFO"))

# Retrieval
MAX_SEARCH_RESULTS: int = 10
PRIMARY_SOURCE_MARKER: str = "BBS_wheels.json"
CONTEXT_SEPARATOR: str = "\n\n---\n\n"

# Generation
TEMPERATURE: float = 0.3
MAX_DURATION_SECONDS: float = 30.0

# URL audit: only links on this domain must come from retrieved collection_url values
TRUSTED_URL_DOMAIN: str = "BBSwheels.com"


@dataclass(frozen=True)
class Settings:
    """Per-process settings handed to the request handler."""

    openai_api_key: str
    vector_store_id: str
    vision_model: str = OPENAI_VISION_MODEL
    text_model: str = OPENAI_TEXT_MODEL
    max_search_results: int = MAX_SEARCH_RESULTS
    primary_source_marker: str = PRIMARY_SOURCE_MARKER
    context_separator: str = CONTEXT_SEPARATOR
    temperature: float = TEMPERATURE
    max_duration_seconds: float = MAX_DURATION_SECONDS
    trusted_url_domain: str = TRUSTED_URL_DOMAIN


def load_settings() -> Settings:
    """
    Build Settings from the environment. Raises ConfigurationError listing every
    missing required variable (API key, vector store id).
    """
    missing = [
        name
        for name, value in (
            ("OPENAI_API_KEY", OPENAI_API_KEY),
            ("OPENAI_VECTOR_STORE_ID", OPENAI_VECTOR_STORE_ID),
        )
        if not value
    ]
    if missing:
        raise ConfigurationError(missing)
    return Settings(
        openai_api_key=OPENAI_API_KEY,
        vector_store_id=OPENAI_VECTOR_STORE_ID,
    )
