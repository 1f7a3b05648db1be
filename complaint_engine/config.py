"""
Centralized settings for the complaint engine.

Provides a lightweight wrapper around environment variables (with `.env`
support for local development) so the rest of the codebase can import a single
`get_settings()` helper when configuration is needed. An absent
`GROQ_API_KEY` is not an error: it switches the remote classifier off.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional
import os

from dotenv import dotenv_values


DEFAULT_GROQ_API_URL = "https://api.groq.com/openai/v1/chat/completions"
DEFAULT_GROQ_MODEL = "llama-3.1-8b-instant"


@dataclass(frozen=True)
class Settings:
    """Immutable view of application configuration."""

    # General
    environment: str

    # Remote classification
    groq_api_key: Optional[str]
    groq_model: str
    groq_api_url: str
    classifier_timeout: float
    classify_debounce_seconds: float
    classify_min_length: int

    # Listing
    page_size: int

    # SLA monitoring
    sla_check_interval_seconds: float
    sla_warning_threshold: float

    # Demo data
    seed_demo_data: bool
    demo_complaint_count: int

    # Notifications
    notification_limit: int

    # Observability
    log_level: str
    log_json: bool


def _as_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_lookup(key: str, env: dict[str, str], default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(key) or env.get(key) or default


def load_settings(env_path: Optional[Path] = None) -> Settings:
    """Build settings from the process environment and an optional `.env` file."""

    env_path = env_path or Path(__file__).resolve().parents[1] / ".env"
    env_file = dotenv_values(str(env_path)) if env_path.exists() else {}

    return Settings(
        environment=_env_lookup("APP_ENV", env_file, "development"),
        groq_api_key=_env_lookup("GROQ_API_KEY", env_file),
        groq_model=_env_lookup("GROQ_MODEL", env_file, DEFAULT_GROQ_MODEL),
        groq_api_url=_env_lookup("GROQ_API_URL", env_file, DEFAULT_GROQ_API_URL),
        classifier_timeout=float(_env_lookup("CLASSIFIER_TIMEOUT_SECONDS", env_file, "10")),
        classify_debounce_seconds=float(_env_lookup("CLASSIFY_DEBOUNCE_SECONDS", env_file, "0.5")),
        classify_min_length=int(_env_lookup("CLASSIFY_MIN_LENGTH", env_file, "10")),
        page_size=int(_env_lookup("PAGE_SIZE", env_file, "10")),
        sla_check_interval_seconds=float(_env_lookup("SLA_CHECK_INTERVAL_SECONDS", env_file, "60")),
        sla_warning_threshold=float(_env_lookup("SLA_WARNING_THRESHOLD", env_file, "0.75")),
        seed_demo_data=_as_bool(_env_lookup("SEED_DEMO_DATA", env_file, "false")),
        demo_complaint_count=int(_env_lookup("DEMO_COMPLAINT_COUNT", env_file, "120")),
        notification_limit=int(_env_lookup("NOTIFICATION_LIMIT", env_file, "50")),
        log_level=_env_lookup("LOG_LEVEL", env_file, "INFO").upper(),
        log_json=_as_bool(_env_lookup("LOG_JSON", env_file, "true"), True),
    )


@lru_cache()
def get_settings() -> Settings:
    """Load settings once per process."""
    return load_settings()


__all__ = ["Settings", "get_settings", "load_settings"]
