"""
FastAPI Dependency Injection Providers.

    1. get_settings() - Loads and caches application configuration
    2. get_conversion_service() - Creates/returns the process-wide service

The service (and its boto3 clients) is built once per process. Tests
replace get_conversion_service through app.dependency_overrides.
"""
from __future__ import annotations

from functools import lru_cache

from tts_store.core.config import Settings, load_settings_or_env
from tts_store.services.conversion_service import ConversionService, get_service


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Load and cache application settings.

    Reads TTS_STORE_SETTINGS (default config/settings.yaml) when the file
    exists, otherwise configuration comes from environment variables only.
    """
    return load_settings_or_env()


def get_conversion_service() -> ConversionService:
    """Get the process-wide ConversionService instance."""
    return get_service(get_settings())
