"""Application configuration and constants."""
from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_SEARCH_URL = "https://world.openfoodfacts.org/cgi/search.pl"
DEFAULT_PRODUCT_URL_TEMPLATE = "https://world.openfoodfacts.org/api/v0/product/{code}.json"


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name)
    return value if value is not None else default


@dataclass(frozen=True)
class Settings:
    """Simple settings container with environment variable overrides."""

    search_url: str = _get_env("OFF_SEARCH_URL", DEFAULT_SEARCH_URL)
    product_url_template: str = _get_env("OFF_PRODUCT_URL_TEMPLATE", DEFAULT_PRODUCT_URL_TEMPLATE)
    request_timeout_seconds: float = float(_get_env("OFF_TIMEOUT_SECONDS", "20"))
    user_agent: str = _get_env("OFF_USER_AGENT", "OpenFoodFactsViewer/1.0")
    log_level: str = _get_env("LOG_LEVEL", "INFO")


settings = Settings()
