"""Logging setup for processes that embed the billing engine."""

import logging

from src.core.config import Settings, settings as default_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(settings: Settings | None = None) -> None:
    """Configure root logging at the configured level (DEBUG when debug is on in development)."""
    settings = settings or default_settings
    level = settings.log_level
    if settings.debug and not settings.is_production:
        level = "DEBUG"
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)
