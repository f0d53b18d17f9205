"""Configuration module for the Mozza ledger."""

from mozza_ledger.config.logging import configure_logging
from mozza_ledger.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings", "configure_logging"]
