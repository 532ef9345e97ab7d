"""Configuration for the webaccept harness."""

from webaccept.config.settings import Settings, coerce_settings, get_settings

__all__ = ["Settings", "coerce_settings", "get_settings"]
