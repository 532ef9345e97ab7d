"""
Unit tests for configuration management.
"""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from webaccept.config.settings import Settings, coerce_settings, get_settings


class TestSettings:
    """Tests for Settings model."""

    def test_default_settings(self):
        """Test default settings values."""
        settings = Settings(_env_file=None)

        assert settings.branch == "default"
        assert settings.build_number == "0"
        assert settings.suite_name == "Acceptance Suite"
        assert settings.browser == "chromium"
        assert settings.browser_headless is True
        assert settings.wait_timeout == 30
        assert settings.wait_interval == 250
        assert settings.lookup_attempts == 2
        assert settings.open_url_attempts == 5
        assert settings.send_error_mail is False
        assert settings.log_level == "INFO"

    def test_settings_from_env(self):
        """Test loading settings from prefixed environment variables."""
        with patch.dict(os.environ, {
            "WEBACCEPT_BRANCH": "release",
            "WEBACCEPT_BUILD_NUMBER": "117",
            "WEBACCEPT_WAIT_TIMEOUT": "12.5",
            "WEBACCEPT_SEND_ERROR_MAIL": "true",
        }):
            settings = Settings(_env_file=None)

            assert settings.branch == "release"
            assert settings.build_number == "117"
            assert settings.wait_timeout == 12.5
            assert settings.send_error_mail is True

    def test_log_level_validation(self):
        """Test log level validation."""
        assert Settings(_env_file=None, log_level="debug").log_level == "DEBUG"

        with pytest.raises(ValueError, match="Invalid log level"):
            Settings(_env_file=None, log_level="LOUD")

    def test_log_format_validation(self):
        with pytest.raises(ValueError, match="Invalid log format"):
            Settings(_env_file=None, log_format="xml")

    @pytest.mark.parametrize("alias,engine", [
        ("Chrome", "chromium"),
        ("google chrome", "chromium"),
        ("ff", "firefox"),
        ("Safari", "webkit"),
    ])
    def test_browser_aliases(self, alias, engine):
        assert Settings(_env_file=None, browser=alias).browser == engine

    def test_unsupported_browser(self):
        with pytest.raises(ValueError, match="Unsupported browser"):
            Settings(_env_file=None, browser="netscape")

    def test_numeric_validation(self):
        with pytest.raises(ValueError):
            Settings(_env_file=None, wait_timeout=0)
        with pytest.raises(ValueError):
            Settings(_env_file=None, lookup_attempts=0)

    def test_evidence_root(self):
        settings = Settings(
            _env_file=None,
            logging_directory=Path("/var/evidence"),
            build_number="7",
            logging_directory_name="nightly",
        )
        assert settings.evidence_root == Path("/var/evidence/7/nightly")

    def test_application_url(self):
        settings = Settings(_env_file=None, base_url="https://shop.test/", web_app="/store/")
        assert settings.application_url == "https://shop.test/store"

        settings = Settings(_env_file=None, base_url="https://shop.test")
        assert settings.application_url == "https://shop.test"

    def test_create_directories(self, tmp_path):
        settings = Settings(
            _env_file=None,
            logging_directory=tmp_path / "logs",
            database_path=tmp_path / "db" / "runs.sqlite3",
        )
        settings.create_directories()

        assert (settings.evidence_root / "screenshots").is_dir()
        assert (tmp_path / "db").is_dir()


class TestCoerceSettings:
    """Tests for building settings from loose input."""

    def test_instance_is_returned_unchanged(self):
        settings = Settings(_env_file=None)
        assert coerce_settings(settings) is settings

    def test_mapping_builds_settings(self):
        settings = coerce_settings({"suite_name": "Checkout", "lookup_attempts": 3})

        assert isinstance(settings, Settings)
        assert settings.suite_name == "Checkout"
        assert settings.lookup_attempts == 3

    def test_none_uses_cached_settings(self):
        assert coerce_settings(None) is get_settings()

    @pytest.mark.parametrize("source", [42, "suite.ini", ["suite_name"]])
    def test_unsupported_type(self, source):
        with pytest.raises(TypeError, match="Settings must be"):
            coerce_settings(source)
