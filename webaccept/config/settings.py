"""Configuration management for the webaccept harness."""

from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


BROWSER_ALIASES = {
    "chrome": "chromium",
    "googlechrome": "chromium",
    "chromium": "chromium",
    "firefox": "firefox",
    "ff": "firefox",
    "webkit": "webkit",
    "safari": "webkit",
}


class Settings(BaseSettings):
    """Suite settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="WEBACCEPT_",
        case_sensitive=False,
        extra="ignore",
    )

    # Suite identity
    branch: str = Field(default="default", description="Branch under test")
    build_number: str = Field(default="0", description="CI build number")
    shop_version: str = Field(default="", description="Version label of the system under test")
    suite_name: str = Field(default="Acceptance Suite", description="Suite display name")

    # Target application
    base_url: str = Field(default="http://localhost", description="Base URL of the application")
    web_app: str = Field(default="", description="Path segment of the web application")
    cases_package: str = Field(
        default="cases",
        description="Python package test cases are resolved in; empty for registered cases only",
    )

    # Browser Configuration
    browser: str = Field(default="chromium", description="Browser engine")
    browser_ws_endpoint: Optional[str] = Field(
        default=None, description="Remote Playwright endpoint to connect to"
    )
    browser_headless: bool = Field(
        default=True, description="Run browser in headless mode"
    )
    browser_timeout: int = Field(
        default=30000, ge=1000, description="Default browser timeout (ms)"
    )
    browser_viewport_width: int = Field(
        default=1920, ge=320, description="Browser viewport width"
    )
    browser_viewport_height: int = Field(
        default=1080, ge=240, description="Browser viewport height"
    )
    scroll_x_offset: int = Field(default=0, description="Horizontal offset when scrolling to elements")
    scroll_y_offset: int = Field(default=0, description="Vertical offset when scrolling to elements")

    # Evidence Configuration
    logging_directory: Path = Field(
        default=Path("logs"), description="Root directory of run evidence"
    )
    logging_directory_name: str = Field(
        default="develop", description="Evidence subdirectory below the build number"
    )
    log_displayed: bool = Field(default=True, description="Narrate case output to the console")
    log_stored: bool = Field(default=True, description="Append case output to the evidence log")

    # Run database
    database_path: Optional[Path] = Field(
        default=Path("data/webaccept.sqlite3"),
        description="SQLite file for suite/case records; unset disables recording",
    )

    # Mail Configuration
    send_error_mail: bool = Field(default=False, description="Mail a digest when a suite fails")
    mail_from: str = Field(default="", description="Sender address")
    mail_to: str = Field(default="", description="Recipient address")
    mail_reply_to: str = Field(default="", description="Reply-to address")
    smtp_host: str = Field(default="localhost", description="SMTP host")
    smtp_port: int = Field(default=25, ge=1, le=65535, description="SMTP port")

    # Visual comparison
    compare_image_dir: Path = Field(
        default=Path("data/compare"), description="Directory of verification images"
    )
    diff_image_dir: Path = Field(
        default=Path("data/diff"), description="Directory for image differences"
    )

    # Execution Configuration
    wait_timeout: float = Field(default=30, gt=0, description="Default wait timeout (s)")
    wait_interval: int = Field(default=250, ge=1, description="Default poll interval (ms)")
    lookup_attempts: int = Field(default=2, ge=1, description="Element lookup attempts")
    open_url_attempts: int = Field(default=5, ge=1, description="Soft navigation attempts")

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_format: str = Field(
        default="text",
        description="Log format (json or text)",
    )
    log_file: Optional[str] = Field(
        default=None, description="Log file path"
    )

    @field_validator("log_level")
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()

    @field_validator("log_format")
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        if v not in ["json", "text"]:
            raise ValueError(f"Invalid log format: {v}")
        return v

    @field_validator("browser")
    def validate_browser(cls, v: str) -> str:
        """Normalize browser names to Playwright engines."""
        key = v.strip().lower().replace(" ", "")
        if key not in BROWSER_ALIASES:
            raise ValueError(f"Unsupported browser: {v}")
        return BROWSER_ALIASES[key]

    @property
    def evidence_root(self) -> Path:
        """Run-specific evidence directory."""
        return self.logging_directory / str(self.build_number) / self.logging_directory_name

    @property
    def application_url(self) -> str:
        """Base URL joined with the web application segment."""
        parts = [self.base_url.rstrip("/")]
        if self.web_app:
            parts.append(self.web_app.strip("/"))
        return "/".join(parts)

    def create_directories(self) -> None:
        """Create required directories if they don't exist."""
        dirs = [self.evidence_root / "screenshots"]
        if self.database_path is not None:
            dirs.append(self.database_path.parent)
        for dir_path in dirs:
            dir_path.mkdir(parents=True, exist_ok=True)


SettingsSource = Union[Settings, Mapping[str, Any], None]


def coerce_settings(source: SettingsSource) -> Settings:
    """
    Build suite settings from an instance, a plain mapping or nothing.

    Args:
        source: Settings instance, mapping of field values, or None for defaults

    Returns:
        Settings instance

    Raises:
        TypeError: If source is of any other type
    """
    if source is None:
        return get_settings()
    if isinstance(source, Settings):
        return source
    if isinstance(source, Mapping):
        return Settings(**dict(source))
    raise TypeError(
        f"Settings must be a Settings instance, a mapping or None, got {type(source).__name__}"
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    # Load .env file if it exists
    env_file = Path(".env")
    if env_file.exists():
        load_dotenv(env_file)

    return Settings()
