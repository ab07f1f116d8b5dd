"""Configuration settings for browser_images.

Uses pydantic-settings for config parsing from environment variables
and defaults. Configuration precedence: CLI flags > env vars > defaults.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DRIVER_METADATA_URL = "https://chromedriver.storage.googleapis.com/"
DEFAULT_DRIVER_DOWNLOAD_URL = (
    "http://chromedriver.storage.googleapis.com/{version}/chromedriver_linux64.zip"
)


class Settings(BaseSettings):
    """Application settings.

    Settings are loaded from environment variables with the BROWSER_IMAGES_
    prefix. CLI flags can override these at runtime.
    """

    model_config = SettingsConfigDict(
        env_prefix="BROWSER_IMAGES_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Driver endpoints
    driver_metadata_url: str = Field(
        default=DEFAULT_DRIVER_METADATA_URL,
        description="Base URL serving LATEST_RELEASE[_<suffix>] files",
    )
    driver_download_url: str = Field(
        default=DEFAULT_DRIVER_DOWNLOAD_URL,
        description="Driver archive URL template ({version} is substituted)",
    )
    request_timeout: float | None = Field(
        default=None,
        gt=0,
        description="HTTP timeout in seconds (unset means no deadline)",
    )

    # Paths
    tmp_dir: Path | None = Field(
        default=None,
        description="Parent directory for build contexts (system default if not set)",
    )
    keep_build_dirs: bool = Field(
        default=False,
        description="Keep temporary build contexts after the run",
    )

    # Docker
    docker_binary: str = Field(
        default="docker",
        description="Docker CLI executable",
    )
    build_timeout: int | None = Field(
        default=None,
        ge=60,
        description="Timeout for docker commands in seconds (unset means none)",
    )
    file_server_host: str = Field(
        default="host.docker.internal",
        description="Host name build containers use to reach the file server",
    )

    # Tests
    test_command: str = Field(
        default="mvn clean test",
        description="Command run in the tests directory against a started image",
    )
    test_port: int = Field(
        default=4444,
        ge=1,
        le=65535,
        description="Container port the browser service listens on",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )


def get_settings() -> Settings:
    """Get the application settings.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()


def print_settings_json(settings: Settings | None = None) -> str:
    """Render effective settings as JSON.

    Args:
        settings: Optional settings instance; uses default if not provided.

    Returns:
        JSON string of effective settings.
    """
    if settings is None:
        settings = get_settings()
    return settings.model_dump_json(indent=2)


__all__ = [
    "DEFAULT_DRIVER_DOWNLOAD_URL",
    "DEFAULT_DRIVER_METADATA_URL",
    "Settings",
    "get_settings",
    "print_settings_json",
]
