"""WebDriver resolution and download.

This module handles:
- Resolving the 'latest' driver version from LATEST_RELEASE metadata files
- Downloading a driver archive and extracting the driver binary

Requests use whatever timeout the supplied client carries.
"""

from __future__ import annotations

import logging
import re
import stat
import tempfile
import zipfile
from pathlib import Path

import httpx

from browser_images.config import DEFAULT_DRIVER_METADATA_URL
from browser_images.types import LATEST_VERSION, BrowserChannel
from browser_images.versions import build_version, major_version

logger = logging.getLogger(__name__)

CHROMEDRIVER_BINARY = "chromedriver"

# Chunk size for downloads (bytes)
DOWNLOAD_CHUNK_SIZE = 64 * 1024

# Signed ASCII decimal, no surrounding whitespace or digit separators
_INTEGER_RE = re.compile(r"[+-]?[0-9]+")


class DriverVersionError(Exception):
    """Raised when a driver version cannot be resolved."""

    def __init__(
        self,
        message: str,
        code: str = "driver_version_error",
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.status_code = status_code


class DriverDownloadError(Exception):
    """Raised when a driver binary cannot be downloaded or extracted."""

    def __init__(self, message: str, code: str = "download_error") -> None:
        super().__init__(message)
        self.code = code


def fetch_version(client: httpx.Client, url: str) -> str:
    """Fetch a version string from a metadata URL.

    Args:
        client: HTTPX client instance.
        url: URL of a plain-text version file.

    Returns:
        Response body as text.

    Raises:
        DriverVersionError: On transport failure or a non-200 response.
    """
    logger.debug("Fetching driver version from %s", url)

    try:
        response = client.get(url)
    except httpx.InvalidURL as e:
        raise DriverVersionError(
            f"invalid URL {url}: {e}",
            code="invalid_url",
        ) from e
    except httpx.RequestError as e:
        raise DriverVersionError(
            f"request error: {e}",
            code="network_error",
        ) from e

    if response.status_code != httpx.codes.OK:
        raise DriverVersionError(
            f"unsuccessful response: {response.status_code} {response.reason_phrase}",
            code="http_error",
            status_code=response.status_code,
        )
    return response.text


def latest_driver_version(
    client: httpx.Client,
    channel: BrowserChannel,
    package_version: str,
    base_url: str = DEFAULT_DRIVER_METADATA_URL,
) -> str:
    """Look up the latest driver release matching a browser version.

    Dev channel browsers are usually ahead of published drivers, so the
    LATEST_RELEASE_<major> file is tried up to <major> times before falling
    back to the global LATEST_RELEASE file. Other channels query
    LATEST_RELEASE_<major.minor.build> exactly once.

    Args:
        client: HTTPX client instance.
        channel: Browser release channel.
        package_version: Raw browser package version.
        base_url: Metadata base URL (with trailing slash).

    Returns:
        Driver version string.

    Raises:
        DriverVersionError: If the version cannot be resolved.
    """
    if channel is BrowserChannel.DEV:
        major = major_version(package_version)
        if not _INTEGER_RE.fullmatch(major):
            raise DriverVersionError(
                f"chrome major version: invalid integer {major!r}",
                code="version_parse",
            )
        chrome_major_version = int(major)

        # NOTE: every attempt targets the same major version
        for _ in range(chrome_major_version, 0, -1):
            url = f"{base_url}LATEST_RELEASE_{chrome_major_version}"
            try:
                return fetch_version(client, url)
            except DriverVersionError as e:
                logger.debug("No driver release at %s: %s", url, e)

        return fetch_version(client, f"{base_url}LATEST_RELEASE")

    chrome_build_version = build_version(package_version)
    return fetch_version(client, f"{base_url}LATEST_RELEASE_{chrome_build_version}")


def resolve_driver_version(
    client: httpx.Client,
    requested_version: str,
    channel: BrowserChannel | str | None,
    package_version: str,
    base_url: str = DEFAULT_DRIVER_METADATA_URL,
) -> str:
    """Resolve a requested driver version to a concrete one.

    Explicit versions are returned unchanged without network access.

    Raises:
        DriverVersionError: If 'latest' cannot be resolved.
    """
    if requested_version != LATEST_VERSION:
        return requested_version

    try:
        version = latest_driver_version(
            client, BrowserChannel.parse(channel), package_version, base_url
        )
    except DriverVersionError as e:
        raise DriverVersionError(
            f"latest chromedriver version: {e}",
            code=e.code,
            status_code=e.status_code,
        ) from e

    logger.info("Resolved latest driver version: %s", version)
    return version


def download_driver(
    client: httpx.Client,
    url: str,
    binary_name: str,
    dest_dir: Path,
    chunk_size: int = DOWNLOAD_CHUNK_SIZE,
) -> Path:
    """Download a zipped driver and extract its binary.

    Args:
        client: HTTPX client instance.
        url: Driver archive URL.
        binary_name: Base name of the binary inside the archive.
        dest_dir: Directory receiving the binary.
        chunk_size: Size of chunks to download.

    Returns:
        Path to the extracted, executable binary.

    Raises:
        DriverDownloadError: If download or extraction fails.
    """
    logger.info("Downloading driver from %s", url)

    with tempfile.TemporaryFile() as archive:
        try:
            with client.stream("GET", url) as response:
                response.raise_for_status()
                for chunk in response.iter_bytes(chunk_size):
                    archive.write(chunk)
        except httpx.InvalidURL as e:
            raise DriverDownloadError(
                f"Invalid driver URL {url}: {e}",
                code="invalid_url",
            ) from e
        except httpx.HTTPStatusError as e:
            raise DriverDownloadError(
                f"HTTP error downloading {url}: {e.response.status_code} {e.response.reason_phrase}",
                code="http_error",
            ) from e
        except httpx.TimeoutException as e:
            raise DriverDownloadError(
                f"Timeout downloading {url}",
                code="timeout",
            ) from e
        except httpx.RequestError as e:
            raise DriverDownloadError(
                f"Network error downloading {url}: {e}",
                code="network_error",
            ) from e

        archive.seek(0)
        try:
            with zipfile.ZipFile(archive) as zf:
                member = next(
                    (
                        info
                        for info in zf.infolist()
                        if not info.is_dir() and Path(info.filename).name == binary_name
                    ),
                    None,
                )
                if member is None:
                    raise DriverDownloadError(
                        f"{binary_name} not found in {url}",
                        code="binary_not_found",
                    )
                dest_dir.mkdir(parents=True, exist_ok=True)
                binary_path = dest_dir / binary_name
                with zf.open(member) as src, binary_path.open("wb") as dst:
                    while chunk := src.read(chunk_size):
                        dst.write(chunk)
        except zipfile.BadZipFile as e:
            raise DriverDownloadError(
                f"Invalid driver archive from {url}: {e}",
                code="archive_error",
            ) from e

    mode = binary_path.stat().st_mode
    binary_path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    logger.info("Extracted %s to %s", binary_name, binary_path)
    return binary_path


__all__ = [
    "CHROMEDRIVER_BINARY",
    "DriverDownloadError",
    "DriverVersionError",
    "download_driver",
    "fetch_version",
    "latest_driver_version",
    "resolve_driver_version",
]
