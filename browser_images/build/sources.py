"""Browser package sources.

A browser source tells the build where the browser package comes from:
- a version installed from the remote package repository,
- a .deb file on disk,
- a .deb file downloaded over HTTP.

``prepare()`` returns ``(local_path, package_version)``. ``local_path`` is
None for repository installs; otherwise it is a staging file the caller
may move.
"""

from __future__ import annotations

import logging
import os
import re
import shutil
import tempfile
from pathlib import Path
from typing import Protocol
from urllib.parse import unquote, urlparse

import httpx

logger = logging.getLogger(__name__)

# name_<version>-<revision>_<arch>.deb
DEB_FILENAME_PATTERN = re.compile(
    r"^[^_]+_(?:\d+:)?(?P<version>\d[^_-]*)(?:-[^_]+)?_[^_]+\.deb$"
)

# Chunk size for downloads (bytes)
DOWNLOAD_CHUNK_SIZE = 64 * 1024


class SourceError(Exception):
    """Raised when a browser source cannot be prepared."""

    def __init__(self, message: str, code: str = "source_error") -> None:
        super().__init__(message)
        self.code = code


class BrowserSource(Protocol):
    """Something that can provide a browser package."""

    def prepare(self) -> tuple[Path | None, str]:
        """Return (local package path or None, package version)."""
        ...


def parse_deb_version(filename: str) -> str | None:
    """Extract the upstream version from a Debian package file name.

    Args:
        filename: File name such as 'google-chrome-stable_106.0.5249.61-1_amd64.deb'.

    Returns:
        Version string, or None if the name does not carry one.
    """
    match = DEB_FILENAME_PATTERN.match(filename)
    if match is None:
        return None
    return match.group("version")


def _staging_file() -> Path:
    fd, name = tempfile.mkstemp(prefix="browser-package-", suffix=".deb")
    os.close(fd)
    return Path(name)


def _package_version(filename: str, version: str | None) -> str:
    if version:
        return version
    parsed = parse_deb_version(filename)
    if parsed is None:
        raise SourceError(
            f"Cannot determine package version from {filename}; "
            "pass the version explicitly",
            code="unknown_version",
        )
    return parsed


class RepositorySource:
    """Browser installed from the remote package repository."""

    def __init__(self, version: str) -> None:
        self.version = version

    def prepare(self) -> tuple[Path | None, str]:
        if not self.version.strip():
            raise SourceError("Package version must not be empty", code="empty_version")
        return None, self.version.strip()


class LocalPackageSource:
    """Browser package file on disk.

    The file is copied to a staging location so the original survives
    being moved into a build context.
    """

    def __init__(self, path: Path, version: str | None = None) -> None:
        self.path = path
        self.version = version

    def prepare(self) -> tuple[Path | None, str]:
        if not self.path.is_file():
            raise SourceError(f"Package file not found: {self.path}", code="not_found")

        version = _package_version(self.path.name, self.version)
        staging_path = _staging_file()
        try:
            shutil.copyfile(self.path, staging_path)
        except OSError as e:
            staging_path.unlink(missing_ok=True)
            raise SourceError(
                f"Failed to stage {self.path}: {e}",
                code="os_error",
            ) from e

        logger.info("Using local package %s (version %s)", self.path, version)
        return staging_path, version


class PackageUrlSource:
    """Browser package downloaded over HTTP."""

    def __init__(
        self,
        url: str,
        client: httpx.Client,
        version: str | None = None,
    ) -> None:
        self.url = url
        self.client = client
        self.version = version

    def prepare(self) -> tuple[Path | None, str]:
        filename = unquote(urlparse(self.url).path.rsplit("/", 1)[-1])
        version = _package_version(filename, self.version)

        logger.info("Downloading package %s", self.url)
        staging_path = _staging_file()
        try:
            with self.client.stream("GET", self.url) as response:
                response.raise_for_status()
                with staging_path.open("wb") as f:
                    for chunk in response.iter_bytes(DOWNLOAD_CHUNK_SIZE):
                        f.write(chunk)
        except httpx.HTTPStatusError as e:
            staging_path.unlink(missing_ok=True)
            raise SourceError(
                f"HTTP error downloading {self.url}: {e.response.status_code}",
                code="http_error",
            ) from e
        except httpx.RequestError as e:
            staging_path.unlink(missing_ok=True)
            raise SourceError(
                f"Network error downloading {self.url}: {e}",
                code="network_error",
            ) from e

        return staging_path, version


def parse_browser_source(
    value: str,
    client: httpx.Client,
    version: str | None = None,
) -> BrowserSource:
    """Pick a browser source for a CLI value.

    Args:
        value: Package version, path to a .deb file, or http(s) URL.
        client: HTTPX client used by URL sources.
        version: Explicit package version for file and URL sources.

    Returns:
        BrowserSource instance.
    """
    if value.startswith(("http://", "https://")):
        return PackageUrlSource(value, client, version)

    path = Path(value).expanduser()
    if value.endswith(".deb") or path.is_file():
        return LocalPackageSource(path, version)

    return RepositorySource(value)


__all__ = [
    "BrowserSource",
    "LocalPackageSource",
    "PackageUrlSource",
    "RepositorySource",
    "SourceError",
    "parse_browser_source",
    "parse_deb_version",
]
