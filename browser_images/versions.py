"""Package version helpers.

Truncation helpers operate on dotted version strings without validating
them: a version with fewer segments than requested is returned unchanged.
"""

import re

# Characters allowed in a docker tag besides alphanumerics
_TAG_INVALID_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


def truncate_version(version: str, n: int) -> str:
    """Keep the first ``n`` dotted segments of a version.

    Args:
        version: Dotted version string (e.g. '116.0.5845.96').
        n: Number of segments to keep.

    Returns:
        Truncated version, or ``version`` unchanged if it has fewer
        than ``n`` segments.
    """
    pieces = version.split(".")
    if len(pieces) >= n:
        return ".".join(pieces[:n])
    return version


def major_version(version: str) -> str:
    """Return the major segment ('116.0.5845.96' -> '116')."""
    return truncate_version(version, 1)


def major_minor_version(version: str) -> str:
    """Return major.minor ('116.0.5845.96' -> '116.0')."""
    return truncate_version(version, 2)


def build_version(version: str) -> str:
    """Return major.minor.build ('116.0.5845.96' -> '116.0.5845')."""
    return truncate_version(version, 3)


def extract_version(package_version: str) -> str:
    """Derive an image tag version from a raw package version.

    Debian epoch and revision are stripped, the result is cut to
    major.minor and a zero minor is dropped. Characters not allowed
    in a docker tag are replaced with '_'.

    Args:
        package_version: Raw package version (e.g. '106.0.5249.61-1').

    Returns:
        Tag-safe version (e.g. '106').
    """
    version = package_version.strip()
    if ":" in version:
        version = version.split(":", 1)[1]
    version = version.split("-", 1)[0]

    tag_version = major_minor_version(version)
    major, _, minor = tag_version.partition(".")
    if minor == "0":
        tag_version = major

    return _TAG_INVALID_CHARS.sub("_", tag_version)


__all__ = [
    "build_version",
    "extract_version",
    "major_minor_version",
    "major_version",
    "truncate_version",
]
