"""Shared type definitions for browser_images.

This module contains enums and constants shared across subpackages
to avoid circular imports.
"""

from enum import Enum

# Driver version value asking for a lookup of the matching driver release
LATEST_VERSION = "latest"


class BrowserChannel(str, Enum):
    """Browser release channel."""

    STABLE = ""
    BETA = "beta"
    DEV = "dev"

    @classmethod
    def parse(cls, value: "str | BrowserChannel | None") -> "BrowserChannel":
        """Map a raw channel value to a channel.

        Matching is exact. "stable", empty and unrecognized values
        (including "BETA" or " dev") all map to STABLE.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(value or "")
        except ValueError:
            return cls.STABLE


class BuildStage(str, Enum):
    """Stage reached by a browser image build."""

    IDLE = "idle"
    SOURCE_PREPARED = "source_prepared"
    DEV_IMAGE_BUILT = "dev_image_built"
    DRIVER_RESOLVED = "driver_resolved"
    FINAL_IMAGE_BUILT = "final_image_built"
    TESTED = "tested"
    PUSHED = "pushed"
    DONE = "done"
    FAILED = "failed"


__all__ = [
    "LATEST_VERSION",
    "BrowserChannel",
    "BuildStage",
]
