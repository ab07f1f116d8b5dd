"""Channel-specific build arguments for Chrome images."""

from browser_images.types import BrowserChannel


def channel_build_args(channel: BrowserChannel | str | None) -> list[str]:
    """Return package build arguments for a release channel.

    Args:
        channel: Release channel; unrecognized values are treated as stable.

    Returns:
        List of KEY=VALUE build arguments (empty for stable).
    """
    # parse() folds unknown values into STABLE
    match BrowserChannel.parse(channel):
        case BrowserChannel.BETA:
            return ["PACKAGE=google-chrome-beta", "INSTALL_DIR=chrome-beta"]
        case BrowserChannel.DEV:
            return ["PACKAGE=google-chrome-unstable", "INSTALL_DIR=chrome-unstable"]
        case BrowserChannel.STABLE:
            return []


__all__ = ["channel_build_args"]
