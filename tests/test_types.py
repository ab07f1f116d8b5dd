"""Tests for shared types."""

import pytest

from browser_images.build.channels import channel_build_args
from browser_images.types import LATEST_VERSION, BrowserChannel, BuildStage


class TestBrowserChannel:
    """Tests for BrowserChannel enum."""

    def test_values(self):
        assert BrowserChannel.STABLE.value == ""
        assert BrowserChannel.BETA.value == "beta"
        assert BrowserChannel.DEV.value == "dev"

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("beta", BrowserChannel.BETA),
            ("dev", BrowserChannel.DEV),
            ("DEV", BrowserChannel.STABLE),
            (" beta ", BrowserChannel.STABLE),
            ("", BrowserChannel.STABLE),
            ("stable", BrowserChannel.STABLE),
            ("canary", BrowserChannel.STABLE),
            (None, BrowserChannel.STABLE),
            (BrowserChannel.DEV, BrowserChannel.DEV),
        ],
    )
    def test_parse(self, raw, expected):
        """Should map raw values, falling back to stable."""
        assert BrowserChannel.parse(raw) is expected


class TestChannelBuildArgs:
    """Tests for channel_build_args function."""

    def test_beta(self):
        assert channel_build_args("beta") == [
            "PACKAGE=google-chrome-beta",
            "INSTALL_DIR=chrome-beta",
        ]

    def test_dev(self):
        assert channel_build_args(BrowserChannel.DEV) == [
            "PACKAGE=google-chrome-unstable",
            "INSTALL_DIR=chrome-unstable",
        ]

    @pytest.mark.parametrize(
        "raw", ["", "stable", "canary", None, "BETA", "Beta", " beta ", "DEV"]
    )
    def test_default_is_empty(self, raw):
        """Stable and unrecognized channels add no build args."""
        assert channel_build_args(raw) == []

    def test_returns_fresh_list(self):
        """Callers may extend the returned list."""
        args = channel_build_args("beta")
        args.append("X=1")
        assert channel_build_args("beta") == [
            "PACKAGE=google-chrome-beta",
            "INSTALL_DIR=chrome-beta",
        ]


class TestConstants:
    def test_latest_sentinel(self):
        assert LATEST_VERSION == "latest"

    def test_build_stages(self):
        assert BuildStage.IDLE.value == "idle"
        assert BuildStage.DONE.value == "done"
        assert BuildStage.FAILED.value == "failed"
