"""Tests for build/requirements.py module."""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from browser_images.build.requirements import BuildRequirements, load_requirements
from browser_images.types import BrowserChannel


class TestBuildRequirements:
    """Tests for BuildRequirements model."""

    def test_defaults(self):
        requirements = BuildRequirements()

        assert requirements.no_cache is False
        assert requirements.tags == []
        assert requirements.build_args == []
        assert requirements.labels == []
        assert requirements.tests_dir is None
        assert requirements.browser_channel is BrowserChannel.STABLE
        assert requirements.driver_version == "latest"
        assert requirements.push is False

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("beta", BrowserChannel.BETA),
            ("dev", BrowserChannel.DEV),
            ("stable", BrowserChannel.STABLE),
            ("unknown", BrowserChannel.STABLE),
            ("", BrowserChannel.STABLE),
        ],
    )
    def test_channel_parsing(self, raw, expected):
        assert BuildRequirements(browser_channel=raw).browser_channel is expected

    def test_invalid_build_arg(self):
        with pytest.raises(ValidationError):
            BuildRequirements(build_args=["NOVALUE"])

    def test_invalid_label(self):
        with pytest.raises(ValidationError):
            BuildRequirements(labels=["=value"])

    def test_empty_driver_version(self):
        with pytest.raises(ValidationError):
            BuildRequirements(driver_version="")

    def test_unknown_field(self):
        with pytest.raises(ValidationError):
            BuildRequirements(registry="example.com")


class TestLoadRequirements:
    """Tests for load_requirements function."""

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "chrome.yaml"
        path.write_text(
            """
no_cache: true
tags:
  - selenoid/chrome:106.0
build_args:
  - FOO=bar
browser_channel: beta
driver_version: 106.0.5249.61
tests_dir: tests
"""
        )
        requirements = load_requirements(path)

        assert requirements.no_cache is True
        assert requirements.tags == ["selenoid/chrome:106.0"]
        assert requirements.build_args == ["FOO=bar"]
        assert requirements.browser_channel is BrowserChannel.BETA
        assert requirements.driver_version == "106.0.5249.61"
        assert requirements.tests_dir == Path("tests")

    def test_load_json(self, tmp_path):
        path = tmp_path / "chrome.json"
        path.write_text(json.dumps({"tags": ["a:1"], "push": True}))

        requirements = load_requirements(path)

        assert requirements.tags == ["a:1"]
        assert requirements.push is True

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_requirements(path) == BuildRequirements()

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="Expected a mapping"):
            load_requirements(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_requirements(tmp_path / "missing.yaml")
