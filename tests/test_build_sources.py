"""Tests for build/sources.py module."""

import httpx
import pytest
import respx

from browser_images.build.sources import (
    LocalPackageSource,
    PackageUrlSource,
    RepositorySource,
    SourceError,
    parse_browser_source,
    parse_deb_version,
)


class TestParseDebVersion:
    """Tests for parse_deb_version function."""

    def test_standard_name(self):
        assert (
            parse_deb_version("google-chrome-stable_106.0.5249.61-1_amd64.deb")
            == "106.0.5249.61"
        )

    def test_without_revision(self):
        assert parse_deb_version("google-chrome-beta_107.0.5304.18_amd64.deb") == (
            "107.0.5304.18"
        )

    def test_with_epoch(self):
        assert parse_deb_version("chromium_1:108.0.1-2_amd64.deb") == "108.0.1"

    def test_current_alias(self):
        """Aliases like 'current' carry no version."""
        assert parse_deb_version("google-chrome-stable_current_amd64.deb") is None

    def test_not_a_deb(self):
        assert parse_deb_version("chrome.zip") is None


class TestRepositorySource:
    """Tests for RepositorySource."""

    def test_prepare(self):
        assert RepositorySource("106.0.5249.61").prepare() == (None, "106.0.5249.61")

    def test_empty_version(self):
        with pytest.raises(SourceError) as exc_info:
            RepositorySource("  ").prepare()
        assert exc_info.value.code == "empty_version"


class TestLocalPackageSource:
    """Tests for LocalPackageSource."""

    def test_prepare_stages_copy(self, tmp_path):
        """Should stage a copy and leave the original in place."""
        package = tmp_path / "google-chrome-stable_106.0.5249.61-1_amd64.deb"
        package.write_bytes(b"deb-content")

        path, version = LocalPackageSource(package).prepare()
        try:
            assert version == "106.0.5249.61"
            assert path is not None
            assert path != package
            assert path.read_bytes() == b"deb-content"
            assert package.exists()
        finally:
            path.unlink(missing_ok=True)

    def test_explicit_version(self, tmp_path):
        package = tmp_path / "chrome.deb"
        package.write_bytes(b"deb")

        path, version = LocalPackageSource(package, version="105.0.1").prepare()
        path.unlink(missing_ok=True)
        assert version == "105.0.1"

    def test_unknown_version(self, tmp_path):
        package = tmp_path / "chrome.deb"
        package.write_bytes(b"deb")

        with pytest.raises(SourceError) as exc_info:
            LocalPackageSource(package).prepare()
        assert exc_info.value.code == "unknown_version"

    def test_missing_file(self, tmp_path):
        with pytest.raises(SourceError) as exc_info:
            LocalPackageSource(tmp_path / "missing_1.0-1_amd64.deb").prepare()
        assert exc_info.value.code == "not_found"


class TestPackageUrlSource:
    """Tests for PackageUrlSource."""

    @respx.mock
    def test_prepare_downloads(self):
        url = "https://dl.example.com/google-chrome-stable_106.0.5249.61-1_amd64.deb"
        respx.get(url).mock(return_value=httpx.Response(200, content=b"deb-bytes"))

        with httpx.Client() as client:
            path, version = PackageUrlSource(url, client).prepare()

        try:
            assert version == "106.0.5249.61"
            assert path.read_bytes() == b"deb-bytes"
        finally:
            path.unlink(missing_ok=True)

    @respx.mock
    def test_http_error(self):
        url = "https://dl.example.com/google-chrome-stable_106.0.5249.61-1_amd64.deb"
        respx.get(url).mock(return_value=httpx.Response(404))

        with httpx.Client() as client:
            with pytest.raises(SourceError) as exc_info:
                PackageUrlSource(url, client).prepare()
        assert exc_info.value.code == "http_error"

    @respx.mock
    def test_network_error(self):
        url = "https://dl.example.com/google-chrome-stable_106.0.5249.61-1_amd64.deb"
        respx.get(url).mock(side_effect=httpx.ConnectError("refused"))

        with httpx.Client() as client:
            with pytest.raises(SourceError) as exc_info:
                PackageUrlSource(url, client).prepare()
        assert exc_info.value.code == "network_error"

    @respx.mock
    def test_unknown_version_makes_no_request(self):
        url = "https://dl.example.com/google-chrome-stable_current_amd64.deb"

        with httpx.Client() as client:
            with pytest.raises(SourceError):
                PackageUrlSource(url, client).prepare()
        assert len(respx.calls) == 0


class TestParseBrowserSource:
    """Tests for parse_browser_source function."""

    def test_url(self):
        with httpx.Client() as client:
            source = parse_browser_source("https://dl.example.com/chrome.deb", client)
        assert isinstance(source, PackageUrlSource)

    def test_local_file(self, tmp_path):
        package = tmp_path / "chrome.deb"
        package.write_bytes(b"deb")
        with httpx.Client() as client:
            source = parse_browser_source(str(package), client, "106.0")
        assert isinstance(source, LocalPackageSource)
        assert source.version == "106.0"

    def test_version(self):
        with httpx.Client() as client:
            source = parse_browser_source("106.0.5249.61", client)
        assert isinstance(source, RepositorySource)
        assert source.version == "106.0.5249.61"
