"""Chrome image build pipeline.

A Chrome build runs two dependent docker builds:

1. The dev image installs the browser package, either from the remote
   package repository or from a local .deb served to the build over HTTP.
   It is tagged ``selenoid/dev_chrome:<tag version>``.
2. The final image starts from the dev image and adds a chromedriver
   release matching the browser, labelled ``driver=chromedriver:<version>``.

The final image is then tested and pushed. Every failure is raised as a
BuildError whose message starts with the label of the failing step; the
caller is responsible for reporting it.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from collections.abc import Iterator
from contextlib import ExitStack, contextmanager
from pathlib import Path

import httpx

from browser_images.build.channels import channel_build_args
from browser_images.build.driver import (
    CHROMEDRIVER_BINARY,
    DriverDownloadError,
    DriverVersionError,
    download_driver,
    resolve_driver_version,
)
from browser_images.build.image import Image, new_image
from browser_images.build.requirements import BuildRequirements
from browser_images.build.runner import ImageError
from browser_images.build.sources import BrowserSource, SourceError
from browser_images.config import Settings, get_settings
from browser_images.types import BuildStage
from browser_images.versions import extract_version

logger = logging.getLogger(__name__)

BROWSER_NAME = "chrome"
DEV_IMAGE_REPOSITORY = "selenoid/dev_chrome"

# Name of the browser package inside the dev build context
PACKAGE_FILENAME = "google-chrome.deb"

# Templates under browser_images/static
REPOSITORY_TEMPLATE = "chrome/apt"
LOCAL_TEMPLATE = "chrome/local"
FINAL_TEMPLATE = "chrome"


class BuildError(Exception):
    """Raised when a build pipeline step fails.

    Attributes:
        stage: Stage the pipeline was trying to reach.
    """

    def __init__(
        self,
        stage: BuildStage,
        message: str,
        code: str = "build_error",
    ) -> None:
        super().__init__(message)
        self.stage = stage
        self.code = code


class ChromeBuild:
    """One run of the Chrome image pipeline.

    Attributes:
        requirements: Requirements for the final image.
        source: Browser package source.
        stage: Last stage reached.
        tag_version: Tag version derived from the package version.
        driver_version: Resolved chromedriver version.
    """

    def __init__(
        self,
        requirements: BuildRequirements,
        source: BrowserSource,
        client: httpx.Client | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.requirements = requirements
        self.source = source
        self.client = client
        self.settings = settings or get_settings()
        self.stage = BuildStage.IDLE
        self.tag_version: str | None = None
        self.driver_version: str | None = None

    def run(self) -> None:
        """Run the pipeline.

        Raises:
            BuildError: If any step fails.
        """
        try:
            with ExitStack() as stack:
                self._run(stack)
        except BuildError:
            self.stage = BuildStage.FAILED
            raise

    @contextmanager
    def _step(
        self,
        stage: BuildStage,
        label: str,
        *errors: type[Exception],
    ) -> Iterator[None]:
        try:
            yield
        except errors as e:
            code = getattr(e, "code", "build_error")
            raise BuildError(stage, f"{label}: {e}", code=code) from e

    def _advance(self, stage: BuildStage) -> None:
        logger.debug("Chrome build: %s -> %s", self.stage.value, stage.value)
        self.stage = stage

    def _tmp_dir(self, stack: ExitStack) -> Path:
        path = Path(
            tempfile.mkdtemp(prefix="browser-images-", dir=self.settings.tmp_dir)
        )
        if not self.settings.keep_build_dirs:
            stack.callback(shutil.rmtree, path, ignore_errors=True)
        return path

    def _http_client(self, stack: ExitStack) -> httpx.Client:
        if self.client is not None:
            return self.client
        return stack.enter_context(
            httpx.Client(timeout=self.settings.request_timeout, follow_redirects=True)
        )

    def _run(self, stack: ExitStack) -> None:
        requirements = self.requirements
        settings = self.settings

        with self._step(
            BuildStage.SOURCE_PREPARED,
            "invalid browser source",
            SourceError,
            httpx.HTTPError,
            OSError,
        ):
            package_path, package_version = self.source.prepare()
        self._advance(BuildStage.SOURCE_PREPARED)

        # Dev image
        with self._step(
            BuildStage.DEV_IMAGE_BUILT, "create dev temporary dir", OSError
        ):
            dev_dir = self._tmp_dir(stack)

        source_dir = REPOSITORY_TEMPLATE
        if package_path:
            source_dir = LOCAL_TEMPLATE
            with self._step(BuildStage.DEV_IMAGE_BUILT, "move package", OSError):
                shutil.move(str(package_path), str(dev_dir / PACKAGE_FILENAME))

        tag_version = extract_version(package_version)
        self.tag_version = tag_version

        dev_requirements = BuildRequirements(
            no_cache=requirements.no_cache,
            tags=[f"{DEV_IMAGE_REPOSITORY}:{tag_version}"],
        )
        with self._step(BuildStage.DEV_IMAGE_BUILT, "init dev image", ImageError):
            dev_image = new_image(source_dir, dev_dir, dev_requirements, settings)
        dev_image.build_args = [f"VERSION={package_version}"]
        dev_image.build_args.extend(channel_build_args(requirements.browser_channel))
        if package_path:
            dev_image.file_server = True

        with self._step(BuildStage.DEV_IMAGE_BUILT, "build dev image", ImageError):
            dev_image.build()
        self._advance(BuildStage.DEV_IMAGE_BUILT)

        # Final image
        with self._step(BuildStage.DRIVER_RESOLVED, "create temporary dir", OSError):
            dest_dir = self._tmp_dir(stack)

        with self._step(BuildStage.DRIVER_RESOLVED, "init image", ImageError):
            image = new_image(FINAL_TEMPLATE, dest_dir, requirements, settings)
        image.build_args.append(f"VERSION={tag_version}")

        with self._step(
            BuildStage.DRIVER_RESOLVED,
            "failed to download Chromedriver",
            DriverVersionError,
            DriverDownloadError,
            OSError,
        ):
            self.driver_version = self._download_chromedriver(
                stack, image, package_version
            )
        image.labels.append(f"driver=chromedriver:{self.driver_version}")
        self._advance(BuildStage.DRIVER_RESOLVED)

        with self._step(BuildStage.FINAL_IMAGE_BUILT, "build image", ImageError):
            image.build()
        self._advance(BuildStage.FINAL_IMAGE_BUILT)

        with self._step(BuildStage.TESTED, "test image", ImageError):
            image.test(requirements.tests_dir, BROWSER_NAME, tag_version)
        self._advance(BuildStage.TESTED)

        with self._step(BuildStage.PUSHED, "push image", ImageError):
            image.push()
        self._advance(BuildStage.PUSHED)

        self._advance(BuildStage.DONE)

    def _download_chromedriver(
        self,
        stack: ExitStack,
        image: Image,
        package_version: str,
    ) -> str:
        client = self._http_client(stack)
        version = resolve_driver_version(
            client,
            self.requirements.driver_version,
            self.requirements.browser_channel,
            package_version,
            base_url=self.settings.driver_metadata_url,
        )

        url = self.settings.driver_download_url.format(version=version)
        try:
            download_driver(client, url, CHROMEDRIVER_BINARY, image.dir)
        except DriverDownloadError as e:
            raise DriverDownloadError(f"download Chromedriver: {e}", code=e.code) from e
        return version


def build_chrome(
    requirements: BuildRequirements,
    source: BrowserSource,
    client: httpx.Client | None = None,
    settings: Settings | None = None,
) -> ChromeBuild:
    """Build, test and push a Chrome image.

    Args:
        requirements: Requirements for the final image.
        source: Browser package source.
        client: Optional HTTPX client; one is created if not provided.
        settings: Optional settings; uses default if not provided.

    Returns:
        The completed ChromeBuild.

    Raises:
        BuildError: If any step fails.
    """
    build = ChromeBuild(requirements, source, client=client, settings=settings)
    build.run()
    return build


__all__ = [
    "BROWSER_NAME",
    "BuildError",
    "ChromeBuild",
    "DEV_IMAGE_REPOSITORY",
    "PACKAGE_FILENAME",
    "build_chrome",
]
