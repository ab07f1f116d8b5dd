"""Container image build unit.

An Image owns a build context directory populated from a template under
``browser_images/static`` and knows how to build, test and push itself
with the docker CLI.
"""

from __future__ import annotations

import logging
import shlex
import shutil
from contextlib import ExitStack
from pathlib import Path

from browser_images.build.fileserver import serve_directory
from browser_images.build.requirements import BuildRequirements
from browser_images.build.runner import ImageError, compose_build_command, run_command
from browser_images.config import Settings, get_settings

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent.parent / "static"


def _ignore_nested_templates(directory: str, names: list[str]) -> set[str]:
    """Skip subdirectories that are templates of their own."""
    return {name for name in names if (Path(directory) / name / "Dockerfile").is_file()}


class Image:
    """One docker build unit.

    Attributes:
        dir: Build context directory.
        requirements: Requirements the image is built with.
        build_args: KEY=VALUE build arguments.
        labels: KEY=VALUE labels.
        file_server: Serve ``dir`` over HTTP while building.
    """

    def __init__(
        self,
        dir: Path,  # noqa: A002
        requirements: BuildRequirements,
        settings: Settings | None = None,
    ) -> None:
        self.dir = dir
        self.requirements = requirements
        self.settings = settings or get_settings()
        self.build_args: list[str] = list(requirements.build_args)
        self.labels: list[str] = list(requirements.labels)
        self.file_server = False

    @property
    def tags(self) -> list[str]:
        return list(self.requirements.tags)

    def build(self) -> None:
        """Build the image.

        Raises:
            ImageError: If docker build fails.
        """
        settings = self.settings
        build_args = list(self.build_args)
        add_hosts: list[str] = []

        with ExitStack() as stack:
            if self.file_server:
                try:
                    port = stack.enter_context(serve_directory(self.dir))
                except OSError as e:
                    raise ImageError(
                        f"Failed to start file server for {self.dir}: {e}",
                        code="file_server_error",
                    ) from e
                host = settings.file_server_host
                build_args.append(f"FILE_SERVER_URL=http://{host}:{port}")
                add_hosts.append(f"{host}:host-gateway")

            cmd = compose_build_command(
                context_dir=self.dir,
                tags=self.tags,
                build_args=build_args,
                labels=self.labels,
                no_cache=self.requirements.no_cache,
                add_hosts=add_hosts,
                docker_binary=settings.docker_binary,
            )
            run_command(cmd, timeout=settings.build_timeout, error_code="build_failed")

        logger.info("Built image %s", ", ".join(self.tags) or self.dir)

    def test(self, tests_dir: Path | None, browser_name: str, version: str) -> None:
        """Run the test suite against a container started from the image.

        Args:
            tests_dir: Test suite directory; tests are skipped when None.
            browser_name: Browser name passed to the tests.
            version: Browser version passed to the tests.

        Raises:
            ImageError: If the container cannot start or tests fail.
        """
        if tests_dir is None:
            logger.warning("No tests directory configured, skipping tests")
            return
        if not tests_dir.is_dir():
            raise ImageError(
                f"Tests directory not found: {tests_dir}",
                code="tests_not_found",
            )
        if not self.tags:
            raise ImageError("Image has no tags to test", code="no_tags")

        settings = self.settings
        docker = settings.docker_binary
        container_port = f"{settings.test_port}/tcp"

        container_id = run_command(
            [docker, "run", "-d", "--rm", "-p", str(settings.test_port), self.tags[0]],
            error_code="container_start_failed",
        ).strip()
        logger.info("Started container %s from %s", container_id[:12], self.tags[0])

        try:
            port_output = run_command(
                [docker, "port", container_id, container_port],
                error_code="container_port_failed",
            )
            lines = port_output.strip().splitlines()
            if not lines:
                raise ImageError(
                    f"No host port published for {container_id[:12]} {container_port}",
                    code="container_port_failed",
                )
            host_port = lines[0].rsplit(":", 1)[-1]

            cmd = shlex.split(settings.test_command)
            cmd.extend(
                [
                    f"-Dgrid.browser.name={browser_name}",
                    f"-Dgrid.browser.version={version}",
                    f"-Dgrid.connection.url=http://localhost:{host_port}/",
                ]
            )
            run_command(
                cmd,
                cwd=tests_dir,
                timeout=settings.build_timeout,
                error_code="test_failed",
            )
        finally:
            try:
                run_command(
                    [docker, "rm", "-f", container_id], error_code="cleanup_failed"
                )
            except ImageError as e:
                logger.warning(
                    "Failed to remove container %s: %s", container_id[:12], e
                )

        logger.info("Tests passed for %s", self.tags[0])

    def push(self) -> None:
        """Push every tag to its registry.

        Raises:
            ImageError: If a push fails.
        """
        if not self.requirements.push:
            logger.info("Push disabled, not pushing %s", ", ".join(self.tags))
            return

        for tag in self.tags:
            run_command(
                [self.settings.docker_binary, "push", tag],
                timeout=self.settings.build_timeout,
                error_code="push_failed",
            )
            logger.info("Pushed %s", tag)


def new_image(
    source_dir: str,
    dest_dir: Path,
    requirements: BuildRequirements,
    settings: Settings | None = None,
) -> Image:
    """Create an image whose build context is populated from a template.

    Args:
        source_dir: Template path relative to the static directory
            (e.g. 'chrome/apt').
        dest_dir: Build context directory.
        requirements: Requirements for the image.
        settings: Optional settings; uses default if not provided.

    Returns:
        Image ready to be built.

    Raises:
        ImageError: If the template is missing or cannot be copied.
    """
    template_dir = STATIC_DIR / source_dir
    if not template_dir.is_dir():
        raise ImageError(
            f"Image template not found: {source_dir}",
            code="template_not_found",
        )

    try:
        shutil.copytree(
            template_dir,
            dest_dir,
            ignore=_ignore_nested_templates,
            dirs_exist_ok=True,
        )
    except OSError as e:
        raise ImageError(
            f"Failed to copy template {source_dir} to {dest_dir}: {e}",
            code="template_copy_failed",
        ) from e

    logger.debug("Prepared build context %s from %s", dest_dir, source_dir)
    return Image(dest_dir, requirements, settings)


__all__ = ["STATIC_DIR", "Image", "new_image"]
