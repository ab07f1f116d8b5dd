"""Docker command execution.

This module handles:
- Composing `docker build` commands from image parameters
- Executing docker commands with subprocess
- Mapping failures to ImageError with stable codes
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)

# Lines of command output included in error messages
OUTPUT_TAIL_LINES = 20


class ImageError(Exception):
    """Raised when an image operation fails."""

    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        code: str = "image_error",
    ) -> None:
        super().__init__(message)
        self.exit_code = exit_code
        self.code = code


def compose_build_command(
    context_dir: Path,
    tags: list[str],
    build_args: list[str] | None = None,
    labels: list[str] | None = None,
    no_cache: bool = False,
    add_hosts: list[str] | None = None,
    docker_binary: str = "docker",
) -> list[str]:
    """Compose the `docker build` command.

    Args:
        context_dir: Build context directory.
        tags: Image tags.
        build_args: KEY=VALUE build arguments.
        labels: KEY=VALUE labels.
        no_cache: Disable the layer cache.
        add_hosts: host:ip entries for --add-host.
        docker_binary: Docker CLI executable.

    Returns:
        Command as list of strings suitable for subprocess.
    """
    cmd = [docker_binary, "build"]

    if no_cache:
        cmd.append("--no-cache")

    for tag in tags:
        cmd.extend(["-t", tag])

    for arg in build_args or []:
        cmd.extend(["--build-arg", arg])

    for label in labels or []:
        cmd.extend(["--label", label])

    for host in add_hosts or []:
        cmd.extend(["--add-host", host])

    cmd.append(str(context_dir))
    return cmd


def _output_tail(output: str | None) -> str:
    if not output:
        return ""
    lines = output.strip().splitlines()[-OUTPUT_TAIL_LINES:]
    return "\n".join(lines)


def run_command(
    cmd: list[str],
    cwd: Path | None = None,
    timeout: int | None = None,
    error_code: str = "command_failed",
) -> str:
    """Run a command and return its stdout.

    Args:
        cmd: Command as list of strings.
        cwd: Working directory.
        timeout: Timeout in seconds (None = no timeout).
        error_code: Code for ImageError raised on non-zero exit.

    Returns:
        Captured stdout.

    Raises:
        ImageError: If the command cannot run, times out or exits non-zero.
    """
    cmd_str = shlex.join(cmd)
    logger.info("Executing: %s", cmd_str)
    if cwd is not None:
        logger.debug("Working directory: %s", cwd)

    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        raise ImageError(
            f"{cmd_str} timed out after {timeout} seconds",
            exit_code=-1,
            code="timeout",
        ) from e
    except OSError as e:
        raise ImageError(
            f"Failed to execute {cmd[0]}: {e}",
            code="execution_error",
        ) from e

    if result.returncode != 0:
        message = f"{cmd_str} failed with exit code {result.returncode}"
        tail = _output_tail(result.stderr) or _output_tail(result.stdout)
        if tail:
            message = f"{message}\n{tail}"
        raise ImageError(message, exit_code=result.returncode, code=error_code)

    return result.stdout


__all__ = [
    "ImageError",
    "compose_build_command",
    "run_command",
]
