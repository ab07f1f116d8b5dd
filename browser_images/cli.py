"""Thin CLI wrapper for browser_images.

This module provides the command-line interface using Typer.
All business logic is delegated to core modules.
"""

import logging
from pathlib import Path
from typing import Annotated

import typer
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from browser_images import __version__
from browser_images.config import Settings, get_settings, print_settings_json

app = typer.Typer(
    name="browser-images",
    help="Browser Images - build, test and push browser container images",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"browser-images version {__version__}")
        raise typer.Exit()


def setup_logging(settings: Settings) -> None:
    """Route log records to stderr through rich."""
    logging.basicConfig(
        level=settings.log_level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Browser Images - build, test and push browser container images."""


@app.command()
def config(
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Show effective configuration."""
    settings = get_settings()
    if json_output:
        console.print(print_settings_json(settings), soft_wrap=True)
    else:
        tmp_dir_display = (
            str(settings.tmp_dir) if settings.tmp_dir else "(system default)"
        )
        timeout_display = (
            str(settings.request_timeout) if settings.request_timeout else "(none)"
        )
        build_timeout_display = (
            str(settings.build_timeout) if settings.build_timeout else "(none)"
        )
        console.print("[bold]Effective Configuration:[/bold]")
        console.print()
        console.print("[bold]Driver:[/bold]")
        console.print(f"  Metadata URL:        {settings.driver_metadata_url}")
        console.print(f"  Download URL:        {settings.driver_download_url}")
        console.print(f"  Request timeout:     {timeout_display}")
        console.print()
        console.print("[bold]Docker:[/bold]")
        console.print(f"  Docker binary:       {settings.docker_binary}")
        console.print(f"  Build timeout:       {build_timeout_display}")
        console.print(f"  File server host:    {settings.file_server_host}")
        console.print(f"  Temp directory:      {tmp_dir_display}")
        console.print(f"  Keep build dirs:     {settings.keep_build_dirs}")
        console.print()
        console.print("[bold]Tests:[/bold]")
        console.print(f"  Test command:        {settings.test_command}")
        console.print(f"  Test port:           {settings.test_port}")
        console.print()
        console.print(f"[bold]Log level:[/bold] {settings.log_level}")


@app.command()
def chrome(
    browser: Annotated[
        str,
        typer.Option(
            "--browser",
            "-b",
            help="Package version, path to a .deb file, or .deb URL",
        ),
    ],
    browser_version: Annotated[
        str | None,
        typer.Option(
            "--browser-version",
            help="Package version for .deb files whose name does not carry one",
        ),
    ] = None,
    channel: Annotated[
        str | None,
        typer.Option("--channel", "-c", help="Release channel: stable, beta or dev"),
    ] = None,
    driver_version: Annotated[
        str | None,
        typer.Option("--driver-version", "-d", help="Chromedriver version or 'latest'"),
    ] = None,
    tags: Annotated[
        list[str] | None,
        typer.Option("--tag", "-t", help="Image tag (can be repeated)"),
    ] = None,
    build_args: Annotated[
        list[str] | None,
        typer.Option("--build-arg", help="KEY=VALUE build argument (can be repeated)"),
    ] = None,
    labels: Annotated[
        list[str] | None,
        typer.Option("--label", help="KEY=VALUE image label (can be repeated)"),
    ] = None,
    tests_dir: Annotated[
        Path | None,
        typer.Option(
            "--tests-dir", help="Test suite directory (tests skipped if unset)"
        ),
    ] = None,
    no_cache: Annotated[
        bool,
        typer.Option("--no-cache", help="Do not use the docker layer cache"),
    ] = False,
    push: Annotated[
        bool,
        typer.Option("--push", help="Push tags after tests pass"),
    ] = False,
    requirements_file: Annotated[
        Path | None,
        typer.Option(
            "--requirements",
            "-r",
            help="YAML/JSON file with build requirements (flags override)",
        ),
    ] = None,
) -> None:
    """Build, test and push a Chrome image."""
    import httpx

    from browser_images.build.chrome import BuildError, ChromeBuild
    from browser_images.build.requirements import BuildRequirements, load_requirements
    from browser_images.build.sources import parse_browser_source

    settings = get_settings()
    setup_logging(settings)

    data: dict[str, object] = {}
    if requirements_file is not None:
        try:
            data = load_requirements(requirements_file).model_dump(exclude_unset=True)
        except FileNotFoundError:
            console.print(f"[red]File not found: {requirements_file}[/red]")
            raise typer.Exit(code=1) from None
        except (ValidationError, yaml.YAMLError) as e:
            console.print(f"[red]Invalid requirements file:[/red]\n{escape(str(e))}")
            raise typer.Exit(code=1) from None
        except ValueError as e:
            console.print(f"[red]Error: {escape(str(e))}[/red]")
            raise typer.Exit(code=1) from None

    overrides: dict[str, object] = {
        "browser_channel": channel,
        "driver_version": driver_version,
        "tags": tags,
        "build_args": build_args,
        "labels": labels,
        "tests_dir": tests_dir,
    }
    data.update({k: v for k, v in overrides.items() if v is not None})
    if no_cache:
        data["no_cache"] = True
    if push:
        data["push"] = True

    try:
        requirements = BuildRequirements.model_validate(data)
    except ValidationError as e:
        console.print(f"[red]Invalid build requirements:[/red]\n{escape(str(e))}")
        raise typer.Exit(code=1) from None

    with httpx.Client(
        timeout=settings.request_timeout, follow_redirects=True
    ) as client:
        source = parse_browser_source(browser, client, browser_version)
        build = ChromeBuild(requirements, source, client=client, settings=settings)
        try:
            build.run()
        except BuildError as e:
            console.print(
                f"[red]Build failed ({e.stage.value}): {escape(str(e))}[/red]"
            )
            raise typer.Exit(code=1) from None

    console.print(
        f"[green]Built chrome {build.tag_version} "
        f"with chromedriver {build.driver_version}[/green]"
    )
    for tag in requirements.tags:
        console.print(f"  {tag}")


__all__ = ["app"]


if __name__ == "__main__":
    app()
