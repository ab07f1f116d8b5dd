"""Build requirements model.

Requirements are validated with Pydantic so they can be loaded from
YAML/JSON files as well as assembled from CLI flags.
"""

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from browser_images.types import LATEST_VERSION, BrowserChannel


class BuildRequirements(BaseModel):
    """Inputs shared by every image built in one run.

    Attributes:
        no_cache: Disable the docker layer cache.
        tags: Image tags to apply (and push).
        build_args: Extra KEY=VALUE docker build arguments.
        labels: Extra KEY=VALUE image labels.
        tests_dir: Directory containing the image test suite.
        browser_channel: Browser release channel.
        driver_version: Explicit driver version or 'latest'.
        push: Push tags to the registry after tests pass.
    """

    model_config = ConfigDict(extra="forbid")

    no_cache: bool = Field(default=False)
    tags: list[str] = Field(default_factory=list)
    build_args: list[str] = Field(default_factory=list)
    labels: list[str] = Field(default_factory=list)
    tests_dir: Path | None = Field(default=None)
    browser_channel: BrowserChannel = Field(default=BrowserChannel.STABLE)
    driver_version: str = Field(default=LATEST_VERSION, min_length=1)
    push: bool = Field(default=False)

    @field_validator("browser_channel", mode="before")
    @classmethod
    def parse_channel(cls, v: Any) -> BrowserChannel:
        """Map 'stable', empty and unknown channels to the stable channel."""
        return BrowserChannel.parse(v)

    @field_validator("build_args", "labels")
    @classmethod
    def validate_key_value(cls, v: list[str]) -> list[str]:
        """Validate each entry looks like KEY=VALUE."""
        for item in v:
            key, sep, _ = item.partition("=")
            if not sep or not key:
                raise ValueError(f"expected KEY=VALUE, got '{item}'")
        return v


def load_requirements(path: Path) -> BuildRequirements:
    """Load build requirements from a YAML or JSON file.

    Args:
        path: Path to a .yaml/.yml or .json file.

    Returns:
        Validated BuildRequirements.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file does not contain a mapping.
        pydantic.ValidationError: If data does not match the model.
    """
    with open(path, encoding="utf-8") as f:
        if path.suffix.lower() == ".json":
            data = json.load(f)
        else:
            data = yaml.safe_load(f)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping in {path}, got {type(data).__name__}")
    return BuildRequirements.model_validate(data)


__all__ = ["BuildRequirements", "load_requirements"]
