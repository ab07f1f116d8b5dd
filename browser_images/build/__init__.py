"""Image build module.

This module handles:
- Browser package sources
- WebDriver version resolution and download
- Docker image build, test and push
- The Chrome two-stage build pipeline
"""

from browser_images.build.chrome import BuildError, ChromeBuild, build_chrome
from browser_images.build.requirements import BuildRequirements, load_requirements

__all__ = [
    "BuildError",
    "BuildRequirements",
    "ChromeBuild",
    "build_chrome",
    "load_requirements",
]
