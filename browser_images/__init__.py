"""Browser Images - build tooling for browser container images.

This package orchestrates building, testing and pushing browser images
(browser package plus matching WebDriver binary) for a browser-testing fleet.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
