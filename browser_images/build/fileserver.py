"""Serve a build directory over HTTP while a dependent build runs."""

from __future__ import annotations

import functools
import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path

logger = logging.getLogger(__name__)


class _QuietHandler(SimpleHTTPRequestHandler):
    def log_message(self, format: str, *args: object) -> None:  # noqa: A002
        logger.debug("file server: " + format, *args)


@contextmanager
def serve_directory(
    directory: Path,
    host: str = "0.0.0.0",
    port: int = 0,
) -> Iterator[int]:
    """Serve ``directory`` over HTTP for the duration of the context.

    Args:
        directory: Directory to serve.
        host: Address to bind.
        port: Port to bind (0 picks a free port).

    Yields:
        The bound port.
    """
    handler = functools.partial(_QuietHandler, directory=str(directory))
    server = ThreadingHTTPServer((host, port), handler)
    bound_port = server.server_address[1]
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    logger.info("Serving %s on port %d", directory, bound_port)
    try:
        yield bound_port
    finally:
        server.shutdown()
        server.server_close()
        thread.join()
        logger.debug("Stopped file server for %s", directory)


__all__ = ["serve_directory"]
