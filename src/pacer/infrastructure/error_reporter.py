"""Error reporting for failed remote operations.

Server error text is shown to the user the way version-control clients do it:
``text/plain`` bodies are printed line by line with a ``remote:`` prefix, after
converting them from the charset the server declared. The conversion buffer
only ever lives inside a ``with`` block, so it is released even when the
report ends the process.
"""

from __future__ import annotations

import io
import logging
from contextlib import contextmanager
from typing import IO, Iterator, List, NoReturn, Optional, Protocol

import click

from pacer.domain.models.response import ResponseDescriptor

logger = logging.getLogger(__name__)

DEFAULT_CHARSET = "utf-8"


class ErrorReporter(Protocol):
    """Receives terminal failures"""

    def report(self, message: str, response: Optional[ResponseDescriptor] = None) -> None:
        ...

    def die(self, message: str, response: Optional[ResponseDescriptor] = None) -> NoReturn:
        ...


@contextmanager
def reencoded_message(body: bytes, charset: Optional[str] = None) -> Iterator[io.StringIO]:
    """Decode a response body from its declared charset into a text buffer

    The buffer is closed when the block exits, however it exits.

    Args:
        body: Raw response body
        charset: Charset from the Content-Type header (None = utf-8)

    Yields:
        Readable text buffer positioned at the start
    """
    buffer = io.StringIO()
    try:
        buffer.write(_decode(body, charset))
        buffer.seek(0)
        yield buffer
    finally:
        buffer.close()


def _decode(body: bytes, charset: Optional[str]) -> str:
    encoding = charset or DEFAULT_CHARSET
    try:
        return body.decode(encoding, errors="replace")
    except LookupError:
        logger.debug(f"Unknown charset {encoding!r}, falling back to {DEFAULT_CHARSET}")
        return body.decode(DEFAULT_CHARSET, errors="replace")


class StreamErrorReporter:
    """ErrorReporter writing to a text stream (stderr by default)"""

    def __init__(self, stream: Optional[IO[str]] = None):
        self.stream = stream

    def report(self, message: str, response: Optional[ResponseDescriptor] = None) -> None:
        """Show an error and the server's message, if it sent a readable one"""
        with self._server_lines(response) as lines:
            self._emit("error", message, lines)

    def die(self, message: str, response: Optional[ResponseDescriptor] = None) -> NoReturn:
        """Show a fatal error and exit with status 1"""
        with self._server_lines(response) as lines:
            self._emit("fatal", message, lines)
            raise click.exceptions.Exit(1)

    def _emit(self, prefix: str, message: str, lines: List[str]) -> None:
        click.echo(f"{prefix}: {message}", file=self.stream, err=True)
        for line in lines:
            click.echo(f"remote: {line}", file=self.stream, err=True)

    @contextmanager
    def _server_lines(self, response: Optional[ResponseDescriptor]) -> Iterator[List[str]]:
        """Lines of the server's text/plain message, empty for anything else"""
        if response is None or not response.body or response.content_type != "text/plain":
            yield []
            return
        with reencoded_message(response.body, response.charset) as buffer:
            text = buffer.read().rstrip()
            yield text.splitlines() if text else []
