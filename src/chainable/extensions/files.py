"""Local file commands."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from chainable.command import Command
from chainable.errors import SourceError
from chainable.result import Failure, Result, Success

log = logging.getLogger(__name__)


class ReadFileCommand(Command[Path | str, bytes]):
    """Read a file's bytes in a worker thread.

    Missing or unreadable files become ``Failure(SourceError)``; the original
    ``OSError`` is kept as ``__cause__``.
    """

    async def main(self, input: Path | str) -> Result[bytes]:
        path = Path(input).expanduser()
        try:
            data = await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            err = SourceError(
                f"Could not read {path}: {e.strerror or e}",
                hint="Check that the path exists and is a readable file.",
            )
            err.__cause__ = e
            return Failure(err)
        log.debug("Read %d bytes from %s", len(data), path)
        return Success(data)
