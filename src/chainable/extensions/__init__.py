"""Stock commands for common chain steps.

Ordinary commands built on the public ``Command`` contract, usable as-is or
as templates for your own:

- ``ConstantCommand``: primes a chain head with a fixed value.
- ``ReadFileCommand``: reads a local file's bytes off the event loop.
- ``UploadCommand``: POSTs bytes to an HTTP endpoint with ``httpx``.

Quick start:
    from chainable.extensions import ReadFileCommand, UploadCommand

    chain = ReadFileCommand().append(UploadCommand("https://example.test/blobs"))
    await chain.execute("report.pdf", error_handler=log_failure)
"""

from .files import ReadFileCommand
from .http import UploadCommand
from .values import ConstantCommand

__all__ = ["ConstantCommand", "ReadFileCommand", "UploadCommand"]
