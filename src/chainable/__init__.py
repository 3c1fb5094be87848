"""chainable: typed chains of asynchronous commands.

Public API:
    - Command: base class for a typed async step
    - FunctionCommand: wrap a plain function as a step
    - CallbackCommand / Completion: completion-callback style steps
    - Chain / compose(): link steps head to tail
    - Success / Failure / Result: step outcomes
    - Config / config_scope: composition and execution settings

Example:
    chain = ConstantCommand((2, 3), output_type=tuple[int, int]).append(Add())
    await chain.append(lambda total: print(total)).execute(error_handler=print)
"""

from __future__ import annotations

import logging

from chainable.callback import CallbackCommand, Completion
from chainable.chain import Chain, compose
from chainable.command import Command, Link
from chainable.config import Config, config_scope, current_config, resolve_config
from chainable.errors import (
    ChainableError,
    ChainCompositionError,
    CompletionError,
    ConfigurationError,
    InvariantViolationError,
    SourceError,
    UploadError,
)
from chainable.function import FunctionCommand
from chainable.result import Failure, Result, Success
from chainable.types import EMPTY, Continuation, EmptyCommandData, ErrorHandler

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("chainable-commands")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("chainable").addHandler(logging.NullHandler())

__all__ = [
    "EMPTY",
    "CallbackCommand",
    "Chain",
    "ChainCompositionError",
    "ChainableError",
    "Command",
    "Completion",
    "CompletionError",
    "Config",
    "ConfigurationError",
    "Continuation",
    "EmptyCommandData",
    "ErrorHandler",
    "Failure",
    "FunctionCommand",
    "InvariantViolationError",
    "Link",
    "Result",
    "SourceError",
    "Success",
    "UploadError",
    "compose",
    "config_scope",
    "current_config",
    "resolve_config",
]
