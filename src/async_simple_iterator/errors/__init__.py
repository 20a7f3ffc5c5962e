"""
errors subpackage: error taxonomy, logging and reporting for wrapped iterators.

Key primitives
--------------
- InvalidArgument / ConfigError / WorkError: errors raised or carried by the package
- ErrorHandlingConfig: logging config (log paths, run id, JSONL, etc.)
- configure_logging(): Rich console + file logging, optional JSONL event logger
- IterationReporter: hooks into an iterator and renders an end-of-run report
"""

from .types import (
    ConfigError,
    FailureRecord,
    InvalidArgument,
    IterationOutcome,
    IterationStatus,
    IteratorError,
    WorkError,
)
from .config import ErrorHandlingConfig
from .logging import configure_logging, IterationEventLog
from .reporter import IterationReporter

__all__ = [
    "IteratorError",
    "InvalidArgument",
    "ConfigError",
    "WorkError",
    "IterationOutcome",
    "IterationStatus",
    "FailureRecord",
    "ErrorHandlingConfig",
    "IterationEventLog",
    "configure_logging",
    "IterationReporter",
]
