from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Hashable, Optional
import traceback as _traceback


class IteratorError(Exception):
    """Base class for errors raised by async_simple_iterator."""


class InvalidArgument(IteratorError, TypeError):
    """Raised synchronously when a work function, hook or channel name is unusable."""


class ConfigError(IteratorError, ValueError):
    """Raised when a settings file is missing required structure or cannot be parsed."""


class WorkError(IteratorError):
    """
    Error a work function reports through its completion callback.

    Carries a short ``kind`` tag, a human message and an arbitrary ``payload``
    that listeners receive untouched.

    Usage example
    -------------
        def work(value, key, next):
            if key == "dev":
                next(WorkError("missing", f"no file for {key}", payload=value))
                return
            next(None, 123)
    """

    def __init__(self, kind: str, message: str = "", *, payload: Any = None) -> None:
        super().__init__(message or kind)
        self.kind = kind
        self.message = message or kind
        self.payload = payload

    def __repr__(self) -> str:
        return f"WorkError(kind={self.kind!r}, message={self.message!r}, payload={self.payload!r})"


class IterationStatus(str, Enum):
    """Outcome of one element passing through a decorated iterator."""
    OK = "ok"
    FAILED = "failed"


@dataclass(frozen=True)
class IterationOutcome:
    """
    What one call of a decorated iterator ended with.

    ``key`` is None when the iterator was called in the ``(value, completion)`` form.
    ``settled`` is the settle value the iterator was wrapped with, so it tells
    whether a failure was hidden from the traversal.
    """
    value: Any
    key: Optional[Hashable]
    err: Any
    result: Any
    settled: bool

    @property
    def failed(self) -> bool:
        return self.err is not None

    @property
    def status(self) -> IterationStatus:
        return IterationStatus.FAILED if self.failed else IterationStatus.OK


@dataclass(frozen=True)
class FailureRecord:
    """
    A structured record of one failed element.

    ``settled`` tells whether the error was swallowed at the traversal boundary.

    Usage example
    -------------
        rec = FailureRecord(key="dev", value="./dev.json", message="boom", settled=True)
    """
    key: Hashable
    value: Any
    message: str
    settled: bool
    exc_type: Optional[str] = None
    kind: Optional[str] = None
    payload: Any = None
    traceback: Optional[str] = None

    @staticmethod
    def from_error(*, key: Hashable, value: Any, err: Any, settled: bool) -> "FailureRecord":
        if isinstance(err, BaseException):
            tb = None
            if err.__traceback__ is not None:
                tb = "".join(_traceback.format_exception(type(err), err, err.__traceback__))
            return FailureRecord(
                key=key,
                value=value,
                message=str(err),
                settled=settled,
                exc_type=type(err).__name__,
                kind=err.kind if isinstance(err, WorkError) else None,
                payload=err.payload if isinstance(err, WorkError) else None,
                traceback=tb,
            )
        # Non-exception error values are reported by their repr.
        return FailureRecord(key=key, value=value, message=repr(err), settled=settled)

    @staticmethod
    def from_outcome(outcome: IterationOutcome) -> "FailureRecord":
        return FailureRecord.from_error(
            key=outcome.key, value=outcome.value, err=outcome.err, settled=outcome.settled
        )
