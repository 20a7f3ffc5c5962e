from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Hashable, Optional

from rich.console import Console

from .config import ErrorHandlingConfig
from .logging import IterationEventLog
from .types import FailureRecord, IterationOutcome, IterationStatus

if TYPE_CHECKING:
    from async_simple_iterator.iterator import AsyncSimpleIterator


@dataclass
class IterationReporter:
    """
    Collects per-element outcomes (OK / FAILED) and renders end-of-run summaries.

    Design notes
    ------------
    - Receives an ``IterationOutcome`` from every iterator wrapped by the
      attached instance, carrying the settle value that iterator was wrapped
      with; it never changes what the traversal sees.
    - Counts are per call, so an element retried under the same key counts twice.

    Usage example
    -------------
        logger, event_log = configure_logging(cfg=cfg)
        reporter = IterationReporter(cfg=cfg, logger=logger, event_log=event_log)
        base = AsyncSimpleIterator({"settle": True})
        reporter.attach(base)
        ...
        print(reporter.render_summary())
    """

    cfg: ErrorHandlingConfig
    logger: logging.Logger
    event_log: Optional[IterationEventLog] = None

    def __post_init__(self) -> None:
        """Initialize run-scoped state."""
        # Share the run id of the event log so summary paths match the files written.
        self._run_id = self.event_log.run_id if self.event_log is not None else self.cfg.resolved_run_id()
        self._outcomes: list[IterationOutcome] = []
        self._records: list[FailureRecord] = []

    def attach(self, iterator: "AsyncSimpleIterator") -> "IterationReporter":
        """Receive the outcome of every element that `iterator`'s wrapped functions finish."""
        iterator.add_outcome_listener(self.record)
        return self

    def record(self, outcome: IterationOutcome) -> None:
        """Record one finished element."""
        self._outcomes.append(outcome)
        log_key = "-" if outcome.key is None else outcome.key

        if outcome.failed:
            rec = FailureRecord.from_outcome(outcome)
            self._records.append(rec)
            self.logger.error(
                "Element %r failed: %s (%s, settled=%s)",
                outcome.key if outcome.key is not None else outcome.value,
                rec.message,
                rec.exc_type or type(outcome.err).__name__,
                outcome.settled,
                extra={"key": log_key},
            )
            if rec.traceback:
                self.logger.debug("Traceback:\n%s", rec.traceback, extra={"key": log_key})

        if self.event_log is not None:
            self.event_log.record(outcome)

    def status(self, key: Hashable) -> Optional[IterationStatus]:
        """Return the status of the latest element seen under `key`, if any."""
        for outcome in reversed(self._outcomes):
            if outcome.key == key:
                return outcome.status
        return None

    def records(self) -> tuple[FailureRecord, ...]:
        return tuple(self._records)

    def failures_count(self) -> int:
        """Return the total number of failed elements."""
        return sum(1 for o in self._outcomes if o.failed)

    def has_failures(self) -> bool:
        return self.failures_count() > 0

    def render_summary(self) -> str:
        """Render a human-readable summary with details and artifact paths."""
        ok_n = sum(1 for o in self._outcomes if not o.failed)
        fail_n = self.failures_count()

        lines: list[str] = []
        lines.append(f"Iteration summary (run_id={self._run_id})")
        lines.append(f"  OK:   {ok_n}")
        lines.append(f"  FAIL: {fail_n}")

        if fail_n == 0:
            return "\n".join(lines)

        lines.append("")
        lines.append("Details:")
        for rec in self._records:
            label = "SETTLED" if rec.settled else "FAIL"
            element = rec.key if rec.key is not None else rec.value
            lines.append(f"  - {label} {element!r}: {rec.exc_type or 'error'}: {rec.message}")

        lines.append("")
        lines.append("Artifacts:")
        lines.append(f"  - {str(self.cfg.log_dir / f'run_{self._run_id}.log')}")
        if self.cfg.write_jsonl:
            lines.append(f"  - {str(self.cfg.log_dir / f'events_{self._run_id}.jsonl')}")

        return "\n".join(lines)

    def print_summary(self, console: Optional[Console] = None) -> None:
        """
        Print summary to the console with Rich.

        Usage example
        -------------
            reporter.print_summary()
        """
        (console or Console()).print(self.render_summary(), markup=False, highlight=False)

    def exit_code(self) -> int:
        """Return a conventional process exit code: 0 if success, else 1."""
        return 0 if not self.has_failures() else 1
