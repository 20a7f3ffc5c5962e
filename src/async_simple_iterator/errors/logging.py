"""Log routing for the package and the JSONL log of iteration outcomes."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from rich.logging import RichHandler

from .config import ErrorHandlingConfig
from .types import IterationOutcome, WorkError

PACKAGE_LOGGER = "async_simple_iterator"

_FILE_FORMAT = "%(asctime)s %(levelname)-7s %(name)s [run=%(run_id)s key=%(key)s] %(message)s"


def _describe_error(err: Any) -> dict[str, Any]:
    if isinstance(err, WorkError):
        return {"type": "WorkError", "kind": err.kind, "message": err.message, "payload": err.payload}
    if isinstance(err, BaseException):
        return {"type": type(err).__name__, "message": str(err)}
    return {"type": None, "message": repr(err)}


@dataclass
class IterationEventLog:
    """
    Appends one JSON object per finished element to ``events_<run_id>.jsonl``.

    Every line carries ``event`` (iteration_ok / iteration_failed), ``key``,
    ``value``, ``status`` and ``settled``; failed lines add an ``error`` object.
    Values JSON cannot encode are written as their repr.
    """
    path: Path
    run_id: str

    def record(self, outcome: IterationOutcome) -> None:
        line: dict[str, Any] = {
            "time_utc": datetime.now(timezone.utc).isoformat(),
            "run_id": self.run_id,
            "event": "iteration_failed" if outcome.failed else "iteration_ok",
            "key": outcome.key,
            "value": outcome.value,
            "status": outcome.status.value,
            "settled": outcome.settled,
        }
        if outcome.failed:
            line["error"] = _describe_error(outcome.err)

        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(line, ensure_ascii=False, default=repr) + "\n")


class _IterationFields(logging.Filter):
    """Fill ``run_id`` and ``key`` on records logged outside an iteration."""

    def __init__(self, *, run_id: str) -> None:
        super().__init__()
        self._run_id = run_id

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        record.__dict__.setdefault("run_id", self._run_id)
        record.__dict__.setdefault("key", "-")
        return True


def configure_logging(
    *,
    cfg: ErrorHandlingConfig,
    logger_name: str = PACKAGE_LOGGER,
) -> tuple[logging.Logger, Optional[IterationEventLog]]:
    """
    Send `logger_name` records to a Rich console and to ``<log_dir>/run_<run_id>.log``.

    The decorator logs each element at DEBUG under ``async_simple_iterator.iterator``
    with the element key attached, so the file shows which key settled or
    propagated an error. Returns the logger and, when ``cfg.write_jsonl`` is
    set, an ``IterationEventLog`` for ``IterationReporter``.
    """
    run_id = cfg.resolved_run_id()
    cfg.log_dir.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(logger_name)
    logger.setLevel(min(cfg.console_level, cfg.file_level))
    logger.handlers.clear()
    logger.propagate = False

    fields = _IterationFields(run_id=run_id)

    console = RichHandler(rich_tracebacks=cfg.rich_tracebacks, show_path=False)
    console.setLevel(cfg.console_level)
    console.addFilter(fields)

    log_file = logging.FileHandler(cfg.log_dir / f"run_{run_id}.log", encoding="utf-8")
    log_file.setLevel(cfg.file_level)
    log_file.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S"))
    log_file.addFilter(fields)

    logger.addHandler(console)
    logger.addHandler(log_file)

    event_log = None
    if cfg.write_jsonl:
        event_log = IterationEventLog(path=cfg.log_dir / f"events_{run_id}.jsonl", run_id=run_id)

    logger.debug("Logging to %s (run_id=%s)", cfg.log_dir, run_id)
    return logger, event_log
