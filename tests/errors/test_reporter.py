from __future__ import annotations

import io
import json
import logging
from pathlib import Path
from typing import Any, Callable, Hashable

from rich.console import Console

from async_simple_iterator import AsyncSimpleIterator, WorkError
from async_simple_iterator.errors import ErrorHandlingConfig, IterationReporter, configure_logging
from async_simple_iterator.errors.types import IterationStatus


def _make_reporter(*, tmp_path: Path, write_jsonl: bool = False) -> IterationReporter:
    cfg = ErrorHandlingConfig(
        log_dir=tmp_path / "logs",
        run_id="testrun",
        write_jsonl=write_jsonl,
        console_level=logging.CRITICAL,  # keep test output quiet
    )
    logger, event_log = configure_logging(cfg=cfg)
    return IterationReporter(cfg=cfg, logger=logger, event_log=event_log)


def _dev_fails(value: Any, key: Hashable, next: Callable[..., None]) -> None:
    if key == "dev":
        next(WorkError("missing", f"err:{key}", payload=value))
        return
    next(None, 123)


def _drive(iterator: Callable[..., None], keys: list[str]) -> list[tuple[Any, Any]]:
    out: list[tuple[Any, Any]] = []
    for key in keys:
        iterator(f"./{key}.json", key, lambda err=None, res=None: out.append((err, res)))
    return out


def test_reporter_records_ok_and_settled_failures(tmp_path: Path) -> None:
    reporter = _make_reporter(tmp_path=tmp_path)
    base = AsyncSimpleIterator({"settle": True})
    reporter.attach(base)

    out = _drive(base.wrap_iterator(_dev_fails), ["dev", "test"])

    assert out == [(None, None), (None, 123)]
    assert reporter.status("dev") == IterationStatus.FAILED
    assert reporter.status("test") == IterationStatus.OK
    assert reporter.failures_count() == 1
    assert reporter.exit_code() == 1

    (rec,) = reporter.records()
    assert rec.key == "dev"
    assert rec.kind == "missing"
    assert rec.payload == "./dev.json"
    assert rec.settled is True


def test_reporter_without_failures(tmp_path: Path) -> None:
    reporter = _make_reporter(tmp_path=tmp_path)
    base = AsyncSimpleIterator()
    reporter.attach(base)

    _drive(base.wrap_iterator(_dev_fails), ["test", "prod"])

    assert reporter.has_failures() is False
    assert reporter.exit_code() == 0
    summary = reporter.render_summary()
    assert "OK:   2" in summary
    assert "Details" not in summary


def test_render_summary_lists_failures_and_artifacts(tmp_path: Path) -> None:
    reporter = _make_reporter(tmp_path=tmp_path, write_jsonl=True)
    base = AsyncSimpleIterator()
    reporter.attach(base)

    _drive(base.wrap_iterator(_dev_fails), ["dev"])

    summary = reporter.render_summary()
    assert "FAIL: 1" in summary
    assert "FAIL 'dev': WorkError: err:dev" in summary
    assert "run_testrun.log" in summary
    assert "events_testrun.jsonl" in summary


def test_reporter_writes_jsonl_events(tmp_path: Path) -> None:
    reporter = _make_reporter(tmp_path=tmp_path, write_jsonl=True)
    base = AsyncSimpleIterator({"settle": True})
    reporter.attach(base)

    _drive(base.wrap_iterator(_dev_fails), ["dev", "test"])

    lines = (reporter.cfg.log_dir / "events_testrun.jsonl").read_text(encoding="utf-8").strip().splitlines()
    events = [json.loads(line) for line in lines]

    assert [e["event"] for e in events] == ["iteration_failed", "iteration_ok"]
    assert events[0]["key"] == "dev"
    assert events[0]["settled"] is True
    assert events[0]["error"]["kind"] == "missing"
    assert events[1]["value"] == "./test.json"


def test_print_summary_uses_given_console(tmp_path: Path) -> None:
    reporter = _make_reporter(tmp_path=tmp_path)
    buffer = io.StringIO()

    reporter.print_summary(Console(file=buffer, width=120))

    assert "Iteration summary (run_id=testrun)" in buffer.getvalue()


def test_reporter_keeps_settle_value_of_each_wrapped_iterator(tmp_path: Path) -> None:
    reporter = _make_reporter(tmp_path=tmp_path)
    base = AsyncSimpleIterator({"settle": True})
    reporter.attach(base)

    settled = base.wrap_iterator(_dev_fails)
    base.default_options({"settle": False})
    strict = base.wrap_iterator(_dev_fails)

    assert _drive(settled, ["dev"]) == [(None, None)]
    assert isinstance(_drive(strict, ["dev"])[0][0], WorkError)

    first, second = reporter.records()
    assert first.settled is True
    assert second.settled is False

    summary = reporter.render_summary()
    assert "SETTLED 'dev'" in summary
    assert "FAIL 'dev'" in summary


def test_reporter_counts_two_argument_calls(tmp_path: Path) -> None:
    reporter = _make_reporter(tmp_path=tmp_path)
    base = AsyncSimpleIterator({"settle": True})
    reporter.attach(base)

    iterator = base.wrap_iterator(lambda path, next: next(ValueError(path)) if path == "gone" else next(None, path))
    for path in ["a.js", "gone"]:
        iterator(path, lambda err=None, res=None: None)

    assert reporter.failures_count() == 1
    assert reporter.status(None) == IterationStatus.FAILED
    assert "SETTLED 'gone': ValueError: gone" in reporter.render_summary()


def test_summary_run_id_matches_event_log(tmp_path: Path) -> None:
    cfg = ErrorHandlingConfig(log_dir=tmp_path / "logs", run_id="auto", console_level=logging.CRITICAL)
    logger, event_log = configure_logging(cfg=cfg)
    reporter = IterationReporter(cfg=cfg, logger=logger, event_log=event_log)

    assert event_log is not None
    assert f"run_id={event_log.run_id}" in reporter.render_summary()
