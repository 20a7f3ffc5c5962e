from __future__ import annotations

from pathlib import Path

from async_simple_iterator.errors.config import ErrorHandlingConfig


def test_resolved_run_id_returns_explicit_id() -> None:
    cfg = ErrorHandlingConfig(run_id="myrun")
    assert cfg.resolved_run_id() == "myrun"


def test_resolved_run_id_auto_is_non_empty_and_changes() -> None:
    cfg = ErrorHandlingConfig(run_id="auto")
    a = cfg.resolved_run_id()
    b = cfg.resolved_run_id()
    assert isinstance(a, str) and len(a) > 0
    assert a != b


def test_from_env_reads_overrides(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "mylogs"))
    monkeypatch.setenv("WRITE_JSONL", "0")
    monkeypatch.setenv("RUN_ID", "nightly")

    cfg = ErrorHandlingConfig.from_env()

    assert cfg.log_dir == tmp_path / "mylogs"
    assert cfg.write_jsonl is False
    assert cfg.run_id == "nightly"


def test_from_env_respects_prefix(monkeypatch, tmp_path: Path) -> None:
    base = ErrorHandlingConfig(env_prefix="ASYNC_ITERATOR_", log_dir=Path("logs"), write_jsonl=False)

    monkeypatch.setenv("ASYNC_ITERATOR_LOG_DIR", str(tmp_path / "pref_logs"))
    monkeypatch.delenv("ASYNC_ITERATOR_WRITE_JSONL", raising=False)

    cfg = ErrorHandlingConfig.from_env(default=base)

    assert cfg.log_dir == tmp_path / "pref_logs"
    assert cfg.write_jsonl is False
    assert cfg.env_prefix == "ASYNC_ITERATOR_"
