from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
import os
import uuid


@dataclass(frozen=True)
class ErrorHandlingConfig:
    """
    Configuration for logging and iteration reporting.

    Parameters
    ----------
    log_dir
        Directory where log files and JSONL event logs are written.
    run_id
        Unique identifier for the run. If "auto", a UUID4 is generated.
    console_level
        Logging level for console output.
    file_level
        Logging level for file output.
    write_jsonl
        If True, writes structured JSONL events to <log_dir>/events_<run_id>.jsonl.
    rich_tracebacks
        Render tracebacks with Rich on the console handler.
    env_prefix
        Prefix for environment-variable overrides, e.g. "ASYNC_ITERATOR_".

    Notes
    -----
    None of these knobs affect how a decorated iterator behaves; settle mode
    lives in ``IteratorSettings``.

    Usage example
    -------------
        cfg = ErrorHandlingConfig(log_dir=Path("logs"), write_jsonl=False)
    """

    log_dir: Path = Path("logs")
    run_id: str = "auto"

    console_level: int = 20  # logging.INFO
    file_level: int = 10  # logging.DEBUG

    write_jsonl: bool = True
    rich_tracebacks: bool = False

    env_prefix: str = field(default="", repr=False)

    def resolved_run_id(self) -> str:
        """Return a non-auto run id."""
        if self.run_id != "auto":
            return self.run_id
        return uuid.uuid4().hex[:10]

    @classmethod
    def from_env(cls, *, default: Optional["ErrorHandlingConfig"] = None) -> "ErrorHandlingConfig":
        """
        Create config from environment variables.

        Supported variables (prefix controlled by env_prefix on `default`):
        - <PFX>LOG_DIR: path
        - <PFX>WRITE_JSONL: "1"/"0"
        - <PFX>RUN_ID: explicit run id

        Usage example
        -------------
            cfg = ErrorHandlingConfig.from_env(default=ErrorHandlingConfig(env_prefix="ASYNC_ITERATOR_"))
        """
        base = default if default is not None else cls()
        pfx = base.env_prefix

        log_dir = Path(os.getenv(f"{pfx}LOG_DIR", str(base.log_dir)))

        write_jsonl_raw = os.getenv(f"{pfx}WRITE_JSONL", "1" if base.write_jsonl else "0").strip()
        write_jsonl = write_jsonl_raw not in ("0", "false", "False", "")

        run_id = os.getenv(f"{pfx}RUN_ID", "").strip() or base.run_id

        return cls(
            log_dir=log_dir,
            run_id=run_id,
            console_level=base.console_level,
            file_level=base.file_level,
            write_jsonl=write_jsonl,
            rich_tracebacks=base.rich_tracebacks,
            env_prefix=pfx,
        )
