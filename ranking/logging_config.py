"""JSON logging for the nightly job.

Every record carries the fields bound for the current run (run id and
calculation date) plus any per-call `ctx_*` extras, flattened under
"context".
"""

from __future__ import annotations

import json
import logging
import sys
import threading
from datetime import datetime, timezone

CONTEXT_PREFIX = "ctx_"

_run_context: dict[str, object] = {}
_run_context_lock = threading.Lock()


def bind_run_context(**fields) -> None:
    """Attach fields to every record logged until `clear_run_context()`."""
    with _run_context_lock:
        _run_context.update(fields)


def clear_run_context() -> None:
    with _run_context_lock:
        _run_context.clear()


def current_run_context() -> dict[str, object]:
    with _run_context_lock:
        return dict(_run_context)


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with run and call context merged."""

    def __init__(self, job: str = "nightly_mpi") -> None:
        super().__init__()
        self.job = job

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "job": self.job,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "line": record.lineno,
        }
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = {
                "type": type(record.exc_info[1]).__name__,
                "message": str(record.exc_info[1]),
            }
        context = current_run_context()
        for key, value in record.__dict__.items():
            if key.startswith(CONTEXT_PREFIX):
                context[key[len(CONTEXT_PREFIX):]] = value
        if context:
            log_entry["context"] = context
        return json.dumps(log_entry, default=str)


def setup_logging(level: str = "INFO", job: str = "nightly_mpi") -> None:
    """Send JSON logs to stdout. A second call is a no-op."""
    root = logging.getLogger()
    if root.handlers:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter(job=job))
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("alembic").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_context(**fields) -> dict[str, object]:
    """Build an `extra=` mapping whose keys land under "context" in JSON output."""
    return {f"{CONTEXT_PREFIX}{k}": v for k, v in fields.items()}
