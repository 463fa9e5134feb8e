# SPDX-License-Identifier: MIT
"""Root logging setup for chronocal runs and the named events they emit."""
from __future__ import annotations

import logging
import os
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, List, Mapping

from .config import LoggingConfig
from .jsonl_handler import JSONLHandler

LOG_FILE = "chronocal.log"
JSONL_FILE = "events.jsonl"
EVENT_LOGGER = "chronocal.events"


class _RunFilter(logging.Filter):
    """Stamp each record with the run identifier."""

    def __init__(self, run_id: str) -> None:
        super().__init__()
        self.run_id = run_id

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = self.run_id
        return True


def new_run_id() -> str:
    return f"{datetime.now():%Y%m%dT%H%M%S}-{os.getpid()}"


def _build_handlers(cfg: LoggingConfig) -> List[logging.Handler]:
    handlers: List[logging.Handler] = []
    if cfg.console:
        console = logging.StreamHandler(sys.stdout)
        console.setFormatter(logging.Formatter(cfg.console_fmt, datefmt=cfg.date_fmt))
        handlers.append(console)
    log_dir = Path(cfg.log_dir)
    if cfg.file:
        log_dir.mkdir(parents=True, exist_ok=True)
        rotating = RotatingFileHandler(
            log_dir / LOG_FILE,
            maxBytes=cfg.file_max_mb * 1024 * 1024,
            backupCount=cfg.file_backup_count,
            encoding="utf-8",
        )
        rotating.setFormatter(logging.Formatter(cfg.file_fmt, datefmt=cfg.date_fmt))
        handlers.append(rotating)
    if cfg.jsonl:
        handlers.append(JSONLHandler(log_dir / JSONL_FILE))
    return handlers


def init_logging(cfg: LoggingConfig) -> str:
    """Point the root logger at the handlers ``cfg`` enables and return the run id.

    Handlers and run filters from an earlier call are closed and replaced.
    """
    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()
    for f in [f for f in root.filters if isinstance(f, _RunFilter)]:
        root.removeFilter(f)

    level = cfg.level()
    root.setLevel(level)
    run_filter = _RunFilter(new_run_id())
    root.addFilter(run_filter)
    for handler in _build_handlers(cfg):
        handler.setLevel(level)
        # records from child loggers skip root filters, so stamp at the handler
        handler.addFilter(run_filter)
        root.addHandler(handler)
    return run_filter.run_id


def log_event(event: str, payload: Mapping[str, Any]) -> None:
    """Emit a named event with ``payload`` as its data."""
    logging.getLogger(EVENT_LOGGER).info(event, extra=dict(payload))


def log_cli_call(command: str, options: Dict[str, Any], version: str) -> None:
    log_event("cli_call", {"command": command, "options": options, "version": version})
