# SPDX-License-Identifier: MIT
"""chronocal logging configuration.

The ``logging`` group of ``ChronoConfig``: console output, the rotating
``chronocal.log`` file and the ``events.jsonl`` stream.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict

from ..utils.exceptions import ConfigurationError

_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class LoggingConfig:
    """Where a chronocal run logs, and at what level."""

    log_level: str = "INFO"  # DEBUG|INFO|WARNING|ERROR
    log_dir: str = "logs"  # Directory for chronocal.log and events.jsonl
    console: bool = True
    file: bool = True
    file_max_mb: int = 16
    file_backup_count: int = 3
    jsonl: bool = True

    console_fmt: str = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"
    file_fmt: str = (
        "[%(asctime)s] [%(levelname)s] [%(name)s] [pid=%(process)d run=%(run_id)s] %(message)s"
    )
    date_fmt: str = "%Y-%m-%d %H:%M:%S"

    def __post_init__(self) -> None:
        if self.log_level.upper() not in _LEVELS:
            raise ConfigurationError(f"unknown log level {self.log_level!r}; expected one of {_LEVELS}")

    def level(self) -> int:
        return getattr(logging, self.log_level.upper())

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
