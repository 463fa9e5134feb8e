# SPDX-License-Identifier: MIT
# chronocal logging package:
# - console + rotating file logging
# - JSONL event stream
from .config import LoggingConfig
from .jsonl_handler import EventFormatter, JSONLHandler
from .logger import (
    EVENT_LOGGER,
    JSONL_FILE,
    LOG_FILE,
    init_logging,
    log_cli_call,
    log_event,
    new_run_id,
)

__all__ = [
    "LoggingConfig",
    "EventFormatter",
    "JSONLHandler",
    "EVENT_LOGGER",
    "JSONL_FILE",
    "LOG_FILE",
    "init_logging",
    "log_cli_call",
    "log_event",
    "new_run_id",
]
