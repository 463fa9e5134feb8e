# SPDX-License-Identifier: MIT
"""chronocal event stream.

``events.jsonl`` holds one JSON object per log record::

    {"ts": ..., "level": "INFO", "logger": "chronocal.calibration.batch",
     "event": "calibrated dates", "run": "20240101T120000-4242",
     "data": {"n_dates": 12, "workers": 1}}

``data`` collects the ``extra={...}`` payload of the call. numpy scalars and
arrays, paths and enums are converted so that calibration and ghost payloads
can be logged as they are.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict

import numpy as np

# Attributes every LogRecord carries, plus those added by formatters and filters.
_RECORD_ATTRS = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {
    "message",
    "asctime",
    "run_id",
    "taskName",
}


def _to_json(obj: Any) -> Any:
    if isinstance(obj, np.generic):
        return obj.item()
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, Enum):
        return obj.name
    return str(obj)


class EventFormatter(logging.Formatter):
    """Render a record as one line of the chronocal event schema."""

    def format(self, record: logging.LogRecord) -> str:
        event: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "event": record.getMessage(),
            "run": getattr(record, "run_id", None),
        }
        data = {k: v for k, v in record.__dict__.items() if k not in _RECORD_ATTRS and not k.startswith("_")}
        if data:
            event["data"] = data
        if record.exc_info:
            event["error"] = self.formatException(record.exc_info)
        return json.dumps(event, ensure_ascii=False, default=_to_json)


class JSONLHandler(logging.FileHandler):
    """Append-mode file handler writing ``EventFormatter`` lines."""

    def __init__(self, filepath: Path) -> None:
        path = Path(filepath)
        path.parent.mkdir(parents=True, exist_ok=True)
        super().__init__(path, mode="a", encoding="utf-8")
        self.setFormatter(EventFormatter())
