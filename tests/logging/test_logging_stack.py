import json
import logging

import numpy as np
import pytest

from chronocal.calibration import CurveId
from chronocal.logging import (
    EVENT_LOGGER,
    JSONL_FILE,
    LOG_FILE,
    JSONLHandler,
    LoggingConfig,
    init_logging,
    log_cli_call,
    log_event,
)
from chronocal.utils.exceptions import ConfigurationError, DomainError


@pytest.fixture
def restore_root_logging():
    root = logging.getLogger()
    handlers, level, filters = list(root.handlers), root.level, list(root.filters)
    yield
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()
    for f in list(root.filters):
        root.removeFilter(f)
    for h in handlers:
        root.addHandler(h)
    for f in filters:
        root.addFilter(f)
    root.setLevel(level)


def test_jsonl_handler_writes_event_schema(tmp_path):
    log_file = tmp_path / "events.jsonl"
    logger = logging.getLogger("chronocal.test.jsonl")
    logger.handlers = []
    logger.propagate = False
    handler = JSONLHandler(log_file)
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)

    payload = {"n_dates": np.int64(3), "ages": np.array([1.0, 2.0]), "cc": CurveId.MARINE20}
    logger.info("calibrated dates", extra=payload)
    handler.close()

    line = json.loads(log_file.read_text().splitlines()[0])
    assert line["event"] == "calibrated dates"
    assert line["level"] == "INFO"
    assert line["logger"] == "chronocal.test.jsonl"
    assert line["data"] == {"n_dates": 3, "ages": [1.0, 2.0], "cc": "MARINE20"}


def test_jsonl_handler_records_exceptions(tmp_path):
    logger = logging.getLogger("chronocal.test.jsonl_exc")
    logger.handlers = []
    logger.propagate = False
    handler = JSONLHandler(tmp_path / "events.jsonl")
    logger.addHandler(handler)
    try:
        raise DomainError("bad slice")
    except DomainError:
        logger.exception("pb210 failed")
    handler.close()

    line = json.loads((tmp_path / "events.jsonl").read_text())
    assert "data" not in line
    assert "DomainError: bad slice" in line["error"]


def test_init_logging_writes_file_and_jsonl(tmp_path, restore_root_logging):
    cfg = LoggingConfig(log_dir=str(tmp_path / "logs"), console=False)
    run = init_logging(cfg)
    log_event("ghost.complete", {"n_points": 12})
    log_cli_call("ghost", {"kind": "depth"}, "0.1.0")
    for h in logging.getLogger().handlers:
        h.flush()

    text = (tmp_path / "logs" / LOG_FILE).read_text()
    assert "ghost.complete" in text
    assert f"run={run}" in text
    events = [json.loads(l) for l in (tmp_path / "logs" / JSONL_FILE).read_text().splitlines()]
    by_event = {e["event"]: e for e in events}
    assert by_event["ghost.complete"]["data"] == {"n_points": 12}
    assert by_event["cli_call"]["data"]["command"] == "ghost"
    assert by_event["cli_call"]["data"]["options"] == {"kind": "depth"}
    assert by_event["cli_call"]["logger"] == EVENT_LOGGER
    assert {e["run"] for e in events} == {run}


def test_init_logging_replaces_handlers(tmp_path, restore_root_logging):
    cfg = LoggingConfig(log_dir=str(tmp_path), console=True, file=False, jsonl=False)
    init_logging(cfg)
    init_logging(cfg)
    assert len(logging.getLogger().handlers) == 1


def test_file_only(tmp_path, restore_root_logging):
    cfg = LoggingConfig(log_dir=str(tmp_path), console=False, jsonl=False)
    init_logging(cfg)
    logger = logging.getLogger("chronocal.test.file")
    for i in range(20):
        logger.info("line %d", i)
    logging.getLogger().handlers[0].flush()
    assert "line 19" in (tmp_path / LOG_FILE).read_text()
    assert not (tmp_path / JSONL_FILE).exists()


def test_bad_level_rejected():
    with pytest.raises(ConfigurationError):
        LoggingConfig(log_level="LOUD")


def test_library_warnings_reach_the_logger(caplog, tiny_ensemble):
    from chronocal.accrate import accrate_at_age
    from chronocal.utils.exceptions import AgeRangeWarning

    with caplog.at_level(logging.WARNING, logger="chronocal"):
        with pytest.warns(AgeRangeWarning):
            accrate_at_age(1.0e5, tiny_ensemble)
    rec = next(r for r in caplog.records if r.name == "chronocal.accrate.reconstruct")
    assert rec.levelno == logging.WARNING
    assert rec.age == 1.0e5
