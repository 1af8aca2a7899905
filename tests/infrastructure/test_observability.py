"""Structured logging - JSON formatter output."""

import json
import logging

from calmish.infrastructure.observability import JSONFormatter, setup_logging


def _record(**extra):
    record = logging.LogRecord(
        "calmish.services.state_store", logging.WARNING, __file__, 1,
        "wellness kept in memory only", None, None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_includes_extra_fields():
    line = JSONFormatter().format(
        _record(slice="wellness", error_code="PERSISTENCE_DEGRADED"),
    )
    log = json.loads(line)
    assert log["level"] == "WARNING"
    assert log["logger"] == "calmish.services.state_store"
    assert log["slice"] == "wellness"
    assert log["error_code"] == "PERSISTENCE_DEGRADED"
    assert "topic" not in log


def test_setup_logging_replaces_own_handler():
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    try:
        setup_logging("DEBUG", "text")
        setup_logging("WARNING", "json")
        ours = [h for h in root.handlers if h not in before]
        assert len(ours) == 1
        assert isinstance(ours[0].formatter, JSONFormatter)
        assert root.level == logging.WARNING
    finally:
        for h in [h for h in root.handlers if h not in before]:
            root.removeHandler(h)
        root.setLevel(level)
