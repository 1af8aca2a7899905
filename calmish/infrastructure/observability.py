"""Structured Logging - one JSON object per line, or plain text for local runs.

Invariants:
    - Every line carries timestamp, level, logger and message
    - Known context keys passed via extra= are copied when not None
    - setup_logging is idempotent: it replaces the handler it installed before
"""

import json
import logging
from datetime import datetime, timezone

CONTEXT_KEYS = (
    "slice", "domain", "topic", "error_code", "attempt", "path",
    "input_tokens", "output_tokens", "client",
)

_HANDLER_NAME = "calmish"


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (key, getattr(record, key)) for key in CONTEXT_KEYS
            if getattr(record, key, None) is not None
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    """Install the app's root handler. fmt is "json" or "text"."""
    root = logging.getLogger()
    for existing in [h for h in root.handlers if h.get_name() == _HANDLER_NAME]:
        root.removeHandler(existing)

    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(
        JSONFormatter() if fmt == "json"
        else logging.Formatter("%(asctime)s %(levelname)-7s %(name)s: %(message)s")
    )
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    # one line per outbound request is noise at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
