"""Shared logging setup.

Every entrypoint (API app, batch jobs, maintenance CLI) calls
`setup_logging(...)` once at startup so that all processes emit the same
format. Two formats are supported:

- `text`: one human readable line per record (local development)
- `json`: one JSON object per line (containers / log shippers)

A filter masks passwords, tokens and bearer credentials before any handler
sees the record.
"""

import json
import logging
import re
import sys
from datetime import datetime, timezone

_SENSITIVE_PATTERNS = [
    (re.compile(r'(password["\']?\s*[:=]\s*["\']?)[^"\'\s&,}]+', re.IGNORECASE), r"\1***"),
    (re.compile(r'(token["\']?\s*[:=]\s*["\']?)[^"\'\s&,}]+', re.IGNORECASE), r"\1***"),
    (re.compile(r"(Bearer\s+)[^\s\"']+", re.IGNORECASE), r"\1***"),
]

# LogRecord attributes that are not user supplied `extra` fields
_RESERVED_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}

TEXT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def mask_sensitive(value: str) -> str:
    """Replace secrets embedded in a log string with `***`."""
    for pattern, replacement in _SENSITIVE_PATTERNS:
        value = pattern.sub(replacement, value)
    return value


class SensitiveDataFilter(logging.Filter):
    """Mask credentials in the rendered message.

    The message is rendered with its arguments before masking, so a secret
    passed as a `%s` argument is caught as well.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = mask_sensitive(message)
        if masked != message:
            record.msg, record.args = masked, ()
        return True


class JsonFormatter(logging.Formatter):
    """Render a record as a single JSON line, including `extra=` fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in vars(record).items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def setup_logging(level: str = "INFO", fmt: str = "text") -> None:
    """Configure the root logger for the current process.

    Safe to call more than once: existing root handlers are replaced, so tests
    and reloaders do not end up with duplicated output.

    Args:
        level: Log level name (e.g. "INFO", "DEBUG").
        fmt: "text" or "json".
    """
    handler = logging.StreamHandler(sys.stdout)
    if fmt == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    handler.addFilter(SensitiveDataFilter())

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level.upper())

    # uvicorn installs its own access log; requests are logged by our middleware
    logging.getLogger("uvicorn.access").propagate = False
