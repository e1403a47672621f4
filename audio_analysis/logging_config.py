"""Log formatting for the audio analysis service.

The records worth reading are the per-request access line from the
HTTP middleware, the "Processing audio from URL" line for each remote
input, the model timing line from the analyzer, and the WARNING
"Rejected <path>: <message>" line for every refused request.

In development these are printed as coloured one-liners. Otherwise each
record is one JSON object per line, with the request and analysis
context attached as top-level keys.
"""

from __future__ import annotations

import json
import logging
import sys
import traceback
from datetime import datetime, timezone
from typing import Any

# Context attached with `extra=` by the middleware, normaliser and analyzer
_EXTRA_FIELDS = (
    "request_id", "method", "path", "status_code", "duration_ms",
    "media_count", "error_kind", "url",
)


class JSONFormatter(logging.Formatter):
    """Emit log records as single-line JSON objects.

    A URL fetch and a rejection look like:
        {"ts": "...", "level": "INFO", "logger": "audio_analysis.services.media",
         "msg": "Processing audio from URL: https://cdn.test/a.mp3", "url": "https://cdn.test/a.mp3"}
        {"ts": "...", "level": "WARNING", "logger": "audio_analysis.main",
         "msg": "Rejected /api/v1/audio/analysis/from-urls: Invalid or non-audio MIME type ...",
         "file": "...", "line": 72, "func": "audio_processing_error_handler",
         "error_kind": "invalid_mime_type", "path": "/api/v1/audio/analysis/from-urls"}

    WARNING and above carry source location; a chained cause is
    serialised under "exception".
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }

        if record.levelno >= logging.WARNING:
            entry["file"] = record.pathname
            entry["line"] = record.lineno
            entry["func"] = record.funcName

        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = {
                "type": type(record.exc_info[1]).__name__,
                "message": str(record.exc_info[1]),
                "traceback": traceback.format_exception(*record.exc_info),
            }

        for key in _EXTRA_FIELDS:
            val = getattr(record, key, None)
            if val is not None:
                entry[key] = val

        return json.dumps(entry, default=str)


class DevFormatter(logging.Formatter):
    """One coloured line per record: time, level, logger, message."""

    COLORS = {
        "DEBUG": "\033[36m",     # cyan
        "INFO": "\033[32m",      # green
        "WARNING": "\033[33m",   # yellow
        "ERROR": "\033[31m",     # red
        "CRITICAL": "\033[35m",  # magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        ts = datetime.now(timezone.utc).strftime("%H:%M:%S")
        msg = record.getMessage()
        base = f"{color}{ts} {record.levelname:<8}{self.RESET} {record.name} - {msg}"
        if record.exc_info and record.exc_info[1] is not None:
            base += "\n" + "".join(traceback.format_exception(*record.exc_info))
        return base


def setup_logging(*, is_dev: bool = True, level: str = "INFO") -> None:
    """Configure the root logger with dev or JSON formatting."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(DevFormatter() if is_dev else JSONFormatter())
    root.addHandler(handler)

    for name in ("botocore", "urllib3", "httpx", "httpcore", "uvicorn.access"):
        logging.getLogger(name).setLevel(logging.WARNING)
