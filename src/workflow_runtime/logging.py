"""JSON logging for the runtime and its CLI.

Every engine log line carries its context in ``extra=`` fields (``workflow``,
``state``, ``event``, ``action``, ``category``...). The formatter keeps those
fields together under an ``extra`` object, so one state machine's history can
be filtered out of a shared log stream.

Records go to stderr: the CLI prints snapshots on stdout and the two must not
interleave.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import IO, Any

# Attributes every LogRecord has; anything else on a record came from ``extra=``.
_RESERVED_LOG_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}

# Libraries the runtime drives whose DEBUG output drowns out transitions:
# urllib3 underneath the ``api`` handler, asyncio underneath ``send``.
_NOISY_LOGGERS = ("urllib3", "asyncio")


class JsonFormatter(logging.Formatter):
    """Render a record as one JSON object per line.

    Values that are not JSON serializable (sets, enums, paths) are rendered with
    ``str``.
    """

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003 (record)
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extra = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_LOG_RECORD_ATTRS and not key.startswith("_")
        }
        if extra:
            payload["extra"] = extra

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(level: str, *, stream: IO[str] | None = None) -> None:
    """Route all runtime logging through one JSON handler.

    Args:
        level: Root level name, case-insensitive (``LOG_LEVEL``).
        stream: Destination; defaults to ``sys.stderr``.
    """

    root = logging.getLogger()

    # Re-configuring replaces the handler instead of stacking a second one.
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(stream=stream if stream is not None else sys.stderr)
    handler.setFormatter(JsonFormatter())

    root.addHandler(handler)
    root.setLevel(level.upper())

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(root.level, logging.INFO))
