"""Log formatting and root-logger setup for fauxtime.

The clock emits its DEBUG trail (advance, arm, rearm, stop, fire)
through module-level loggers and tags each record with the virtual
instant it happened at (``extra={"virtual_now": ...}``).  Both times are
kept:

- ``timestamp``: wall-clock time the record was created (UTC)
- ``virtual_now``: the clock's instant, present on clock records only

:class:`JsonFormatter` writes one JSON object per line; the text format
appends ``[vt=...]`` to clock records instead.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from typing import Any

from fauxtime._settings import LoggingSettings

_ONE_MB = 1024 * 1024

_TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

VIRTUAL_NOW = "virtual_now"


def virtual_now_of(record: logging.LogRecord) -> float | None:
    """Return the virtual instant a clock record was tagged with, if any."""
    return getattr(record, VIRTUAL_NOW, None)


class JsonFormatter(logging.Formatter):
    """Render records as single-line JSON objects (NDJSON).

    Args:
        service: Name written to every line as ``service``.
        version: Written as ``version`` when non-empty.
    """

    def __init__(self, *, service: str = "", version: str = "") -> None:
        super().__init__()
        self._static: dict[str, str] = {"service": service}
        if version:
            self._static["version"] = version

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=UTC)
        entry: dict[str, Any] = {
            "timestamp": created.isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **self._static,
        }

        vt = virtual_now_of(record)
        if vt is not None:
            entry[VIRTUAL_NOW] = vt

        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class _TextFormatter(logging.Formatter):
    """Human-readable lines, suffixed with the virtual instant when known."""

    def __init__(self) -> None:
        super().__init__(_TEXT_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        vt = virtual_now_of(record)
        return line if vt is None else f"{line} [vt={vt:g}]"


def _build_formatter(
    settings: LoggingSettings, service: str, version: str
) -> logging.Formatter:
    if settings.format == "json":
        return JsonFormatter(service=service, version=version)
    return _TextFormatter()


def configure_logging(
    settings: LoggingSettings,
    *,
    service: str,
    version: str = "",
) -> None:
    """Replace the root logger's handlers according to *settings*.

    Always logs to ``stderr``; also to a rotating file when
    ``settings.file`` is set (``max_file_size_mb`` per file,
    ``backup_count`` generations).
    """
    formatter = _build_formatter(settings, service, version)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if settings.file is not None:
        handlers.append(
            RotatingFileHandler(
                settings.file,
                maxBytes=settings.max_file_size_mb * _ONE_MB,
                backupCount=settings.backup_count,
            )
        )

    root = logging.getLogger()
    for old in root.handlers[:]:
        root.removeHandler(old)
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(settings.level)
