"""Configuration via pydantic-settings.

Configuration is loaded from environment variables and/or ``.env``
files.  Variables carry the ``FAUXTIME_`` prefix and nested models use
``__`` as the delimiter, e.g. ``FAUXTIME_CLOCK__ALARM_CAPACITY=500``.

The schema covers two concerns:

* **Clock** — initial virtual instant and alarm channel capacity.
* **Logging** — level, format, optional file sink, rotation.

All durations and instants are in **seconds**.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ALARM_CAPACITY = 10_000

# -------------------------------------------------------------------
# Sub-models (BaseModel, NOT BaseSettings — nested via composition)
# -------------------------------------------------------------------


class ClockSettings(BaseModel):
    """Virtual clock configuration.

    Environment variables (with ``__`` nesting)::

        FAUXTIME_CLOCK__START=1000.0
        FAUXTIME_CLOCK__ALARM_CAPACITY=500
    """

    start: float = Field(
        default=0.0,
        description="Initial virtual instant in seconds.",
    )
    alarm_capacity: Annotated[int, Field(ge=1)] = Field(
        default=DEFAULT_ALARM_CAPACITY,
        description=(
            "Number of undrained arm/rearm events the alarm channel holds "
            "before the clock raises AlarmOverflowError."
        ),
    )


class LoggingSettings(BaseModel):
    """Logging configuration.

    When ``file`` is set, logs are also written to a rotating file
    (size-based rotation, ``backup_count`` generations kept).  When
    ``None``, logs go to stderr only.

    The ``format`` field selects the output format:

    - ``"json"`` (default) — structured JSON lines for log aggregators.
    - ``"text"`` — human-readable timestamped format for terminals.
    """

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Root log level.",
    )
    format: Literal["json", "text"] = Field(
        default="json",
        description=(
            "Log output format. "
            "'json' emits structured JSON lines; "
            "'text' emits human-readable timestamped lines."
        ),
    )
    file: str | None = Field(
        default=None,
        description="Optional log file path. ``None`` means stderr only.",
    )
    max_file_size_mb: Annotated[int, Field(ge=1)] = Field(
        default=10,
        description=(
            "Maximum log file size in megabytes before rotation. "
            "Only applies when ``file`` is set."
        ),
    )
    backup_count: Annotated[int, Field(ge=0)] = Field(
        default=3,
        description="Number of rotated log files to keep.",
    )


# -------------------------------------------------------------------
# Root settings
# -------------------------------------------------------------------


class Settings(BaseSettings):
    """Root settings for fauxtime.

    Example ``.env``::

        FAUXTIME_CLOCK__START=0
        FAUXTIME_CLOCK__ALARM_CAPACITY=10000
        FAUXTIME_LOGGING__LEVEL=DEBUG
        FAUXTIME_LOGGING__FORMAT=text
    """

    model_config = SettingsConfigDict(
        env_prefix="FAUXTIME_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    clock: ClockSettings = Field(
        default_factory=ClockSettings,
        description="Virtual clock settings.",
    )
    logging: LoggingSettings = Field(
        default_factory=LoggingSettings,
        description="Logging configuration.",
    )
