"""fauxtime.

A deterministic, manually advanced clock for testing timers, delays and
retry schedules without real waits.
"""

from importlib.metadata import PackageNotFoundError, version

from fauxtime._clock import ClockPort, SystemClock, SystemTimer, TimerPort
from fauxtime._errors import AlarmOverflowError, FauxtimeError
from fauxtime._logging import JsonFormatter, configure_logging
from fauxtime._settings import ClockSettings, LoggingSettings, Settings
from fauxtime._virtual import VirtualClock, VirtualTimer

try:
    # Prefer the generated version file (setuptools_scm at build time)
    from fauxtime._version import __version__
except ImportError:
    try:
        # Fallback to installed package metadata
        __version__ = version("fauxtime")
    except PackageNotFoundError:
        # Last resort fallback for editable installs without metadata
        __version__ = "0.0.0+unknown"

__all__ = [
    # Version
    "__version__",
    # Clock
    "ClockPort",
    "SystemClock",
    "SystemTimer",
    "TimerPort",
    "VirtualClock",
    "VirtualTimer",
    # Errors
    "AlarmOverflowError",
    "FauxtimeError",
    # Logging
    "JsonFormatter",
    "configure_logging",
    # Settings
    "ClockSettings",
    "LoggingSettings",
    "Settings",
]
