"""Public test-support utilities for fauxtime.

Provided symbols:

- :class:`VirtualClock` — re-exported for consumer test suites.
- :func:`make_settings` — factory for ``Settings`` without ``.env`` files.

The companion pytest plugin (:mod:`fauxtime.testing._plugin`) registers
the ``virtual_clock`` and ``system_clock`` fixtures.
"""

from fauxtime._virtual import VirtualClock
from fauxtime.testing._settings import make_settings

__all__ = [
    "VirtualClock",
    "make_settings",
]
