"""Exception hierarchy for fauxtime.

Only genuine programming errors surface as exceptions.  Benign races,
such as stopping a timer that has already fired, are reported through
``bool`` return values instead, matching real timer semantics.

Hierarchy::

    FauxtimeError
    └── AlarmOverflowError   ← alarm channel full (test is mis-designed)
"""

from __future__ import annotations


class FauxtimeError(Exception):
    """Base class for all fauxtime errors."""


class AlarmOverflowError(FauxtimeError):
    """The alarm-event channel overflowed.

    Raised when timers are armed or rearmed far more often than the
    test drains :meth:`~fauxtime.VirtualClock.alarm_events`.  Blocking
    would deadlock the code the clock is driving and dropping would hide
    the bug, so the clock fails hard instead.

    Attributes:
        capacity: The configured size of the alarm channel.
    """

    def __init__(self, capacity: int) -> None:
        self.capacity = capacity
        super().__init__(
            f"alarm channel overflow: more than {capacity} undrained "
            "arm/rearm events; drain alarm_events() or arm fewer timers"
        )
