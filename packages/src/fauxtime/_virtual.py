"""Deterministic virtual clock for driving timers in tests.

Satisfies :class:`~fauxtime._clock.ClockPort` with a time value that
only moves when test code calls :meth:`VirtualClock.advance`.  Code
under test asks the clock for timers exactly as it would a real clock;
the test then advances time and every timer that became due fires,
earliest deadline first.

Typical use with code running on another thread::

    clock = VirtualClock()
    worker = threading.Thread(target=retry_loop, args=(clock,))
    worker.start()

    clock.wait_for_alarms()   # retry_loop armed its backoff timer
    clock.advance(5.0)        # ...and now it fires

Concurrency model:

- No background thread.  Every operation runs on the caller's thread
  under one re-entrant lock guarding ``now`` and the pending timers.
- Timer triggers run while that lock is held.  A channel trigger is a
  non-blocking put into a capacity-1 queue; a callback trigger must
  return promptly.  Due timers are detached before any trigger runs, so
  a callback may call back into the clock.
- The clock never sleeps.  Waiting is the consumer's business, done on
  the queue a timer hands back.

Alarm events:

Every arm (``after`` / ``new_timer`` / ``after_func``) and every rearm
(``reset``) pushes one token onto a bounded alarm channel.  Tests drain
it with :meth:`VirtualClock.wait_for_alarms` to know the code under test
has scheduled its wait before they advance.  When the channel is full
the clock raises :class:`~fauxtime._errors.AlarmOverflowError` and the
arm or rearm does not happen.
"""

from __future__ import annotations

import bisect
import logging
import queue
import threading
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol

from fauxtime._errors import AlarmOverflowError
from fauxtime._settings import DEFAULT_ALARM_CAPACITY

if TYPE_CHECKING:
    from fauxtime._settings import ClockSettings

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Triggers
# ---------------------------------------------------------------------------


class _Trigger(Protocol):
    """Fire action of a timer, chosen when the timer is created."""

    def fire(self, instant: float) -> None: ...


class _ChannelTrigger:
    """Deliver the fire instant on a capacity-1 queue without blocking."""

    def __init__(self, chan: queue.Queue[float]) -> None:
        self._chan = chan

    def fire(self, instant: float) -> None:
        try:
            self._chan.put_nowait(instant)
        except queue.Full:
            # A value from an earlier arm was never read.
            logger.debug("Channel full, dropping fire at t=%s", instant)


class _CallbackTrigger:
    """Call a zero-argument function."""

    def __init__(self, func: Callable[[], object]) -> None:
        self._func = func

    def fire(self, instant: float) -> None:  # noqa: ARG002
        self._func()


# ---------------------------------------------------------------------------
# Timer handle
# ---------------------------------------------------------------------------


class VirtualTimer:
    """One-shot timer owned by a :class:`VirtualClock`.

    Satisfies :class:`~fauxtime._clock.TimerPort`.  All state is guarded
    by the owning clock's lock; the handle only forwards ``reset`` and
    ``stop`` to the clock.
    """

    def __init__(
        self,
        clock: VirtualClock,
        deadline: float,
        func: Callable[[], object] | None = None,
    ) -> None:
        self._clock = clock
        self._chan: queue.Queue[float] = queue.Queue(maxsize=1)
        self._trigger: _Trigger = (
            _ChannelTrigger(self._chan) if func is None else _CallbackTrigger(func)
        )
        self.deadline = deadline
        self.armed = False

    @property
    def chan(self) -> queue.Queue[float]:
        """Channel receiving the fire instant (capacity 1)."""
        return self._chan

    def reset(self, duration: float) -> bool:
        """Rearm ``duration`` seconds after the clock's current time.

        Never fires the timer, even when the new deadline is already due;
        the next :meth:`VirtualClock.advance` does.

        Returns:
            ``True`` if the timer was armed before the call.
        """
        return self._clock._reset(self, duration)

    def stop(self) -> bool:
        """Disarm the timer.

        Returns:
            ``True`` if the timer was armed, ``False`` if it had already
            fired or been stopped.
        """
        return self._clock._stop(self)

    def __repr__(self) -> str:
        return f"VirtualTimer(deadline={self.deadline!r}, armed={self.armed})"


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


def _deadline(timer: VirtualTimer) -> float:
    return timer.deadline


class VirtualClock:
    """Manually advanced clock with a deadline-ordered timer registry.

    Args:
        start: Initial virtual instant in seconds.
        alarm_capacity: Number of undrained arm/rearm events tolerated
            before :class:`~fauxtime._errors.AlarmOverflowError`.

    Example::

        clock = VirtualClock()
        timer = clock.new_timer(5.0)
        clock.advance(3.0)
        assert timer.chan.empty()
        clock.advance(2.0)
        assert timer.chan.get_nowait() == 5.0
    """

    def __init__(
        self,
        start: float = 0.0,
        *,
        alarm_capacity: int = DEFAULT_ALARM_CAPACITY,
    ) -> None:
        if alarm_capacity < 1:
            msg = "'alarm_capacity' must be positive"
            raise ValueError(msg)
        self._lock = threading.RLock()
        self._now = start
        self._waiting: list[VirtualTimer] = []
        self._alarm_capacity = alarm_capacity
        self._alarms: queue.Queue[None] = queue.Queue(maxsize=alarm_capacity)

    @classmethod
    def from_settings(cls, settings: ClockSettings) -> VirtualClock:
        """Build a clock from :class:`~fauxtime._settings.ClockSettings`."""
        return cls(settings.start, alarm_capacity=settings.alarm_capacity)

    # -- ClockPort ----------------------------------------------------------

    def now(self) -> float:
        """Return the current virtual instant."""
        with self._lock:
            return self._now

    def after(self, duration: float) -> queue.Queue[float]:
        """Return a channel that receives the instant ``duration`` from now."""
        return self.new_timer(duration).chan

    def new_timer(self, duration: float) -> VirtualTimer:
        """Arm a one-shot timer that delivers on its channel.

        A zero or negative ``duration`` fires before this call returns.
        """
        with self._lock:
            timer = VirtualTimer(self, self._now + duration)
            self._arm(timer)
        return timer

    def after_func(self, duration: float, func: Callable[[], object]) -> VirtualTimer:
        """Arm a one-shot timer that calls ``func`` when it fires.

        ``func`` runs under the clock lock and must return promptly.
        The returned timer's channel never receives a value.
        """
        with self._lock:
            timer = VirtualTimer(self, self._now + duration, func)
            self._arm(timer)
        return timer

    # -- time control -------------------------------------------------------

    def advance(self, duration: float) -> None:
        """Move time forward by ``duration`` and fire every due timer.

        Timers fire in ascending deadline order; timers sharing a
        deadline fire in the order they were armed.

        Raises:
            ValueError: If ``duration`` is negative.
        """
        if duration < 0:
            msg = f"cannot advance by a negative duration ({duration!r})"
            raise ValueError(msg)
        with self._lock:
            self._now += duration
            logger.debug("Advanced by %s", duration, extra=self._log_extra())
            self._fire_due()

    def advance_to(self, instant: float) -> None:
        """Advance to ``instant``, firing every timer due by then.

        Raises:
            ValueError: If ``instant`` lies before the current time.
        """
        with self._lock:
            if instant < self._now:
                msg = f"cannot move time backwards ({instant!r} < {self._now!r})"
                raise ValueError(msg)
            self.advance(instant - self._now)

    # -- introspection ------------------------------------------------------

    def pending(self) -> int:
        """Return the number of armed timers."""
        with self._lock:
            return len(self._waiting)

    def next_deadline(self) -> float | None:
        """Return the earliest armed deadline, or ``None`` if idle."""
        with self._lock:
            return self._waiting[0].deadline if self._waiting else None

    # -- alarm events -------------------------------------------------------

    def alarm_events(self) -> queue.Queue[None]:
        """Return the channel receiving one token per arm or rearm."""
        return self._alarms

    def wait_for_alarms(self, count: int = 1, timeout: float | None = None) -> bool:
        """Block until ``count`` alarm events have been drained.

        ``timeout`` is in *real* seconds and bounds the whole wait.

        Returns:
            ``True`` if all ``count`` events arrived, ``False`` on timeout.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        for _ in range(count):
            remaining = (
                None if deadline is None else max(deadline - time.monotonic(), 0.0)
            )
            try:
                self._alarms.get(timeout=remaining)
            except queue.Empty:
                return False
        return True

    # -- internals (called with or acquiring the lock) ----------------------

    def _arm(self, timer: VirtualTimer) -> None:
        # Signal first: an overflow must leave the registry untouched.
        self._signal_alarm()
        self._insert(timer)
        logger.debug("Armed %r", timer, extra=self._log_extra())
        self._fire_due()

    def _reset(self, timer: VirtualTimer, duration: float) -> bool:
        with self._lock:
            self._signal_alarm()
            was_armed = timer.armed
            if was_armed:
                self._waiting.remove(timer)
                timer.armed = False
            timer.deadline = self._now + duration
            self._insert(timer)
            logger.debug(
                "Rearmed %r (was armed: %s)", timer, was_armed, extra=self._log_extra()
            )
            return was_armed

    def _stop(self, timer: VirtualTimer) -> bool:
        with self._lock:
            if not timer.armed:
                return False
            self._waiting.remove(timer)
            timer.armed = False
            logger.debug("Stopped %r", timer, extra=self._log_extra())
            return True

    def _log_extra(self) -> dict[str, float]:
        return {"virtual_now": self._now}

    def _insert(self, timer: VirtualTimer) -> None:
        # insort_right keeps timers with equal deadlines in arm order.
        bisect.insort_right(self._waiting, timer, key=_deadline)
        timer.armed = True

    def _fire_due(self) -> None:
        now = self._now
        consumed = 0
        for timer in self._waiting:
            if now < timer.deadline:
                break
            consumed += 1
        if not consumed:
            return

        due = self._waiting[:consumed]
        del self._waiting[:consumed]
        for timer in due:
            timer.armed = False

        errors: list[Exception] = []
        for timer in due:
            logger.debug("Firing %r", timer, extra=self._log_extra())
            try:
                timer._trigger.fire(now)
            except Exception as exc:
                logger.exception("Timer callback failed for %r", timer)
                errors.append(exc)
        if errors:
            raise errors[0]

    def _signal_alarm(self) -> None:
        try:
            self._alarms.put_nowait(None)
        except queue.Full:
            logger.critical(
                "Alarm channel overflow (capacity %d); raising AlarmOverflowError",
                self._alarm_capacity,
            )
            raise AlarmOverflowError(self._alarm_capacity) from None
