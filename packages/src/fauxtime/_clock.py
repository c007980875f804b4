"""Clock port and real-time system adapter.

Provides ClockPort / TimerPort (Protocols) and SystemClock for code that
schedules waits on a clock.

Timing-dependent code (retry loops, backoff schedules, timeouts) takes a
:class:`ClockPort` and waits on the queue a timer hands back.  Production
wires in :class:`SystemClock`; tests wire in
:class:`~fauxtime._virtual.VirtualClock` and move time forward by hand.

**Why monotonic?** time.monotonic() is immune to NTP adjustments and
manual system-clock changes, making it suitable for measuring elapsed
durations. The epoch is arbitrary — only *differences* between now()
calls are meaningful (PEP 418).
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from collections.abc import Callable
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Ports
# ---------------------------------------------------------------------------


@runtime_checkable
class TimerPort(Protocol):
    """Handle on a one-shot timer.

    The channel receives exactly one value — the instant at which the
    timer fired.  Callers read it with their own blocking semantics::

        fired_at = timer.chan.get(timeout=1.0)
    """

    @property
    def chan(self) -> queue.Queue[float]:
        """Channel receiving the fire instant (capacity 1)."""
        ...

    def reset(self, duration: float) -> bool:
        """Rearm the timer ``duration`` seconds from now.

        Returns:
            ``True`` if the timer was active before the call.
        """
        ...

    def stop(self) -> bool:
        """Disarm the timer.

        Returns:
            ``True`` if the call prevented the timer from firing,
            ``False`` if it had already fired or been stopped.
        """
        ...


@runtime_checkable
class ClockPort(Protocol):
    """Clock that tells the time and hands out timers.

    The default implementation wraps ``time.monotonic()`` and real
    threads.  Tests inject a virtual clock for reproducible timing.
    """

    def now(self) -> float:
        """Return the current instant in seconds.

        Returns:
            A float representing seconds from an arbitrary epoch.
            Only the *difference* between two calls is meaningful.
        """
        ...

    def after(self, duration: float) -> queue.Queue[float]:
        """Return a channel that receives the instant ``duration`` from now."""
        ...

    def new_timer(self, duration: float) -> TimerPort:
        """Arm a one-shot timer that delivers on its channel."""
        ...

    def after_func(self, duration: float, func: Callable[[], object]) -> TimerPort:
        """Arm a one-shot timer that calls ``func`` instead of delivering."""
        ...


# ---------------------------------------------------------------------------
# System adapter
# ---------------------------------------------------------------------------


class SystemTimer:
    """Real-time timer backed by a :class:`threading.Timer`.

    Each arm starts a fresh daemon thread; ``reset`` and ``stop`` cancel
    the pending one.  The fire action never blocks: the channel put is
    non-blocking and a callback runs on the timer thread.
    """

    def __init__(
        self,
        clock: SystemClock,
        duration: float,
        func: Callable[[], object] | None = None,
    ) -> None:
        self._clock = clock
        self._func = func
        self._chan: queue.Queue[float] = queue.Queue(maxsize=1)
        self._lock = threading.Lock()
        self._thread: threading.Timer | None = None
        self._generation = 0
        with self._lock:
            self._start(duration)

    @property
    def chan(self) -> queue.Queue[float]:
        """Channel receiving the fire instant (capacity 1)."""
        return self._chan

    def reset(self, duration: float) -> bool:
        """Cancel any pending fire and rearm ``duration`` seconds from now."""
        with self._lock:
            was_active = self._cancel()
            self._start(duration)
        return was_active

    def stop(self) -> bool:
        """Cancel the pending fire, if any."""
        with self._lock:
            return self._cancel()

    # -- internals ----------------------------------------------------------

    def _start(self, duration: float) -> None:
        self._generation += 1
        thread = threading.Timer(
            max(duration, 0.0), self._fire, args=(self._generation,)
        )
        thread.daemon = True
        self._thread = thread
        thread.start()

    def _cancel(self) -> bool:
        if self._thread is None:
            return False
        self._thread.cancel()
        self._thread = None
        # A fire already in flight sees a stale generation and bails out.
        self._generation += 1
        return True

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._thread is None:
                return
            self._thread = None
        if self._func is not None:
            self._func()
            return
        try:
            self._chan.put_nowait(self._clock.now())
        except queue.Full:
            # An unread value from a previous arm is still pending.
            logger.debug("Dropping fire for timer %r: channel full", self)


class SystemClock:
    """Production clock wrapping ``time.monotonic()``.

    Satisfies :class:`ClockPort` via structural subtyping — no
    base-class inheritance required (PEP 544).

    Usage::

        clock = SystemClock()
        start = clock.now()
        clock.after(0.5).get()  # blocks for ~0.5 s
        elapsed = clock.now() - start
    """

    def now(self) -> float:
        """Return monotonic time in seconds."""
        return time.monotonic()

    def after(self, duration: float) -> queue.Queue[float]:
        """Return a channel that receives ``now()`` after ``duration`` seconds."""
        return self.new_timer(duration).chan

    def new_timer(self, duration: float) -> SystemTimer:
        """Start a real-time one-shot timer."""
        return SystemTimer(self, duration)

    def after_func(self, duration: float, func: Callable[[], object]) -> SystemTimer:
        """Call ``func`` on a timer thread after ``duration`` seconds."""
        return SystemTimer(self, duration, func)
