"""Cooperative countdown and elapsed-time timers for quiz-taking sessions.

Each timer advances only through ``tick()``. ``start()`` drives the ticks from
a daemon thread that waits on an ``Event`` between ticks, so ``cancel()``
stops it promptly. Passing ``interval=None`` leaves the ticking to the caller.
"""

from __future__ import annotations

from collections.abc import Callable
import logging
from threading import Event, Lock, Thread, current_thread
import time

from quiz_studio.constants.quiz_constants import (
    TIME_WARNING_THRESHOLD_SECONDS,
    TIMER_TICK_SECONDS,
)

logger = logging.getLogger(__name__)


def format_clock(seconds: int) -> str:
    """Format seconds as ``H:MM:SS`` when an hour or more, otherwise ``M:SS``."""
    seconds = max(0, int(seconds))
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


class CooperativeTimer:
    """Base class that owns the optional ticking thread."""

    def __init__(self, interval: float | None = TIMER_TICK_SECONDS, name: str = "QuizTimer") -> None:
        self._interval = interval
        self._name = name
        self._stop = Event()
        self._thread: Thread | None = None
        self._lock = Lock()
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> None:
        with self._lock:
            if self._running or self._stop.is_set():
                return
            self._running = True
        if self._interval is None:
            return
        self._thread = Thread(target=self._run, name=self._name, daemon=True)
        self._thread.start()

    def cancel(self) -> None:
        """Stop ticking. Safe to call repeatedly and from the ticking thread itself."""
        self._stop.set()
        self._running = False
        thread = self._thread
        if thread is not None and thread is not current_thread():
            thread.join(timeout=1.0)

    def tick(self) -> None:
        with self._lock:
            if not self._running:
                return
            self._on_tick()

    def _run(self) -> None:
        while not self._stop.wait(self._interval):
            try:
                self.tick()
            except Exception:
                logger.exception("Timer %s tick failed", self._name)
                self.cancel()

    def _on_tick(self) -> None:
        raise NotImplementedError


class CountdownTimer(CooperativeTimer):
    """Counts down from ``total_seconds`` and calls ``on_expire`` once at zero."""

    def __init__(
        self,
        total_seconds: int,
        on_expire: Callable[[], None],
        interval: float | None = TIMER_TICK_SECONDS,
    ) -> None:
        super().__init__(interval=interval, name="QuizCountdown")
        if total_seconds <= 0:
            raise ValueError("Countdown must start from a positive number of seconds.")
        self._total_seconds = total_seconds
        self._remaining = total_seconds
        self._on_expire = on_expire
        self._expired = False

    @property
    def total_seconds(self) -> int:
        return self._total_seconds

    @property
    def remaining_seconds(self) -> int:
        return self._remaining

    @property
    def expired(self) -> bool:
        return self._expired

    @property
    def is_warning(self) -> bool:
        return self._remaining <= TIME_WARNING_THRESHOLD_SECONDS

    @property
    def progress_percentage(self) -> float:
        return (self._total_seconds - self._remaining) / self._total_seconds * 100

    def formatted(self) -> str:
        return format_clock(self._remaining)

    def tick(self) -> None:
        fire = False
        with self._lock:
            if not self._running:
                return
            self._on_tick()
            if self._remaining == 0 and not self._expired:
                self._expired = True
                self._running = False
                self._stop.set()
                fire = True
        # Outside the lock: the callback usually cancels this very timer.
        if fire:
            self._on_expire()

    def _on_tick(self) -> None:
        if self._remaining > 0:
            self._remaining -= 1


class ElapsedTimer(CooperativeTimer):
    """Tracks whole seconds elapsed since ``start()`` for display."""

    def __init__(
        self,
        interval: float | None = TIMER_TICK_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(interval=interval, name="QuizElapsed")
        self._clock = clock
        self._started_at: float | None = None
        self._elapsed = 0

    @property
    def elapsed_seconds(self) -> int:
        return self._elapsed

    def start(self) -> None:
        if self._started_at is None:
            self._started_at = self._clock()
        super().start()

    def measure(self) -> int:
        """Whole seconds since start, read straight from the clock."""
        if self._started_at is None:
            return 0
        return int(self._clock() - self._started_at)

    def formatted(self) -> str:
        return format_clock(self._elapsed)

    def _on_tick(self) -> None:
        self._elapsed = self.measure()
