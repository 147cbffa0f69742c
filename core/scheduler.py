"""Timer schedulers whose callbacks run serialized with orchestrator commands.

Every callback executes while holding ``Scheduler.lock``. Owners that mutate
the same state from command methods take the same lock, which gives one
logical execution context without per-object locking.

``TimerScheduler`` drives callbacks from a single background thread.
``ManualScheduler`` keeps a virtual clock that only moves when ``advance`` is
called, which makes delayed transitions deterministic in tests.
"""

from __future__ import annotations

import heapq
import itertools
import math
import threading
import time
from typing import Callable

from core.logging import logger as LOGGER


Callback = Callable[[], None]


class ScheduledCall:
    """Handle for a pending one-shot or periodic callback."""

    def __init__(
        self,
        due: float,
        callback: Callback,
        *,
        interval_s: float | None = None,
        name: str = "",
    ) -> None:
        self.due = due
        self.callback = callback
        self.interval_s = interval_s
        self.name = name or getattr(callback, "__name__", "callback")
        self.fired = 0
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def periodic(self) -> bool:
        return self.interval_s is not None

    def cancel(self) -> None:
        self._cancelled = True

    def __repr__(self) -> str:
        return (
            f"ScheduledCall(name={self.name!r}, due={self.due:.3f}, "
            f"interval_s={self.interval_s!r}, cancelled={self._cancelled})"
        )


class Scheduler:
    """Base scheduler holding the time-ordered queue of pending calls."""

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self._cond = threading.Condition()
        self._heap: list[tuple[float, int, ScheduledCall]] = []
        self._seq = itertools.count()
        self.errors = 0
        self.skipped = 0

    def now(self) -> float:
        """Wall-clock timestamp used for records."""

        raise NotImplementedError

    def monotonic(self) -> float:
        """Clock used for due times."""

        raise NotImplementedError

    def call_later(self, delay_s: float, callback: Callback, *, name: str = "") -> ScheduledCall:
        call = ScheduledCall(self.monotonic() + max(float(delay_s), 0.0), callback, name=name)
        self._push(call)
        return call

    def call_every(self, interval_s: float, callback: Callback, *, name: str = "") -> ScheduledCall:
        interval_s = float(interval_s)
        if interval_s <= 0:
            raise ValueError(f"interval_s must be positive, got {interval_s!r}")
        call = ScheduledCall(
            self.monotonic() + interval_s,
            callback,
            interval_s=interval_s,
            name=name,
        )
        self._push(call)
        return call

    def pending(self) -> int:
        with self._cond:
            return sum(1 for _, _, call in self._heap if not call.cancelled)

    def stop(self) -> None:
        with self._cond:
            for _, _, call in self._heap:
                call.cancel()
            self._heap.clear()
            self._cond.notify_all()

    def _push(self, call: ScheduledCall) -> None:
        with self._cond:
            heapq.heappush(self._heap, (call.due, next(self._seq), call))
            self._cond.notify()

    def _run(self, call: ScheduledCall) -> None:
        with self.lock:
            if call.cancelled:
                return
            call.fired += 1
            try:
                call.callback()
            except Exception as exc:
                self.errors += 1
                LOGGER.exception("[Scheduler] Callback %s failed: %s", call.name, exc)
            if call.periodic and not call.cancelled:
                self._reschedule(call)

    def _reschedule(self, call: ScheduledCall) -> None:
        if call.interval_s is None:
            return
        call.due += call.interval_s
        now = self.monotonic()
        if call.due <= now:
            missed = math.ceil((now - call.due) / call.interval_s) or 1
            call.due += missed * call.interval_s
            self.skipped += missed
            LOGGER.debug("[Scheduler] %s skipped %s missed interval(s).", call.name, missed)
        self._push(call)


class TimerScheduler(Scheduler):
    """Scheduler backed by one daemon worker thread."""

    def __init__(self, *, idle_wait_s: float = 0.5) -> None:
        super().__init__()
        self._idle_wait_s = idle_wait_s
        self._stop_event = threading.Event()
        self._loop_thread: threading.Thread | None = None
        self._stopped = False

    def now(self) -> float:
        return time.time()

    def monotonic(self) -> float:
        return time.monotonic()

    def start(self) -> None:
        with self._cond:
            self._stopped = False
            if self._loop_thread is None or not self._loop_thread.is_alive():
                self._stop_event.clear()
                self._loop_thread = threading.Thread(
                    target=self._loop,
                    name="csm-scheduler",
                    daemon=True,
                )
                self._loop_thread.start()

    def stop(self, timeout_s: float = 2.0) -> None:
        with self._cond:
            self._stopped = True
        self._stop_event.set()
        super().stop()
        if self._loop_thread is not None:
            if self._loop_thread is threading.current_thread():
                return
            self._loop_thread.join(timeout=timeout_s)
            if self._loop_thread.is_alive():
                LOGGER.warning(
                    "[Scheduler] Worker thread did not exit within %.2fs; continuing shutdown.",
                    timeout_s,
                )
                return
            self._loop_thread = None

    def is_loop_alive(self) -> bool:
        return self._loop_thread is not None and self._loop_thread.is_alive()

    def _push(self, call: ScheduledCall) -> None:
        super()._push(call)
        if not self._stopped and not self.is_loop_alive():
            self.start()

    def _loop(self) -> None:
        while not self._stop_event.is_set():
            with self._cond:
                if not self._heap:
                    self._cond.wait(timeout=self._idle_wait_s)
                    continue
                due, _, call = self._heap[0]
                delay = due - time.monotonic()
                if delay > 0:
                    self._cond.wait(timeout=delay)
                    continue
                heapq.heappop(self._heap)
            self._run(call)


class ManualScheduler(Scheduler):
    """Scheduler with a virtual clock advanced explicitly by the caller."""

    def __init__(self, start_time: float = 0.0) -> None:
        super().__init__()
        self._epoch = float(start_time)
        self._clock = 0.0

    def now(self) -> float:
        return self._epoch + self._clock

    def monotonic(self) -> float:
        return self._clock

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing every callback that falls due.

        Returns:
            Number of callbacks executed.
        """

        target = self._clock + max(float(seconds), 0.0)
        executed = 0
        while True:
            with self._cond:
                if not self._heap or self._heap[0][0] > target:
                    break
                due, _, call = heapq.heappop(self._heap)
            self._clock = max(self._clock, due)
            if not call.cancelled:
                self._run(call)
                executed += 1
        self._clock = target
        return executed
