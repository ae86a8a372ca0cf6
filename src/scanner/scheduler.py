################################################################################
# File Name: scheduler.py
# Purpose/Description: Cancellable delayed and recurring callbacks
# Author: Michael Cornelison
# Creation Date: 2026-10-19
# Copyright: (c) 2026 OBD-II Session Engine Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-19    | M. Cornelison | Initial implementation
# ================================================================================
################################################################################

"""
Scheduling module.

The engine never blocks its caller: multi-second handshake steps and the
telemetry tick are callbacks handed to a Scheduler, and every callback is
represented by a TimerHandle the owner can cancel.

Implementations:
- ThreadingScheduler: real time, threading.Timer for one-shot callbacks and a
  daemon worker thread per recurring callback
- ManualScheduler: virtual clock advanced explicitly with advance(); used by
  tests and by hosts that pump their own event loop

Usage:
    scheduler = ManualScheduler()
    handle = scheduler.callLater(2.0, onPaired)
    scheduler.advance(1.0)   # nothing yet
    handle.cancel()
    scheduler.advance(5.0)   # onPaired never runs
"""

import heapq
import itertools
import logging
import threading
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)

Callback = Callable[[], None]


# ================================================================================
# Timer Handle
# ================================================================================

class TimerHandle:
    """Token for a scheduled callback. cancel() is idempotent."""

    def __init__(self, name: str = '', onCancel: Optional[Callback] = None) -> None:
        self.name = name
        self._onCancel = onCancel
        self._cancelled = threading.Event()
        self._done = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def done(self) -> bool:
        """True once a one-shot callback has fired."""
        return self._done.is_set()

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.done)

    def _markDone(self) -> None:
        self._done.set()

    def cancel(self) -> None:
        if self._cancelled.is_set():
            return
        self._cancelled.set()
        if self._onCancel is not None:
            self._onCancel()

    def __repr__(self) -> str:
        return f"TimerHandle(name={self.name!r}, cancelled={self.cancelled})"


def _runSafely(name: str, callback: Callback) -> None:
    try:
        callback()
    except Exception as e:
        logger.error(f"Scheduled callback failed | name={name} | error={e}", exc_info=True)


# ================================================================================
# Scheduler Base
# ================================================================================

class Scheduler:
    """Interface shared by all schedulers."""

    def callLater(self, delaySeconds: float, callback: Callback, name: str = '') -> TimerHandle:
        """Run callback once after delaySeconds."""
        raise NotImplementedError

    def callEvery(self, intervalSeconds: float, callback: Callback, name: str = '') -> TimerHandle:
        """Run callback every intervalSeconds until the handle is cancelled."""
        raise NotImplementedError

    def shutdown(self) -> None:
        """Cancel every outstanding callback."""
        raise NotImplementedError


# ================================================================================
# Threading Scheduler
# ================================================================================

class ThreadingScheduler(Scheduler):
    """
    Real-time scheduler backed by daemon threads.

    Callbacks run on timer threads, so everything they touch must be guarded
    by the owner's lock.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._handles: List[TimerHandle] = []

    def _track(self, handle: TimerHandle) -> None:
        with self._lock:
            self._handles = [h for h in self._handles if h.active]
            self._handles.append(handle)

    def callLater(self, delaySeconds: float, callback: Callback, name: str = '') -> TimerHandle:
        timer: Optional[threading.Timer] = None

        def cancelTimer() -> None:
            if timer is not None:
                timer.cancel()

        handle = TimerHandle(name=name, onCancel=cancelTimer)

        def fire() -> None:
            if handle.cancelled:
                return
            # pruned on the next _track()
            handle._markDone()
            _runSafely(name, callback)

        timer = threading.Timer(max(0.0, delaySeconds), fire)
        timer.name = f"Scheduler-{name or 'callLater'}"
        timer.daemon = True
        self._track(handle)
        timer.start()
        return handle

    def callEvery(self, intervalSeconds: float, callback: Callback, name: str = '') -> TimerHandle:
        if intervalSeconds <= 0:
            raise ValueError(f"Interval must be positive, got {intervalSeconds}")

        stopEvent = threading.Event()
        handle = TimerHandle(name=name, onCancel=stopEvent.set)

        def loop() -> None:
            while not stopEvent.wait(intervalSeconds):
                if handle.cancelled:
                    break
                _runSafely(name, callback)

        thread = threading.Thread(
            target=loop,
            name=f"Scheduler-{name or 'callEvery'}",
            daemon=True
        )
        self._track(handle)
        thread.start()
        return handle

    def shutdown(self) -> None:
        with self._lock:
            handles, self._handles = self._handles, []
        for handle in handles:
            handle.cancel()


# ================================================================================
# Manual Scheduler
# ================================================================================

class ManualScheduler(Scheduler):
    """
    Virtual-clock scheduler.

    Nothing runs until advance() is called; callbacks then fire in due-time
    order (ties in scheduling order) on the calling thread. Callbacks may
    schedule further callbacks, which fire within the same advance() if due.
    """

    def __init__(self) -> None:
        self._now = 0.0
        self._sequence = itertools.count()
        self._queue: List[Tuple[float, int, TimerHandle, Callback, Optional[float]]] = []

    @property
    def now(self) -> float:
        """Current virtual time in seconds."""
        return self._now

    @property
    def pendingCount(self) -> int:
        """Number of scheduled callbacks that have not been cancelled."""
        return sum(1 for entry in self._queue if entry[2].active)

    def callLater(self, delaySeconds: float, callback: Callback, name: str = '') -> TimerHandle:
        handle = TimerHandle(name=name)
        self._push(self._now + max(0.0, delaySeconds), handle, callback, None)
        return handle

    def callEvery(self, intervalSeconds: float, callback: Callback, name: str = '') -> TimerHandle:
        if intervalSeconds <= 0:
            raise ValueError(f"Interval must be positive, got {intervalSeconds}")
        handle = TimerHandle(name=name)
        self._push(self._now + intervalSeconds, handle, callback, intervalSeconds)
        return handle

    def _push(
        self,
        dueTime: float,
        handle: TimerHandle,
        callback: Callback,
        interval: Optional[float]
    ) -> None:
        heapq.heappush(self._queue, (dueTime, next(self._sequence), handle, callback, interval))

    def advance(self, seconds: float) -> int:
        """
        Move the virtual clock forward and run every callback that falls due.

        Args:
            seconds: Amount of virtual time to advance (>= 0)

        Returns:
            Number of callbacks executed
        """
        if seconds < 0:
            raise ValueError(f"Cannot advance by a negative amount: {seconds}")

        target = self._now + seconds
        executed = 0

        while self._queue and self._queue[0][0] <= target:
            dueTime, _, handle, callback, interval = heapq.heappop(self._queue)
            if handle.cancelled:
                continue

            self._now = dueTime
            if interval is not None:
                self._push(dueTime + interval, handle, callback, interval)
            else:
                handle._markDone()

            _runSafely(handle.name, callback)
            executed += 1

        self._now = target
        return executed

    def runPending(self) -> int:
        """Run callbacks already due at the current virtual time."""
        return self.advance(0.0)

    def shutdown(self) -> None:
        for entry in self._queue:
            entry[2].cancel()
        self._queue.clear()
