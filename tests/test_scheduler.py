################################################################################
# File Name: test_scheduler.py
# Purpose/Description: Tests for cancellable schedulers
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
Tests for the scheduler module.

Run with:
    pytest tests/test_scheduler.py -v
"""

import sys
import threading
from pathlib import Path

import pytest

srcPath = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(srcPath))

from scanner.scheduler import ManualScheduler, ThreadingScheduler, TimerHandle


class TestTimerHandle:
    """Tests for TimerHandle."""

    def test_cancel_calledTwice_invokesOnCancelOnce(self):
        """
        Given: Handle with an onCancel hook
        When: cancel() is called twice
        Then: Hook runs once and handle is inactive
        """
        calls = []
        handle = TimerHandle('t', onCancel=lambda: calls.append(1))

        handle.cancel()
        handle.cancel()

        assert calls == [1]
        assert handle.cancelled
        assert not handle.active


class TestManualScheduler:
    """Tests for the virtual clock scheduler."""

    def test_callLater_beforeDue_doesNotRun(self):
        """
        Given: Callback due in 2 seconds
        When: Clock advances 1.9 seconds
        Then: Callback has not run
        """
        scheduler = ManualScheduler()
        calls = []
        scheduler.callLater(2.0, lambda: calls.append('x'))

        executed = scheduler.advance(1.9)

        assert executed == 0
        assert calls == []
        assert scheduler.pendingCount == 1

    def test_callLater_atDue_runsOnceAndMarksDone(self):
        """
        Given: Callback due in 2 seconds
        When: Clock advances 2 then 10 more seconds
        Then: Callback runs exactly once and handle is done
        """
        scheduler = ManualScheduler()
        calls = []
        handle = scheduler.callLater(2.0, lambda: calls.append('x'))

        scheduler.advance(2.0)
        scheduler.advance(10.0)

        assert calls == ['x']
        assert handle.done
        assert not handle.cancelled
        assert scheduler.pendingCount == 0

    def test_callLater_cancelled_neverRuns(self):
        """
        Given: Scheduled callback
        When: Handle is cancelled before it is due
        Then: Callback never runs
        """
        scheduler = ManualScheduler()
        calls = []
        handle = scheduler.callLater(1.0, lambda: calls.append('x'))

        handle.cancel()
        scheduler.advance(5.0)

        assert calls == []

    def test_advance_multipleCallbacks_runInDueOrder(self):
        """
        Given: Callbacks scheduled out of order
        When: Clock advances past all of them
        Then: They run in due-time order, ties in scheduling order
        """
        scheduler = ManualScheduler()
        order = []
        scheduler.callLater(3.0, lambda: order.append('c'))
        scheduler.callLater(1.0, lambda: order.append('a'))
        scheduler.callLater(3.0, lambda: order.append('d'))
        scheduler.callLater(2.0, lambda: order.append('b'))

        scheduler.advance(3.0)

        assert order == ['a', 'b', 'c', 'd']

    def test_advance_callbackSchedulesFollowUp_followUpRunsIfDue(self):
        """
        Given: Callback that schedules another one second later
        When: Clock advances past both
        Then: Both run and the clock reports the follow-up's time in between
        """
        scheduler = ManualScheduler()
        seen = []

        def first():
            seen.append(('first', scheduler.now))
            scheduler.callLater(1.0, lambda: seen.append(('second', scheduler.now)))

        scheduler.callLater(2.0, first)
        scheduler.advance(5.0)

        assert seen == [('first', 2.0), ('second', 3.0)]
        assert scheduler.now == 5.0

    def test_callEvery_runsEveryInterval(self):
        """
        Given: Recurring callback every 2 seconds
        When: Clock advances 7 seconds
        Then: Callback ran 3 times
        """
        scheduler = ManualScheduler()
        calls = []
        scheduler.callEvery(2.0, lambda: calls.append(scheduler.now))

        scheduler.advance(7.0)

        assert calls == [2.0, 4.0, 6.0]

    def test_callEvery_cancelledInsideCallback_stops(self):
        """
        Given: Recurring callback that cancels itself on the second run
        When: Clock advances 10 seconds
        Then: Callback ran twice
        """
        scheduler = ManualScheduler()
        calls = []
        handles = []

        def tick():
            calls.append(scheduler.now)
            if len(calls) == 2:
                handles[0].cancel()

        handles.append(scheduler.callEvery(1.0, tick))
        scheduler.advance(10.0)

        assert calls == [1.0, 2.0]

    def test_callEvery_nonPositiveInterval_raisesValueError(self):
        """
        Given: Interval 0
        When: callEvery() is called
        Then: ValueError is raised
        """
        with pytest.raises(ValueError):
            ManualScheduler().callEvery(0, lambda: None)

    def test_advance_negative_raisesValueError(self):
        """
        Given: Manual scheduler
        When: advance() is called with a negative amount
        Then: ValueError is raised
        """
        with pytest.raises(ValueError):
            ManualScheduler().advance(-1.0)

    def test_advance_failingCallback_isLoggedAndOthersRun(self, caplog):
        """
        Given: Failing callback followed by a healthy one
        When: Clock advances past both
        Then: Failure is logged and the second callback still runs
        """
        scheduler = ManualScheduler()
        calls = []

        def boom():
            raise RuntimeError('boom')

        scheduler.callLater(1.0, boom, name='boom')
        scheduler.callLater(2.0, lambda: calls.append('ok'))

        scheduler.advance(3.0)

        assert calls == ['ok']
        assert 'Scheduled callback failed' in caplog.text

    def test_shutdown_cancelsEverything(self):
        """
        Given: One-shot and recurring callbacks
        When: shutdown() is called
        Then: Both handles are cancelled and nothing runs
        """
        scheduler = ManualScheduler()
        calls = []
        once = scheduler.callLater(1.0, lambda: calls.append('once'))
        every = scheduler.callEvery(1.0, lambda: calls.append('every'))

        scheduler.shutdown()
        scheduler.advance(5.0)

        assert once.cancelled and every.cancelled
        assert calls == []
        assert scheduler.pendingCount == 0

    def test_runPending_dueNow_runsWithoutAdvancing(self):
        """
        Given: Callback with zero delay
        When: runPending() is called
        Then: Callback runs and the clock stays put
        """
        scheduler = ManualScheduler()
        calls = []
        scheduler.callLater(0.0, lambda: calls.append('now'))

        assert scheduler.runPending() == 1
        assert calls == ['now']
        assert scheduler.now == 0.0


@pytest.mark.slow
class TestThreadingScheduler:
    """Tests for the real-time scheduler."""

    def test_callLater_firesOnTimerThread(self):
        """
        Given: Threading scheduler
        When: A short callLater is scheduled
        Then: Callback runs and the handle is done
        """
        scheduler = ThreadingScheduler()
        fired = threading.Event()

        handle = scheduler.callLater(0.01, fired.set, name='short')

        assert fired.wait(2.0)
        assert handle.done
        scheduler.shutdown()

    def test_callLater_cancelledBeforeDue_neverFires(self):
        """
        Given: Callback due in 0.2 seconds
        When: Handle is cancelled immediately
        Then: Callback does not run
        """
        scheduler = ThreadingScheduler()
        fired = threading.Event()

        handle = scheduler.callLater(0.2, fired.set)
        handle.cancel()

        assert not fired.wait(0.4)
        scheduler.shutdown()

    def test_callEvery_repeatsUntilCancelled(self):
        """
        Given: Recurring callback every 10 ms
        When: Three ticks have run and the handle is cancelled
        Then: No further ticks run
        """
        scheduler = ThreadingScheduler()
        ticks = []
        threeTicks = threading.Event()

        def tick():
            ticks.append(1)
            if len(ticks) >= 3:
                threeTicks.set()

        handle = scheduler.callEvery(0.01, tick)
        assert threeTicks.wait(2.0)

        handle.cancel()
        countAtCancel = len(ticks)
        threading.Event().wait(0.1)

        assert len(ticks) <= countAtCancel + 1

    def test_shutdown_cancelsOutstandingHandles(self):
        """
        Given: Long pending callback
        When: shutdown() is called
        Then: Handle is cancelled
        """
        scheduler = ThreadingScheduler()
        handle = scheduler.callLater(10.0, lambda: None)

        scheduler.shutdown()

        assert handle.cancelled
