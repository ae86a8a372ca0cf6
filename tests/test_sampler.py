################################################################################
# File Name: test_sampler.py
# Purpose/Description: Tests for the periodic telemetry sampler
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
Tests for the sampler module.

Run with:
    pytest tests/test_sampler.py -v
"""

import random
import sys
from pathlib import Path

import pytest

srcPath = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(srcPath))

from scanner.adapter import SEARCHING_RESPONSE
from scanner.sampler import (
    CHARGING_VOLTAGE_MAX,
    CHARGING_VOLTAGE_MIN,
    RPM_BYTE_A_MAX,
    RPM_BYTE_A_MIN,
    VOLTAGE_COMMAND,
    TelemetrySampler,
)
from scanner.scheduler import ManualScheduler
from scanner.session import DiagnosticSession


def _makeSampler(engineRunning=True, randomSource=None, interval=2.0):
    scheduler = ManualScheduler()
    state = {'running': engineRunning}
    sampler = TelemetrySampler(
        scheduler,
        engineRunning=lambda: state['running'],
        intervalSeconds=interval,
        randomSource=randomSource or random.Random(7)
    )
    return scheduler, sampler, state


class TestSamplerEngineRunning:
    """Tests for samples produced with the engine running."""

    def test_tick_engineRunning_producesRpmCoolantAndVoltage(self, scriptedRandom):
        """
        Given: Scripted random bytes 0x0C 0x80 and voltage 14.26
        When: One interval elapses
        Then: RPM 800, coolant 92 °C, voltage 14.3 V
        """
        scriptedRandom.ints = [0x0C, 0x80]
        scriptedRandom.floats = [14.26]
        scheduler, sampler, _ = _makeSampler(randomSource=scriptedRandom)
        session = DiagnosticSession()
        sampler.start(session, isActive=lambda: True)

        scheduler.advance(2.0)

        samples = session.latestSamples()
        assert samples['010C'].value == 800
        assert samples['010C'].unit == 'rpm'
        assert samples['0105'].value == 92
        assert samples[VOLTAGE_COMMAND].value == 14.3
        assert samples[VOLTAGE_COMMAND].unit == 'V'

    def test_tick_engineRunning_logsRpmFrame(self, scriptedRandom):
        """
        Given: Scripted random bytes 0x0B 0x00
        When: One interval elapses
        Then: Traffic log holds the RPM request and its frame
        """
        scriptedRandom.ints = [0x0B, 0x00]
        scheduler, sampler, _ = _makeSampler(randomSource=scriptedRandom)
        session = DiagnosticSession()
        sampler.start(session, isActive=lambda: True)

        scheduler.advance(2.0)

        entry = session.trafficLog.latest()
        assert entry.command == '010C'
        assert entry.response == '41 0C 0B 00'

    def test_tick_engineRunning_drawsFromDocumentedBounds(self, scriptedRandom):
        """
        Given: Recording random source
        When: One interval elapses
        Then: Byte A, byte B and voltage are drawn from their bounds
        """
        scheduler, sampler, _ = _makeSampler(randomSource=scriptedRandom)
        sampler.start(DiagnosticSession(), isActive=lambda: True)

        scheduler.advance(2.0)

        assert scriptedRandom.calls == [
            ('randint', RPM_BYTE_A_MIN, RPM_BYTE_A_MAX),
            ('randint', 0x00, 0xFF),
            ('uniform', CHARGING_VOLTAGE_MIN, CHARGING_VOLTAGE_MAX),
        ]

    def test_tick_realRandom_rpmStaysInRunningRange(self):
        """
        Given: Seeded random source
        When: Fifty ticks run
        Then: Every RPM lies in 704..959 and voltage in 14.0..14.3
        """
        scheduler, sampler, _ = _makeSampler(randomSource=random.Random(42))
        session = DiagnosticSession()
        seen = []
        sampler.registerCallbacks(onSample=lambda samples: seen.append(samples))
        sampler.start(session, isActive=lambda: True)

        scheduler.advance(100.0)

        assert len(seen) == 50
        for samples in seen:
            byPid = {s.pid: s.value for s in samples}
            assert 704 <= byPid['010C'] <= 959
            assert 14.0 <= byPid[VOLTAGE_COMMAND] <= 14.3


class TestSamplerEngineOff:
    """Tests for samples produced with the engine off."""

    def test_tick_engineOff_producesRestingValues(self):
        """
        Given: Engine not running
        When: One interval elapses
        Then: RPM 0, coolant 45 °C, voltage 12.4 V and a SEARCHING entry
        """
        scheduler, sampler, _ = _makeSampler(engineRunning=False)
        session = DiagnosticSession()
        sampler.start(session, isActive=lambda: True)

        scheduler.advance(2.0)

        samples = session.latestSamples()
        assert samples['010C'].value == 0
        assert samples['0105'].value == 45
        assert samples[VOLTAGE_COMMAND].value == 12.4
        assert session.trafficLog.latest().response == SEARCHING_RESPONSE

    def test_tick_engineToggled_nextTickUsesNewFlag(self):
        """
        Given: Engine off for the first tick
        When: Engine is started before the second tick
        Then: Second tick reports running values
        """
        scheduler, sampler, state = _makeSampler(engineRunning=False)
        session = DiagnosticSession()
        sampler.start(session, isActive=lambda: True)

        scheduler.advance(2.0)
        state['running'] = True
        scheduler.advance(2.0)

        assert session.latestSamples()['010C'].value >= 704
        assert session.latestSamples()['0105'].value == 92


class TestSamplerLifecycle:
    """Tests for start, stop and stale tick handling."""

    def test_tick_inactiveSession_producesNothingAndStops(self):
        """
        Given: isActive returning False
        When: Several intervals elapse
        Then: No samples, no traffic, sampler not running
        """
        scheduler, sampler, _ = _makeSampler()
        session = DiagnosticSession()
        sampler.start(session, isActive=lambda: False)

        scheduler.advance(10.0)

        assert session.latestSamples() == {}
        assert len(session.trafficLog) == 0
        assert not sampler.isRunning
        assert sampler.tickCount == 0

    def test_tick_closedSession_producesNothing(self):
        """
        Given: Running sampler whose session is closed
        When: Intervals elapse
        Then: No further ticks are counted
        """
        scheduler, sampler, _ = _makeSampler()
        session = DiagnosticSession()
        sampler.start(session, isActive=lambda: True)
        scheduler.advance(2.0)

        session.close()
        scheduler.advance(10.0)

        assert sampler.tickCount == 1
        assert session.latestSamples() == {}

    def test_start_twice_replacesPreviousTimer(self):
        """
        Given: Sampler started for session A
        When: It is started for session B
        Then: Only session B receives samples
        """
        scheduler, sampler, _ = _makeSampler()
        first = DiagnosticSession()
        second = DiagnosticSession()

        sampler.start(first, isActive=lambda: True)
        sampler.start(second, isActive=lambda: True)
        scheduler.advance(2.0)

        assert first.latestSamples() == {}
        assert '010C' in second.latestSamples()
        assert sampler.tickCount == 1

    def test_stop_preventsFurtherTicks(self):
        """
        Given: Running sampler
        When: stop() is called
        Then: No more ticks run and stop() is repeatable
        """
        scheduler, sampler, _ = _makeSampler()
        sampler.start(DiagnosticSession(), isActive=lambda: True)
        scheduler.advance(4.0)

        sampler.stop()
        sampler.stop()
        scheduler.advance(10.0)

        assert sampler.tickCount == 2
        assert not sampler.isRunning

    def test_onSample_callbackRaises_isLoggedAndSamplingContinues(self, caplog):
        """
        Given: onSample callback that raises
        When: Two intervals elapse
        Then: Warning is logged and both ticks still record samples
        """
        scheduler, sampler, _ = _makeSampler()

        def badCallback(samples):
            raise RuntimeError('display gone')

        sampler.registerCallbacks(onSample=badCallback)
        sampler.start(DiagnosticSession(), isActive=lambda: True)

        scheduler.advance(4.0)

        assert sampler.tickCount == 2
        assert 'onSample callback error' in caplog.text

    def test_init_nonPositiveInterval_raisesValueError(self):
        """
        Given: Interval 0
        When: TelemetrySampler is created
        Then: ValueError is raised
        """
        with pytest.raises(ValueError):
            TelemetrySampler(ManualScheduler(), engineRunning=lambda: True, intervalSeconds=0)
