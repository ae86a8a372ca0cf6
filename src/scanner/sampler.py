################################################################################
# File Name: sampler.py
# Purpose/Description: Periodic simulated telemetry while a session is READY
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
Telemetry sampler module.

Once the lifecycle controller reaches READY it starts the sampler, which on
every tick (default 2s) produces a fresh sample set for the session:

Engine running:
- 010C RPM decoded from a frame with random bounded bytes (704-959 rpm)
- 0105 coolant decoded from a fixed frame (92 °C)
- ATRV battery voltage between 14.0 and 14.3 V (alternator charging)
- traffic entry: 010C -> the RPM frame

Engine off (ignition on):
- RPM 0, coolant 45 °C, battery 12.4 V
- traffic entry: 010C -> SEARCHING...

A tick that finds the session no longer READY stops the sampler for good.
The random source is injectable so tests can assert exact values.

Usage:
    sampler = TelemetrySampler(scheduler, engineRunning=lambda: True)
    sampler.start(session, isActive=lambda: controller.state is SessionState.READY)
"""

import logging
import random
import threading
from datetime import datetime
from typing import Any, Callable, List, Optional

from .adapter import SEARCHING_RESPONSE
from .pids import PID_COOLANT_TEMP, PID_RPM, buildFrame, createSample, decodeFrame
from .scheduler import Scheduler, TimerHandle
from .session import DiagnosticSession
from .types import DecodedSample

logger = logging.getLogger(__name__)

# ================================================================================
# Constants
# ================================================================================

DEFAULT_SAMPLING_INTERVAL_SECONDS = 2.0

VOLTAGE_COMMAND = 'ATRV'
VOLTAGE_UNIT = 'V'

# RPM frame byte A range: 0x0B00/4 = 704 rpm .. 0x0EFF/4 = 959 rpm
RPM_BYTE_A_MIN = 0x0B
RPM_BYTE_A_MAX = 0x0E

CHARGING_VOLTAGE_MIN = 14.0
CHARGING_VOLTAGE_MAX = 14.3
RESTING_VOLTAGE = 12.4

RUNNING_COOLANT_C = 92
COLD_COOLANT_C = 45

# Coolant PID offset: value = A - 40
COOLANT_OFFSET = 40


class TelemetrySampler:
    """
    Produces simulated live data on a fixed period.

    The "engine running" flag belongs to the caller and is read on every
    tick through the engineRunning callable.

    Attributes:
        intervalSeconds: Period between ticks
        lock: Lock shared with the lifecycle controller
    """

    def __init__(
        self,
        scheduler: Scheduler,
        engineRunning: Callable[[], bool],
        intervalSeconds: float = DEFAULT_SAMPLING_INTERVAL_SECONDS,
        randomSource: Optional[Any] = None,
        lock: Optional[Any] = None
    ) -> None:
        """
        Initialize the sampler.

        Args:
            scheduler: Scheduler used for the recurring tick
            engineRunning: Returns the caller-owned engine running flag
            intervalSeconds: Tick period in seconds
            randomSource: Object with randint(a, b) and uniform(a, b)
            lock: Lock shared with the controller (created when omitted)
        """
        if intervalSeconds <= 0:
            raise ValueError(f"Sampling interval must be positive, got {intervalSeconds}")

        self.intervalSeconds = intervalSeconds
        self.lock = lock if lock is not None else threading.RLock()
        self._scheduler = scheduler
        self._engineRunning = engineRunning
        self._random = randomSource if randomSource is not None else random.Random()
        self._handle: Optional[TimerHandle] = None
        self._tickCount = 0
        self._onSample: Optional[Callable[[List[DecodedSample]], None]] = None

    @property
    def isRunning(self) -> bool:
        return self._handle is not None and self._handle.active

    @property
    def tickCount(self) -> int:
        """Ticks that produced samples since construction."""
        return self._tickCount

    def registerCallbacks(
        self,
        onSample: Optional[Callable[[List[DecodedSample]], None]] = None
    ) -> None:
        """
        Register the callback invoked with each new sample set.

        Replaces any previously registered callback; None clears it. The
        callback runs with the shared lock held, only for ticks of the
        current READY session. Exceptions are logged and ignored.
        """
        self._onSample = onSample

    def start(self, session: DiagnosticSession, isActive: Callable[[], bool]) -> None:
        """
        Start ticking for a session.

        Args:
            session: Session the samples belong to
            isActive: Returns True while the session is current and READY;
                      evaluated under the lock on every tick
        """
        with self.lock:
            self.stop()
            handles: List[TimerHandle] = []
            handle = self._scheduler.callEvery(
                self.intervalSeconds,
                lambda: self._tick(session, isActive, handles[0]),
                name=f"telemetry-{session.sessionId}"
            )
            handles.append(handle)
            self._handle = session.trackHandle(handle)

        logger.info(
            f"Telemetry sampler started | session={session.sessionId} | "
            f"interval={self.intervalSeconds}s"
        )

    def stop(self) -> None:
        """Stop ticking. Safe to call when not running."""
        with self.lock:
            if self._handle is not None:
                self._handle.cancel()
                self._handle = None
                logger.debug("Telemetry sampler stopped")

    def _tick(
        self,
        session: DiagnosticSession,
        isActive: Callable[[], bool],
        handle: TimerHandle
    ) -> None:
        with self.lock:
            if handle.cancelled or session.closed or not isActive():
                logger.debug(f"Stale telemetry tick ignored | session={session.sessionId}")
                handle.cancel()
                if self._handle is handle:
                    self._handle = None
                return

            now = datetime.now()
            if self._engineRunning():
                samples = self._sampleRunning(session, now)
            else:
                samples = self._sampleEngineOff(session, now)

            for sample in samples:
                session.recordSample(sample)
            self._tickCount += 1

            # Stale check and delivery share one lock hold
            if self._onSample is not None:
                try:
                    self._onSample(samples)
                except Exception as e:
                    logger.warning(f"onSample callback error: {e}")

    def _sampleRunning(self, session: DiagnosticSession, now: datetime) -> List[DecodedSample]:
        a = self._random.randint(RPM_BYTE_A_MIN, RPM_BYTE_A_MAX)
        b = self._random.randint(0x00, 0xFF)
        rpmFrame = buildFrame(PID_RPM, a, b)

        result = decodeFrame(PID_RPM, rpmFrame)
        if not result.isDecoded:
            logger.debug(f"RPM frame not decoded | frame={rpmFrame} | outcome={result.outcome.value}")

        coolantFrame = buildFrame(PID_COOLANT_TEMP, RUNNING_COOLANT_C + COOLANT_OFFSET)
        voltage = round(self._random.uniform(CHARGING_VOLTAGE_MIN, CHARGING_VOLTAGE_MAX), 1)

        session.trafficLog.append(PID_RPM, rpmFrame)

        return [
            createSample(PID_RPM, rpmFrame, timestamp=now),
            createSample(PID_COOLANT_TEMP, coolantFrame, timestamp=now),
            DecodedSample(pid=VOLTAGE_COMMAND, value=voltage, unit=VOLTAGE_UNIT, timestamp=now),
        ]

    def _sampleEngineOff(self, session: DiagnosticSession, now: datetime) -> List[DecodedSample]:
        coolantFrame = buildFrame(PID_COOLANT_TEMP, COLD_COOLANT_C + COOLANT_OFFSET)

        session.trafficLog.append(PID_RPM, SEARCHING_RESPONSE)

        return [
            DecodedSample(pid=PID_RPM, value=0, unit='rpm', timestamp=now),
            createSample(PID_COOLANT_TEMP, coolantFrame, timestamp=now),
            DecodedSample(pid=VOLTAGE_COMMAND, value=RESTING_VOLTAGE, unit=VOLTAGE_UNIT, timestamp=now),
        ]
