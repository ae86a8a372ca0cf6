################################################################################
# File Name: session.py
# Purpose/Description: Explicit per-session state owned by the engine
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
Diagnostic session module.

A DiagnosticSession is created by startSession() and closed by
endSession()/reset(). It owns the session-scoped buffers (traffic log, DTC
registry, latest samples) and every timer scheduled on its behalf. Timer
callbacks capture the session they were scheduled for; once that session is
closed they find nothing to write to.
"""

import uuid
from datetime import datetime
from typing import Dict, List, Optional

from .dtc_registry import DtcRegistry
from .scheduler import TimerHandle
from .traffic_log import DEFAULT_CAPACITY, TrafficLog
from .types import DecodedSample
from .vehicle import VehicleIdentity


class DiagnosticSession:
    """
    State of one diagnostic session.

    Not thread-safe on its own; the lifecycle controller serializes access
    behind its lock.

    Attributes:
        sessionId: Unique identifier
        vehicle: Active vehicle when the session started (annotation only)
        startedAt: Creation time
        endedAt: Close time, None while open
        trafficLog: Bounded command/response log
        dtcRegistry: Fault scan result
    """

    def __init__(
        self,
        vehicle: Optional[VehicleIdentity] = None,
        trafficLogCapacity: int = DEFAULT_CAPACITY
    ) -> None:
        self.sessionId = uuid.uuid4().hex[:12]
        self.vehicle = vehicle
        self.startedAt = datetime.now()
        self.endedAt: Optional[datetime] = None
        self.trafficLog = TrafficLog(capacity=trafficLogCapacity)
        self.dtcRegistry = DtcRegistry()
        self._samples: Dict[str, DecodedSample] = {}
        self._handles: List[TimerHandle] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def trackHandle(self, handle: TimerHandle) -> TimerHandle:
        """Tie a scheduled callback to this session so close() cancels it."""
        self._handles = [h for h in self._handles if h.active]
        self._handles.append(handle)
        if self._closed:
            handle.cancel()
        return handle

    def cancelTimers(self) -> None:
        """Cancel every callback scheduled for this session."""
        handles, self._handles = self._handles, []
        for handle in handles:
            handle.cancel()

    def recordSample(self, sample: DecodedSample) -> None:
        """Replace the latest sample for the sample's PID."""
        if not self._closed:
            self._samples[sample.pid] = sample

    def latestSamples(self) -> Dict[str, DecodedSample]:
        """Copy of the latest sample per PID."""
        return dict(self._samples)

    def close(self) -> None:
        """Cancel timers and drop the session-scoped buffers. Idempotent."""
        if self._closed:
            return
        self._closed = True
        self.endedAt = datetime.now()
        self.cancelTimers()
        self.trafficLog.clear()
        self.dtcRegistry.clear()
        self._samples.clear()

    def describe(self) -> str:
        vehicle = self.vehicle.describe() if self.vehicle else 'no vehicle'
        return f"session={self.sessionId} | vehicle={vehicle}"
