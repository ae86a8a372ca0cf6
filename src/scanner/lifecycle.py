################################################################################
# File Name: lifecycle.py
# Purpose/Description: Diagnostic session state machine and adapter handshake
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
Connection lifecycle module.

Drives a diagnostic session through the adapter handshake and owns the single
SessionState value:

    IDLE -> LINKING -> PROTOCOL_INIT -> ECU_SYNC -> READY
      ^                                               |
      +---------------- endSession() / reset() -------+

- LINKING: after the pairing delay the adapter is discovered ("BT SCAN")
- PROTOCOL_INIT: ATZ, ATE0, ATSP0 exchanges
- ECU_SYNC: 0100 ECU identification exchange
- READY: telemetry sampler running
- ERROR: reachable from any active state when an adapter step raises
  AdapterError or failSession() is called; left only through reset/end

Each step is a callback on the scheduler, tracked by the session that
scheduled it. endSession()/reset() close the session, which cancels every
pending callback; a callback that still slips through finds its session is no
longer current and does nothing.

Usage:
    controller = LifecycleController(scheduler=ManualScheduler())
    controller.startSession()
    scheduler.advance(4.0)
    assert controller.state is SessionState.READY
"""

import logging
import threading
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Tuple

from .adapter import (
    DISCOVERY_COMMAND,
    ECU_IDENTIFICATION_COMMAND,
    DiagnosticAdapter,
    SimulatedAdapter,
    runProtocolInit,
)
from .exceptions import AdapterError, InvalidTransitionError
from .sampler import TelemetrySampler
from .scheduler import Scheduler, ThreadingScheduler
from .session import DiagnosticSession
from .traffic_log import DEFAULT_CAPACITY
from .types import SessionState
from .vehicle import VehicleIdentity

logger = logging.getLogger(__name__)

# ================================================================================
# Constants
# ================================================================================

DEFAULT_PAIRING_DELAY_SECONDS = 2.0
DEFAULT_PROTOCOL_INIT_DELAY_SECONDS = 1.0
DEFAULT_ECU_SYNC_DELAY_SECONDS = 1.0

HANDSHAKE_CHAIN: Tuple[SessionState, ...] = (
    SessionState.IDLE,
    SessionState.LINKING,
    SessionState.PROTOCOL_INIT,
    SessionState.ECU_SYNC,
    SessionState.READY,
)

ALLOWED_TRANSITIONS: Dict[SessionState, FrozenSet[SessionState]] = {
    SessionState.IDLE: frozenset({SessionState.LINKING}),
    SessionState.LINKING: frozenset({SessionState.PROTOCOL_INIT, SessionState.ERROR, SessionState.IDLE}),
    SessionState.PROTOCOL_INIT: frozenset({SessionState.ECU_SYNC, SessionState.ERROR, SessionState.IDLE}),
    SessionState.ECU_SYNC: frozenset({SessionState.READY, SessionState.ERROR, SessionState.IDLE}),
    SessionState.READY: frozenset({SessionState.IDLE, SessionState.ERROR}),
    SessionState.ERROR: frozenset({SessionState.IDLE}),
}

StateChangeCallback = Callable[[SessionState, SessionState], None]


class LifecycleController:
    """
    Finite state machine for one diagnostic session at a time.

    All state, traffic log and DTC writes happen under a single re-entrant
    lock shared with the telemetry sampler.

    Attributes:
        pairingDelaySeconds: Delay before the adapter is discovered
        protocolInitDelaySeconds: Delay before the init commands complete
        ecuSyncDelaySeconds: Delay before the ECU identification completes
        trafficLogCapacity: Capacity of each session's traffic log
    """

    def __init__(
        self,
        adapter: Optional[DiagnosticAdapter] = None,
        scheduler: Optional[Scheduler] = None,
        sampler: Optional[TelemetrySampler] = None,
        pairingDelaySeconds: float = DEFAULT_PAIRING_DELAY_SECONDS,
        protocolInitDelaySeconds: float = DEFAULT_PROTOCOL_INIT_DELAY_SECONDS,
        ecuSyncDelaySeconds: float = DEFAULT_ECU_SYNC_DELAY_SECONDS,
        trafficLogCapacity: int = DEFAULT_CAPACITY,
        lock: Optional[Any] = None
    ) -> None:
        """
        Initialize the controller in IDLE.

        Args:
            adapter: Adapter used for the handshake (simulated when omitted)
            scheduler: Scheduler for step delays (threading when omitted)
            sampler: Telemetry sampler started on READY
            pairingDelaySeconds: LINKING step delay
            protocolInitDelaySeconds: PROTOCOL_INIT step delay
            ecuSyncDelaySeconds: ECU_SYNC step delay
            trafficLogCapacity: Capacity of each session's traffic log
            lock: Shared lock (defaults to the sampler's lock)
        """
        self.adapter = adapter if adapter is not None else SimulatedAdapter()
        self.scheduler = scheduler if scheduler is not None else ThreadingScheduler()
        self.sampler = sampler
        self.pairingDelaySeconds = pairingDelaySeconds
        self.protocolInitDelaySeconds = protocolInitDelaySeconds
        self.ecuSyncDelaySeconds = ecuSyncDelaySeconds
        self.trafficLogCapacity = trafficLogCapacity

        if lock is not None:
            self._lock = lock
        elif sampler is not None:
            self._lock = sampler.lock
        else:
            self._lock = threading.RLock()

        self._state = SessionState.IDLE
        self._session: Optional[DiagnosticSession] = None
        self._lastError: Optional[str] = None
        self._pendingNotifications: List[Tuple[SessionState, SessionState]] = []
        self._onStateChange: Optional[StateChangeCallback] = None

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def lock(self) -> Any:
        return self._lock

    @property
    def state(self) -> SessionState:
        with self._lock:
            return self._state

    @property
    def session(self) -> Optional[DiagnosticSession]:
        """The open session, or None while IDLE."""
        with self._lock:
            return self._session

    @property
    def lastError(self) -> Optional[str]:
        """Reason the current session entered ERROR."""
        with self._lock:
            return self._lastError

    def isReady(self) -> bool:
        return self.state is SessionState.READY

    def registerCallbacks(self, onStateChange: Optional[StateChangeCallback] = None) -> None:
        """
        Register the state change callback.

        Replaces any previously registered callback; None clears it. The
        callback receives (oldState, newState) in transition order with the
        shared lock held, so it may call back into the controller.
        Exceptions are logged and ignored.
        """
        self._onStateChange = onStateChange

    # =========================================================================
    # Public Operations
    # =========================================================================

    def startSession(self, vehicle: Optional[VehicleIdentity] = None) -> bool:
        """
        Begin the handshake. Returns immediately.

        Args:
            vehicle: Active vehicle, attached to the session for context

        Returns:
            True if a session was started, False if one is already in flight
        """
        with self._lock:
            if self._state is not SessionState.IDLE:
                logger.warning(f"startSession rejected | state={self._state.value}")
                return False

            session = DiagnosticSession(vehicle=vehicle, trafficLogCapacity=self.trafficLogCapacity)
            self._session = session
            self._lastError = None
            self._transition(SessionState.LINKING)
            self._scheduleStep(session, self.pairingDelaySeconds, self._linkStep, 'linking')

            logger.info(f"Session starting | {session.describe()}")

        self._flushNotifications()
        return True

    def endSession(self) -> bool:
        """
        Tear the session down to IDLE.

        Returns:
            True if a session was ended, False if already IDLE
        """
        with self._lock:
            if self._state is SessionState.IDLE:
                logger.debug("endSession ignored | state=idle")
                return False
            self._teardown()

        self._flushNotifications()
        return True

    def reset(self) -> None:
        """Return to IDLE from any state, discarding the session."""
        with self._lock:
            self._teardown()

        self._flushNotifications()

    def failSession(self, reason: str) -> bool:
        """
        Move the active session to ERROR.

        Args:
            reason: Failure description, kept in lastError

        Returns:
            True if the session entered ERROR, False if IDLE or already ERROR
        """
        with self._lock:
            if self._session is None or self._state in (SessionState.IDLE, SessionState.ERROR):
                return False
            self._fail(reason)

        self._flushNotifications()
        return True

    # =========================================================================
    # Handshake Steps
    # =========================================================================

    def _scheduleStep(
        self,
        session: DiagnosticSession,
        delaySeconds: float,
        step: Callable[[DiagnosticSession], None],
        name: str
    ) -> None:
        handle = self.scheduler.callLater(
            delaySeconds,
            lambda: self._runStep(session, step, name),
            name=f"{name}-{session.sessionId}"
        )
        session.trackHandle(handle)

    def _runStep(
        self,
        session: DiagnosticSession,
        step: Callable[[DiagnosticSession], None],
        name: str
    ) -> None:
        with self._lock:
            if session is not self._session or session.closed:
                logger.debug(f"Stale handshake step ignored | step={name} | session={session.sessionId}")
                return

            try:
                step(session)
            except AdapterError as e:
                logger.error(f"Handshake step failed | step={name} | error={e.message}")
                self._fail(e.message)

        self._flushNotifications()

    def _linkStep(self, session: DiagnosticSession) -> None:
        device = self.adapter.discover()
        session.trafficLog.append(DISCOVERY_COMMAND, f"DEVICE DISCOVERED: {device}")
        self._transition(SessionState.PROTOCOL_INIT)
        self._scheduleStep(session, self.protocolInitDelaySeconds, self._protocolInitStep, 'protocol-init')

    def _protocolInitStep(self, session: DiagnosticSession) -> None:
        for command, response in runProtocolInit(self.adapter):
            session.trafficLog.append(command, response)
        self._transition(SessionState.ECU_SYNC)
        self._scheduleStep(session, self.ecuSyncDelaySeconds, self._ecuSyncStep, 'ecu-sync')

    def _ecuSyncStep(self, session: DiagnosticSession) -> None:
        response = self.adapter.exchange(ECU_IDENTIFICATION_COMMAND)
        session.trafficLog.append(ECU_IDENTIFICATION_COMMAND, response)
        self._transition(SessionState.READY)

        if self.sampler is not None:
            self.sampler.start(session, isActive=lambda: self._isCurrentAndReady(session))

        logger.info(f"Session ready | {session.describe()}")

    def _isCurrentAndReady(self, session: DiagnosticSession) -> bool:
        return session is self._session and self._state is SessionState.READY

    # =========================================================================
    # State Changes (lock held)
    # =========================================================================

    def _transition(self, newState: SessionState) -> None:
        oldState = self._state
        if newState not in ALLOWED_TRANSITIONS[oldState]:
            raise InvalidTransitionError(
                f"Transition {oldState.value} -> {newState.value} not allowed",
                details={'from': oldState.value, 'to': newState.value}
            )

        self._state = newState
        self._pendingNotifications.append((oldState, newState))
        logger.debug(f"State changed | {oldState.value} -> {newState.value}")

    def _fail(self, reason: str) -> None:
        if self.sampler is not None:
            self.sampler.stop()
        if self._session is not None:
            self._session.cancelTimers()
        self._lastError = reason
        self._transition(SessionState.ERROR)

    def _teardown(self) -> None:
        if self.sampler is not None:
            self.sampler.stop()

        session, self._session = self._session, None
        if session is not None:
            session.close()
            logger.info(f"Session ended | {session.describe()}")

        self._lastError = None
        if self._state is not SessionState.IDLE:
            self._transition(SessionState.IDLE)

    def _flushNotifications(self) -> None:
        # Taking and delivering the queue is one lock hold, so concurrent
        # flushes cannot reorder transitions
        with self._lock:
            while self._pendingNotifications:
                oldState, newState = self._pendingNotifications.pop(0)
                if self._onStateChange is None:
                    continue
                try:
                    self._onStateChange(oldState, newState)
                except Exception as e:
                    logger.warning(f"onStateChange callback error: {e}")
