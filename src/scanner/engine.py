################################################################################
# File Name: engine.py
# Purpose/Description: Diagnostic session engine facade for UI consumers
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
Scanner engine facade.

Single entry point for a UI layer. Wires the lifecycle controller, telemetry
sampler and AI explanation client around one shared lock and exposes:

- Commands: startSession, endSession, reset, setEngineRunning, scanFaults,
  clearFaults
- Queries: state, getLatestSamples, getTrafficLog, getCurrentFault,
  getFaultStatus, hasFault, getStatus
- Observers: registerCallbacks(onStateChange, onSample, onFault)
- AI boundary: explainFault, getComponentTip

No command raises for a request made in the wrong state; it returns False.

Usage:
    from scanner.engine import createEngineFromConfig

    engine = createEngineFromConfig(config)
    engine.registerCallbacks(onStateChange=lambda old, new: print(new.value))
    engine.startSession()
"""

import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Tuple

from ai.explanation import ExplanationClient
from ai.types import FALLBACK_WORKSHOP_TIP, ExplanationResult

from .adapter import (
    CLEAR_CODES_COMMAND,
    READ_CODES_COMMAND,
    SIMULATED_MAC_ADDRESS,
    DiagnosticAdapter,
    SimulatedAdapter,
)
from .dtc_registry import decodeDtcResponse, describeDtc
from .exceptions import AdapterError
from .lifecycle import (
    DEFAULT_ECU_SYNC_DELAY_SECONDS,
    DEFAULT_PAIRING_DELAY_SECONDS,
    DEFAULT_PROTOCOL_INIT_DELAY_SECONDS,
    LifecycleController,
    StateChangeCallback,
)
from .sampler import DEFAULT_SAMPLING_INTERVAL_SECONDS, TelemetrySampler
from .scheduler import Scheduler, ThreadingScheduler
from .traffic_log import DEFAULT_CAPACITY
from .types import DecodedSample, DiagnosticTroubleCode, FaultStatus, SessionState, TrafficEntry
from .vehicle import VehicleIdentity, createVehicleFromConfig

logger = logging.getLogger(__name__)

NO_FAULT_MESSAGE = "No fault recorded"


class ScannerEngine:
    """
    Facade over one diagnostic session at a time.

    Attributes:
        scheduler: Scheduler driving handshake steps and sampling
        adapter: Diagnostic adapter
        sampler: Telemetry sampler
        controller: Lifecycle controller
        explanationClient: AI explanation client
        defaultVehicle: Vehicle used when startSession() gets none
    """

    def __init__(
        self,
        scheduler: Optional[Scheduler] = None,
        adapter: Optional[DiagnosticAdapter] = None,
        explanationClient: Optional[ExplanationClient] = None,
        engineRunning: bool = False,
        samplingIntervalSeconds: float = DEFAULT_SAMPLING_INTERVAL_SECONDS,
        pairingDelaySeconds: float = DEFAULT_PAIRING_DELAY_SECONDS,
        protocolInitDelaySeconds: float = DEFAULT_PROTOCOL_INIT_DELAY_SECONDS,
        ecuSyncDelaySeconds: float = DEFAULT_ECU_SYNC_DELAY_SECONDS,
        trafficLogCapacity: int = DEFAULT_CAPACITY,
        randomSource: Optional[Any] = None,
        defaultVehicle: Optional[VehicleIdentity] = None
    ) -> None:
        self._lock = threading.RLock()
        self._engineRunning = bool(engineRunning)
        self._onFault: Optional[Callable[[Optional[DiagnosticTroubleCode]], None]] = None

        self.scheduler = scheduler if scheduler is not None else ThreadingScheduler()
        self.adapter = adapter if adapter is not None else SimulatedAdapter()
        self.explanationClient = (
            explanationClient if explanationClient is not None else ExplanationClient()
        )
        self.defaultVehicle = defaultVehicle

        self.sampler = TelemetrySampler(
            self.scheduler,
            engineRunning=lambda: self._engineRunning,
            intervalSeconds=samplingIntervalSeconds,
            randomSource=randomSource,
            lock=self._lock
        )
        self.controller = LifecycleController(
            adapter=self.adapter,
            scheduler=self.scheduler,
            sampler=self.sampler,
            pairingDelaySeconds=pairingDelaySeconds,
            protocolInitDelaySeconds=protocolInitDelaySeconds,
            ecuSyncDelaySeconds=ecuSyncDelaySeconds,
            trafficLogCapacity=trafficLogCapacity,
            lock=self._lock
        )

    # =========================================================================
    # Observers
    # =========================================================================

    def registerCallbacks(
        self,
        onStateChange: Optional[StateChangeCallback] = None,
        onSample: Optional[Callable[[List[DecodedSample]], None]] = None,
        onFault: Optional[Callable[[Optional[DiagnosticTroubleCode]], None]] = None
    ) -> None:
        """
        Register callbacks for engine events.

        Each argument replaces the callback previously registered for its
        event; None clears it. Callbacks run with the engine lock held, which
        is re-entrant, so they may query the engine. Exceptions are logged.

        Args:
            onStateChange: Called with (oldState, newState) on every transition
            onSample: Called with the sample set of every telemetry tick
            onFault: Called with the recorded fault after a scan (None when
                     the scan found nothing or faults were cleared)
        """
        self.controller.registerCallbacks(onStateChange=onStateChange)
        self.sampler.registerCallbacks(onSample=onSample)
        self._onFault = onFault

    # =========================================================================
    # Commands
    # =========================================================================

    def startSession(self, vehicle: Optional[VehicleIdentity] = None) -> bool:
        """Start the handshake; False if a session is already in flight."""
        return self.controller.startSession(vehicle or self.defaultVehicle)

    def endSession(self) -> bool:
        return self.controller.endSession()

    def reset(self) -> None:
        self.controller.reset()

    def setEngineRunning(self, running: bool) -> None:
        """Set the simulated engine state; applies from the next tick."""
        with self._lock:
            self._engineRunning = bool(running)
        logger.info(f"Engine running set | running={self._engineRunning}")

    def scanFaults(self) -> bool:
        """
        Read stored trouble codes (Mode 03).

        Only allowed while READY. The first reported code becomes the
        current fault; an empty answer records NO_FAULTS.

        Returns:
            True if a scan completed, False if not READY or the adapter failed
        """
        with self._lock:
            session = self.controller.session
            if session is None or self.controller.state is not SessionState.READY:
                logger.warning(f"scanFaults rejected | state={self.controller.state.value}")
                return False

            failure: Optional[str] = None
            try:
                response = self.adapter.exchange(READ_CODES_COMMAND)
            except AdapterError as e:
                logger.error(f"Fault scan failed | error={e.message}")
                failure = e.message
            else:
                session.trafficLog.append(READ_CODES_COMMAND, response)
                codes = decodeDtcResponse(response)
                if codes:
                    fault = describeDtc(codes[0])
                    fault = session.dtcRegistry.recordFault(
                        fault.code, fault.description, fault.severity
                    )
                else:
                    fault = None
                    session.dtcRegistry.recordNoFaults()
                    logger.info("Fault scan complete | no codes reported")
                self._notifyFault(fault)

        if failure is not None:
            self.controller.failSession(failure)
            return False

        return True

    def clearFaults(self) -> bool:
        """
        Forget the recorded fault.

        Works in any state. While READY a Mode 04 exchange is also logged.

        Returns:
            True if a session registry was cleared, False with no session
        """
        with self._lock:
            session = self.controller.session
            if session is None:
                return False

            if self.controller.state is SessionState.READY:
                try:
                    response = self.adapter.exchange(CLEAR_CODES_COMMAND)
                    session.trafficLog.append(CLEAR_CODES_COMMAND, response)
                except AdapterError as e:
                    logger.warning(f"Clear codes exchange failed | error={e.message}")

            session.dtcRegistry.clear()
            logger.info("Faults cleared")
            self._notifyFault(None)

        return True

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def state(self) -> SessionState:
        return self.controller.state

    @property
    def engineRunning(self) -> bool:
        return self._engineRunning

    def getLatestSamples(self) -> Dict[str, DecodedSample]:
        """Latest sample per PID for the current session (empty when IDLE)."""
        with self._lock:
            session = self.controller.session
            return session.latestSamples() if session is not None else {}

    def getTrafficLog(self, newestFirst: bool = True) -> Tuple[TrafficEntry, ...]:
        with self._lock:
            session = self.controller.session
            return session.trafficLog.snapshot(newestFirst) if session is not None else ()

    def getCurrentFault(self) -> Optional[DiagnosticTroubleCode]:
        with self._lock:
            session = self.controller.session
            return session.dtcRegistry.currentFault() if session is not None else None

    def getFaultStatus(self) -> FaultStatus:
        with self._lock:
            session = self.controller.session
            return session.dtcRegistry.status if session is not None else FaultStatus.NOT_SCANNED

    def hasFault(self) -> bool:
        return self.getFaultStatus() is FaultStatus.FAULT_PRESENT

    def getStatus(self) -> Dict[str, Any]:
        """
        Snapshot of the engine for display or logging.

        Returns:
            Dictionary with state, session, samples, fault and traffic log
        """
        with self._lock:
            session = self.controller.session
            fault = self.getCurrentFault()
            return {
                'state': self.controller.state.value,
                'engineRunning': self._engineRunning,
                'sessionId': session.sessionId if session is not None else None,
                'vehicle': session.vehicle.toDict() if session is not None and session.vehicle else None,
                'lastError': self.controller.lastError,
                'samples': {pid: sample.toDict() for pid, sample in self.getLatestSamples().items()},
                'faultStatus': self.getFaultStatus().value,
                'fault': fault.toDict() if fault is not None else None,
                'trafficLog': [entry.toDict() for entry in self.getTrafficLog()],
            }

    # =========================================================================
    # AI Boundary
    # =========================================================================

    def explainFault(self) -> ExplanationResult:
        """
        Explain the current fault through the AI client.

        Never raises and never changes the session state.

        Returns:
            ExplanationResult; success False when there is no fault or the
            service could not answer
        """
        with self._lock:
            fault = self.getCurrentFault()
            session = self.controller.session
            vehicle = session.vehicle if session is not None else None

        if fault is None:
            return ExplanationResult(code='', errorMessage=NO_FAULT_MESSAGE)

        try:
            return self.explanationClient.explainCode(fault.code, vehicle=vehicle)
        except Exception as e:
            logger.error(f"Explanation client error | code={fault.code} | error={e}")
            return ExplanationResult(code=fault.code, errorMessage=str(e))

    def getComponentTip(self, componentName: str) -> str:
        """
        Get a workshop tip about a component suspected for the current fault.

        Args:
            componentName: Component the user selected

        Returns:
            The tip, or a generic inspection tip on any failure
        """
        fault = self.getCurrentFault()
        if fault is None:
            return FALLBACK_WORKSHOP_TIP

        try:
            return self.explanationClient.getWorkshopTip(fault.code, componentName)
        except Exception as e:
            logger.error(f"Workshop tip error | code={fault.code} | error={e}")
            return FALLBACK_WORKSHOP_TIP

    # =========================================================================
    # Shutdown
    # =========================================================================

    def shutdown(self) -> None:
        """Reset to IDLE and stop the scheduler."""
        self.controller.reset()
        self.scheduler.shutdown()
        self.adapter.close()
        logger.info("Scanner engine shut down")

    def _notifyFault(self, fault: Optional[DiagnosticTroubleCode]) -> None:
        if self._onFault is None:
            return
        try:
            self._onFault(fault)
        except Exception as e:
            logger.warning(f"onFault callback error: {e}")


def createEngineFromConfig(
    config: Dict[str, Any],
    scheduler: Optional[Scheduler] = None,
    adapter: Optional[DiagnosticAdapter] = None,
    explanationClient: Optional[ExplanationClient] = None,
    randomSource: Optional[Any] = None
) -> ScannerEngine:
    """
    Create a ScannerEngine from validated configuration.

    Args:
        config: Configuration dictionary (see scanner.config)
        scheduler: Optional scheduler (threading scheduler when omitted)
        adapter: Optional adapter (simulated adapter when omitted)
        explanationClient: Optional AI client (built from config when omitted)
        randomSource: Optional random source for the sampler

    Returns:
        Configured ScannerEngine
    """
    scannerConfig = config.get('scanner', {})

    if adapter is None:
        adapter = SimulatedAdapter(
            macAddress=scannerConfig.get('adapterMacAddress', SIMULATED_MAC_ADDRESS)
        )
    if explanationClient is None:
        explanationClient = ExplanationClient(config)

    return ScannerEngine(
        scheduler=scheduler,
        adapter=adapter,
        explanationClient=explanationClient,
        engineRunning=scannerConfig.get('engineRunning', False),
        samplingIntervalSeconds=scannerConfig.get(
            'samplingIntervalSeconds', DEFAULT_SAMPLING_INTERVAL_SECONDS
        ),
        pairingDelaySeconds=scannerConfig.get('pairingDelaySeconds', DEFAULT_PAIRING_DELAY_SECONDS),
        protocolInitDelaySeconds=scannerConfig.get(
            'protocolInitDelaySeconds', DEFAULT_PROTOCOL_INIT_DELAY_SECONDS
        ),
        ecuSyncDelaySeconds=scannerConfig.get('ecuSyncDelaySeconds', DEFAULT_ECU_SYNC_DELAY_SECONDS),
        trafficLogCapacity=scannerConfig.get('trafficLogCapacity', DEFAULT_CAPACITY),
        randomSource=randomSource,
        defaultVehicle=createVehicleFromConfig(config),
    )
