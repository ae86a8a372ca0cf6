################################################################################
# File Name: __init__.py
# Purpose/Description: Scanner package for the OBD-II diagnostic session engine
# Author: Michael Cornelison
# Creation Date: 2026-10-19
# Copyright: (c) 2026 OBD-II Session Engine Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-19    | M. Cornelison | Initial package creation
# ================================================================================
################################################################################
"""
Scanner Package.

Simulated OBD-II diagnostic session engine:
- PID decoding (pids)
- Bounded adapter traffic log (traffic_log)
- Connection lifecycle state machine (lifecycle)
- Periodic telemetry sampler (sampler)
- Fault code registry (dtc_registry)
- Cancellable schedulers (scheduler)
- Engine facade and factory (engine)
- Configuration loading (config)

Usage:
    from scanner import createEngineFromConfig, loadScannerConfig

    config = loadScannerConfig('src/config.json')
    engine = createEngineFromConfig(config)
    engine.startSession()
"""

from .adapter import DiagnosticAdapter, SimulatedAdapter
from .config import SCANNER_DEFAULTS, loadScannerConfig, validateScannerConfig
from .dtc_registry import SIMULATED_FAULT, DtcRegistry, decodeDtcResponse
from .engine import ScannerEngine, createEngineFromConfig
from .exceptions import (
    AdapterError,
    InvalidTransitionError,
    InvalidVehicleError,
    ScannerConfigError,
    ScannerError,
)
from .lifecycle import LifecycleController
from .pids import (
    PID_COOLANT_TEMP,
    PID_RPM,
    PID_SPEED,
    PID_THROTTLE_POS,
    SUPPORTED_PIDS,
    buildFrame,
    decode,
    decodeFrame,
    getPidDefinition,
    isSupportedPid,
)
from .sampler import TelemetrySampler
from .scheduler import ManualScheduler, Scheduler, ThreadingScheduler, TimerHandle
from .session import DiagnosticSession
from .traffic_log import TrafficLog
from .types import (
    DecodedSample,
    DecodeOutcome,
    DecodeResult,
    DiagnosticTroubleCode,
    FaultStatus,
    SessionState,
    Severity,
    TrafficEntry,
)
from .vehicle import VehicleIdentity, createVehicle, createVehicleFromConfig

__all__ = [
    # Engine
    'ScannerEngine',
    'createEngineFromConfig',
    'LifecycleController',
    'TelemetrySampler',
    'DiagnosticSession',

    # Decoding
    'decode',
    'decodeFrame',
    'buildFrame',
    'isSupportedPid',
    'getPidDefinition',
    'SUPPORTED_PIDS',
    'PID_RPM',
    'PID_COOLANT_TEMP',
    'PID_SPEED',
    'PID_THROTTLE_POS',

    # Components
    'TrafficLog',
    'DtcRegistry',
    'SIMULATED_FAULT',
    'decodeDtcResponse',
    'DiagnosticAdapter',
    'SimulatedAdapter',
    'Scheduler',
    'ThreadingScheduler',
    'ManualScheduler',
    'TimerHandle',

    # Types
    'SessionState',
    'Severity',
    'FaultStatus',
    'DecodeOutcome',
    'DecodedSample',
    'DecodeResult',
    'TrafficEntry',
    'DiagnosticTroubleCode',
    'VehicleIdentity',
    'createVehicle',
    'createVehicleFromConfig',

    # Configuration
    'loadScannerConfig',
    'validateScannerConfig',
    'SCANNER_DEFAULTS',

    # Exceptions
    'ScannerError',
    'AdapterError',
    'InvalidTransitionError',
    'InvalidVehicleError',
    'ScannerConfigError',
]
