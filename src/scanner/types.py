################################################################################
# File Name: types.py
# Purpose/Description: Enums and dataclasses shared by the scanner engine
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
Type definitions for the scanner engine.

Enums:
- SessionState: lifecycle of a diagnostic session
- Severity: severity of a diagnostic trouble code
- FaultStatus: NOT_SCANNED / NO_FAULTS / FAULT_PRESENT
- DecodeOutcome: DECODED / UNSUPPORTED / MALFORMED

Dataclasses (all frozen, replaced rather than mutated):
- DecodedSample, DecodeResult, TrafficEntry, DiagnosticTroubleCode
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict


# ================================================================================
# Enums
# ================================================================================

class SessionState(Enum):
    """Diagnostic session state, owned by the lifecycle controller."""
    IDLE = 'idle'
    LINKING = 'linking'
    PROTOCOL_INIT = 'protocol_init'
    ECU_SYNC = 'ecu_sync'
    READY = 'ready'
    ERROR = 'error'


class Severity(Enum):
    """Severity of a diagnostic trouble code."""
    LOW = 'low'
    MEDIUM = 'medium'
    HIGH = 'high'


class FaultStatus(Enum):
    """What the DTC registry currently knows."""
    NOT_SCANNED = 'not_scanned'
    NO_FAULTS = 'no_faults'
    FAULT_PRESENT = 'fault_present'


class DecodeOutcome(Enum):
    """Classification of a decode attempt."""
    DECODED = 'decoded'
    UNSUPPORTED = 'unsupported'
    MALFORMED = 'malformed'


# ================================================================================
# Data Classes
# ================================================================================

@dataclass(frozen=True)
class DecodedSample:
    """
    One decoded sensor reading.

    Attributes:
        pid: Parameter ID or adapter command the value came from (e.g. '010C')
        value: Physical value
        unit: Unit of measurement
        timestamp: When the sample was produced
    """
    pid: str
    value: float
    unit: str
    timestamp: datetime = field(default_factory=datetime.now)

    def toDict(self) -> Dict[str, Any]:
        return {
            'pid': self.pid,
            'value': self.value,
            'unit': self.unit,
            'timestamp': self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class DecodeResult:
    """
    Tagged result of decoding a raw frame.

    `value` is always what decode() returns for the same input, so callers
    that ignore the outcome keep the default-to-zero behaviour.
    """
    pid: str
    outcome: DecodeOutcome
    value: int = 0

    @property
    def isDecoded(self) -> bool:
        return self.outcome == DecodeOutcome.DECODED


@dataclass(frozen=True)
class TrafficEntry:
    """
    A command/response exchange with the adapter.

    Attributes:
        command: Command sent (e.g. 'ATZ', '010C')
        response: Raw response text (e.g. 'ELM327 v1.5', '41 0C 1A F8')
        timestamp: When the exchange was recorded
    """
    command: str
    response: str
    timestamp: datetime = field(default_factory=datetime.now)

    def toDict(self) -> Dict[str, Any]:
        return {
            'command': self.command,
            'response': self.response,
            'timestamp': self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class DiagnosticTroubleCode:
    """
    A fault code reported by the vehicle.

    Attributes:
        code: SAE code such as 'P0301'
        description: Human-readable description
        severity: Severity classification
    """
    code: str
    description: str
    severity: Severity = Severity.MEDIUM

    def toDict(self) -> Dict[str, Any]:
        return {
            'code': self.code,
            'description': self.description,
            'severity': self.severity.value,
        }
