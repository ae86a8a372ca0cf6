################################################################################
# File Name: dtc_registry.py
# Purpose/Description: Holds the fault code surfaced by a completed scan
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
DTC registry module.

Tracks the result of a fault scan with three distinct states:
- NOT_SCANNED: nothing recorded (initial, and after clear())
- NO_FAULTS: a scan completed and reported no codes
- FAULT_PRESENT: a scan reported a code

Clearing is a memory operation and does not need a live session.

Also decodes Mode 03 responses into SAE codes, with descriptions taken from
python-OBD's DTC table.
"""

import logging
import threading
from typing import List, Optional

from obd.codes import DTC as OBD_DTC_DESCRIPTIONS

from .types import DiagnosticTroubleCode, FaultStatus, Severity

logger = logging.getLogger(__name__)

# Code surfaced by every simulated scan
SIMULATED_FAULT = DiagnosticTroubleCode(
    code='P0301',
    description='Cylinder 1 misfire detected',
    severity=Severity.HIGH,
)


MODE_03_RESPONSE_HEADER = 0x43
DTC_CATEGORY_LETTERS = "PCBU"
UNKNOWN_DTC_DESCRIPTION = "Unknown trouble code"


def decodeDtcResponse(raw: str) -> List[str]:
    """
    Decode a Mode 03 response into SAE trouble codes.

    The response is the 0x43 header followed by two-byte code pairs; all-zero
    pairs are padding. Anything that does not parse yields an empty list.

    Args:
        raw: Adapter response, e.g. '43 03 01 00 00 00 00'

    Returns:
        Codes in response order, e.g. ['P0301']
    """
    try:
        tokens = [int(token, 16) for token in raw.split()]
    except ValueError:
        return []

    if not tokens or tokens[0] != MODE_03_RESPONSE_HEADER:
        return []

    codes = []
    payload = tokens[1:]
    for i in range(0, len(payload) - 1, 2):
        first, second = payload[i], payload[i + 1]
        if first == 0 and second == 0:
            continue
        letter = DTC_CATEGORY_LETTERS[(first >> 6) & 0x03]
        codes.append(f"{letter}{(first >> 4) & 0x03}{first & 0x0F:X}{second:02X}")
    return codes


def describeDtc(code: str) -> DiagnosticTroubleCode:
    """
    Build a DiagnosticTroubleCode for a decoded code.

    The simulated code keeps its fixed description and HIGH severity; other
    codes are described from python-OBD's table with MEDIUM severity.
    """
    if code == SIMULATED_FAULT.code:
        return SIMULATED_FAULT
    description = OBD_DTC_DESCRIPTIONS.get(code, UNKNOWN_DTC_DESCRIPTION)
    return DiagnosticTroubleCode(code=code, description=description, severity=Severity.MEDIUM)


class DtcRegistry:
    """Single-fault registry for a diagnostic session."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._status = FaultStatus.NOT_SCANNED
        self._fault: Optional[DiagnosticTroubleCode] = None

    @property
    def status(self) -> FaultStatus:
        with self._lock:
            return self._status

    def recordFault(
        self,
        code: str,
        description: str,
        severity: Severity = Severity.MEDIUM
    ) -> DiagnosticTroubleCode:
        """
        Set the current fault, replacing any previous one.

        Args:
            code: SAE code (e.g. 'P0301')
            description: Human-readable description
            severity: Severity classification

        Returns:
            The recorded DiagnosticTroubleCode
        """
        fault = DiagnosticTroubleCode(code=code, description=description, severity=severity)
        with self._lock:
            self._fault = fault
            self._status = FaultStatus.FAULT_PRESENT

        logger.info(f"Fault recorded | code={code} | severity={severity.value}")
        return fault

    def recordNoFaults(self) -> None:
        """Record a completed scan that reported no codes."""
        with self._lock:
            self._fault = None
            self._status = FaultStatus.NO_FAULTS

    def clear(self) -> None:
        """Forget any recorded result."""
        with self._lock:
            self._fault = None
            self._status = FaultStatus.NOT_SCANNED

    def hasFault(self) -> bool:
        with self._lock:
            return self._status == FaultStatus.FAULT_PRESENT

    def currentFault(self) -> Optional[DiagnosticTroubleCode]:
        with self._lock:
            return self._fault
