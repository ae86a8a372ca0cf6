################################################################################
# File Name: pids.py
# Purpose/Description: SAE J1979 Mode 01 PID catalog and raw frame decoder
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
PID decoding module.

Converts raw ASCII-hex adapter responses ("41 0C 1A F8") into physical values
using the SAE J1979 Mode 01 formulas. Decoding is pure: no shared state, no
logging, no exceptions. Every failure degrades to 0 and callers that need to
tell failures apart use decodeFrame(), which returns a tagged DecodeResult.

Supported PIDs:
- 010C Engine RPM              floor(((A*256)+B)/4)   rpm
- 0105 Engine coolant temp     A - 40                 °C
- 010D Vehicle speed           A                      km/h
- 0111 Throttle position       round(A*100/255)       %

Names and descriptions come from the python-OBD command table so the catalog
reads the same as the rest of the OBD tooling.

Usage:
    from scanner.pids import decode, decodeFrame

    decode('010C', '41 0C 1A F8')         # 1726
    decodeFrame('0105', '41 05').outcome  # DecodeOutcome.MALFORMED
"""

import math
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional

import obd as obdlib

from .types import DecodedSample, DecodeOutcome, DecodeResult

# ================================================================================
# Constants
# ================================================================================

MODE_01_RESPONSE_HEADER = 0x41

# Minimum bytes in a response: header, PID echo, one payload byte
MIN_FRAME_BYTES = 3

NON_HEX_PATTERN = re.compile(r'[^0-9A-Fa-f\s]')

PID_RPM = '010C'
PID_COOLANT_TEMP = '0105'
PID_SPEED = '010D'
PID_THROTTLE_POS = '0111'


# ================================================================================
# PID Catalog
# ================================================================================

@dataclass(frozen=True)
class PidDefinition:
    """
    Definition of a supported Mode 01 PID.

    Attributes:
        pid: Request code, mode + PID (e.g. '010C')
        name: Short python-OBD command name (e.g. 'RPM')
        unit: Unit of the decoded value
        payloadBytes: Number of payload bytes the formula consumes
        formula: Function of (A, B) returning the physical value
        minValue: Smallest value the formula can produce
        maxValue: Largest value the formula can produce
        description: Human-readable description
    """
    pid: str
    name: str
    unit: str
    payloadBytes: int
    formula: Callable[[int, int], int]
    minValue: int
    maxValue: int
    description: str

    @property
    def pidNumber(self) -> int:
        """PID byte without the mode (0x0C for '010C')."""
        return int(self.pid[2:], 16)


def _roundHalfUp(value: float) -> int:
    return int(math.floor(value + 0.5))


def _describe(pid: str, fallback: str) -> str:
    """Look up the python-OBD description for a Mode 01 PID."""
    mode = int(pid[:2], 16)
    pidNumber = int(pid[2:], 16)
    if obdlib.commands.has_pid(mode, pidNumber):
        return obdlib.commands[mode][pidNumber].desc
    return fallback


def _define(
    pid: str,
    name: str,
    unit: str,
    payloadBytes: int,
    formula: Callable[[int, int], int],
    minValue: int,
    maxValue: int,
    fallbackDescription: str
) -> PidDefinition:
    return PidDefinition(
        pid=pid,
        name=name,
        unit=unit,
        payloadBytes=payloadBytes,
        formula=formula,
        minValue=minValue,
        maxValue=maxValue,
        description=_describe(pid, fallbackDescription),
    )


SUPPORTED_PIDS: Dict[str, PidDefinition] = {
    PID_RPM: _define(
        PID_RPM, 'RPM', 'rpm', 2,
        lambda a, b: ((a * 256) + b) // 4,
        0, 16383, 'Engine RPM'
    ),
    PID_COOLANT_TEMP: _define(
        PID_COOLANT_TEMP, 'COOLANT_TEMP', '°C', 1,
        lambda a, b: a - 40,
        -40, 215, 'Engine Coolant Temperature'
    ),
    PID_SPEED: _define(
        PID_SPEED, 'SPEED', 'km/h', 1,
        lambda a, b: a,
        0, 255, 'Vehicle Speed'
    ),
    PID_THROTTLE_POS: _define(
        PID_THROTTLE_POS, 'THROTTLE_POS', '%', 1,
        lambda a, b: _roundHalfUp(a * 100 / 255),
        0, 100, 'Throttle Position'
    ),
}


def normalizePid(pid: Optional[str]) -> str:
    """Uppercase a PID and drop any whitespace ('01 0c' -> '010C')."""
    return ''.join((pid or '').split()).upper()


def isSupportedPid(pid: Optional[str]) -> bool:
    """Check whether a PID has a decoding formula."""
    return normalizePid(pid) in SUPPORTED_PIDS


def getPidDefinition(pid: Optional[str]) -> Optional[PidDefinition]:
    """Return the catalog entry for a PID, or None if unsupported."""
    return SUPPORTED_PIDS.get(normalizePid(pid))


def getSupportedPids() -> List[str]:
    """List the supported PID codes in catalog order."""
    return list(SUPPORTED_PIDS.keys())


# ================================================================================
# Frame Parsing
# ================================================================================

def parseFrame(raw: Optional[str]) -> List[int]:
    """
    Split a raw response into integer tokens.

    Characters other than hex digits and whitespace are dropped, then the
    remainder is split on whitespace and each token parsed as base 16.

    Args:
        raw: Raw adapter response

    Returns:
        List of parsed tokens (may be empty)
    """
    sanitized = NON_HEX_PATTERN.sub('', raw or '')
    return [int(token, 16) for token in sanitized.split()]


def _isWellFormed(tokens: List[int], raw: str, definition: PidDefinition) -> bool:
    sanitized = NON_HEX_PATTERN.sub('', raw or '')
    if any(len(token) > 2 for token in sanitized.split()):
        return False
    if len(tokens) < 2 + definition.payloadBytes:
        return False
    return tokens[0] == MODE_01_RESPONSE_HEADER and tokens[1] == definition.pidNumber


# ================================================================================
# Decoding
# ================================================================================

def decode(pid: Optional[str], raw: Optional[str]) -> int:
    """
    Decode a raw Mode 01 response into a physical value.

    bytes[0] and bytes[1] (response header and PID echo) are skipped;
    A = bytes[2], B = bytes[3] or 0 when absent.

    Args:
        pid: Requested PID (e.g. '010C')
        raw: Raw adapter response (e.g. '41 0C 1A F8')

    Returns:
        Decoded value, or 0 for frames shorter than 3 bytes and unsupported PIDs
    """
    tokens = parseFrame(raw)
    if len(tokens) < MIN_FRAME_BYTES:
        return 0

    definition = getPidDefinition(pid)
    if definition is None:
        return 0

    a = tokens[2]
    b = tokens[3] if len(tokens) > 3 else 0
    return definition.formula(a, b)


def decodeFrame(pid: Optional[str], raw: Optional[str]) -> DecodeResult:
    """
    Decode a raw response and classify the outcome.

    The returned value always equals decode(pid, raw). Frames that decode
    to a number but carry a wrong header, a wrong PID echo, too few payload
    bytes or tokens wider than one byte are reported as MALFORMED.

    Args:
        pid: Requested PID
        raw: Raw adapter response

    Returns:
        DecodeResult tagged DECODED, UNSUPPORTED or MALFORMED
    """
    normalized = normalizePid(pid)
    value = decode(normalized, raw)
    definition = getPidDefinition(normalized)

    if definition is None:
        return DecodeResult(pid=normalized, outcome=DecodeOutcome.UNSUPPORTED, value=value)

    tokens = parseFrame(raw)
    if not _isWellFormed(tokens, raw or '', definition):
        return DecodeResult(pid=normalized, outcome=DecodeOutcome.MALFORMED, value=value)

    return DecodeResult(pid=normalized, outcome=DecodeOutcome.DECODED, value=value)


def createSample(
    pid: str,
    raw: str,
    timestamp: Optional[datetime] = None
) -> DecodedSample:
    """
    Decode a frame into a DecodedSample carrying the catalog unit.

    Args:
        pid: Requested PID
        raw: Raw adapter response
        timestamp: Sample time (defaults to now)

    Returns:
        DecodedSample (unit is '' for unsupported PIDs)
    """
    normalized = normalizePid(pid)
    definition = getPidDefinition(normalized)
    return DecodedSample(
        pid=normalized,
        value=decode(normalized, raw),
        unit=definition.unit if definition else '',
        timestamp=timestamp or datetime.now(),
    )


def buildFrame(pid: str, *payload: int) -> str:
    """
    Format a Mode 01 response frame.

    Args:
        pid: PID being answered (e.g. '010C')
        *payload: Payload bytes (A, B, ...)

    Returns:
        Response string such as '41 0C 1A F8'
    """
    pidByte = int(normalizePid(pid)[2:], 16)
    frameBytes = [MODE_01_RESPONSE_HEADER, pidByte, *payload]
    return ' '.join(f'{b & 0xFF:02X}' for b in frameBytes)
