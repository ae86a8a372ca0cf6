################################################################################
# File Name: test_pids.py
# Purpose/Description: Tests for Mode 01 PID decoding
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
Tests for the pids module.

Run with:
    pytest tests/test_pids.py -v
"""

import sys
from datetime import datetime
from pathlib import Path

import pytest

srcPath = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(srcPath))

from scanner.pids import (
    PID_COOLANT_TEMP,
    PID_RPM,
    PID_SPEED,
    PID_THROTTLE_POS,
    SUPPORTED_PIDS,
    buildFrame,
    createSample,
    decode,
    decodeFrame,
    getPidDefinition,
    getSupportedPids,
    isSupportedPid,
    normalizePid,
    parseFrame,
)
from scanner.types import DecodeOutcome


class TestDecode:
    """Tests for decode function."""

    def test_decode_rpmFrame_returnsQuarterOfTwoByteValue(self):
        """
        Given: RPM response 41 0C 1A F8
        When: decode() is called
        Then: Returns floor((0x1A * 256 + 0xF8) / 4) = 1726
        """
        assert decode('010C', '41 0C 1A F8') == 1726

    def test_decode_coolantFrame_subtractsForty(self):
        """
        Given: Coolant response 41 05 7B
        When: decode() is called
        Then: Returns 0x7B - 40 = 83
        """
        assert decode('0105', '41 05 7B') == 83

    def test_decode_coolantBelowOffset_returnsNegative(self):
        """
        Given: Coolant response with A = 0
        When: decode() is called
        Then: Returns -40
        """
        assert decode('0105', '41 05 00') == -40

    def test_decode_speedFrame_returnsA(self):
        """
        Given: Speed response 41 0D 32
        When: decode() is called
        Then: Returns 50
        """
        assert decode('010D', '41 0D 32') == 50

    def test_decode_throttleFull_returnsHundred(self):
        """
        Given: Throttle response with A = 0xFF
        When: decode() is called
        Then: Returns 100
        """
        assert decode('0111', '41 11 FF') == 100

    @pytest.mark.parametrize('a, expected', [
        (0x00, 0),
        (0x01, 0),    # 0.39 rounds down
        (0x02, 1),    # 0.78 rounds up
        (0x80, 50),   # 50.2
        (0xC0, 75),   # 75.29
        (0xFE, 100),  # 99.6 rounds up
    ])
    def test_decode_throttle_roundsToNearest(self, a, expected):
        """
        Given: Throttle response with varying A
        When: decode() is called
        Then: Returns A * 100 / 255 rounded to nearest integer
        """
        assert decode('0111', f'41 11 {a:02X}') == expected

    def test_decode_rpmWithoutSecondByte_treatsBAsZero(self):
        """
        Given: RPM response with only byte A
        When: decode() is called
        Then: B defaults to 0
        """
        assert decode('010C', '41 0C 1A') == 1664

    @pytest.mark.parametrize('raw', ['', '41', '41 0C', None, '   '])
    def test_decode_fewerThanThreeBytes_returnsZero(self, raw):
        """
        Given: Frame with fewer than 3 bytes
        When: decode() is called
        Then: Returns 0
        """
        assert decode('010C', raw) == 0

    def test_decode_unsupportedPid_returnsZero(self):
        """
        Given: Well formed frame for an unsupported PID
        When: decode() is called
        Then: Returns 0
        """
        assert decode('0110', '41 10 12 34') == 0

    def test_decode_lowercaseInput_decodesSameValue(self):
        """
        Given: Lowercase PID and frame
        When: decode() is called
        Then: Decodes like uppercase input
        """
        assert decode('010c', '41 0c 1a f8') == 1726

    def test_decode_nonHexCharacters_areDropped(self):
        """
        Given: Frame with a prompt character and carriage return
        When: decode() is called
        Then: Non-hex characters are ignored
        """
        assert decode('010D', '41 0D 32\r>') == 50

    def test_decode_garbageTokenCollapsesFrame_returnsZero(self):
        """
        Given: Frame whose payload is not hex
        When: decode() is called
        Then: Frame collapses below 3 bytes and returns 0
        """
        assert decode('010C', '41 0C ZZ') == 0

    def test_decode_extraBytes_areIgnored(self):
        """
        Given: Coolant frame with trailing bytes
        When: decode() is called
        Then: Only A is used
        """
        assert decode('0105', '41 05 7B 00 11') == 83

    def test_decode_headerNotChecked_stillDecodes(self):
        """
        Given: Frame with an unexpected header byte
        When: decode() is called
        Then: Bytes 2 and 3 are decoded regardless
        """
        assert decode('010D', '7F 01 32') == 50


class TestDecodeFrame:
    """Tests for decodeFrame function."""

    def test_decodeFrame_validFrame_isDecoded(self):
        """
        Given: Valid RPM frame
        When: decodeFrame() is called
        Then: Outcome DECODED with the decoded value
        """
        result = decodeFrame('010C', '41 0C 1A F8')

        assert result.outcome == DecodeOutcome.DECODED
        assert result.isDecoded
        assert result.value == 1726
        assert result.pid == '010C'

    def test_decodeFrame_unsupportedPid_isUnsupported(self):
        """
        Given: Unsupported PID
        When: decodeFrame() is called
        Then: Outcome UNSUPPORTED with value 0
        """
        result = decodeFrame('0110', '41 10 12 34')

        assert result.outcome == DecodeOutcome.UNSUPPORTED
        assert result.value == 0
        assert not result.isDecoded

    def test_decodeFrame_shortFrame_isMalformed(self):
        """
        Given: Frame with two bytes
        When: decodeFrame() is called
        Then: Outcome MALFORMED with value 0
        """
        result = decodeFrame('010C', '41 0C')

        assert result.outcome == DecodeOutcome.MALFORMED
        assert result.value == 0

    def test_decodeFrame_rpmMissingSecondByte_isMalformedButValueMatchesDecode(self):
        """
        Given: RPM frame missing byte B
        When: decodeFrame() is called
        Then: Outcome MALFORMED and value equals decode()
        """
        result = decodeFrame('010C', '41 0C 1A')

        assert result.outcome == DecodeOutcome.MALFORMED
        assert result.value == decode('010C', '41 0C 1A')

    def test_decodeFrame_wrongPidEcho_isMalformed(self):
        """
        Given: Speed request answered with a coolant echo
        When: decodeFrame() is called
        Then: Outcome MALFORMED
        """
        result = decodeFrame('010D', '41 05 32')

        assert result.outcome == DecodeOutcome.MALFORMED
        assert result.value == 50

    def test_decodeFrame_wrongHeader_isMalformed(self):
        """
        Given: Negative response header
        When: decodeFrame() is called
        Then: Outcome MALFORMED
        """
        assert decodeFrame('010D', '7F 0D 32').outcome == DecodeOutcome.MALFORMED

    def test_decodeFrame_wideToken_isMalformed(self):
        """
        Given: Frame whose tokens are wider than one byte
        When: decodeFrame() is called
        Then: Outcome MALFORMED and value still equals decode()
        """
        raw = '41 0C 1AF8'
        result = decodeFrame('010C', raw)

        assert result.outcome == DecodeOutcome.MALFORMED
        assert result.value == decode('010C', raw)

    @pytest.mark.parametrize('pid, raw', [
        ('010C', '41 0C 1A F8'),
        ('0105', '41 05 7B'),
        ('010D', '41 0D'),
        ('0111', 'garbage'),
        ('0142', '41 42 30 00'),
        ('010c', '41 0C 0B 00 FF'),
    ])
    def test_decodeFrame_anyInput_valueAlwaysMatchesDecode(self, pid, raw):
        """
        Given: Assorted frames
        When: decodeFrame() and decode() are called
        Then: Both report the same number
        """
        assert decodeFrame(pid, raw).value == decode(pid, raw)


class TestPidCatalog:
    """Tests for PID catalog helpers."""

    def test_getSupportedPids_listsFourPids(self):
        """
        Given: The PID catalog
        When: getSupportedPids() is called
        Then: Returns RPM, coolant, speed and throttle in order
        """
        assert getSupportedPids() == [PID_RPM, PID_COOLANT_TEMP, PID_SPEED, PID_THROTTLE_POS]

    @pytest.mark.parametrize('pid, unit', [
        ('010C', 'rpm'),
        ('0105', '°C'),
        ('010D', 'km/h'),
        ('0111', '%'),
    ])
    def test_getPidDefinition_supportedPid_hasUnit(self, pid, unit):
        """
        Given: Supported PID
        When: getPidDefinition() is called
        Then: Definition carries the expected unit
        """
        definition = getPidDefinition(pid)

        assert definition is not None
        assert definition.unit == unit

    def test_getPidDefinition_rpm_hasDescriptionAndPidNumber(self):
        """
        Given: RPM PID
        When: getPidDefinition() is called
        Then: Definition has a description and PID byte 0x0C
        """
        definition = getPidDefinition('010C')

        assert definition.description
        assert definition.pidNumber == 0x0C
        assert definition.name == 'RPM'

    def test_getPidDefinition_unsupported_returnsNone(self):
        """
        Given: Unsupported PID
        When: getPidDefinition() is called
        Then: Returns None
        """
        assert getPidDefinition('0142') is None

    def test_catalogFormulas_maxPayload_matchMaxValue(self):
        """
        Given: Every catalog entry
        When: Formula is applied to 0xFF payload bytes
        Then: Result equals maxValue
        """
        for definition in SUPPORTED_PIDS.values():
            assert definition.formula(0xFF, 0xFF) == definition.maxValue

    def test_isSupportedPid_spacedLowercase_isSupported(self):
        """
        Given: PID with whitespace and lowercase
        When: isSupportedPid() is called
        Then: Returns True
        """
        assert isSupportedPid(' 01 0c ')
        assert not isSupportedPid(None)

    def test_normalizePid_strips_andUppercases(self):
        """
        Given: Mixed case PID with spaces
        When: normalizePid() is called
        Then: Returns compact uppercase PID
        """
        assert normalizePid('01 0d') == '010D'


class TestFrameHelpers:
    """Tests for parseFrame, buildFrame and createSample."""

    def test_parseFrame_validFrame_returnsIntegers(self):
        """
        Given: Response frame text
        When: parseFrame() is called
        Then: Returns parsed byte values
        """
        assert parseFrame('41 0C 1A F8') == [0x41, 0x0C, 0x1A, 0xF8]

    def test_buildFrame_rpmPayload_formatsUppercaseHex(self):
        """
        Given: RPM PID and two payload bytes
        When: buildFrame() is called
        Then: Returns spaced uppercase frame
        """
        assert buildFrame('010C', 0x1A, 0xF8) == '41 0C 1A F8'

    def test_buildFrame_thenDecode_returnsFormulaValue(self):
        """
        Given: Coolant frame built for 92 °C
        When: Frame is decoded
        Then: Returns 92
        """
        assert decode('0105', buildFrame('0105', 92 + 40)) == 92

    def test_createSample_supportedPid_carriesUnitAndTimestamp(self):
        """
        Given: Speed frame and fixed timestamp
        When: createSample() is called
        Then: Sample holds value, unit and timestamp
        """
        timestamp = datetime(2026, 10, 19, 12, 0, 0)

        sample = createSample('010d', '41 0D 32', timestamp=timestamp)

        assert sample.pid == '010D'
        assert sample.value == 50
        assert sample.unit == 'km/h'
        assert sample.timestamp == timestamp

    def test_createSample_unsupportedPid_hasEmptyUnit(self):
        """
        Given: Unsupported PID
        When: createSample() is called
        Then: Value 0 and empty unit
        """
        sample = createSample('0142', '41 42 30 00')

        assert sample.value == 0
        assert sample.unit == ''
