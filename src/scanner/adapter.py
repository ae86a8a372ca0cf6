################################################################################
# File Name: adapter.py
# Purpose/Description: Diagnostic adapter interface and simulated ELM327 adapter
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
Diagnostic adapter module.

The lifecycle controller talks to the adapter only through discover() and
exchange(command). SimulatedAdapter answers with canned ELM327 responses and
never fails; a real Bluetooth/serial adapter raises AdapterError from either
call and the controller moves the session to ERROR.

Handshake sequence (command -> simulated response):
    ATZ   -> ELM327 v1.5          reset
    ATE0  -> OK                   echo off
    ATSP0 -> OK                   protocol auto
    0100  -> 41 00 BE 3E B8 11    ECU identification / supported PIDs
"""

import logging
from typing import Dict, List, Optional, Tuple

from .exceptions import AdapterError

logger = logging.getLogger(__name__)

# ================================================================================
# Constants
# ================================================================================

SIMULATED_MAC_ADDRESS = 'SIMULATED:00:11:22:33:44:55'
SIMULATED_DEVICE_NAME = 'OBDII ELM327 v1.5'

DISCOVERY_COMMAND = 'BT SCAN'

# Adapter initialization: reset, echo off, protocol auto
PROTOCOL_INIT_COMMANDS: List[str] = ['ATZ', 'ATE0', 'ATSP0']

ECU_IDENTIFICATION_COMMAND = '0100'

READ_CODES_COMMAND = '03'
CLEAR_CODES_COMMAND = '04'

SEARCHING_RESPONSE = 'SEARCHING...'

SIMULATED_RESPONSES: Dict[str, str] = {
    'ATZ': 'ELM327 v1.5',
    'ATE0': 'OK',
    'ATSP0': 'OK',
    ECU_IDENTIFICATION_COMMAND: '41 00 BE 3E B8 11',
    # one stored code, P0301
    READ_CODES_COMMAND: '43 03 01 00 00 00 00',
    CLEAR_CODES_COMMAND: '44',
}


class DiagnosticAdapter:
    """Interface every adapter implementation provides."""

    def discover(self) -> str:
        """
        Locate and pair with the adapter.

        Returns:
            Description of the discovered device

        Raises:
            AdapterError: If no adapter can be found
        """
        raise NotImplementedError

    def exchange(self, command: str) -> str:
        """
        Send a command and return the raw response text.

        Raises:
            AdapterError: If the adapter does not answer
        """
        raise NotImplementedError

    def close(self) -> None:
        """Release the adapter. Safe to call when not connected."""


class SimulatedAdapter(DiagnosticAdapter):
    """
    Canned ELM327 adapter for running without hardware.

    Attributes:
        macAddress: Address reported on discovery
        responses: Command -> response table
        history: Commands received, in order
    """

    def __init__(
        self,
        macAddress: str = SIMULATED_MAC_ADDRESS,
        responses: Optional[Dict[str, str]] = None
    ) -> None:
        self.macAddress = macAddress
        self.responses = dict(SIMULATED_RESPONSES if responses is None else responses)
        self.history: List[str] = []

    def discover(self) -> str:
        device = f"{SIMULATED_DEVICE_NAME} ({self.macAddress})"
        logger.debug(f"Simulated adapter discovered | device={device}")
        return device

    def exchange(self, command: str) -> str:
        self.history.append(command)
        response = self.responses.get(command.strip().upper())
        if response is None:
            raise AdapterError(
                f"No simulated response for command {command}",
                details={'command': command}
            )
        return response


def runProtocolInit(adapter: DiagnosticAdapter) -> List[Tuple[str, str]]:
    """
    Run the adapter initialization commands.

    Returns:
        (command, response) pairs in the order they were sent

    Raises:
        AdapterError: If any command fails
    """
    return [(command, adapter.exchange(command)) for command in PROTOCOL_INIT_COMMANDS]
