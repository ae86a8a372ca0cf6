################################################################################
# File Name: exceptions.py
# Purpose/Description: Scanner engine exception classes
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
Exception definitions for the scanner engine.

All exceptions follow the message + details dict pattern of
common.error_handler.BaseError so they classify and format consistently.

Usage:
    from scanner.exceptions import AdapterError

    try:
        response = adapter.exchange('ATZ')
    except AdapterError as e:
        print(f"Adapter failed: {e.message} | {e.details}")
"""

from typing import List, Optional

from common.error_handler import BaseError, ConfigurationError, ErrorCategory, RetryableError


class ScannerError(BaseError):
    """Base exception for scanner engine errors."""
    category = ErrorCategory.SYSTEM


class AdapterError(RetryableError):
    """
    Raised by an adapter when a handshake exchange fails.

    Examples: adapter not found, no response, protocol mismatch. The
    lifecycle controller maps this onto SessionState.ERROR.
    """
    pass


class InvalidTransitionError(ScannerError):
    """
    Raised when the lifecycle controller is asked for a transition the
    state machine does not allow. Indicates a programming error.
    """
    pass


class InvalidVehicleError(ScannerError):
    """Raised when a vehicle identity fails validation."""
    category = ErrorCategory.DATA


class ScannerConfigError(ConfigurationError):
    """
    Raised when scanner configuration loading or validation fails.

    Attributes:
        missingFields: Required field paths that are missing
        invalidFields: Field paths with invalid values
    """

    def __init__(
        self,
        message: str,
        missingFields: Optional[List[str]] = None,
        invalidFields: Optional[List[str]] = None
    ):
        super().__init__(
            message,
            details={
                'missingFields': missingFields or [],
                'invalidFields': invalidFields or [],
            }
        )
        self.missingFields = missingFields or []
        self.invalidFields = invalidFields or []
