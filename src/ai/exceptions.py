################################################################################
# File Name: exceptions.py
# Purpose/Description: Exception definitions for the AI explanation client
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
Exception definitions for the AI explanation subpackage.

All exceptions follow a consistent pattern with message and details dict
attributes. None of them leave the subpackage's public methods: the client
converts them into fallback results.

Usage:
    from ai.exceptions import ExplanationError, ExplanationConnectionError

    try:
        text = client._generate(prompt)
    except ExplanationError as e:
        print(f"Explanation failed: {e.message}")
        print(f"Details: {e.details}")
"""

from typing import Any, Dict, Optional


class ExplanationError(Exception):
    """
    Base exception for explanation client errors.

    Attributes:
        message: Error message
        details: Additional context as a dictionary
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ExplanationNotAvailableError(ExplanationError):
    """Raised when the explanation service is disabled in configuration."""
    pass


class ExplanationConnectionError(ExplanationError):
    """
    Raised when the model server cannot be reached.

    Covers refused connections, timeouts and HTTP 429/5xx answers. These are
    the only failures the client retries.
    """
    pass


class ExplanationGenerationError(ExplanationError):
    """
    Raised when the model answers but the answer is unusable.

    This can occur when:
    - The response body is not JSON
    - The generated text is empty
    - A structured answer is missing required fields
    """
    pass
