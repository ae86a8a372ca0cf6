################################################################################
# File Name: error_handler.py
# Purpose/Description: Error classification, retry and reporting helpers
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
Error handling module.

Every failure in the scanner falls into one of five categories. The category
decides how it is treated:

    RETRYABLE       adapter timeouts, busy AI server -> try again with backoff
    AUTHENTICATION  rejected credentials on a remote service -> give up
    CONFIGURATION   bad or missing settings -> stop at startup
    DATA            malformed frame or payload -> log and skip
    SYSTEM          anything else -> log with traceback

Usage:
    from common.error_handler import RetryableError, retry, handleError

    @retry(maxRetries=2, initialDelay=0.5)
    def readCodes():
        ...

    try:
        readCodes()
    except Exception as e:
        handleError(e, context={'command': '03'}, reraise=False)
"""

import functools
import logging
import time
import traceback
from collections.abc import Callable
from enum import Enum
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


class ErrorCategory(Enum):
    """Categories of errors for classification."""
    RETRYABLE = 'retryable'
    AUTHENTICATION = 'auth'
    CONFIGURATION = 'config'
    DATA = 'data'
    SYSTEM = 'system'


# Substrings looked for in exception type names and messages (lowercase)
RETRYABLE_TYPE_TERMS = ('timeout', 'connection', 'network', 'urlerror')
RETRYABLE_MESSAGE_TERMS = ('rate limit', '429', '503', 'busy', 'unable to connect', 'no data')
AUTHENTICATION_MESSAGE_TERMS = ('401', '403', 'unauthorized', 'forbidden')
CONFIGURATION_MESSAGE_TERMS = ('config', 'missing', 'required')
DATA_TYPE_TERMS = ('valueerror', 'jsondecodeerror')
DATA_MESSAGE_TERMS = ('validation', 'invalid', 'parse', 'malformed')


# ================================================================================
# Exception Hierarchy
# ================================================================================

class BaseError(Exception):
    """
    Root of the project exceptions.

    Attributes:
        message: Human-readable description
        details: Extra fields for logs (command, url, field names, ...)
    """

    category: ErrorCategory = ErrorCategory.SYSTEM

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def toDict(self) -> dict[str, Any]:
        return {
            'type': self.__class__.__name__,
            'category': self.category.value,
            'message': self.message,
            'details': self.details
        }


class RetryableError(BaseError):
    category = ErrorCategory.RETRYABLE


class AuthenticationError(BaseError):
    category = ErrorCategory.AUTHENTICATION


class ConfigurationError(BaseError):
    category = ErrorCategory.CONFIGURATION


class DataError(BaseError):
    category = ErrorCategory.DATA


class SystemError(BaseError):
    category = ErrorCategory.SYSTEM


# ================================================================================
# Classification
# ================================================================================

def _contains(text: str, terms: tuple[str, ...]) -> bool:
    return any(term in text for term in terms)


def classifyError(error: Exception) -> ErrorCategory:
    """
    Decide the category of an exception.

    Project exceptions carry their category. Anything else is classified by
    its type name first, then by words in its message.

    Args:
        error: Exception to classify

    Returns:
        ErrorCategory for the error
    """
    if isinstance(error, BaseError):
        return error.category

    typeName = type(error).__name__.lower()
    message = str(error).lower()

    if _contains(typeName, RETRYABLE_TYPE_TERMS) or _contains(message, RETRYABLE_MESSAGE_TERMS):
        return ErrorCategory.RETRYABLE
    if _contains(message, AUTHENTICATION_MESSAGE_TERMS):
        return ErrorCategory.AUTHENTICATION
    if _contains(message, CONFIGURATION_MESSAGE_TERMS):
        return ErrorCategory.CONFIGURATION
    if _contains(typeName, DATA_TYPE_TERMS) or _contains(message, DATA_MESSAGE_TERMS):
        return ErrorCategory.DATA

    return ErrorCategory.SYSTEM


# ================================================================================
# Retry
# ================================================================================

def retry(
    maxRetries: int = 3,
    initialDelay: float = 1.0,
    backoffMultiplier: float = 2.0,
    retryableExceptions: list[type[Exception]] | None = None,
    sleep: Callable[[float], None] = time.sleep
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Retry a function on selected exceptions with exponential backoff.

    The wrapped function runs at most maxRetries + 1 times. Waits are
    initialDelay, initialDelay * backoffMultiplier, and so on. Exceptions not
    listed propagate on the first occurrence.

    Args:
        maxRetries: Retries after the first attempt
        initialDelay: First wait in seconds
        backoffMultiplier: Factor applied to the wait after each retry
        retryableExceptions: Exception types to retry (default: RetryableError)
        sleep: Wait function (tests pass a recorder)

    Returns:
        Decorator
    """
    retryOn = tuple(retryableExceptions or [RetryableError])

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            delay = initialDelay
            attempt = 0

            while True:
                try:
                    return func(*args, **kwargs)
                except retryOn as e:
                    if attempt >= maxRetries:
                        logger.error(f"Max retries ({maxRetries}) exceeded for {func.__name__} | error={e}")
                        raise

                    attempt += 1
                    logger.warning(
                        f"Retrying {func.__name__} | attempt={attempt}/{maxRetries} | "
                        f"delay={delay}s | error={e}"
                    )
                    sleep(delay)
                    delay *= backoffMultiplier

        return wrapper
    return decorator


# ================================================================================
# Reporting
# ================================================================================

def handleError(
    error: Exception,
    context: dict[str, Any] | None = None,
    reraise: bool = True
) -> dict[str, Any]:
    """
    Log an error at the level its category calls for.

    CONFIGURATION and SYSTEM errors log at ERROR (SYSTEM with traceback),
    DATA and RETRYABLE at WARNING, AUTHENTICATION at ERROR.

    Args:
        error: Exception that occurred
        context: Extra fields appended to the log line
        reraise: Raise the error again after logging

    Returns:
        Error details dictionary

    Raises:
        The original exception if reraise is True
    """
    category = classifyError(error)
    context = context or {}
    contextText = ''.join(f" | {key}={value}" for key, value in context.items())

    if category is ErrorCategory.SYSTEM:
        logger.error(f"Error: {error}{contextText}", exc_info=True)
    elif category in (ErrorCategory.DATA, ErrorCategory.RETRYABLE):
        logger.warning(f"{category.value.capitalize()} error: {error}{contextText}")
    else:
        logger.error(f"{category.value.capitalize()} error: {error}{contextText}")

    if reraise:
        raise error

    return {
        'type': type(error).__name__,
        'category': category.value,
        'message': str(error),
        'context': context,
        'traceback': traceback.format_exc()
    }


def formatError(error: Exception) -> str:
    """
    One-line rendering of an error, e.g. "[DATA] frame too short | details={...}".
    """
    prefix = f"[{classifyError(error).value.upper()}]"

    if isinstance(error, BaseError):
        details = f" | details={error.details}" if error.details else ""
        return f"{prefix} {error.message}{details}"

    return f"{prefix} {type(error).__name__}: {error}"
