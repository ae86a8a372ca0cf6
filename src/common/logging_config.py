################################################################################
# File Name: logging_config.py
# Purpose/Description: Structured logging configuration for the scanner engine
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
Logging configuration module.

Provides structured logging with:
- Configurable log levels
- Console and optional file output
- Masking of personal data and vehicle identifiers (e-mail, phone, VIN)
- A consistent `key=value | key=value` message style

Usage:
    from common.logging_config import setupLogging, getLogger

    setupLogging(level='INFO')
    logger = getLogger(__name__)
    logger.info("Session started | sessionId=abc123")
"""

import logging
import re
import sys
from pathlib import Path
from typing import Any, Dict, Optional

DEFAULT_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s | %(message)s'
DEFAULT_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Patterns masked before a record is emitted
MASK_PATTERNS = {
    'email': re.compile(r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b'),
    'phone': re.compile(r'\b\d{3}[-.]?\d{3}[-.]?\d{4}\b'),
    # ISO 3779 VIN: 17 characters, letters I, O and Q never used
    'vin': re.compile(r'\b[A-HJ-NPR-Z0-9]{17}\b'),
}


class SensitiveDataFilter(logging.Filter):
    """
    Logging filter that masks e-mail addresses, phone numbers and VINs.

    The record is always allowed through; only its message text is rewritten.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = maskSensitiveData(record.msg)
        return True


def maskSensitiveData(message: str) -> str:
    """
    Replace every sensitive match in a message with a placeholder.

    Args:
        message: Raw log message

    Returns:
        Message with matches replaced by [EMAIL_MASKED], [VIN_MASKED], ...
    """
    for name, pattern in MASK_PATTERNS.items():
        message = pattern.sub(f'[{name.upper()}_MASKED]', message)
    return message


class StructuredFormatter(logging.Formatter):
    """Formatter that appends the `extra` dict attached by LogContext."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)

        extra = getattr(record, 'extra', None)
        if extra and isinstance(extra, dict):
            message += ' | ' + ' '.join(f'{k}={v}' for k, v in extra.items())

        return message


def setupLogging(
    level: str = 'INFO',
    logFormat: Optional[str] = None,
    logFile: Optional[str] = None,
    enableMasking: bool = True
) -> logging.Logger:
    """
    Configure application logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        logFormat: Custom format string
        logFile: Optional file path for log output
        enableMasking: Whether to mask e-mail, phone and VIN values

    Returns:
        Root logger instance
    """
    rootLogger = logging.getLogger()
    rootLogger.setLevel(getattr(logging, level.upper(), logging.INFO))
    rootLogger.handlers.clear()

    formatter = StructuredFormatter(
        fmt=logFormat or DEFAULT_FORMAT,
        datefmt=DEFAULT_DATE_FORMAT
    )

    consoleHandler = logging.StreamHandler(sys.stdout)
    consoleHandler.setFormatter(formatter)
    if enableMasking:
        consoleHandler.addFilter(SensitiveDataFilter())
    rootLogger.addHandler(consoleHandler)

    if logFile:
        logPath = Path(logFile)
        logPath.parent.mkdir(parents=True, exist_ok=True)

        fileHandler = logging.FileHandler(logFile, encoding='utf-8')
        fileHandler.setFormatter(formatter)
        if enableMasking:
            fileHandler.addFilter(SensitiveDataFilter())
        rootLogger.addHandler(fileHandler)

    rootLogger.info(f"Logging configured | level={level}")

    return rootLogger


def setupLoggingFromConfig(
    config: Dict[str, Any],
    verbose: bool = False
) -> logging.Logger:
    """
    Configure logging from the 'logging' section of the configuration.

    Args:
        config: Validated configuration dictionary
        verbose: Force DEBUG level regardless of configuration

    Returns:
        Root logger instance
    """
    loggingConfig = config.get('logging', {})
    level = 'DEBUG' if verbose else loggingConfig.get('level', 'INFO')

    return setupLogging(
        level=level,
        logFormat=loggingConfig.get('format'),
        logFile=loggingConfig.get('file'),
        enableMasking=loggingConfig.get('maskSensitiveData', True)
    )


def getLogger(name: str) -> logging.Logger:
    """Get a logger instance for a module."""
    return logging.getLogger(name)


class LogContext:
    """
    Context manager attaching fields to every record created inside it.

    Usage:
        with LogContext(sessionId='abc123'):
            logger.info("Handshake step complete")  # Includes sessionId
    """

    def __init__(self, **context: Any):
        self.context = context
        self._oldFactory = None

    def __enter__(self) -> 'LogContext':
        self._oldFactory = logging.getLogRecordFactory()

        context = self.context
        oldFactory = self._oldFactory

        def recordFactory(*args: Any, **kwargs: Any) -> logging.LogRecord:
            record = oldFactory(*args, **kwargs)
            record.extra = context
            return record

        logging.setLogRecordFactory(recordFactory)
        return self

    def __exit__(self, *args: Any) -> None:
        if self._oldFactory:
            logging.setLogRecordFactory(self._oldFactory)
