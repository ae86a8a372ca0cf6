################################################################################
# File Name: __init__.py
# Purpose/Description: Common utilities package initialization
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
Common utilities package.

Shared functionality used by the scanner engine and the AI client:
- Configuration validation and loading
- Secrets management
- Logging configuration
- Error handling
"""

from .config_validator import ConfigValidationError, ConfigValidator
from .error_handler import ConfigurationError, DataError, RetryableError, handleError, retry
from .logging_config import getLogger, setupLogging, setupLoggingFromConfig
from .secrets_loader import loadConfigWithSecrets

__all__ = [
    'ConfigValidator',
    'ConfigValidationError',
    'loadConfigWithSecrets',
    'getLogger',
    'setupLogging',
    'setupLoggingFromConfig',
    'RetryableError',
    'ConfigurationError',
    'DataError',
    'handleError',
    'retry',
]
