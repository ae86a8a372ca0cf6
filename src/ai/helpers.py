################################################################################
# File Name: helpers.py
# Purpose/Description: Factory and config helpers for the AI explanation client
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
Helper functions for the AI explanation subpackage.

Usage:
    from ai.helpers import createExplanationClientFromConfig

    client = createExplanationClientFromConfig(config)
"""

import logging
from typing import Any, Dict

from .types import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_DELAY_SECONDS,
    OLLAMA_DEFAULT_BASE_URL,
    OLLAMA_DEFAULT_MODEL,
    OLLAMA_GENERATE_TIMEOUT,
)

logger = logging.getLogger(__name__)


def createExplanationClientFromConfig(config: Dict[str, Any]) -> 'ExplanationClient':  # type: ignore
    """
    Create an ExplanationClient from configuration.

    Args:
        config: Configuration dictionary with aiExplanation section

    Returns:
        Configured ExplanationClient instance
    """
    from .explanation import ExplanationClient
    return ExplanationClient(config=config)


def isAiExplanationEnabled(config: Dict[str, Any]) -> bool:
    """
    Check if AI explanation is enabled in config.

    Args:
        config: Configuration dictionary

    Returns:
        True if enabled
    """
    return bool(config.get('aiExplanation', {}).get('enabled', False))


def getAiExplanationConfig(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Get AI explanation configuration with defaults applied.

    Args:
        config: Configuration dictionary

    Returns:
        aiExplanation section with every key present
    """
    aiConfig = config.get('aiExplanation', {})
    return {
        'enabled': aiConfig.get('enabled', False),
        'model': aiConfig.get('model', OLLAMA_DEFAULT_MODEL),
        'baseUrl': aiConfig.get('baseUrl', OLLAMA_DEFAULT_BASE_URL),
        'timeoutSeconds': aiConfig.get('timeoutSeconds', OLLAMA_GENERATE_TIMEOUT),
        'maxRetries': aiConfig.get('maxRetries', DEFAULT_MAX_RETRIES),
        'retryDelaySeconds': aiConfig.get('retryDelaySeconds', DEFAULT_RETRY_DELAY_SECONDS),
    }
