################################################################################
# File Name: __init__.py
# Purpose/Description: AI subpackage for diagnostic trouble code explanations
# Author: Michael Cornelison
# Creation Date: 2026-10-19
# Copyright: (c) 2026 OBD-II Session Engine Project. All rights reserved.
#
# Modification History:
# ================================================================================
# Date          | Author       | Description
# ================================================================================
# 2026-10-19    | M. Cornelison | Initial subpackage creation
# ================================================================================
################################################################################
"""
AI Subpackage.

Explains diagnostic trouble codes through a local ollama model:
- ExplanationClient for code explanations, workshop tips and vehicle variants
- Result dataclasses (ExplanationResult, TechnicalSpecs, ProbableCause,
  VehicleVariants)
- Exceptions used internally by the client
- Factory functions for config-driven creation

Usage:
    from ai import ExplanationClient, createExplanationClientFromConfig

    client = createExplanationClientFromConfig(config)
    result = client.explainCode('P0301')
"""

from .exceptions import (
    ExplanationConnectionError,
    ExplanationError,
    ExplanationGenerationError,
    ExplanationNotAvailableError,
)
from .explanation import ExplanationClient
from .helpers import (
    createExplanationClientFromConfig,
    getAiExplanationConfig,
    isAiExplanationEnabled,
)
from .types import (
    FALLBACK_WORKSHOP_TIP,
    OLLAMA_DEFAULT_BASE_URL,
    OLLAMA_DEFAULT_MODEL,
    ExplanationResult,
    ProbableCause,
    TechnicalSpecs,
    VehicleVariants,
)

__all__ = [
    # Classes
    'ExplanationClient',

    # Dataclasses
    'ExplanationResult',
    'ProbableCause',
    'TechnicalSpecs',
    'VehicleVariants',

    # Exceptions
    'ExplanationError',
    'ExplanationConnectionError',
    'ExplanationGenerationError',
    'ExplanationNotAvailableError',

    # Factory functions
    'createExplanationClientFromConfig',
    'getAiExplanationConfig',
    'isAiExplanationEnabled',

    # Constants
    'FALLBACK_WORKSHOP_TIP',
    'OLLAMA_DEFAULT_BASE_URL',
    'OLLAMA_DEFAULT_MODEL',
]
