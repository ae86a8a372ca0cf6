################################################################################
# File Name: types.py
# Purpose/Description: Constants and result types for the AI explanation client
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
Types for the AI explanation subpackage.

Contains:
- Service constants (model server URL, model, timeouts)
- Fallback texts returned when the service cannot answer
- TechnicalSpecs, ProbableCause, ExplanationResult, VehicleVariants dataclasses

All types depend only on the standard library.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


# =============================================================================
# Constants
# =============================================================================

OLLAMA_DEFAULT_BASE_URL = "http://localhost:11434"
OLLAMA_DEFAULT_MODEL = "gemma2:2b"
OLLAMA_GENERATE_TIMEOUT = 60  # seconds
DEFAULT_MAX_RETRIES = 2
DEFAULT_RETRY_DELAY_SECONDS = 1.0

# HTTP status codes worth retrying
RETRYABLE_HTTP_CODES = (429, 500, 502, 503, 504)

FALLBACK_WORKSHOP_TIP = (
    "Check the connections and the physical condition of the part for visible damage."
)
FALLBACK_ENGINES = ['1.0', '1.6', '2.0']
FALLBACK_FUELS = ['Flex', 'Gasoline', 'Diesel', 'CNG', 'Ethanol']

EXPLANATION_REQUIRED_FIELDS = ('code', 'explanation', 'technicalSpecs', 'causes', 'repairSteps')


# =============================================================================
# Dataclasses
# =============================================================================

@dataclass
class TechnicalSpecs:
    """
    Bench test reference for the suspect part.

    Attributes:
        tool: Recommended tool (e.g. multimeter)
        referenceValue: Expected reading when the part is good
        procedure: Where to place the probes
    """

    tool: str = ""
    referenceValue: str = ""
    procedure: str = ""

    def toDict(self) -> Dict[str, Any]:
        return {
            'tool': self.tool,
            'referenceValue': self.referenceValue,
            'procedure': self.procedure,
        }


@dataclass
class ProbableCause:
    """A candidate part with its estimated probability (0-100)."""

    part: str
    probability: float = 0.0
    reason: str = ""

    def toDict(self) -> Dict[str, Any]:
        return {
            'part': self.part,
            'probability': self.probability,
            'reason': self.reason,
        }


@dataclass
class ExplanationResult:
    """
    Result of explaining a diagnostic trouble code.

    Attributes:
        code: The DTC that was explained
        success: Whether the model produced a usable answer
        explanation: Plain language explanation
        technicalSpecs: Bench test reference
        causes: Probable causes, most likely first
        repairSteps: Ordered steps to confirm and repair
        errorMessage: Failure description when success is False
        responseTimeMs: Round trip time of the successful request
        timestamp: When the result was produced
    """

    code: str
    success: bool = False
    explanation: str = ""
    technicalSpecs: TechnicalSpecs = field(default_factory=TechnicalSpecs)
    causes: List[ProbableCause] = field(default_factory=list)
    repairSteps: List[str] = field(default_factory=list)
    errorMessage: Optional[str] = None
    responseTimeMs: float = 0.0
    timestamp: datetime = field(default_factory=datetime.now)

    def toDict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            'code': self.code,
            'success': self.success,
            'explanation': self.explanation,
            'technicalSpecs': self.technicalSpecs.toDict(),
            'causes': [cause.toDict() for cause in self.causes],
            'repairSteps': list(self.repairSteps),
            'errorMessage': self.errorMessage,
            'responseTimeMs': self.responseTimeMs,
            'timestamp': self.timestamp.isoformat(),
        }


@dataclass
class VehicleVariants:
    """Engine and fuel variants sold for a make/model/year."""

    engines: List[str] = field(default_factory=list)
    fuels: List[str] = field(default_factory=list)
    fromService: bool = False

    def toDict(self) -> Dict[str, Any]:
        return {
            'engines': list(self.engines),
            'fuels': list(self.fuels),
            'fromService': self.fromService,
        }
