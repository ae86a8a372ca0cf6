################################################################################
# File Name: explanation.py
# Purpose/Description: AI explanation client for diagnostic trouble codes
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
AI explanation client.

Asks a local ollama model to explain diagnostic trouble codes for a learner:

- explainCode(): structured explanation with bench test reference values,
  probable causes and repair steps
- getWorkshopTip(): one or two sentence hint about a specific part
- getVehicleVariants(): engine and fuel variants sold for a vehicle

The client never raises from its public methods. Every failure (service
disabled, server unreachable, unusable answer) becomes a fallback value and a
log line. Connection failures are retried with exponential backoff.

Usage:
    from ai.explanation import ExplanationClient

    client = ExplanationClient(config)
    result = client.explainCode('P0301')
    if result.success:
        print(result.explanation)
    else:
        print(f"No explanation: {result.errorMessage}")
"""

import json
import logging
import re
import time
import urllib.error
import urllib.request
from typing import Any, Callable, Dict, List, Optional

from common.error_handler import retry

from .exceptions import (
    ExplanationConnectionError,
    ExplanationError,
    ExplanationGenerationError,
    ExplanationNotAvailableError,
)
from .types import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_DELAY_SECONDS,
    EXPLANATION_REQUIRED_FIELDS,
    FALLBACK_ENGINES,
    FALLBACK_FUELS,
    FALLBACK_WORKSHOP_TIP,
    OLLAMA_DEFAULT_BASE_URL,
    OLLAMA_DEFAULT_MODEL,
    OLLAMA_GENERATE_TIMEOUT,
    RETRYABLE_HTTP_CODES,
    ExplanationResult,
    ProbableCause,
    TechnicalSpecs,
    VehicleVariants,
)

logger = logging.getLogger(__name__)

# Models sometimes wrap JSON answers in markdown code fences
CODE_FENCE_PATTERN = re.compile(r'^\s*```(?:json)?\s*(.*?)\s*```\s*$', re.DOTALL)


# =============================================================================
# Prompts
# =============================================================================

EXPLANATION_PROMPT = """You are a senior master mechanic teaching an apprentice.
Explain the OBD-II trouble code {code}.{vehicleContext}
Besides the basic explanation, give technical reference values (voltages,
resistances, pressures) for testing with a multimeter or other tools, and a
step by step procedure to confirm the part is really faulty.

Answer with a single JSON object with these fields:
- "code": the trouble code
- "explanation": plain language explanation
- "technicalSpecs": {{"tool": recommended tool, "referenceValue": expected
  reading when the part is good, "procedure": where to place the probes}}
- "causes": list of {{"part": part name, "probability": 0-100, "reason": why}}
- "repairSteps": list of short steps
"""

WORKSHOP_TIP_PROMPT = """The car shows trouble code {code}. The apprentice selected the part "{partName}".
Give a short, direct master's tip (at most 2 sentences) on how to inspect this
part or why it may be the culprit. Use workshop language, but stay professional.
"""

VEHICLE_VARIANTS_PROMPT = """You are an automotive technical search agent.
For make {make}, model {model}, year {year}, list the engine variants and fuel
types that were actually sold for this car. Answer with a single JSON object:
{{"engines": ["1.0 8v", "2.0 Turbo", ...], "fuels": ["Flex", "Gasoline", ...]}}
"""


class ExplanationClient:
    """
    Client for the ollama generate API.

    Attributes:
        isEnabled: Whether the service is enabled in configuration
        model: Model name sent with each request
        baseUrl: Model server base URL
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Initialize the client.

        Args:
            config: Configuration dictionary with aiExplanation section
            sleep: Sleep function used between retries (replaceable in tests)
        """
        aiConfig = (config or {}).get('aiExplanation', {})
        self._enabled = bool(aiConfig.get('enabled', False))
        self._model = aiConfig.get('model', OLLAMA_DEFAULT_MODEL)
        self._baseUrl = str(aiConfig.get('baseUrl', OLLAMA_DEFAULT_BASE_URL)).rstrip('/')
        self._timeout = aiConfig.get('timeoutSeconds', OLLAMA_GENERATE_TIMEOUT)

        self._generate = retry(
            maxRetries=aiConfig.get('maxRetries', DEFAULT_MAX_RETRIES),
            initialDelay=aiConfig.get('retryDelaySeconds', DEFAULT_RETRY_DELAY_SECONDS),
            retryableExceptions=[ExplanationConnectionError],
            sleep=sleep
        )(self._callOllama)

        if self._enabled:
            logger.info(f"Explanation client initialized | model={self._model} | url={self._baseUrl}")
        else:
            logger.info("Explanation client disabled in configuration")

    @property
    def isEnabled(self) -> bool:
        return self._enabled

    @property
    def model(self) -> str:
        return self._model

    @property
    def baseUrl(self) -> str:
        return self._baseUrl

    # =========================================================================
    # Public Operations
    # =========================================================================

    def explainCode(self, code: str, vehicle: Optional[Any] = None) -> ExplanationResult:
        """
        Explain a diagnostic trouble code.

        Args:
            code: Trouble code, e.g. 'P0301'
            vehicle: Optional vehicle (anything with describe(), or a string)

        Returns:
            ExplanationResult; success is False and errorMessage set on failure
        """
        code = code.strip().upper()
        result = ExplanationResult(code=code)
        startTime = time.perf_counter()

        try:
            self._ensureEnabled()
            prompt = EXPLANATION_PROMPT.format(
                code=code,
                vehicleContext=_vehicleContext(vehicle)
            )
            text = self._generate(prompt, jsonFormat=True)
            payload = _parseJsonObject(text)
            _populateExplanation(result, payload)
            result.success = True
            result.responseTimeMs = (time.perf_counter() - startTime) * 1000

            logger.info(
                f"Code explained | code={code} | causes={len(result.causes)} | "
                f"time={result.responseTimeMs:.1f}ms"
            )

        except ExplanationNotAvailableError as e:
            result.errorMessage = e.message
            logger.debug(f"Explanation skipped | code={code} | reason={e.message}")

        except ExplanationError as e:
            result.errorMessage = e.message
            logger.error(f"Explanation failed | code={code} | error={e.message}")

        return result

    def getWorkshopTip(self, code: str, partName: str) -> str:
        """
        Get a short inspection tip for a part suspected of causing a code.

        Args:
            code: Trouble code being investigated
            partName: Part the learner selected

        Returns:
            The tip, or a generic inspection tip when the service cannot answer
        """
        try:
            self._ensureEnabled()
            text = self._generate(
                WORKSHOP_TIP_PROMPT.format(code=code.strip().upper(), partName=partName)
            ).strip()
            if not text:
                raise ExplanationGenerationError("Empty workshop tip")
            return text

        except ExplanationError as e:
            logger.warning(f"Workshop tip unavailable | code={code} | part={partName} | error={e.message}")
            return FALLBACK_WORKSHOP_TIP

    def getVehicleVariants(self, make: str, model: str, year: str) -> VehicleVariants:
        """
        Look up the engine and fuel variants sold for a vehicle.

        Args:
            make: Vehicle make
            model: Vehicle model
            year: Model year

        Returns:
            VehicleVariants; a generic list with fromService False on failure
        """
        try:
            self._ensureEnabled()
            text = self._generate(
                VEHICLE_VARIANTS_PROMPT.format(make=make, model=model, year=year),
                jsonFormat=True
            )
            payload = _parseJsonObject(text)
            engines = _stringList(payload.get('engines'))
            fuels = _stringList(payload.get('fuels'))
            if not engines or not fuels:
                raise ExplanationGenerationError(
                    "Vehicle variants missing engines or fuels",
                    details={'payload': payload}
                )
            return VehicleVariants(engines=engines, fuels=fuels, fromService=True)

        except ExplanationError as e:
            logger.warning(f"Vehicle variants unavailable | vehicle={make} {model} {year} | error={e.message}")
            return VehicleVariants(engines=list(FALLBACK_ENGINES), fuels=list(FALLBACK_FUELS))

    # =========================================================================
    # Ollama Integration
    # =========================================================================

    def _ensureEnabled(self) -> None:
        if not self._enabled:
            raise ExplanationNotAvailableError("AI explanation is disabled")

    def _callOllama(self, prompt: str, jsonFormat: bool = False) -> str:
        """
        Call the ollama generate API.

        Args:
            prompt: The prompt to send to the model
            jsonFormat: Ask the server to constrain output to JSON

        Returns:
            Generated response text

        Raises:
            ExplanationConnectionError: If the server is unreachable or busy
            ExplanationGenerationError: If the answer is unusable
        """
        url = f"{self._baseUrl}/api/generate"
        body: Dict[str, Any] = {
            'model': self._model,
            'prompt': prompt,
            'stream': False,
        }
        if jsonFormat:
            body['format'] = 'json'

        request = urllib.request.Request(
            url,
            data=json.dumps(body).encode('utf-8'),
            headers={'Content-Type': 'application/json'},
            method='POST'
        )

        logger.debug(f"Calling ollama API | model={self._model} | json={jsonFormat}")

        try:
            with urllib.request.urlopen(request, timeout=self._timeout) as response:
                data = json.loads(response.read().decode('utf-8'))

        except urllib.error.HTTPError as e:
            if e.code in RETRYABLE_HTTP_CODES:
                raise ExplanationConnectionError(
                    f"Ollama API busy: HTTP {e.code}",
                    details={'url': url, 'code': e.code}
                )
            raise ExplanationGenerationError(
                f"Ollama API error: HTTP {e.code}",
                details={'url': url, 'code': e.code}
            )
        except urllib.error.URLError as e:
            raise ExplanationConnectionError(
                f"Failed to connect to ollama: {e.reason}",
                details={'url': url, 'error': str(e)}
            )
        except (TimeoutError, ConnectionError) as e:
            raise ExplanationConnectionError(
                f"Ollama request failed: {e}",
                details={'url': url, 'error': str(e)}
            )
        except json.JSONDecodeError as e:
            raise ExplanationGenerationError(
                f"Invalid JSON response from ollama: {e}",
                details={'error': str(e)}
            )

        generatedText = data.get('response', '') if isinstance(data, dict) else ''
        if not generatedText:
            raise ExplanationGenerationError(
                "Empty response from ollama",
                details={'response': data}
            )

        logger.debug(f"Ollama response received | length={len(generatedText)} chars")
        return generatedText


# =============================================================================
# Response Parsing
# =============================================================================

def _vehicleContext(vehicle: Optional[Any]) -> str:
    if vehicle is None:
        return ""
    description = vehicle.describe() if hasattr(vehicle, 'describe') else str(vehicle)
    return f"\nThe vehicle is a {description}."


def _parseJsonObject(text: str) -> Dict[str, Any]:
    """
    Parse a model answer that should hold one JSON object.

    Raises:
        ExplanationGenerationError: If the text is not a JSON object
    """
    match = CODE_FENCE_PATTERN.match(text)
    if match:
        text = match.group(1)

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise ExplanationGenerationError(
            f"Model answer is not valid JSON: {e.msg}",
            details={'text': text[:200]}
        )

    if not isinstance(payload, dict):
        raise ExplanationGenerationError(
            "Model answer is not a JSON object",
            details={'type': type(payload).__name__}
        )
    return payload


def _populateExplanation(result: ExplanationResult, payload: Dict[str, Any]) -> None:
    missing = [name for name in EXPLANATION_REQUIRED_FIELDS if name not in payload]
    if missing:
        raise ExplanationGenerationError(
            f"Explanation missing fields: {', '.join(missing)}",
            details={'missingFields': missing}
        )

    specs = payload.get('technicalSpecs') or {}
    if not isinstance(specs, dict):
        specs = {}

    causes = []
    for item in payload.get('causes') or []:
        if isinstance(item, dict) and item.get('part'):
            causes.append(ProbableCause(
                part=str(item['part']),
                probability=_toFloat(item.get('probability')),
                reason=str(item.get('reason', '')),
            ))
    causes.sort(key=lambda cause: cause.probability, reverse=True)

    result.code = str(payload.get('code') or result.code).strip().upper()
    result.explanation = str(payload.get('explanation', '')).strip()
    result.technicalSpecs = TechnicalSpecs(
        tool=str(specs.get('tool', '')),
        referenceValue=str(specs.get('referenceValue', '')),
        procedure=str(specs.get('procedure', '')),
    )
    result.causes = causes
    result.repairSteps = _stringList(payload.get('repairSteps'))


def _stringList(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if str(item).strip()]


def _toFloat(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0
