################################################################################
# File Name: config.py
# Purpose/Description: Scanner configuration loader with validation
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
Scanner configuration loader.

Loads the JSON configuration, resolves ${VAR} placeholders from the
environment (and an optional .env file), checks required fields, applies
defaults and validates the scanner, aiExplanation and vehicle sections.

Usage:
    from scanner.config import loadScannerConfig, ScannerConfigError

    try:
        config = loadScannerConfig('src/config.json', '.env')
    except ScannerConfigError as e:
        print(f"Configuration error: {e}")
        sys.exit(1)
"""

import json
import logging
from typing import Any, Dict, List, Optional

from common.config_validator import ConfigValidationError, ConfigValidator, getNestedValue
from common.secrets_loader import loadConfigWithSecrets

from .adapter import SIMULATED_MAC_ADDRESS
from .exceptions import ScannerConfigError
from .vehicle import validateVehicleYear

logger = logging.getLogger(__name__)

# Required configuration fields
SCANNER_REQUIRED_FIELDS: List[str] = [
    'application.name',
]

# Default values for optional settings
SCANNER_DEFAULTS: Dict[str, Any] = {
    # Application
    'application.name': 'OBD-II Session Engine',
    'application.version': '1.0.0',

    # Logging
    'logging.level': 'INFO',
    'logging.format': '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
    'logging.maskSensitiveData': True,

    # Scanner
    'scanner.adapterMacAddress': SIMULATED_MAC_ADDRESS,
    'scanner.pairingDelaySeconds': 2.0,
    'scanner.protocolInitDelaySeconds': 1.0,
    'scanner.ecuSyncDelaySeconds': 1.0,
    'scanner.samplingIntervalSeconds': 2.0,
    'scanner.trafficLogCapacity': 10,
    'scanner.engineRunning': False,

    # AI explanation
    'aiExplanation.enabled': False,
    'aiExplanation.model': 'gemma2:2b',
    'aiExplanation.baseUrl': 'http://localhost:11434',
    'aiExplanation.timeoutSeconds': 60,
    'aiExplanation.maxRetries': 2,
    'aiExplanation.retryDelaySeconds': 1.0,
}

NON_NEGATIVE_NUMBER_FIELDS: List[str] = [
    'scanner.pairingDelaySeconds',
    'scanner.protocolInitDelaySeconds',
    'scanner.ecuSyncDelaySeconds',
    'aiExplanation.retryDelaySeconds',
]

POSITIVE_NUMBER_FIELDS: List[str] = [
    'scanner.samplingIntervalSeconds',
    'aiExplanation.timeoutSeconds',
]

BOOLEAN_FIELDS: List[str] = [
    'scanner.engineRunning',
    'aiExplanation.enabled',
    'logging.maskSensitiveData',
]

VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


def loadScannerConfig(
    configPath: str,
    envFilePath: Optional[str] = None
) -> Dict[str, Any]:
    """
    Load and validate scanner configuration from file.

    Args:
        configPath: Path to the configuration JSON file
        envFilePath: Optional path to .env file for placeholder values

    Returns:
        Validated configuration dictionary with defaults applied

    Raises:
        ScannerConfigError: If the file cannot be loaded or validation fails
    """
    logger.info(f"Loading scanner configuration from: {configPath}")

    try:
        config = loadConfigWithSecrets(configPath, envFilePath)
    except FileNotFoundError as e:
        raise ScannerConfigError(str(e), missingFields=['configFile'])
    except json.JSONDecodeError as e:
        raise ScannerConfigError(
            f"Invalid JSON in configuration file: {configPath}\n"
            f"Parse error: {e.msg} at line {e.lineno}, column {e.colno}",
            invalidFields=['configFile']
        )

    config = validateScannerConfig(config)

    logger.info("Scanner configuration loaded and validated successfully")
    return config


def validateScannerConfig(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate a configuration dictionary and apply defaults.

    Args:
        config: Raw configuration dictionary (not modified)

    Returns:
        Validated configuration with defaults applied

    Raises:
        ScannerConfigError: If validation fails
    """
    validator = ConfigValidator(
        requiredKeys=SCANNER_REQUIRED_FIELDS,
        defaults=SCANNER_DEFAULTS
    )

    try:
        config = validator.validate(config)
    except ConfigValidationError as e:
        raise ScannerConfigError(
            f"Configuration validation failed: {e}",
            missingFields=e.missingFields
        )

    invalidFields: List[str] = []
    _validateNumbers(config, invalidFields)
    _validateTypes(validator, config, invalidFields)
    _validateVehicle(config, invalidFields)

    if invalidFields:
        raise ScannerConfigError(
            f"Invalid configuration values: {', '.join(invalidFields)}",
            invalidFields=invalidFields
        )

    return config


def _isNumber(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _validateNumbers(config: Dict[str, Any], invalidFields: List[str]) -> None:
    for key in NON_NEGATIVE_NUMBER_FIELDS:
        value = getNestedValue(config, key)
        if not _isNumber(value) or value < 0:
            invalidFields.append(key)

    for key in POSITIVE_NUMBER_FIELDS:
        value = getNestedValue(config, key)
        if not _isNumber(value) or value <= 0:
            invalidFields.append(key)

    capacity = getNestedValue(config, 'scanner.trafficLogCapacity')
    if not isinstance(capacity, int) or isinstance(capacity, bool) or capacity < 1:
        invalidFields.append('scanner.trafficLogCapacity')

    maxRetries = getNestedValue(config, 'aiExplanation.maxRetries')
    if not isinstance(maxRetries, int) or isinstance(maxRetries, bool) or maxRetries < 0:
        invalidFields.append('aiExplanation.maxRetries')


def _validateTypes(
    validator: ConfigValidator,
    config: Dict[str, Any],
    invalidFields: List[str]
) -> None:
    for key in BOOLEAN_FIELDS:
        if not validator.validateField(config, key, bool):
            invalidFields.append(key)

    level = getNestedValue(config, 'logging.level')
    if not isinstance(level, str) or level.upper() not in VALID_LOG_LEVELS:
        invalidFields.append('logging.level')


def _validateVehicle(config: Dict[str, Any], invalidFields: List[str]) -> None:
    """Validate the optional vehicle section."""
    vehicle = config.get('vehicle')
    if not vehicle:
        return

    if not isinstance(vehicle, dict):
        invalidFields.append('vehicle')
        return

    if vehicle.get('make'):
        if not vehicle.get('model'):
            invalidFields.append('vehicle.model')
        if not validateVehicleYear(str(vehicle.get('year', ''))):
            invalidFields.append('vehicle.year')
