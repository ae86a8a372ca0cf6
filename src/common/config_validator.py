################################################################################
# File Name: config_validator.py
# Purpose/Description: Configuration validation with required fields and defaults
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
Configuration validation module.

Provides validation of configuration dictionaries with:
- Required field checking (dot notation, e.g. 'scanner.samplingIntervalSeconds')
- Default value application
- Type checks for individual fields

Usage:
    from common.config_validator import ConfigValidator

    validator = ConfigValidator(requiredKeys=['application.name'])
    config = validator.validate(rawConfig)
"""

from typing import Any, Dict, List, Optional
import copy
import logging

logger = logging.getLogger(__name__)


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    def __init__(self, message: str, missingFields: Optional[List[str]] = None):
        super().__init__(message)
        self.missingFields = missingFields or []


REQUIRED_KEYS: List[str] = [
    'application.name',
]

DEFAULTS: Dict[str, Any] = {
    'application.name': 'OBD-II Session Engine',
    'application.version': '1.0.0',
    'logging.level': 'INFO',
    'logging.maskSensitiveData': True,
}


class ConfigValidator:
    """
    Validates configuration dictionaries.

    Attributes:
        requiredKeys: List of required configuration keys (dot notation)
        defaults: Dictionary of default values for optional fields
    """

    def __init__(
        self,
        requiredKeys: Optional[List[str]] = None,
        defaults: Optional[Dict[str, Any]] = None
    ):
        self.requiredKeys = REQUIRED_KEYS if requiredKeys is None else requiredKeys
        self.defaults = DEFAULTS if defaults is None else defaults

    def validate(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Check required fields and apply defaults.

        Args:
            config: Raw configuration dictionary (not modified)

        Returns:
            New configuration dictionary with defaults applied

        Raises:
            ConfigValidationError: If required fields are missing
        """
        missingFields = self._validateRequired(config)
        if missingFields:
            fieldList = ', '.join(missingFields)
            raise ConfigValidationError(
                f"Missing required configuration fields: {fieldList}",
                missingFields=missingFields
            )

        config = self._applyDefaults(copy.deepcopy(config))

        logger.info("Configuration validated successfully")
        return config

    def _validateRequired(self, config: Dict[str, Any]) -> List[str]:
        return [key for key in self.requiredKeys if getNestedValue(config, key) is None]

    def _applyDefaults(self, config: Dict[str, Any]) -> Dict[str, Any]:
        for key, defaultValue in self.defaults.items():
            if getNestedValue(config, key) is None:
                setNestedValue(config, key, copy.deepcopy(defaultValue))
                logger.debug(f"Applied default for {key}: {defaultValue}")

        return config

    def validateField(
        self,
        config: Dict[str, Any],
        key: str,
        expectedType: type,
        allowNone: bool = False
    ) -> bool:
        """
        Validate a specific field's type.

        Args:
            config: Configuration dictionary
            key: Dot-notation key to validate
            expectedType: Expected Python type (or tuple of types)
            allowNone: Whether a missing/None value is acceptable

        Returns:
            True if valid, False otherwise
        """
        value = getNestedValue(config, key)

        if value is None:
            return allowNone

        # bool is a subclass of int; a flag is never a valid number
        if isinstance(value, bool) and expectedType is not bool:
            return False

        return isinstance(value, expectedType)


def getNestedValue(config: Dict[str, Any], key: str) -> Any:
    """
    Get a value from a nested dictionary using dot notation.

    Returns:
        Value if found, None otherwise
    """
    value: Any = config

    for k in key.split('.'):
        if isinstance(value, dict) and k in value:
            value = value[k]
        else:
            return None

    return value


def setNestedValue(config: Dict[str, Any], key: str, value: Any) -> None:
    """Set a value in a nested dictionary using dot notation."""
    keys = key.split('.')
    current = config

    for k in keys[:-1]:
        if not isinstance(current.get(k), dict):
            current[k] = {}
        current = current[k]

    current[keys[-1]] = value
