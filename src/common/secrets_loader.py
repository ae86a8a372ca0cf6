################################################################################
# File Name: secrets_loader.py
# Purpose/Description: Load .env files and resolve ${VAR} placeholders in config
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
Secrets loading for the scanner configuration.

Adapter MAC addresses and AI server URLs differ per workshop bench, so
config.json refers to them as ${VAR_NAME} or ${VAR_NAME:default}. Values
come from the process environment, optionally seeded from a .env file read
with python-dotenv. Variables already present in the environment win over
the .env file.

Usage:
    from common.secrets_loader import loadConfigWithSecrets

    config = loadConfigWithSecrets('src/config.json', '.env')
"""

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import dotenv_values

logger = logging.getLogger(__name__)

# ${NAME} or ${NAME:default}; the default may itself contain colons
PLACEHOLDER_PATTERN = re.compile(r'\$\{([^}:]+)(?::([^}]*))?\}')

LOADED_MARKER = '[LOADED]'


def loadEnvFile(envPath: Optional[str] = None) -> Dict[str, str]:
    """
    Copy variables from a .env file into os.environ.

    Variables that are already set are left alone. Values are never returned,
    only the names that were copied.

    Args:
        envPath: Path to the .env file (default: ./.env)

    Returns:
        Mapping of copied variable name to '[LOADED]'; empty if the file is absent
    """
    envFile = Path(envPath or '.env')
    if not envFile.is_file():
        logger.debug(f"No .env file | path={envFile}")
        return {}

    fileValues = dotenv_values(envFile)
    newNames = [
        name for name, value in fileValues.items()
        if value is not None and name not in os.environ
    ]
    for name in newNames:
        os.environ[name] = fileValues[name]

    logger.info(f"Environment seeded from .env | path={envFile} | count={len(newNames)}")
    return {name: LOADED_MARKER for name in newNames}


def _substitute(match: re.Match) -> str:
    name, default = match.group(1), match.group(2)

    if name in os.environ:
        return os.environ[name]
    if default is not None:
        logger.debug(f"Placeholder default used | name={name}")
        return default

    logger.warning(f"Placeholder left unresolved | name={name}")
    return match.group(0)


def resolveSecrets(config: Any) -> Any:
    """
    Return a copy of config with every string placeholder substituted.

    Dicts and lists are walked recursively; numbers, booleans and None pass
    through. Placeholders with no environment value and no default are kept
    as written so validation can report them.
    """
    if isinstance(config, str):
        return PLACEHOLDER_PATTERN.sub(_substitute, config)
    if isinstance(config, list):
        return [resolveSecrets(item) for item in config]
    if isinstance(config, dict):
        return {key: resolveSecrets(value) for key, value in config.items()}
    return config


def loadConfigWithSecrets(
    configPath: str,
    envPath: Optional[str] = None
) -> Dict[str, Any]:
    """
    Read a JSON config file after seeding the environment from .env.

    Args:
        configPath: Path to the JSON configuration
        envPath: Path to the .env file (default: ./.env)

    Returns:
        Parsed configuration with placeholders resolved

    Raises:
        FileNotFoundError: If configPath does not exist
        json.JSONDecodeError: If the file is not valid JSON
    """
    loadEnvFile(envPath)

    configFile = Path(configPath)
    if not configFile.exists():
        raise FileNotFoundError(f"Configuration file not found: {configPath}")

    logger.info(f"Reading configuration | path={configFile}")
    rawConfig = json.loads(configFile.read_text(encoding='utf-8'))
    return resolveSecrets(rawConfig)
