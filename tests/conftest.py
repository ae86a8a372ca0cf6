################################################################################
# File Name: conftest.py
# Purpose/Description: Pytest fixtures and configuration
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
Pytest configuration and shared fixtures.

Fixtures defined here are available to all test files automatically.

Usage:
    def test_something(sampleConfig, manualScheduler):
        # sampleConfig and manualScheduler are automatically injected
        pass
"""

import json
import os
import sys
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional
from unittest.mock import MagicMock

import pytest

# Add src to path for imports
srcPath = Path(__file__).parent.parent / 'src'
if str(srcPath) not in sys.path:
    sys.path.insert(0, str(srcPath))

from scanner.engine import ScannerEngine
from scanner.scheduler import ManualScheduler


# ================================================================================
# Determinism Helpers
# ================================================================================

class ScriptedRandom:
    """
    Random source returning queued values.

    randint() and uniform() pop from their queues and fall back to the
    lower bound when the queue is empty. Every call is recorded.
    """

    def __init__(
        self,
        ints: Optional[List[int]] = None,
        floats: Optional[List[float]] = None
    ):
        self.ints = list(ints or [])
        self.floats = list(floats or [])
        self.calls: List[tuple] = []

    def randint(self, a: int, b: int) -> int:
        self.calls.append(('randint', a, b))
        return self.ints.pop(0) if self.ints else a

    def uniform(self, a: float, b: float) -> float:
        self.calls.append(('uniform', a, b))
        return self.floats.pop(0) if self.floats else a


# ================================================================================
# Configuration Fixtures
# ================================================================================

@pytest.fixture
def sampleConfig() -> Dict[str, Any]:
    """
    Provide sample configuration for tests.

    Returns:
        Dictionary with test configuration values
    """
    return {
        'application': {
            'name': 'TestScanner',
            'version': '1.0.0'
        },
        'logging': {
            'level': 'DEBUG',
            'maskSensitiveData': True
        },
        'scanner': {
            'adapterMacAddress': 'AA:BB:CC:DD:EE:FF',
            'pairingDelaySeconds': 2.0,
            'protocolInitDelaySeconds': 1.0,
            'ecuSyncDelaySeconds': 1.0,
            'samplingIntervalSeconds': 2.0,
            'trafficLogCapacity': 10,
            'engineRunning': False
        },
        'aiExplanation': {
            'enabled': True,
            'model': 'test-model',
            'baseUrl': 'http://ollama.test:11434',
            'timeoutSeconds': 5,
            'maxRetries': 2,
            'retryDelaySeconds': 0.01
        },
        'vehicle': {
            'make': 'Volkswagen',
            'model': 'Gol',
            'year': '2012'
        }
    }


@pytest.fixture
def minimalConfig() -> Dict[str, Any]:
    """
    Provide minimal configuration for testing defaults.

    Returns:
        Dictionary with minimal configuration
    """
    return {
        'application': {
            'name': 'MinimalScanner'
        }
    }


@pytest.fixture
def invalidConfig() -> Dict[str, Any]:
    """
    Provide invalid configuration for error testing.

    Returns:
        Dictionary with missing required fields
    """
    return {
        'application': {
            # Missing required name
        }
    }


# ================================================================================
# Environment Fixtures
# ================================================================================

@pytest.fixture
def envVars() -> Generator[Dict[str, str], None, None]:
    """
    Set up test environment variables.

    Yields:
        Dictionary of environment variables that were set

    Automatically cleans up after test.
    """
    testVars = {
        'OBD_ADAPTER_MAC': '11:22:33:44:55:66',
        'AI_BASE_URL': 'http://ai.test:11434',
        'AI_MODEL': 'test-model',
    }

    originalVars = {}
    for key in testVars:
        originalVars[key] = os.environ.get(key)
        os.environ[key] = testVars[key]

    yield testVars

    for key, value in originalVars.items():
        if value is None:
            os.environ.pop(key, None)
        else:
            os.environ[key] = value


@pytest.fixture
def cleanEnv() -> Generator[None, None, None]:
    """
    Ensure clean environment with no test variables.

    Removes common test variables before test, restores after.
    """
    varsToRemove = [
        'OBD_ADAPTER_MAC', 'AI_BASE_URL', 'AI_MODEL',
        'TEST_VAR'  # Used by test_secrets_loader
    ]

    saved = {}
    for var in varsToRemove:
        saved[var] = os.environ.pop(var, None)

    yield

    for var, value in saved.items():
        os.environ.pop(var, None)
        if value is not None:
            os.environ[var] = value


# ================================================================================
# Engine Fixtures
# ================================================================================

@pytest.fixture
def manualScheduler() -> ManualScheduler:
    """Provide a virtual clock scheduler."""
    return ManualScheduler()


@pytest.fixture
def scriptedRandom() -> ScriptedRandom:
    """Provide a random source that returns lower bounds unless scripted."""
    return ScriptedRandom()


@pytest.fixture
def mockExplanationClient() -> MagicMock:
    """
    Provide mock AI explanation client.

    Returns:
        MagicMock with explainCode and getWorkshopTip
    """
    return MagicMock()


@pytest.fixture
def engine(
    manualScheduler: ManualScheduler,
    scriptedRandom: ScriptedRandom,
    mockExplanationClient: MagicMock
) -> Generator[ScannerEngine, None, None]:
    """
    Provide an engine on the virtual clock with default delays.

    Yields:
        ScannerEngine in IDLE
    """
    scannerEngine = ScannerEngine(
        scheduler=manualScheduler,
        explanationClient=mockExplanationClient,
        randomSource=scriptedRandom
    )

    yield scannerEngine

    scannerEngine.shutdown()


# ================================================================================
# File System Fixtures
# ================================================================================

@pytest.fixture
def tempConfigFile(tmp_path: Path, sampleConfig: Dict[str, Any]) -> Path:
    """
    Create temporary config file for testing.

    Args:
        tmp_path: Pytest temp directory fixture
        sampleConfig: Sample configuration fixture

    Returns:
        Path to temporary config file
    """
    configFile = tmp_path / 'config.json'
    with open(configFile, 'w') as f:
        json.dump(sampleConfig, f)

    return configFile


# ================================================================================
# Utility Fixtures
# ================================================================================

@pytest.fixture
def assertNoLogs(caplog: pytest.LogCaptureFixture) -> Generator[None, None, None]:
    """
    Assert that no error logs were emitted during test.

    Usage:
        def test_something(assertNoLogs):
            # Test code here
            # Will fail if any ERROR logs are emitted
    """
    yield

    errors = [r for r in caplog.records if r.levelname == 'ERROR']
    assert len(errors) == 0, f"Unexpected error logs: {[r.message for r in errors]}"


# ================================================================================
# Pytest Configuration
# ================================================================================

def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
