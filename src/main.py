################################################################################
# File Name: main.py
# Purpose/Description: Command line entry point running a simulated session
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
Main application entry point.

Runs one simulated diagnostic session on the threading scheduler and logs
state transitions, telemetry samples, an optional fault scan and the raw
adapter traffic.

Usage:
    python src/main.py --help
    python src/main.py --config src/config.json --duration 10 --engine-running
    python src/main.py --scan --explain
"""

import argparse
import sys
import threading
import time
from pathlib import Path
from typing import List

# Resolve project paths relative to this script (not CWD)
srcPath = Path(__file__).resolve().parent
projectRoot = srcPath.parent
if str(srcPath) not in sys.path:
    sys.path.insert(0, str(srcPath))

DEFAULT_CONFIG = str(srcPath / 'config.json')
DEFAULT_ENV = str(projectRoot / '.env')

from common.error_handler import formatError, handleError
from common.logging_config import LogContext, getLogger, setupLogging, setupLoggingFromConfig
from scanner.config import loadScannerConfig
from scanner.engine import ScannerEngine, createEngineFromConfig
from scanner.exceptions import ScannerConfigError
from scanner.types import DecodedSample, SessionState

# Exit codes
EXIT_SUCCESS = 0
EXIT_CONFIG_ERROR = 1
EXIT_SESSION_ERROR = 2
EXIT_UNKNOWN_ERROR = 3

DEFAULT_DURATION_SECONDS = 10.0


def parseArgs(argv: List[str] | None = None) -> argparse.Namespace:
    """
    Parse command line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        description='Run a simulated OBD-II diagnostic session',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  python main.py                          Run with default config
  python main.py --config my.json         Run with custom config
  python main.py --engine-running         Simulate a running engine
  python main.py --scan --explain         Scan for faults and explain them
        '''
    )

    parser.add_argument(
        '--config', '-c',
        default=DEFAULT_CONFIG,
        help='Path to configuration file (default: src/config.json)'
    )

    parser.add_argument(
        '--env-file', '-e',
        default=DEFAULT_ENV,
        help='Path to environment file (default: .env)'
    )

    parser.add_argument(
        '--duration', '-d',
        type=float,
        default=DEFAULT_DURATION_SECONDS,
        help='Seconds to keep the session open (default: 10)'
    )

    parser.add_argument(
        '--engine-running',
        action='store_true',
        help='Simulate a running engine (overrides scanner.engineRunning)'
    )

    parser.add_argument(
        '--scan',
        action='store_true',
        help='Read fault codes once the session is ready'
    )

    parser.add_argument(
        '--explain',
        action='store_true',
        help='Ask the AI service to explain the scanned fault'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose (debug) logging'
    )

    parser.add_argument(
        '--version',
        action='version',
        version='%(prog)s 1.0.0'
    )

    return parser.parse_args(argv)


def runSession(
    engine: ScannerEngine,
    durationSeconds: float,
    scan: bool = False,
    explain: bool = False
) -> int:
    """
    Run one session until the duration elapses or the session fails.

    The duration counts from startSession(); waiting for READY and the scan
    are part of it.

    Args:
        engine: Configured engine
        durationSeconds: How long to keep the session open
        scan: Read fault codes once READY
        explain: Explain the scanned fault

    Returns:
        EXIT_SUCCESS, or EXIT_SESSION_ERROR if the session reached ERROR
    """
    logger = getLogger(__name__)
    failed = threading.Event()
    ready = threading.Event()

    def onStateChange(oldState: SessionState, newState: SessionState) -> None:
        logger.info(f"State | {oldState.value} -> {newState.value}")
        if newState is SessionState.READY:
            ready.set()
        elif newState is SessionState.ERROR:
            failed.set()

    def onSample(samples: List[DecodedSample]) -> None:
        logger.info(" | ".join(f"{s.pid}={s.value}{s.unit}" for s in samples))

    engine.registerCallbacks(onStateChange=onStateChange, onSample=onSample)
    deadline = time.monotonic() + durationSeconds
    engine.startSession()
    session = engine.controller.session

    try:
        with LogContext(sessionId=session.sessionId if session is not None else None):
            if scan and ready.wait(durationSeconds) and engine.scanFaults():
                fault = engine.getCurrentFault()
                if fault is not None:
                    logger.info(f"Fault | {fault.code} | {fault.description} | {fault.severity.value}")
                    if explain:
                        _logExplanation(engine)

            failed.wait(max(0.0, deadline - time.monotonic()))

    finally:
        for entry in engine.getTrafficLog(newestFirst=False):
            logger.info(f"Traffic | {entry.timestamp:%H:%M:%S} | {entry.command} -> {entry.response}")

        lastError = engine.controller.lastError
        endedInError = engine.state is SessionState.ERROR
        engine.shutdown()

    if endedInError:
        logger.error(f"Session ended in ERROR | reason={lastError}")
        return EXIT_SESSION_ERROR
    return EXIT_SUCCESS


def _logExplanation(engine: ScannerEngine) -> None:
    logger = getLogger(__name__)
    result = engine.explainFault()
    if not result.success:
        logger.warning(f"No explanation available | reason={result.errorMessage}")
        return

    logger.info(f"Explanation | {result.explanation}")
    for cause in result.causes:
        logger.info(f"Cause | {cause.part} | {cause.probability:.0f}% | {cause.reason}")
    for number, step in enumerate(result.repairSteps, start=1):
        logger.info(f"Step {number} | {step}")


def main(argv: List[str] | None = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    args = parseArgs(argv)

    setupLogging(level='DEBUG' if args.verbose else 'INFO')
    logger = getLogger(__name__)

    logger.info("=" * 60)
    logger.info("OBD-II session engine starting...")
    logger.info("=" * 60)

    try:
        config = loadScannerConfig(args.config, args.env_file)
        setupLoggingFromConfig(config, verbose=args.verbose)

        if args.engine_running:
            config['scanner']['engineRunning'] = True

        engine = createEngineFromConfig(config)
        return runSession(engine, args.duration, scan=args.scan, explain=args.explain)

    except ScannerConfigError as e:
        logger.error(f"Configuration error: {formatError(e)}")
        return EXIT_CONFIG_ERROR

    except KeyboardInterrupt:
        logger.warning("Application interrupted by user")
        return EXIT_SUCCESS

    except Exception as e:
        handleError(e, context={'config': args.config}, reraise=False)
        return EXIT_UNKNOWN_ERROR

    finally:
        logger.info("=" * 60)
        logger.info("Application finished")
        logger.info("=" * 60)


if __name__ == '__main__':
    sys.exit(main())
