################################################################################
# File Name: traffic_log.py
# Purpose/Description: Bounded log of adapter command/response exchanges
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
Traffic log module.

Keeps the most recent N command/response exchanges of a session (ring-buffer
semantics, oldest evicted first). Readers get an immutable snapshot, most
recent first, so a writer appending mid-iteration is never visible.

Usage:
    log = TrafficLog(capacity=10)
    log.append('ATZ', 'ELM327 v1.5')
    for entry in log.snapshot():
        print(entry.command, entry.response)
"""

import threading
from collections import deque
from datetime import datetime
from typing import Callable, Deque, Optional, Tuple

from .types import TrafficEntry

DEFAULT_CAPACITY = 10


class TrafficLog:
    """
    Bounded, append-only record of adapter traffic.

    Attributes:
        capacity: Maximum number of entries retained
    """

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        clock: Callable[[], datetime] = datetime.now
    ) -> None:
        """
        Initialize the log.

        Args:
            capacity: Maximum number of entries retained (must be >= 1)
            clock: Timestamp source for new entries
        """
        if capacity < 1:
            raise ValueError(f"Traffic log capacity must be >= 1, got {capacity}")

        self._capacity = capacity
        self._clock = clock
        self._entries: Deque[TrafficEntry] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def append(self, command: str, response: str) -> TrafficEntry:
        """
        Record an exchange, evicting the oldest entry when full.

        Args:
            command: Command sent to the adapter
            response: Raw response text

        Returns:
            The recorded TrafficEntry
        """
        entry = TrafficEntry(command=command, response=response, timestamp=self._clock())
        with self._lock:
            self._entries.append(entry)
        return entry

    def clear(self) -> None:
        """Remove all entries."""
        with self._lock:
            self._entries.clear()

    def snapshot(self, newestFirst: bool = True) -> Tuple[TrafficEntry, ...]:
        """
        Copy of the current entries.

        Args:
            newestFirst: Most recent entry first (default) or insertion order

        Returns:
            Tuple of entries, safe to iterate while the log keeps changing
        """
        with self._lock:
            entries = tuple(self._entries)
        return tuple(reversed(entries)) if newestFirst else entries

    def latest(self) -> Optional[TrafficEntry]:
        """Most recent entry, or None when the log is empty."""
        with self._lock:
            return self._entries[-1] if self._entries else None
