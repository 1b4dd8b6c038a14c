"""Shared history — bounded, in-process record of past pipeline results.

One HistoryStore is constructed per application (see ``docrouter.main``) and
handed to the RouterAgent and the HTTP layer. Nothing is persisted.

Capacity is a strict FIFO bound: once full, every append evicts the entry
that was inserted first. Reads never move an entry.
"""

from __future__ import annotations

import itertools
import threading
import time
from collections import Counter, OrderedDict
from datetime import datetime, timezone

import structlog

from docrouter.modules.routing.schemas import HistoryEntry, HistoryStats, NewHistoryEntry

logger = structlog.get_logger()

DEFAULT_CAPACITY = 50


class HistoryStore:
    """Thread-safe, capacity-bounded store of HistoryEntry objects."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError(f"History capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._entries: OrderedDict[str, HistoryEntry] = OrderedDict()
        self._sequence = itertools.count(1)
        self._last_timestamp: datetime | None = None
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def append(self, entry: NewHistoryEntry) -> str:
        """Store a new entry and return its id. Evicts the oldest entry when full."""
        with self._lock:
            # Sequence suffix keeps ids unique even after eviction
            entry_id = f"mem_{int(time.time() * 1000)}_{next(self._sequence)}"

            # Clock may step backwards; keep timestamp order == insertion order
            timestamp = datetime.now(timezone.utc)
            if self._last_timestamp is not None and timestamp < self._last_timestamp:
                timestamp = self._last_timestamp
            self._last_timestamp = timestamp

            stored = HistoryEntry(id=entry_id, timestamp=timestamp, **entry.model_dump())
            self._entries[entry_id] = stored

            evicted: str | None = None
            if len(self._entries) > self.capacity:
                evicted, _ = self._entries.popitem(last=False)

        logger.info(
            "Memory stored",
            memory_id=entry_id,
            format=entry.format,
            intent=entry.intent,
            evicted=evicted,
        )
        return entry_id

    def clear(self) -> None:
        """Remove all entries. Safe to call on an empty store."""
        with self._lock:
            self._entries.clear()
        logger.info("Memory cleared")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, entry_id: str) -> HistoryEntry | None:
        with self._lock:
            return self._entries.get(entry_id)

    def get_all(self) -> list[HistoryEntry]:
        """All entries, oldest first by timestamp."""
        with self._lock:
            entries = list(self._entries.values())
        return sorted(entries, key=lambda e: e.timestamp)

    def get_by_conversation_id(self, conversation_id: str) -> list[HistoryEntry]:
        with self._lock:
            return [e for e in self._entries.values() if e.conversation_id == conversation_id]

    def get_stats(self) -> HistoryStats:
        with self._lock:
            entries = list(self._entries.values())
        return HistoryStats(
            total=len(entries),
            by_format=dict(Counter(e.format for e in entries)),
            by_intent=dict(Counter(e.intent for e in entries)),
        )
