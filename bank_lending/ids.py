"""Identifier generation for loans, payments and events.

Identifiers are opaque unique strings. The ``LOAN_`` / ``PAY_`` prefixes
are cosmetic. Generators are injected into :class:`LoanLedger` so tests can
use deterministic ids::

    ids = SequentialIdGenerator()
    ids.new_id("LOAN")   # "LOAN_0001"
"""

from __future__ import annotations

import os
import threading
import uuid as _uuid
from typing import Protocol

LOAN_PREFIX = "LOAN"
PAYMENT_PREFIX = "PAY"
EVENT_PREFIX = "EVT"


class IdGenerator(Protocol):
    """Anything that can mint a new identifier for a prefix."""

    def new_id(self, prefix: str) -> str:
        ...


class UUIDPool:
    """Batch-generated UUIDs using os.urandom.

    Parameters
    ----------
    batch_size : int
        Number of UUIDs to generate per batch (default 1024).
    """

    __slots__ = ("_batch_size", "_pool", "_index", "_lock")

    def __init__(self, batch_size: int = 1024) -> None:
        self._batch_size = batch_size
        self._pool: list[str] = []
        self._index = 0
        self._lock = threading.Lock()
        self._refill()

    def _refill(self) -> None:
        """Generate a new batch of UUIDs."""
        raw = os.urandom(16 * self._batch_size)
        self._pool = [
            _uuid.UUID(bytes=raw[i : i + 16], version=4).hex
            for i in range(0, len(raw), 16)
        ]
        self._index = 0

    def next(self) -> str:
        """Return next UUID hex string, refilling pool when exhausted."""
        with self._lock:
            if self._index >= len(self._pool):
                self._refill()
            val = self._pool[self._index]
            self._index += 1
            return val


class RandomIdGenerator:
    """``PREFIX_XXXXXXXX`` ids from the first 8 hex digits of a UUID4."""

    def __init__(self, length: int = 8, pool: UUIDPool | None = None) -> None:
        self.length = length
        self._pool = pool or UUIDPool()

    def new_id(self, prefix: str) -> str:
        return f"{prefix}_{self._pool.next()[: self.length].upper()}"


class SequentialIdGenerator:
    """Deterministic ``PREFIX_0001``-style ids, one counter per prefix."""

    def __init__(self, width: int = 4) -> None:
        self.width = width
        self._counters: dict[str, int] = {}
        self._lock = threading.Lock()

    def new_id(self, prefix: str) -> str:
        with self._lock:
            value = self._counters.get(prefix, 0) + 1
            self._counters[prefix] = value
        return f"{prefix}_{value:0{self.width}d}"
