"""Ordered, thread-safe collection of equation requests.

EquationStore is the only state shared between pipeline workers. Records
are kept newest first and indexed by id, so a worker finishing a stage
replaces exactly one slot no matter how many other requests complete
around it.

Example:
    Update a request in place::

        store = EquationStore()
        store.insert(request)
        store.update(request.id, lambda r: r.start_ocr())
        for entry in store.snapshot():
            print(entry.id, entry.state.value)
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, List, Optional, Tuple

from .domain.equation import EquationRequest

logger = logging.getLogger(__name__)


class EquationStore:
    """Thread-safe registry of requests, newest submission first.

    Replaces index-based bookkeeping with identity-keyed slots.
    """

    def __init__(self):
        self._records: Dict[str, EquationRequest] = {}
        self._order: List[str] = []  # newest first
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, request_id: str) -> bool:
        with self._lock:
            return request_id in self._records

    def insert(self, request: EquationRequest) -> None:
        """Add a new request at the front.

        Raises:
            KeyError: A request with the same id is already stored.
        """
        with self._lock:
            if request.id in self._records:
                raise KeyError(f"request {request.id} already stored")
            self._records[request.id] = request
            self._order.insert(0, request.id)

    def update(
        self,
        request_id: str,
        mutator: Callable[[EquationRequest], EquationRequest],
    ) -> Optional[EquationRequest]:
        """Atomically replace a record with ``mutator(record)``.

        The mutator runs under the store lock. Exceptions it raises
        propagate and leave the record untouched.

        Returns:
            The new record, or None if the id is not stored (for example
            because the store was cleared while the request was in flight).
        """
        with self._lock:
            current = self._records.get(request_id)
            if current is None:
                logger.debug("Update for unknown request %s ignored", request_id)
                return None
            updated = mutator(current)
            if updated.id != request_id:
                raise ValueError("mutator must not change the request id")
            self._records[request_id] = updated
            return updated

    def get(self, request_id: str) -> Optional[EquationRequest]:
        with self._lock:
            return self._records.get(request_id)

    def snapshot(self) -> Tuple[EquationRequest, ...]:
        """Consistent copy of all records, newest first."""
        with self._lock:
            return tuple(self._records[rid] for rid in self._order)

    def remove(self, request_id: str) -> bool:
        """Remove one record. Returns False if it was not stored."""
        with self._lock:
            if self._records.pop(request_id, None) is None:
                return False
            self._order.remove(request_id)
            return True

    def clear(self) -> int:
        """Remove every record. Returns how many were removed."""
        with self._lock:
            count = len(self._records)
            self._records.clear()
            self._order.clear()
        logger.info("Cleared %d requests", count)
        return count
