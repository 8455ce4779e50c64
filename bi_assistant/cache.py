"""
Outcome cache keyed by the exact natural-language query string.

Unbounded by default (no eviction, no TTL). Passing max_size turns it into
an LRU. Two concurrent misses for the same key may both compute; the last
put wins, which is fine since the pipeline is idempotent per query.
"""
from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from dataclasses import replace
from typing import Any, Dict, Optional

from .models import QueryOutcome

logger = logging.getLogger(__name__)


def _detached(outcome: QueryOutcome) -> QueryOutcome:
    # rows and column names are mutable; callers never share them with the stored entry
    metadata = outcome.metadata
    if metadata is not None:
        metadata = replace(metadata, column_names=list(metadata.column_names))
    return replace(outcome, rows=[dict(r) for r in outcome.rows], metadata=metadata)


class OutcomeCache:
    def __init__(self, max_size: Optional[int] = None):
        if max_size is not None and max_size <= 0:
            raise ValueError("max_size must be positive (None = unbounded).")
        self.max_size = max_size
        self._entries: "OrderedDict[str, QueryOutcome]" = OrderedDict()
        self._lock = threading.Lock()
        self._stats = {"hits": 0, "misses": 0, "evictions": 0}

    def get(self, key: str) -> Optional[QueryOutcome]:
        with self._lock:
            outcome = self._entries.get(key)
            if outcome is None:
                self._stats["misses"] += 1
                return None
            self._entries.move_to_end(key)
            self._stats["hits"] += 1
            return _detached(outcome)

    def put(self, key: str, outcome: QueryOutcome) -> None:
        with self._lock:
            self._entries[key] = _detached(outcome)
            self._entries.move_to_end(key)
            if self.max_size is not None and len(self._entries) > self.max_size:
                evicted, _ = self._entries.popitem(last=False)
                self._stats["evictions"] += 1
                logger.debug("Evicted cached outcome for: %s", evicted)

    def clear(self) -> None:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.info("Cleared %d cached outcomes", count)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            total = self._stats["hits"] + self._stats["misses"]
            return {
                "entries": len(self._entries),
                "max_size": self.max_size,
                "hit_rate": self._stats["hits"] / total if total else 0.0,
                **self._stats,
            }
