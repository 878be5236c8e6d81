"""
Short-lived in-memory cache for resolved quotes.

Pure optimization in front of the provider fallback chain:
- Entries expire after a fixed TTL
- Size is bounded; the least recently used entry is evicted first
- Misses are never cached, so a failed lookup is retried next time
"""

import logging
import threading
import time
from collections import OrderedDict
from typing import Callable, Optional

from app.domain.assistant.entities import QuoteRecord

logger = logging.getLogger(__name__)


class QuoteCache:
    """Bounded TTL cache keyed by requested symbol."""

    def __init__(
        self,
        ttl_seconds: float = 30.0,
        max_entries: int = 256,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[str, tuple[float, QuoteRecord]] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, symbol: str) -> Optional[QuoteRecord]:
        key = symbol.upper()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, record = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            self._entries.move_to_end(key)
            return record

    def set(self, symbol: str, record: QuoteRecord) -> None:
        if self._ttl <= 0 or self._max_entries <= 0:
            return
        key = symbol.upper()
        with self._lock:
            self._entries[key] = (self._clock() + self._ttl, record)
            self._entries.move_to_end(key)
            while len(self._entries) > self._max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Quote cache evicted %s", evicted)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
