"""
Time-boxed quote cache.

The cache is an injected collaborator rather than a module-level singleton,
and takes its clock as a dependency so tests can drive expiry directly.
"""

import time
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

from folio_analytics.models import normalize_ticker


@dataclass
class Quote:
    """Latest market quote for a ticker."""
    ticker: str
    price: Decimal
    as_of: datetime
    change_percent: Optional[Decimal] = None


class QuoteCache:
    """
    In-memory quote cache keyed by ticker.

    Args:
        ttl_seconds: Default time-to-live for entries
        clock: Callable returning the current time in seconds
    """

    def __init__(
        self,
        ttl_seconds: float = 300,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[Quote, float]] = {}

    def get(self, ticker: str) -> Optional[Quote]:
        """Return the cached quote, or None on a miss or expired entry."""
        key = normalize_ticker(ticker)
        entry = self._entries.get(key)
        if entry is None:
            return None

        quote, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None

        return quote

    def put(self, ticker: str, quote: Quote, ttl: Optional[float] = None) -> None:
        """Store a quote for ttl seconds (default: the cache TTL)."""
        ttl = self.ttl_seconds if ttl is None else ttl
        self._entries[normalize_ticker(ticker)] = (quote, self._clock() + ttl)

    def invalidate(self, ticker: str) -> None:
        self._entries.pop(normalize_ticker(ticker), None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
