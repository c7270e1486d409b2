"""Persistent quote snapshot store."""

from datetime import UTC, datetime
from typing import Any

import diskcache

from stock_health.engines.models import QuoteRecord
from stock_health.utils.validators import normalize_symbol


class QuoteStore:
    """
    Disk-backed snapshots of fetched quotes, keyed ``quote://{SYMBOL}``.

    Lets repeated requests for the same symbol skip the upstream fetch
    until the TTL runs out.
    """

    def __init__(self, cache_dir: str = ".cache/quotes", default_ttl: int = 300):
        self.cache: diskcache.Cache = diskcache.Cache(cache_dir)
        self._default_ttl = default_ttl

    @staticmethod
    def uri_for(symbol: str) -> str:
        return f"quote://{normalize_symbol(symbol)}"

    def store(self, quote: QuoteRecord, ttl: int | None = None) -> str:
        """
        Store a quote snapshot plus metadata, return its URI.

        Args:
            quote: Quote to persist
            ttl: Expiry in seconds (default: store default)

        Returns:
            Canonical URI for the snapshot
        """
        uri = self.uri_for(quote.symbol)
        entry: dict[str, Any] = {
            "quote": quote.to_dict(),
            "history_points": len(quote.history),
            "data_quality": quote.data_quality,
            "stored_at": datetime.now(UTC).isoformat(),
        }
        expire = ttl if ttl is not None else self._default_ttl
        self.cache.set(uri, entry, expire=expire)
        return uri

    def get(self, symbol: str) -> QuoteRecord | None:
        """Stored quote for a symbol, or None if absent or expired."""
        uri = self.uri_for(symbol)
        entry = self.cache.get(uri)
        if not entry:
            return None
        return QuoteRecord.from_mapping(entry["quote"]["symbol"], entry["quote"])

    def get_metadata(self, symbol: str) -> dict[str, Any] | None:
        """Snapshot metadata without rebuilding the quote."""
        entry = self.cache.get(self.uri_for(symbol))
        if not entry:
            return None
        return {
            "history_points": entry["history_points"],
            "data_quality": entry["data_quality"],
            "stored_at": entry["stored_at"],
        }

    def exists(self, symbol: str) -> bool:
        return self.uri_for(symbol) in self.cache

    def clear(self) -> None:
        """Drop all stored snapshots."""
        self.cache.clear()

    def close(self) -> None:
        self.cache.close()
