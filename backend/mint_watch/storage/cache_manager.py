"""
Metadata Cache - in-memory address to TokenMetadata memoization
"""
from collections import OrderedDict
from typing import Dict, List, Optional
import time

from mint_watch.core.data_models import TokenMetadata
import logging


logger = logging.getLogger(__name__)


class MetadataCache:
    """
    Process-lifetime cache keyed by lower-cased contract address.

    max_entries=0 and ttl_seconds=0 (the defaults) mean unbounded and
    never expiring. With a size limit the oldest insertion is evicted first.
    There is no locking; callers resolving the same address concurrently
    may both miss.
    """

    def __init__(self, max_entries: int = 0, ttl_seconds: int = 0):
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._entries: "OrderedDict[str, tuple[TokenMetadata, float]]" = OrderedDict()
        self._cache_stats = {
            'hits': 0,
            'misses': 0,
            'evictions': 0
        }

    @staticmethod
    def cache_key(address: str) -> str:
        return address.lower()

    def get(self, address: str) -> Optional[TokenMetadata]:
        metadata = self.peek(address)
        if metadata is None:
            self._cache_stats['misses'] += 1
        else:
            self._cache_stats['hits'] += 1
        return metadata

    def peek(self, address: str) -> Optional[TokenMetadata]:
        """Lookup that leaves hit/miss counters alone; expired entries are dropped"""
        key = self.cache_key(address)
        entry = self._entries.get(key)
        if entry is None:
            return None
        metadata, stored_at = entry
        if self.ttl_seconds and time.monotonic() - stored_at > self.ttl_seconds:
            del self._entries[key]
            self._cache_stats['evictions'] += 1
            return None
        return metadata

    def set(self, address: str, metadata: TokenMetadata) -> None:
        key = self.cache_key(address)
        self._entries[key] = (metadata, time.monotonic())
        self._entries.move_to_end(key)

        if self.max_entries:
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                self._cache_stats['evictions'] += 1
                logger.debug(f"Evicted {evicted} from metadata cache")

    def __contains__(self, address: str) -> bool:
        return self.peek(address) is not None

    def __len__(self) -> int:
        return len(self._entries)

    def values(self) -> List[TokenMetadata]:
        now = time.monotonic()
        return [
            metadata for metadata, stored_at in self._entries.values()
            if not self.ttl_seconds or now - stored_at <= self.ttl_seconds
        ]

    def clear(self) -> None:
        self._entries.clear()
        logger.info("Metadata cache cleared")

    def get_stats(self) -> Dict[str, float]:
        """Get cache statistics"""
        total_requests = self._cache_stats['hits'] + self._cache_stats['misses']
        hit_rate = self._cache_stats['hits'] / total_requests if total_requests > 0 else 0

        return {
            **self._cache_stats,
            'hit_rate': round(hit_rate, 3),
            'size': len(self._entries),
            'max_entries': self.max_entries,
            'ttl_seconds': self.ttl_seconds
        }
