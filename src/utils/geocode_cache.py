"""
TTL cache for geocoding results to avoid repeated lookups
"""

import logging
from datetime import datetime
from typing import Dict, Optional, Tuple

from models.solar import Place

logger = logging.getLogger(__name__)

# Default TTL in seconds (one day)
DEFAULT_TTL_SECONDS = 86400


class GeocodeCache:
    """Caches forward geocoding results keyed by normalized query text"""

    def __init__(self, ttl_seconds: int = DEFAULT_TTL_SECONDS):
        self.ttl_seconds = ttl_seconds
        # query -> (cache time, place or None for a confirmed miss)
        self._entries: Dict[str, Tuple[float, Optional[Place]]] = {}

    @staticmethod
    def normalize(query: str) -> str:
        return " ".join(query.lower().split())

    def contains(self, query: str) -> bool:
        """Whether a non-expired entry exists, including cached misses"""
        key = self.normalize(query)
        entry = self._entries.get(key)
        if not entry:
            return False

        cache_time, _ = entry
        if (datetime.now().timestamp() - cache_time) < self.ttl_seconds:
            return True

        # Expired, remove it
        del self._entries[key]
        return False

    def get(self, query: str) -> Optional[Place]:
        if not self.contains(query):
            return None
        logger.debug(f"Using cached geocode result for {query!r}")
        return self._entries[self.normalize(query)][1]

    def set(self, query: str, place: Optional[Place]) -> None:
        self._entries[self.normalize(query)] = (datetime.now().timestamp(), place)
        self._cleanup()
        logger.debug(f"Cached geocode result for {query!r}: {place}")

    def _cleanup(self) -> None:
        """Remove expired entries to prevent memory bloat"""
        current_time = datetime.now().timestamp()
        expired_keys = [
            key
            for key, (cache_time, _) in self._entries.items()
            if (current_time - cache_time) > self.ttl_seconds
        ]

        for key in expired_keys:
            del self._entries[key]

        if expired_keys:
            logger.debug(f"Cleaned {len(expired_keys)} expired geocode cache entries")

    def clear(self) -> None:
        self._entries.clear()
        logger.info("Cleared geocode cache")

    def __len__(self) -> int:
        return len(self._entries)
