import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, Optional
from cachetools import TTLCache
from linkmeta.core.models import LinkMetadata

# Import settings
from linkmeta.core.config import settings

logger = logging.getLogger(__name__)


def cache_key(url: str) -> str:
    """
    Lower-case the URL and drop one trailing slash, so that
    https://Example.com/post/ and https://example.com/post share an entry.
    """
    key = url.lower()
    if key.endswith("/"):
        key = key[:-1]
    return key


class CacheInterface(ABC):
    """Interface for caching following the Dependency Inversion Principle"""

    @abstractmethod
    def get(self, url: str) -> Optional[LinkMetadata]:
        """
        Get metadata from cache.

        Args:
            url: The URL the metadata was extracted for

        Returns:
            The cached LinkMetadata if present and not expired, None otherwise
        """
        pass

    @abstractmethod
    def set(self, url: str, value: LinkMetadata) -> None:
        """
        Store metadata, replacing any existing entry for the URL.

        Args:
            url: The URL the metadata was extracted for
            value: The LinkMetadata to cache
        """
        pass

    @abstractmethod
    def clear(self) -> None:
        """Drop every cached entry"""
        pass


class MetadataCache(CacheInterface):
    """
    TTL Cache for link metadata with configurable size and TTL.

    Expired entries are evicted lazily when looked up. All access goes
    through a lock because request handlers and detached enrichment
    tasks share one instance.
    """

    def __init__(self, maxsize: int = None, ttl: float = None,
                 timer: Callable[[], float] = time.monotonic):
        """
        Initialize the cache.

        Args:
            maxsize: Maximum number of items to cache (uses config default if None)
            ttl: Time to live in seconds (uses config default if None)
            timer: Clock used to age entries
        """
        if maxsize is None:
            maxsize = settings.cache_maxsize
        if ttl is None:
            ttl = settings.cache_ttl_seconds

        self._lock = threading.Lock()
        self.cache: TTLCache[str, LinkMetadata] = TTLCache(maxsize=maxsize, ttl=ttl, timer=timer)

    def get(self, url: str) -> Optional[LinkMetadata]:
        key = cache_key(url)
        logger.debug(f"Checking cache for key: {key}")
        with self._lock:
            # Lazy eviction: stale entries are only dropped on lookup
            self.cache.expire()
            cached_item = self.cache.get(key)
        if cached_item is not None:
            logger.debug(f"Cache hit for key: {key}")
        else:
            logger.debug(f"Cache miss for key: {key}")
        return cached_item

    def set(self, url: str, value: LinkMetadata) -> None:
        key = cache_key(url)
        logger.debug(f"Storing metadata in cache for key: {key}")
        with self._lock:
            self.cache[key] = value

    def clear(self) -> None:
        with self._lock:
            self.cache.clear()
        logger.info("Metadata cache cleared")

    def __len__(self) -> int:
        with self._lock:
            return len(self.cache)
