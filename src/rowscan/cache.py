"""
Caching for destination schemas.

Schema descriptors depend only on the destination type, so they are built
once per type and kept in a cachetools cache.
"""
import functools
import logging
import threading

import cachetools

logger = logging.getLogger(__name__)


class Cache:
    """Cache manager for the rowscan module.

    Thread-safe singleton that manages all named caches.
    """

    _instance = None
    _caches: dict[str, cachetools.Cache] = {}
    _lock = threading.RLock()

    @classmethod
    def get_instance(cls) -> 'Cache':
        """Get singleton instance."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    def get_cache(self, name: str, maxsize: int = 256) -> cachetools.Cache:
        """Get or create an LRU cache with the given name.

        Args:
            name: Name of the cache
            maxsize: Maximum cache size

        Returns
            cachetools cache instance
        """
        if name not in self._caches:
            with self._lock:
                if name not in self._caches:
                    self._caches[name] = cachetools.LRUCache(maxsize=maxsize)
        return self._caches[name]

    def clear_all(self) -> None:
        """Clear all managed caches."""
        with self._lock:
            for cache in self._caches.values():
                cache.clear()


def cacheable_schema(cache_name: str, maxsize: int = 256):
    """Decorator for caching schema builders keyed by destination type.

    Respects the bypass_cache parameter to skip the cache lookup.
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(cls, *, bypass_cache=False):
            if bypass_cache:
                logger.debug(f'Bypassing cache for {func.__name__}({cls.__qualname__})')
                return func(cls)

            cache = Cache.get_instance().get_cache(cache_name, maxsize=maxsize)
            with Cache._lock:
                if cls in cache:
                    logger.debug(f'Cache hit for {func.__name__}({cls.__qualname__})')
                    return cache[cls]

            logger.debug(f'Cache miss for {func.__name__}({cls.__qualname__})')
            result = func(cls)
            with Cache._lock:
                cache[cls] = result
            return result

        return wrapper
    return decorator
