"""
Caching for catalog lookups.

Uses cachetools TTLCache for automatic expiration. The only cached lookup is
the per-schema list of base tables used by the integrity-check toggle; entries
are recomputed on miss and never invalidated explicitly.
"""
import functools
import logging
import threading
import weakref

import cachetools

logger = logging.getLogger(__name__)


class Cache:
    """Cache manager for the mssql_schema package.

    Thread-safe singleton that manages named TTL caches.
    """

    _instance = None
    _caches: dict[str, cachetools.TTLCache] = {}
    _owner_caches: weakref.WeakKeyDictionary = weakref.WeakKeyDictionary()
    _lock = threading.RLock()

    @classmethod
    def get_instance(cls) -> 'Cache':
        """Get singleton instance."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    def get_cache(self, name: str, maxsize: int = 100, ttl: int = 300) -> cachetools.TTLCache:
        """Get or create a TTL cache with the given name.

        Args:
            name: Name of the cache
            maxsize: Maximum cache size
            ttl: Time-to-live in seconds

        Returns
            TTLCache instance
        """
        if name not in self._caches:
            with self._lock:
                if name not in self._caches:
                    self._caches[name] = cachetools.TTLCache(maxsize=maxsize, ttl=ttl)
        return self._caches[name]

    def get_owner_cache(self, owner: object, name: str, maxsize: int = 100,
                        ttl: int = 300) -> cachetools.TTLCache:
        """Get or create a TTL cache that lives only as long as ``owner``.

        Owners are held weakly, so a collected owner's caches are dropped and
        never handed to a later object.

        Args:
            owner: Object the cache belongs to
            name: Name of the cache
            maxsize: Maximum cache size
            ttl: Time-to-live in seconds

        Returns
            TTLCache instance
        """
        with self._lock:
            caches = self._owner_caches.get(owner)
            if caches is None:
                caches = self._owner_caches[owner] = {}
            if name not in caches:
                caches[name] = cachetools.TTLCache(maxsize=maxsize, ttl=ttl)
            return caches[name]

    def clear_all(self) -> None:
        """Clear all managed caches."""
        with self._lock:
            for cache in self._caches.values():
                cache.clear()
            self._owner_caches.clear()

    def clear_cache(self, name: str) -> None:
        """Clear a specific cache by name."""
        with self._lock:
            if name in self._caches:
                self._caches[name].clear()


def cacheable_schema(cache_name: str):
    """Decorator for caching catalog method results per schema name.

    The decorated method takes the schema name as its first argument. Each
    instance gets its own cache, dropped when the instance is collected. Cache
    size and ttl come from the instance's ``options`` (``base_table_cache_size``
    and ``base_table_cache_ttl``). Respects a ``bypass_cache`` keyword.

    Args:
        cache_name: Base name for the cache
    """
    def decorator(method):
        @functools.wraps(method)
        def wrapper(self, schema='', *args, bypass_cache=False, **kwargs):
            if bypass_cache:
                logger.debug(f'Bypassing cache for {method.__name__}({schema!r})')
                return method(self, schema, *args, **kwargs)

            options = self.options
            cache = Cache.get_instance().get_owner_cache(
                self, cache_name,
                maxsize=options.base_table_cache_size,
                ttl=options.base_table_cache_ttl)
            cache_key = (schema or '').lower()

            if cache_key in cache:
                logger.debug(f'Cache hit for {method.__name__}({schema!r})')
                return cache[cache_key]

            logger.debug(f'Cache miss for {method.__name__}({schema!r})')
            result = method(self, schema, *args, **kwargs)
            cache[cache_key] = result
            return result

        return wrapper
    return decorator
