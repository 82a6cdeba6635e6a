"""
Engine result cache — explicit, owned by the caller, never by the engine.

Only inputs' identity and final EngineResults are stored. Entries are
keyed on a generation counter plus everything that shapes a result
(timeframe, filters, scope, policies); invalidate() bumps the generation
so every older entry becomes unreachable at once and expires by timeout.

Usage:
    cache = EngineCache()
    result = cache.get_or_compute(key_parts, lambda: run_engine(...))
    cache.invalidate()  # after equipment/booking changes (see quincy.signals)
"""

import hashlib
import logging

from django.core.cache import caches

from quincy.conf import quincy_settings

logger = logging.getLogger('quincy')

GENERATION_KEY = 'quincy:engine:generation'
KEY_PREFIX = 'quincy:engine:result'


class EngineCache:
    """Thin wrapper around a Django cache alias."""

    def __init__(self, alias: str | None = None, timeout: int | None = None):
        self.alias = alias or quincy_settings.CACHE_ALIAS
        self.timeout = quincy_settings.CACHE_TIMEOUT if timeout is None else timeout

    @property
    def backend(self):
        return caches[self.alias]

    @property
    def enabled(self) -> bool:
        return self.timeout > 0

    def generation(self) -> int:
        # No timeout: losing the counter would resurrect stale entries
        return self.backend.get_or_set(GENERATION_KEY, 1, timeout=None)

    def make_key(self, parts) -> str:
        digest = hashlib.sha256(repr(parts).encode()).hexdigest()
        return f"{KEY_PREFIX}:{self.generation()}:{digest}"

    def _get(self, key: str):
        result = self.backend.get(key)
        logger.debug("stock.cache.hit" if result is not None else "stock.cache.miss")
        return result

    def get(self, parts):
        if not self.enabled:
            return None
        return self._get(self.make_key(parts))

    def set(self, parts, result) -> None:
        if self.enabled:
            self.backend.set(self.make_key(parts), result, timeout=self.timeout)

    def get_or_compute(self, parts, compute):
        """
        Return the cached result for parts, computing and storing it on a miss.

        The key is taken once, before computing: a write during compute()
        bumps the generation and leaves the stored result unreachable.
        """
        if not self.enabled:
            return compute()
        key = self.make_key(parts)
        result = self._get(key)
        if result is None:
            result = compute()
            self.backend.set(key, result, timeout=self.timeout)
        return result

    def invalidate(self) -> None:
        """Make every cached result unreachable."""
        try:
            self.backend.incr(GENERATION_KEY)
        except ValueError:
            # Counter missing (evicted or never set)
            self.backend.set(GENERATION_KEY, 2, timeout=None)
        logger.debug("stock.cache.invalidated", extra={"alias": self.alias})
