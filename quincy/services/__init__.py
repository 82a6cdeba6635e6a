"""
Stock services — read-only data access and result caching.

    from quincy.services import StockQueries, EngineCache
"""

from quincy.services.cache import EngineCache
from quincy.services.queries import StockQueries

__all__ = [
    'StockQueries',
    'EngineCache',
]
