"""
价格区间 - 全目录最低/最高价，缓存 12 小时
"""

from typing import Optional

from config import Config

from ..errors import CatalogUnavailable
from ..models.filters import PriceRange
from ..utils.logger import get_logger
from .cache import ExpiringCache
from .hooks import HookRegistry, PRICE_RANGE_HOOK

logger = get_logger('price_range')

PRICE_RANGE_CACHE_KEY = 'price_range'


class PriceRangeResolver:
    """Catalog-wide price bounds with a cached aggregate.

    Concurrent misses may both hit the catalog; they compute the same value,
    so the last write simply wins.
    """

    def __init__(self, catalog, cache: ExpiringCache,
                 ttl_seconds: Optional[float] = None,
                 hooks: Optional[HookRegistry] = None):
        self.catalog = catalog
        self.cache = cache
        self.ttl_seconds = Config.PRICE_RANGE_CACHE_SECONDS if ttl_seconds is None else ttl_seconds
        self.hooks = hooks or HookRegistry()

    def resolve(self) -> PriceRange:
        cached = self.cache.get(PRICE_RANGE_CACHE_KEY)
        if cached is not None:
            return cached

        logger.debug("price range cache miss, aggregating catalog prices")
        try:
            bounds = self.catalog.price_bounds()
        except CatalogUnavailable:
            raise
        except Exception as e:
            raise CatalogUnavailable(detail=f'price aggregate failed: {e}') from e

        price_range = self._to_price_range(bounds)
        price_range = self.hooks.apply_filters(PRICE_RANGE_HOOK, price_range)
        self.cache.set(PRICE_RANGE_CACHE_KEY, price_range, self.ttl_seconds)
        return price_range

    def invalidate(self) -> None:
        """Drop the cached range; the next resolve() aggregates again."""
        self.cache.delete(PRICE_RANGE_CACHE_KEY)
        logger.info("price range cache invalidated")

    @staticmethod
    def _to_price_range(bounds) -> PriceRange:
        # Catalogs with no priced products report None for either bound
        if not bounds:
            return PriceRange(0.0, 0.0)
        if isinstance(bounds, PriceRange):
            return bounds
        low = bounds.get('min')
        high = bounds.get('max')
        return PriceRange(
            min=float(low) if low is not None else 0.0,
            max=float(high) if high is not None else 0.0,
        )
