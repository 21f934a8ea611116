"""
过滤管线的数据模型

FilterRequest -> CatalogQuerySpec -> QueryResult -> FilterResponse，每个请求一份，
PriceRange 是唯一跨请求共享（缓存）的值。
"""

import sys
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, Optional, Tuple

# 未提供 max_price 时视为不限
UNBOUNDED_PRICE = sys.maxsize

SORT_KEYS = (
    'default',
    'price_asc',
    'price_desc',
    'newest',
    'oldest',
    'best_selling',
    'rating',
    'alphabetical',
)

STOCK_STATUSES = ('instock', 'outofstock')

CATEGORY_TAXONOMY = 'product_cat'
INTENTION_TAXONOMY = 'intention'
ATTRIBUTE_TAXONOMY_PREFIX = 'pa_'

MATCH_ANY = 'ANY'
MATCH_ALL = 'ALL'

ASCENDING = 'asc'
DESCENDING = 'desc'


@dataclass(frozen=True)
class FilterRequest:
    """Normalized shopper selections for one request."""
    categories: Tuple[str, ...] = ()
    intentions: Tuple[str, ...] = ()
    attributes: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    min_price: float = 0.0
    max_price: float = UNBOUNDED_PRICE
    search: str = ''
    rating_floor: Optional[int] = None
    stock_status: Optional[str] = None
    sort_key: str = 'default'
    page: int = 1
    per_page: int = 12

    @property
    def has_price_bounds(self) -> bool:
        return self.min_price > 0 or self.max_price < UNBOUNDED_PRICE

    def echo(self) -> Dict[str, Any]:
        """Selections echoed back to the client with the result."""
        return {
            'categories': list(self.categories),
            'intentions': list(self.intentions),
            'attributes': {name: list(terms) for name, terms in self.attributes.items()},
            'min_price': self.min_price,
            'max_price': self.max_price,
            'search': self.search,
            'rating': self.rating_floor,
            'stock_status': self.stock_status,
            'sort_by': self.sort_key,
            'per_page': self.per_page,
        }


@dataclass(frozen=True)
class TaxonomyPredicate:
    taxonomy: str
    terms: Tuple[str, ...]
    match: str = MATCH_ANY


@dataclass(frozen=True)
class PricePredicate:
    """Inclusive [min_price, max_price]."""
    min_price: float
    max_price: float


@dataclass(frozen=True)
class SortDescriptor:
    field: str
    direction: str


@dataclass(frozen=True)
class PaginationWindow:
    offset: int
    limit: int


@dataclass(frozen=True)
class CatalogQuerySpec:
    """Catalog query derived from a FilterRequest."""
    taxonomies: Tuple[TaxonomyPredicate, ...] = ()
    taxonomy_match: str = MATCH_ALL
    price: Optional[PricePredicate] = None
    search: Optional[str] = None
    rating_floor: Optional[int] = None
    stock_status: Optional[str] = None
    sort: SortDescriptor = SortDescriptor('title', ASCENDING)
    window: PaginationWindow = PaginationWindow(0, 12)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class QueryResult:
    """One page of matches as returned by a catalog."""
    ids: Tuple[str, ...] = ()
    total_count: int = 0
    total_pages: int = 0


@dataclass(frozen=True)
class PriceRange:
    min: float = 0.0
    max: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {'min': self.min, 'max': self.max}


@dataclass
class FilterResponse:
    html: str
    count: int
    total_pages: int
    current_page: int
    echoed_filters: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """JSON payload: success flag, listing, paging, then the echoed selections."""
        payload = {
            'success': True,
            'html': self.html,
            'count': self.count,
            'max_pages': self.total_pages,
            'current_page': self.current_page,
        }
        for key, value in self.echoed_filters.items():
            payload.setdefault(key, value)
        return payload
