from .filters import (
    FilterRequest,
    TaxonomyPredicate,
    PricePredicate,
    SortDescriptor,
    PaginationWindow,
    CatalogQuerySpec,
    QueryResult,
    PriceRange,
    FilterResponse,
    UNBOUNDED_PRICE,
)
from .product import Product

__all__ = [
    'FilterRequest',
    'TaxonomyPredicate',
    'PricePredicate',
    'SortDescriptor',
    'PaginationWindow',
    'CatalogQuerySpec',
    'QueryResult',
    'PriceRange',
    'FilterResponse',
    'UNBOUNDED_PRICE',
    'Product',
]
