"""
查询构建 - FilterRequest -> CatalogQuerySpec

分类法之间 AND，同一分类法内的多个 term 之间 OR。排序只有这一张表，
所有入口（过滤、排序、重置）都经过它。
"""

from typing import Dict, List, Optional, Tuple

from ..models.filters import (
    ASCENDING,
    CATEGORY_TAXONOMY,
    DESCENDING,
    INTENTION_TAXONOMY,
    MATCH_ALL,
    MATCH_ANY,
    CatalogQuerySpec,
    FilterRequest,
    PaginationWindow,
    PricePredicate,
    SortDescriptor,
    TaxonomyPredicate,
)
from .hooks import HookRegistry, QUERY_SPEC_HOOK

# Catalog field names a spec may sort on
SORT_FIELD_PRICE = 'price'
SORT_FIELD_CREATED = 'created_at'
SORT_FIELD_SALES = 'total_sales'
SORT_FIELD_RATING = 'average_rating'
SORT_FIELD_TITLE = 'title'

DEFAULT_SORT = SortDescriptor(SORT_FIELD_TITLE, ASCENDING)

SORT_TABLE: Dict[str, SortDescriptor] = {
    'price_asc': SortDescriptor(SORT_FIELD_PRICE, ASCENDING),
    'price_desc': SortDescriptor(SORT_FIELD_PRICE, DESCENDING),
    'newest': SortDescriptor(SORT_FIELD_CREATED, DESCENDING),
    'oldest': SortDescriptor(SORT_FIELD_CREATED, ASCENDING),
    'best_selling': SortDescriptor(SORT_FIELD_SALES, DESCENDING),
    'rating': SortDescriptor(SORT_FIELD_RATING, DESCENDING),
    'alphabetical': DEFAULT_SORT,
    'default': DEFAULT_SORT,
}


def resolve_sort(sort_key: Optional[str]) -> SortDescriptor:
    """(field, direction) for a sort token; anything unknown sorts by title."""
    return SORT_TABLE.get((sort_key or '').strip().lower(), DEFAULT_SORT)


def build_taxonomy_predicates(request: FilterRequest) -> Tuple[TaxonomyPredicate, ...]:
    predicates: List[TaxonomyPredicate] = []
    if request.categories:
        predicates.append(TaxonomyPredicate(CATEGORY_TAXONOMY, tuple(request.categories), MATCH_ANY))
    if request.intentions:
        predicates.append(TaxonomyPredicate(INTENTION_TAXONOMY, tuple(request.intentions), MATCH_ANY))
    for taxonomy, terms in request.attributes.items():
        if terms:
            predicates.append(TaxonomyPredicate(taxonomy, tuple(terms), MATCH_ANY))
    return tuple(predicates)


def build_price_predicate(request: FilterRequest) -> Optional[PricePredicate]:
    """Inclusive range, only when the shopper moved off the full range.

    Bounds are kept as given; an inverted range matches nothing.
    """
    if not request.has_price_bounds:
        return None
    return PricePredicate(request.min_price, request.max_price)


def build_pagination(request: FilterRequest) -> PaginationWindow:
    return PaginationWindow(offset=(request.page - 1) * request.per_page, limit=request.per_page)


class QueryBuilder:
    """Deterministic FilterRequest -> CatalogQuerySpec translation."""

    def __init__(self, hooks: Optional[HookRegistry] = None):
        self.hooks = hooks or HookRegistry()

    def build(self, request: FilterRequest) -> CatalogQuerySpec:
        spec = CatalogQuerySpec(
            taxonomies=build_taxonomy_predicates(request),
            taxonomy_match=MATCH_ALL,
            price=build_price_predicate(request),
            search=request.search or None,
            rating_floor=request.rating_floor,
            stock_status=request.stock_status,
            sort=resolve_sort(request.sort_key),
            window=build_pagination(request),
        )
        return self.hooks.apply_filters(QUERY_SPEC_HOOK, spec, request)
