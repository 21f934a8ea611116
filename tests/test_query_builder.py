"""
Tests for FilterRequest -> CatalogQuerySpec translation.
"""

import os
import sys
from dataclasses import replace

import pytest

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, os.path.join(PROJECT_ROOT, "backend"))

from shopfilter.models.filters import (  # noqa: E402
    ASCENDING,
    DESCENDING,
    MATCH_ALL,
    MATCH_ANY,
    UNBOUNDED_PRICE,
    PaginationWindow,
    PricePredicate,
    SortDescriptor,
    TaxonomyPredicate,
)
from shopfilter.services import filter_input  # noqa: E402
from shopfilter.services.hooks import HookRegistry, QUERY_SPEC_HOOK  # noqa: E402
from shopfilter.services.query_builder import QueryBuilder, SORT_TABLE, resolve_sort  # noqa: E402

DOCUMENTED_SORTS = {
    ("price", ASCENDING),
    ("price", DESCENDING),
    ("created_at", DESCENDING),
    ("created_at", ASCENDING),
    ("total_sales", DESCENDING),
    ("average_rating", DESCENDING),
    ("title", ASCENDING),
}


def _build(raw, default_per_page=12, hooks=None):
    request = filter_input.normalize_filter_request(raw, default_per_page)
    return QueryBuilder(hooks).build(request)


def test_no_price_fields_means_no_price_predicate():
    assert _build({}).price is None


def test_min_price_only_is_open_ended():
    spec = _build({"min_price": 10})
    assert spec.price == PricePredicate(10.0, UNBOUNDED_PRICE)


def test_max_price_only_starts_at_zero():
    spec = _build({"max_price": 50})
    assert spec.price == PricePredicate(0.0, 50.0)


def test_explicit_full_range_defaults_emit_no_predicate():
    assert _build({"min_price": 0}).price is None


def test_inverted_range_is_passed_through():
    spec = _build({"min_price": 100, "max_price": 20})
    assert spec.price == PricePredicate(100.0, 20.0)


@pytest.mark.parametrize("token", [
    "default", "price_asc", "price_desc", "newest", "oldest",
    "best_selling", "rating", "alphabetical", "popularity", "", "RANDOM()",
])
def test_every_sort_token_maps_to_a_documented_pair(token):
    spec = _build({"sort_by": token})
    assert (spec.sort.field, spec.sort.direction) in DOCUMENTED_SORTS


def test_sort_dispatch_table():
    assert resolve_sort("price_asc") == SortDescriptor("price", ASCENDING)
    assert resolve_sort("price_desc") == SortDescriptor("price", DESCENDING)
    assert resolve_sort("newest") == SortDescriptor("created_at", DESCENDING)
    assert resolve_sort("oldest") == SortDescriptor("created_at", ASCENDING)
    assert resolve_sort("best_selling") == SortDescriptor("total_sales", DESCENDING)
    assert resolve_sort("rating") == SortDescriptor("average_rating", DESCENDING)
    assert resolve_sort("alphabetical") == SortDescriptor("title", ASCENDING)
    assert resolve_sort("default") == SortDescriptor("title", ASCENDING)
    assert resolve_sort("whatever") == SortDescriptor("title", ASCENDING)
    assert resolve_sort(None) == SortDescriptor("title", ASCENDING)
    assert len(set(SORT_TABLE.values())) == 7


def test_taxonomies_and_within_or_across():
    spec = _build({"categories": ["A", "B"], "attributes": {"color": ["red"]}})
    assert spec.taxonomy_match == MATCH_ALL
    assert spec.taxonomies == (
        TaxonomyPredicate("product_cat", ("A", "B"), MATCH_ANY),
        TaxonomyPredicate("color", ("red",), MATCH_ANY),
    )


def test_intentions_map_to_intention_taxonomy():
    spec = _build({"intentions": ["running"]})
    assert spec.taxonomies == (TaxonomyPredicate("intention", ("running",), MATCH_ANY),)


def test_search_rating_and_stock_predicates():
    spec = _build({"search": "trail shoes", "rating": 4, "stock_status": "instock"})
    assert spec.search == "trail shoes"
    assert spec.rating_floor == 4
    assert spec.stock_status == "instock"

    empty = _build({"search": "   "})
    assert empty.search is None
    assert empty.rating_floor is None
    assert empty.stock_status is None


def test_scenario_shoes_second_page_by_price_desc():
    spec = _build({
        "categories": ["shoes"],
        "min_price": 20,
        "max_price": 100,
        "sort_by": "price_desc",
        "page": 2,
        "per_page": 12,
    })
    assert spec.taxonomies == (TaxonomyPredicate("product_cat", ("shoes",), MATCH_ANY),)
    assert spec.price == PricePredicate(20.0, 100.0)
    assert spec.sort == SortDescriptor("price", DESCENDING)
    assert spec.window == PaginationWindow(offset=12, limit=12)


def test_scenario_empty_input_with_default_page_size():
    spec = _build({}, default_per_page=12)
    assert spec.taxonomies == ()
    assert spec.price is None
    assert spec.sort == SortDescriptor("title", ASCENDING)
    assert spec.window == PaginationWindow(offset=0, limit=12)


def test_query_spec_hook_can_override_predicates():
    hooks = HookRegistry()
    seen = []

    def only_in_stock(spec, request):
        seen.append(request.sort_key)
        return replace(spec, stock_status="instock")

    hooks.add_filter(QUERY_SPEC_HOOK, only_in_stock)
    spec = _build({"sort_by": "newest"}, hooks=hooks)
    assert spec.stock_status == "instock"
    assert seen == ["newest"]


def test_build_is_deterministic():
    raw = {"categories": ["b", "a"], "attributes": {"pa_size": ["m"]}, "sort_by": "rating", "page": 4}
    assert _build(raw) == _build(raw)
