"""
Tests for rendering a page of results into a FilterResponse.
"""

import os
import sys

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, os.path.join(PROJECT_ROOT, "backend"))

from shopfilter.models.filters import FilterRequest, QueryResult  # noqa: E402
from shopfilter.services import filter_input  # noqa: E402
from shopfilter.services.response_assembler import ResponseAssembler  # noqa: E402

NO_PRODUCTS = "No products found."


def _card(product_id):
    return f"<li>{product_id}</li>"


def test_empty_result_renders_the_no_products_fragment():
    assembler = ResponseAssembler(_card, no_products_message=NO_PRODUCTS)
    response = assembler.assemble(QueryResult(ids=(), total_count=0, total_pages=0), FilterRequest())

    assert response.html == NO_PRODUCTS
    assert response.count == 0
    assert response.total_pages == 0
    assert response.current_page == 1


def test_cards_concatenate_in_catalog_order():
    assembler = ResponseAssembler(_card, no_products_message=NO_PRODUCTS)
    result = QueryResult(ids=("9", "2", "5"), total_count=30, total_pages=3)
    response = assembler.assemble(result, FilterRequest(page=2, per_page=3))

    assert response.html == "<li>9</li><li>2</li><li>5</li>"
    assert response.count == 30
    assert response.total_pages == 3
    assert response.current_page == 2


def test_page_past_the_end_reports_zero_counts():
    assembler = ResponseAssembler(_card, no_products_message=NO_PRODUCTS)
    response = assembler.assemble(QueryResult(ids=(), total_count=14, total_pages=2), FilterRequest(page=9))
    assert response.html == NO_PRODUCTS
    assert (response.count, response.total_pages, response.current_page) == (0, 0, 9)


def test_render_card_is_called_once_per_id():
    calls = []

    def render(product_id):
        calls.append(product_id)
        return ""

    ResponseAssembler(render).assemble(QueryResult(ids=("1", "2"), total_count=2, total_pages=1), FilterRequest())
    assert calls == ["1", "2"]


def test_selections_are_echoed_and_serialized():
    request = filter_input.normalize_filter_request({
        "categories": ["shoes"],
        "attributes": {"pa_color": ["red"]},
        "min_price": "20",
        "max_price": "100",
        "sort_by": "price_desc",
        "page": 2,
        "per_page": 12,
    }, 12)
    response = ResponseAssembler(_card).assemble(QueryResult(ids=("1",), total_count=13, total_pages=2), request)
    payload = response.to_dict()

    assert payload["success"] is True
    assert payload["html"] == "<li>1</li>"
    assert payload["count"] == 13
    assert payload["max_pages"] == 2
    assert payload["current_page"] == 2
    assert payload["categories"] == ["shoes"]
    assert payload["attributes"] == {"pa_color": ["red"]}
    assert payload["min_price"] == 20.0
    assert payload["max_price"] == 100.0
    assert payload["sort_by"] == "price_desc"
    assert payload["per_page"] == 12
