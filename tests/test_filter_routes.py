"""
HTTP tests for the filters blueprint (Flask test client, sample catalog).
"""

import os
import sys

import pytest

# Use the in-memory catalog in tests, never a live MongoDB.
os.environ.setdefault("MONGO_URI", "")

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, os.path.join(PROJECT_ROOT, "backend"))

from shopfilter import RateLimiter, create_app  # noqa: E402
from shopfilter.services.catalog_repository import InMemoryCatalog, SAMPLE_PRODUCTS  # noqa: E402

BASE = "/api/v1/filters"


def _app(**overrides):
    config = {"TESTING": True, "REQUIRE_NONCE": False, "DEFAULT_PER_PAGE": 12}
    config.update(overrides)
    return create_app(config, catalog=InMemoryCatalog.from_dicts(SAMPLE_PRODUCTS))


@pytest.fixture
def client():
    return _app().test_client()


def test_filter_json_body(client):
    resp = client.post(f"{BASE}/", json={"categories": ["shoes"], "sort_by": "price_desc", "per_page": 2})
    data = resp.get_json()

    assert resp.status_code == 200
    assert data["success"] is True
    assert data["count"] == 3
    assert data["max_pages"] == 2
    assert data["current_page"] == 1
    assert data["categories"] == ["shoes"]
    assert data["sort_by"] == "price_desc"
    assert data["html"].index("Alpine Hiking Boots") < data["html"].index("Trail Runner Shoes")


def test_filter_form_body_with_bracketed_keys(client):
    resp = client.post(f"{BASE}/", data={
        "categories[]": ["shoes", "bags"],
        "attributes[pa_color][]": ["red"],
        "min_price": "50,5",
    })
    data = resp.get_json()

    assert resp.status_code == 200
    assert data["count"] == 2
    assert data["min_price"] == 50.5
    assert 'data-product-id="101"' in data["html"]
    assert 'data-product-id="105"' in data["html"]


def test_no_matches_returns_the_no_products_fragment(client):
    data = client.post(f"{BASE}/", json={"search": "teapot"}).get_json()
    assert data["success"] is True
    assert data["count"] == 0
    assert data["max_pages"] == 0
    assert data["html"] == "No products found."


def test_malformed_input_is_a_failed_response(client):
    resp = client.post(f"{BASE}/", json={"attributes": ["red"]})
    assert resp.status_code == 400
    assert resp.get_json() == {"success": False, "message": "Invalid filter parameters."}

    resp = client.post(f"{BASE}/", json=["not", "a", "mapping"])
    assert resp.status_code == 400


def test_reset_clears_filters_and_adds_message(client):
    data = client.post(f"{BASE}/reset", json={"categories": ["shoes"], "min_price": 100}).get_json()
    assert data["success"] is True
    assert data["count"] == 7
    assert data["categories"] == []
    assert data["message"] == "Filters reset successfully."


def test_reset_ignores_malformed_filters(client):
    resp = client.post(f"{BASE}/reset", json={"categories": {"a": "b"}, "min_price": ["1", "2"], "page": 1})
    assert resp.status_code == 200
    assert resp.get_json()["count"] == 7


def test_reset_on_empty_catalog_reports_failure():
    app = create_app({"TESTING": True, "REQUIRE_NONCE": False}, catalog=InMemoryCatalog([]))
    resp = app.test_client().post(f"{BASE}/reset", json={})
    assert resp.status_code == 200
    assert resp.get_json() == {"success": False, "message": "No products available."}


def test_price_range_endpoint(client):
    data = client.get(f"{BASE}/price-range").get_json()
    assert data == {"success": True, "min": 14.0, "max": 189.0}


def test_price_range_endpoint_with_empty_catalog():
    app = create_app({"TESTING": True}, catalog=InMemoryCatalog([]))
    data = app.test_client().get(f"{BASE}/price-range").get_json()
    assert data == {"success": True, "min": 0.0, "max": 0.0}


def test_catalog_failure_is_a_503():
    class BrokenCatalog:
        def query(self, spec):
            raise ConnectionError("down")

        def price_bounds(self):
            raise ConnectionError("down")

    app = create_app({"TESTING": True, "REQUIRE_NONCE": False}, catalog=BrokenCatalog())
    resp = app.test_client().post(f"{BASE}/", json={})
    assert resp.status_code == 503
    assert resp.get_json()["success"] is False

    resp = app.test_client().get(f"{BASE}/price-range")
    assert resp.status_code == 503


def test_single_dimension_endpoints(client):
    by_price = client.post(f"{BASE}/price", json={"min_price": 100, "categories": ["accessories"]}).get_json()
    assert by_price["count"] == 2
    assert by_price["categories"] == []

    by_category = client.post(f"{BASE}/category", json={"categories": ["outdoor"], "min_price": 500}).get_json()
    assert by_category["count"] == 3

    by_intention = client.post(f"{BASE}/intention", json={"intentions": ["running"]}).get_json()
    assert by_intention["count"] == 2

    sorted_only = client.post(f"{BASE}/sort", json={"sort_by": "best_selling", "search": "boots"}).get_json()
    assert sorted_only["count"] == 7
    assert sorted_only["html"].index("Merino Running Socks") < sorted_only["html"].index("City Sneakers")


def test_facets_endpoint(client):
    data = client.get(f"{BASE}/facets").get_json()
    assert data["success"] is True
    assert "category" in data["data"]
    assert "price" in data["data"]


def test_nonce_is_required_when_enabled():
    client = _app(REQUIRE_NONCE=True).test_client()

    resp = client.post(f"{BASE}/", json={})
    assert resp.status_code == 403
    assert resp.get_json()["message"] == "Invalid security token."

    resp = client.post(f"{BASE}/", json={"nonce": "forged"})
    assert resp.status_code == 403

    nonce = client.get(f"{BASE}/nonce").get_json()["nonce"]
    resp = client.post(f"{BASE}/", json={"nonce": nonce, "categories": ["shoes"]})
    assert resp.status_code == 200
    assert resp.get_json()["count"] == 3

    resp = client.post(f"{BASE}/reset", data={"nonce": nonce})
    assert resp.status_code == 200

    resp = client.post(f"{BASE}/", json={}, headers={"X-Filter-Nonce": nonce})
    assert resp.status_code == 200


@pytest.mark.parametrize("nonce", [123, {"token": "x"}, ["a", "b"], True])
def test_non_string_nonce_is_rejected(nonce):
    client = _app(REQUIRE_NONCE=True).test_client()
    resp = client.post(f"{BASE}/", json={"nonce": nonce})
    assert resp.status_code == 403
    assert resp.get_json() == {"success": False, "message": "Invalid security token."}


def test_rate_limit_returns_429():
    client = _app(RATE_LIMIT_PER_MINUTE=2).test_client()
    assert client.get(f"{BASE}/price-range").status_code == 200
    assert client.get(f"{BASE}/price-range").status_code == 200
    resp = client.get(f"{BASE}/price-range")
    assert resp.status_code == 429
    assert resp.get_json()["error"] == "TOO_MANY_REQUESTS"


def test_rate_limiter_window_slides():
    now = [0.0]
    limiter = RateLimiter(requests_per_minute=1, clock=lambda: now[0])
    assert limiter.is_allowed("1.2.3.4")
    assert not limiter.is_allowed("1.2.3.4")
    assert limiter.is_allowed("5.6.7.8")
    now[0] = 61.0
    assert limiter.is_allowed("1.2.3.4")


def test_rate_limiter_forgets_idle_clients():
    now = [0.0]
    limiter = RateLimiter(requests_per_minute=5, clock=lambda: now[0])
    for ip in ("1.1.1.1", "2.2.2.2", "3.3.3.3"):
        assert limiter.is_allowed(ip)
    assert len(limiter.requests) == 3

    now[0] = 120.0
    assert limiter.is_allowed("4.4.4.4")
    assert list(limiter.requests) == ["4.4.4.4"]
