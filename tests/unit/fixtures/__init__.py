"""Helpers for building API responses in tests.

Usage:
    from tests.unit.fixtures import envelope, FakeProductStore

    def test_products(mocked_responses, client):
        FakeProductStore(count=5).register(mocked_responses)
        assert len(client.get_all("v3/catalog/products")) == 5
"""

import json
import re
import threading
from typing import Any, Dict, List
from urllib.parse import parse_qs, urlsplit

import responses

STORE_HASH = "abc123"
TOKEN = "test-token"
BASE_URL = f"https://api.bigcommerce.com/stores/{STORE_HASH}/"
PRODUCTS = "v3/catalog/products"
PRODUCTS_URL = BASE_URL + PRODUCTS


def envelope(data: Any, current_page: int = 1, total_pages: int = 1) -> dict:
    """Build a ``{data, meta}`` body the way the API returns it."""
    count = len(data) if isinstance(data, list) else 1
    return {
        "data": data,
        "meta": {
            "pagination": {
                "total": count,
                "count": count,
                "per_page": 50,
                "current_page": current_page,
                "total_pages": total_pages,
                "links": {},
            }
        },
    }


def query_of(url: str) -> Dict[str, str]:
    """Return the query string of ``url`` as a flat dict."""
    return {key: values[-1] for key, values in parse_qs(urlsplit(url).query).items()}


class FakeProductStore:
    """In-memory product collection that pages and deletes like the API."""

    def __init__(self, count: int = 0, per_page: int = 50) -> None:
        self.items: List[dict] = [
            {"id": i, "name": f"product-{i}"} for i in range(1, count + 1)
        ]
        self.per_page = per_page
        self.deleted: List[int] = []
        self.list_calls = 0
        self.lock = threading.Lock()

    def list(self, request):
        query = query_of(request.url)
        limit = int(query.get("limit", self.per_page))
        page = int(query.get("page", 1))
        with self.lock:
            self.list_calls += 1
            items = list(self.items)
        total_pages = max(1, -(-len(items) // limit))
        data = items[(page - 1) * limit : page * limit]
        return 200, {}, json.dumps(envelope(data, page, total_pages))

    def delete(self, request):
        product_id = int(urlsplit(request.url).path.rsplit("/", 1)[-1])
        with self.lock:
            self.items = [item for item in self.items if item["id"] != product_id]
            self.deleted.append(product_id)
        return 204, {}, ""

    def register(self, rsps: responses.RequestsMock) -> None:
        rsps.add_callback(
            responses.GET,
            PRODUCTS_URL,
            callback=self.list,
            content_type="application/json",
        )
        rsps.add_callback(
            responses.DELETE,
            re.compile(re.escape(PRODUCTS_URL) + r"/\d+"),
            callback=self.delete,
        )
