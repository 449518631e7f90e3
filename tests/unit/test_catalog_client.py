"""Tests for CatalogClient using httpx.MockTransport."""

import httpx
import pytest

from catalog_export.clients.catalog_client import CatalogClient, unwrap_items
from catalog_export.pipeline.errors import LookupFailedError, PolicyFetchError

BASE_URL = "https://catalog.test/api/v1"


def _client(handler, **kwargs) -> CatalogClient:
    transport = httpx.MockTransport(handler)
    return CatalogClient(BASE_URL, client=httpx.AsyncClient(transport=transport), **kwargs)


class TestLookup:
    async def test_request_shape_and_parsing(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json={"data": [
                {
                    "id": 17,
                    "newProductCode": "SKU-1",
                    "productCategoryId": 3,
                    "productImages": ["https://img.test/1.png", "https://img.test/2.png"],
                    "shopId": 9,
                    "weight": 250,
                    "temuId": "T-77",
                },
            ]})

        client = _client(handler, token="secret")
        records = await client.lookup(["SKU-1", "SKU-2"], 200)
        await client.aclose()

        assert seen["path"] == "/api/v1/products"
        assert seen["params"] == {"page": "1", "limit": "200", "productCodes": "SKU-1,SKU-2"}
        assert seen["auth"] == "Bearer secret"

        record = records[0]
        assert record.id == "17"
        assert record.code == "SKU-1"
        assert record.category_id == "3"
        assert record.images == ("https://img.test/1.png", "https://img.test/2.png")
        assert record.shop_id == "9"
        assert record.metadata == {"temuId": "T-77"}

    async def test_bare_list_body(self):
        client = _client(lambda request: httpx.Response(200, json=[{"id": "1", "productImages": None}]))

        records = await client.lookup(["1"], 50)

        assert records[0].code == "1"
        assert records[0].images == ()

    async def test_non_200_is_lookup_failure(self):
        client = _client(lambda request: httpx.Response(502, text="bad gateway"))

        with pytest.raises(LookupFailedError) as exc_info:
            await client.lookup(["A"], 200)

        assert exc_info.value.status_code == 502

    async def test_transport_error_is_lookup_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(LookupFailedError):
            await _client(handler).lookup(["A"], 200)

    async def test_malformed_body(self):
        client = _client(lambda request: httpx.Response(200, json={"message": "ok"}))

        with pytest.raises(LookupFailedError):
            await client.lookup(["A"], 200)


class TestPolicies:
    async def test_categories_become_policies(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/v1/categories"
            return httpx.Response(200, json={"data": [
                {"id": 1, "name": "海报", "manufacturingLength": 60, "manufacturingWidth": 40},
                {"id": 3, "name": "挂历"},
                {"id": 7, "name": "台历", "requiresOrderedLayout": True},
            ]})

        client = _client(handler, ordered_layout_ids=["3"])
        policies = {p.id: p for p in await client.get_policies()}

        assert policies["1"].requires_ordered_layout is False
        assert policies["1"].page_size_mm == (400, 600)
        assert policies["3"].requires_ordered_layout is True
        assert policies["7"].requires_ordered_layout is True

    async def test_failure_is_policy_fetch_error(self):
        client = _client(lambda request: httpx.Response(500))

        with pytest.raises(PolicyFetchError) as exc_info:
            await client.get_policies()

        assert exc_info.value.status_code == 500


@pytest.mark.parametrize(
    ("payload", "expected"),
    [
        ({"data": [{"id": 1}]}, [{"id": 1}]),
        ([{"id": 2}, "noise"], [{"id": 2}]),
        ({"data": {"items": [{"id": 3}]}}, [{"id": 3}]),
    ],
)
def test_unwrap_items(payload, expected):
    assert unwrap_items(payload) == expected
