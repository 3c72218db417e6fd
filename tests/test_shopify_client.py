from types import SimpleNamespace

import pytest
import requests

from bulktagger.core.errors import GraphQLError
from bulktagger.core.shopify_client import PRODUCT_UPDATE_TEMPLATE, ShopifyClient


class FakeResponse:
    def __init__(self, payload=None, status_code=200, text=""):
        self.payload = payload
        self.status_code = status_code
        self.text = text

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")

    def json(self):
        return self.payload


class FakeSession:
    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def _next(self, method, url, kwargs):
        self.calls.append(SimpleNamespace(method=method, url=url, kwargs=kwargs))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def post(self, url, **kwargs):
        return self._next("POST", url, kwargs)

    def get(self, url, **kwargs):
        return self._next("GET", url, kwargs)


def _client(*responses):
    session = FakeSession(responses)
    return ShopifyClient(shop_domain="demo.myshopify.com", access_token="shpat_test", api_version="2025-07", session=session), session


def test_requires_credentials(monkeypatch):
    monkeypatch.setattr("bulktagger.core.shopify_client.SHOPIFY_SHOP_DOMAIN", None)
    monkeypatch.setattr("bulktagger.core.shopify_client.SHOPIFY_ACCESS_TOKEN", None)
    with pytest.raises(ValueError):
        ShopifyClient()


def test_execute_query_posts_to_admin_endpoint():
    client, session = _client(FakeResponse({"data": {"shop": {"name": "Demo"}}}))

    assert client.test_connection() is True

    call = session.calls[0]
    assert call.url == "https://demo.myshopify.com/admin/api/2025-07/graphql.json"
    assert call.kwargs["headers"]["X-Shopify-Access-Token"] == "shpat_test"
    assert call.kwargs["timeout"] > 0


def test_graphql_errors_raise():
    client, _ = _client(FakeResponse({"errors": [{"message": "Throttled"}]}))

    with pytest.raises(GraphQLError, match="Throttled"):
        client.execute_query("query { shop { name } }")


def test_http_errors_propagate():
    client, _ = _client(FakeResponse({}, status_code=500))

    with pytest.raises(requests.HTTPError):
        client.execute_query("query { shop { name } }")


def test_products_page_flattens_edges():
    payload = {
        "data": {
            "products": {
                "edges": [{"node": {"id": "gid://shopify/Product/1", "tags": ["a"]}}],
                "pageInfo": {"hasNextPage": True, "endCursor": "abc"},
            }
        }
    }
    client, session = _client(FakeResponse(payload))

    page = client.get_products_page("title:*shirt*", limit=50, cursor="prev")

    assert page == {"nodes": [{"id": "gid://shopify/Product/1", "tags": ["a"]}], "has_next_page": True, "end_cursor": "abc"}
    assert session.calls[0].kwargs["json"]["variables"] == {"first": 50, "query": "title:*shirt*", "cursor": "prev"}


def test_products_page_missing_products_is_key_error():
    client, _ = _client(FakeResponse({"data": {}}))
    with pytest.raises(KeyError):
        client.get_products_page("q")


def test_upload_sends_parameters_then_file():
    client, session = _client(FakeResponse(status_code=201))
    params = [{"name": "key", "value": "tmp/1/bulk"}, {"name": "policy", "value": "p"}]

    client.upload_staged_file("https://upload.example/", params, '{"input": {}}')

    kwargs = session.calls[0].kwargs
    assert kwargs["data"] == [("key", "tmp/1/bulk"), ("policy", "p")]
    name, content, mime = kwargs["files"]["file"]
    assert (name, content, mime) == ("bulk_tag_vars", b'{"input": {}}', "text/jsonl")


def test_upload_failure_raises():
    client, _ = _client(FakeResponse(status_code=403))
    with pytest.raises(requests.HTTPError):
        client.upload_staged_file("https://upload.example/", [], "x")


def test_run_bulk_mutation_uses_product_update_template():
    payload = {"data": {"bulkOperationRunMutation": {"bulkOperation": {"id": "op-1"}, "userErrors": []}}}
    client, session = _client(FakeResponse(payload))

    out = client.run_bulk_mutation("tmp/1/bulk")

    assert out["bulkOperation"]["id"] == "op-1"
    variables = session.calls[0].kwargs["json"]["variables"]
    assert variables == {"mutation": PRODUCT_UPDATE_TEMPLATE, "stagedUploadPath": "tmp/1/bulk"}


def test_current_bulk_operation_none():
    client, _ = _client(FakeResponse({"data": {"currentBulkOperation": None}}))
    assert client.get_current_bulk_operation() is None


def test_fetch_result_file_has_timeout():
    client, session = _client(FakeResponse(text="line\n"))

    assert client.fetch_result_file("https://results.example/r.jsonl") == "line\n"
    assert session.calls[0].method == "GET"
    assert session.calls[0].kwargs["timeout"] > 0
