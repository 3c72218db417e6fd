"""
Pytest configuration and shared fixtures.
"""

import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


def make_node(index: int, tags: Optional[List[str]] = None, title: Optional[str] = None) -> Dict[str, Any]:
    return {
        "id": f"gid://shopify/Product/{index}",
        "title": title or f"Shirt {index}",
        "handle": f"shirt-{index}",
        "productType": "Shirts",
        "tags": list(tags or []),
    }


def make_page(nodes: List[Dict[str, Any]], has_next_page: bool, cursor: Optional[str] = None) -> Dict[str, Any]:
    return {"nodes": nodes, "has_next_page": has_next_page, "end_cursor": cursor}


STAGED_TARGET = {
    "url": "https://shopify-staged-uploads.storage.googleapis.com/",
    "resourceUrl": None,
    "parameters": [
        {"name": "key", "value": "tmp/123/bulk/bulk_tag_vars"},
        {"name": "Content-Type", "value": "text/jsonl"},
        {"name": "policy", "value": "abc"},
    ],
}


class FakeShopifyClient:
    """In-memory stand-in for ShopifyClient that records every call."""

    def __init__(
        self,
        pages: Optional[List[Any]] = None,
        staged: Any = None,
        upload_error: Optional[Exception] = None,
        bulk_run: Any = None,
        operations: Optional[List[Any]] = None,
        result_file: Any = "",
    ):
        self.pages = list(pages or [])
        self.staged = staged if staged is not None else {"userErrors": [], "stagedTargets": [STAGED_TARGET]}
        self.upload_error = upload_error
        self.bulk_run = bulk_run if bulk_run is not None else {
            "bulkOperation": {"id": "gid://shopify/BulkOperation/1", "url": None, "status": "CREATED"},
            "userErrors": [],
        }
        self.operations = list(operations or [])
        self.result_file = result_file

        self.page_calls: List[Dict[str, Any]] = []
        self.uploads: List[Dict[str, Any]] = []
        self.bulk_run_calls: List[str] = []
        self.status_calls = 0
        self.result_calls: List[str] = []

    def get_products_page(self, query_string, limit=250, cursor=None):
        self.page_calls.append({"query": query_string, "limit": limit, "cursor": cursor})
        page = self.pages.pop(0)
        if isinstance(page, Exception):
            raise page
        return page

    def create_staged_upload(self, *args, **kwargs):
        if isinstance(self.staged, Exception):
            raise self.staged
        return self.staged

    def upload_staged_file(self, url, parameters, content, *args, **kwargs):
        if self.upload_error is not None:
            raise self.upload_error
        self.uploads.append({"url": url, "parameters": parameters, "content": content})

    def run_bulk_mutation(self, staged_upload_path, *args, **kwargs):
        self.bulk_run_calls.append(staged_upload_path)
        if isinstance(self.bulk_run, Exception):
            raise self.bulk_run
        return self.bulk_run

    def get_current_bulk_operation(self):
        self.status_calls += 1
        op = self.operations.pop(0) if len(self.operations) > 1 else (self.operations[0] if self.operations else None)
        if isinstance(op, Exception):
            raise op
        return op

    def fetch_result_file(self, url):
        self.result_calls.append(url)
        if isinstance(self.result_file, Exception):
            raise self.result_file
        return self.result_file


def operation(status: str, url: Optional[str] = None, op_id: str = "gid://shopify/BulkOperation/1", **extra) -> Dict[str, Any]:
    payload = {
        "id": op_id,
        "status": status,
        "errorCode": None,
        "createdAt": "2026-10-17T10:00:00Z",
        "completedAt": None,
        "objectCount": "0",
        "url": url,
    }
    payload.update(extra)
    return payload


@pytest.fixture
def fake_client():
    """Factory building a FakeShopifyClient with the given canned responses."""
    return FakeShopifyClient

