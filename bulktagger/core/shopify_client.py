"""
Shopify Admin GraphQL client for products, staged uploads and bulk operations.
"""

import logging
from typing import Any, Dict, List, Optional
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..config import (
    SHOPIFY_SHOP_DOMAIN,
    SHOPIFY_ACCESS_TOKEN,
    SHOPIFY_API_VERSION,
    FETCH_PAGE_LIMIT,
    MAX_RETRIES,
    REQUEST_TIMEOUT,
    UPLOAD_TIMEOUT,
    RESULT_FETCH_TIMEOUT,
    STAGED_UPLOAD_FILENAME,
    STAGED_UPLOAD_MIME_TYPE,
    build_api_url,
)
from .errors import GraphQLError

logger = logging.getLogger(__name__)


PRODUCTS_PAGE_QUERY = """
query getProducts($first: Int!, $query: String, $cursor: String) {
    products(first: $first, query: $query, after: $cursor) {
        edges {
            node {
                id
                title
                handle
                productType
                tags
            }
        }
        pageInfo {
            hasNextPage
            endCursor
        }
    }
}
"""

STAGED_UPLOAD_MUTATION = """
mutation stagedUploadsCreate($input: [StagedUploadInput!]!) {
    stagedUploadsCreate(input: $input) {
        userErrors {
            field
            message
        }
        stagedTargets {
            url
            resourceUrl
            parameters {
                name
                value
            }
        }
    }
}
"""

BULK_RUN_MUTATION = """
mutation bulkOperationRunMutation($mutation: String!, $stagedUploadPath: String!) {
    bulkOperationRunMutation(mutation: $mutation, stagedUploadPath: $stagedUploadPath) {
        bulkOperation {
            id
            url
            status
        }
        userErrors {
            field
            message
        }
    }
}
"""

# Executed once per uploaded line, with the line as its variables
PRODUCT_UPDATE_TEMPLATE = (
    "mutation call($input: ProductInput!) { "
    "productUpdate(input: $input) { product { id } userErrors { message field } } }"
)

CURRENT_BULK_OPERATION_QUERY = """
query {
    currentBulkOperation(type: MUTATION) {
        id
        status
        errorCode
        createdAt
        completedAt
        objectCount
        url
    }
}
"""


class ShopifyClient:
    """Client for interacting with the Shopify Admin GraphQL API."""

    def __init__(
        self,
        shop_domain: Optional[str] = None,
        access_token: Optional[str] = None,
        api_version: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize Shopify client.

        Args:
            shop_domain: myshopify.com domain. Falls back to SHOPIFY_SHOP_DOMAIN.
            access_token: Admin API access token. Falls back to SHOPIFY_ACCESS_TOKEN.
            api_version: Admin API version, e.g. "2025-07".
            session: Optional pre-built requests session (used by tests).
        """
        self.shop_domain = shop_domain or SHOPIFY_SHOP_DOMAIN
        self.access_token = access_token or SHOPIFY_ACCESS_TOKEN
        if not self.shop_domain or not self.access_token:
            raise ValueError(
                "Shopify credentials are required. Set SHOPIFY_SHOP_DOMAIN and SHOPIFY_ACCESS_TOKEN in environment."
            )

        self.api_version = api_version or SHOPIFY_API_VERSION
        self.api_url = build_api_url(self.shop_domain, self.api_version)
        self.headers = {
            "X-Shopify-Access-Token": self.access_token,
            "Content-Type": "application/json",
        }

        if session is not None:
            self.session = session
        else:
            # Set up session with retry strategy
            self.session = requests.Session()
            retry_strategy = Retry(
                total=MAX_RETRIES,
                backoff_factor=1,
                status_forcelist=[429, 500, 502, 503, 504],
            )
            adapter = HTTPAdapter(max_retries=retry_strategy)
            self.session.mount("https://", adapter)
            self.session.mount("http://", adapter)

    def execute_query(self, query: str, variables: Optional[Dict] = None) -> Dict:
        """
        Execute a GraphQL query against the Admin API.

        Args:
            query: GraphQL query string
            variables: Optional variables for the query

        Returns:
            API response as dictionary

        Raises:
            requests.RequestException: If the HTTP request fails or times out
            GraphQLError: If the response carries top-level errors
        """
        payload = {
            "query": query,
            "variables": variables or {}
        }

        try:
            response = self.session.post(
                self.api_url,
                json=payload,
                headers=self.headers,
                timeout=REQUEST_TIMEOUT,
            )
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            logger.error(f"API request failed: {e}")
            raise

        if data.get("errors"):
            logger.error(f"GraphQL errors: {data['errors']}")
            raise GraphQLError(data["errors"])

        return data

    def test_connection(self) -> bool:
        """
        Test the API connection by reading the shop name.

        Returns:
            True if connection is successful, False otherwise
        """
        query = """
        query {
            shop {
                name
            }
        }
        """

        try:
            result = self.execute_query(query)
            shop = (result.get("data") or {}).get("shop")
            if shop:
                logger.info(f"Successfully connected to shop: {shop['name']}")
                return True
            return False
        except Exception as e:
            logger.error(f"Connection test failed: {e}")
            return False

    def get_products_page(
        self,
        query_string: Optional[str],
        limit: int = FETCH_PAGE_LIMIT,
        cursor: Optional[str] = None,
    ) -> Dict:
        """
        Get one page of products matching a search query.

        Args:
            query_string: Admin API product search query
            limit: Number of products to fetch (default: FETCH_PAGE_LIMIT)
            cursor: Pagination cursor (endCursor of the previous page)

        Returns:
            Dictionary with "nodes", "has_next_page" and "end_cursor"
        """
        variables = {"first": limit, "query": query_string, "cursor": cursor}
        result = self.execute_query(PRODUCTS_PAGE_QUERY, variables)

        products = (result.get("data") or {}).get("products")
        if products is None:
            raise KeyError("response is missing data.products")

        page_info = products["pageInfo"]
        return {
            "nodes": [edge["node"] for edge in products["edges"]],
            "has_next_page": bool(page_info["hasNextPage"]),
            "end_cursor": page_info.get("endCursor"),
        }

    def create_staged_upload(
        self,
        filename: str = STAGED_UPLOAD_FILENAME,
        mime_type: str = STAGED_UPLOAD_MIME_TYPE,
    ) -> Dict[str, Any]:
        """
        Request a write-once upload target for bulk mutation variables.

        Returns:
            The stagedUploadsCreate payload (userErrors and stagedTargets)
        """
        variables = {
            "input": [
                {
                    "resource": "BULK_MUTATION_VARIABLES",
                    "filename": filename,
                    "mimeType": mime_type,
                    "httpMethod": "POST",
                }
            ]
        }
        result = self.execute_query(STAGED_UPLOAD_MUTATION, variables)
        return (result.get("data") or {}).get("stagedUploadsCreate") or {}

    def upload_staged_file(
        self,
        url: str,
        parameters: List[Dict[str, str]],
        content: str,
        filename: str = STAGED_UPLOAD_FILENAME,
        mime_type: str = STAGED_UPLOAD_MIME_TYPE,
    ) -> requests.Response:
        """
        POST the variables file to the staged target.

        The target's signed parameters go first as form fields, the file last.
        """
        form_fields = [(p["name"], p["value"]) for p in parameters]
        files = {"file": (filename, content.encode("utf-8"), mime_type)}
        response = self.session.post(url, data=form_fields, files=files, timeout=UPLOAD_TIMEOUT)
        response.raise_for_status()
        return response

    def run_bulk_mutation(
        self,
        staged_upload_path: str,
        mutation: str = PRODUCT_UPDATE_TEMPLATE,
    ) -> Dict[str, Any]:
        """
        Start an asynchronous bulk mutation over an uploaded variables file.

        Returns:
            The bulkOperationRunMutation payload (bulkOperation and userErrors)
        """
        variables = {"mutation": mutation, "stagedUploadPath": staged_upload_path}
        result = self.execute_query(BULK_RUN_MUTATION, variables)
        return (result.get("data") or {}).get("bulkOperationRunMutation") or {}

    def get_current_bulk_operation(self) -> Optional[Dict[str, Any]]:
        """
        Fetch the shop's current bulk mutation operation, if any.
        """
        result = self.execute_query(CURRENT_BULK_OPERATION_QUERY)
        return (result.get("data") or {}).get("currentBulkOperation")

    def fetch_result_file(self, url: str) -> str:
        """
        Download the JSONL result file of a completed bulk operation.
        """
        response = self.session.get(url, timeout=RESULT_FETCH_TIMEOUT)
        response.raise_for_status()
        return response.text
