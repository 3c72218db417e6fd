"""
Exhaustive cursor pagination over the products matching a search query.
"""

import logging
import time
from typing import Callable, List, Optional, Tuple

import requests
from pydantic import ValidationError

from ..config import FETCH_PAGE_LIMIT, PREVIEW_COUNT, RATE_LIMIT_DELAY
from .errors import FetchError, GraphQLError
from .models import Product

logger = logging.getLogger(__name__)


def _fetch_page(client, query: str, page_size: int, cursor: Optional[str], page_number: int) -> dict:
    try:
        return client.get_products_page(query, limit=page_size, cursor=cursor)
    except (requests.RequestException, GraphQLError) as exc:
        raise FetchError(f"Failed to fetch products page {page_number}: {exc}") from exc
    except (KeyError, TypeError, ValueError) as exc:
        raise FetchError(f"Unexpected response shape on products page {page_number}: {exc}") from exc


def collect_all(
    client,
    query: str,
    page_size: int = FETCH_PAGE_LIMIT,
    delay: float = RATE_LIMIT_DELAY,
    sleep: Callable[[float], None] = time.sleep,
) -> List[Product]:
    """
    Retrieve every product matching ``query``, in arrival order.

    Pages are fetched one after another, pausing ``delay`` seconds between
    them (never after the last page). Any failing page aborts the whole
    collection with FetchError; a partial list is never returned.
    """
    products: List[Product] = []
    cursor: Optional[str] = None
    page_number = 0

    while True:
        page_number += 1
        page = _fetch_page(client, query, page_size, cursor, page_number)

        try:
            products.extend(Product.model_validate(node) for node in page["nodes"])
        except ValidationError as exc:
            raise FetchError(f"Malformed product on page {page_number}: {exc}") from exc

        logger.debug("Fetched page %d (%d products so far)", page_number, len(products))

        if not page["has_next_page"]:
            break
        cursor = page["end_cursor"]
        if not cursor:
            raise FetchError(f"Page {page_number} reported more pages but no cursor")
        if delay:
            sleep(delay)

    logger.info("Collected %d products for query %r in %d page(s)", len(products), query, page_number)
    return products


def collect_preview(
    client,
    query: str,
    preview_count: int = PREVIEW_COUNT,
    **kwargs,
) -> Tuple[List[Product], int]:
    """
    Collect the full match set and return the first ``preview_count`` products
    together with the total number of matches.
    """
    products = collect_all(client, query, **kwargs)
    return products[:preview_count], len(products)
