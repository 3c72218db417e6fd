"""
Build Admin API product search queries from filter criteria.
"""

from typing import List, Optional

from .models import FilterCriteria


def _strip_quotes(value: str) -> str:
    return value.replace("'", "").replace('"', "")


def _escape_single_quotes(value: str) -> str:
    return value.replace("'", "\\'")


def build_product_query(criteria: FilterCriteria) -> Optional[str]:
    """
    Render filter criteria as a product search query.

    Blank fields are ignored. Returns None when no field is set, which callers
    treat as "nothing to do" rather than an error.
    """
    parts: List[str] = []

    keyword = _strip_quotes(criteria.keyword.strip()).strip()
    if keyword:
        parts.append(f"title:*{keyword}*")

    product_type = criteria.product_type.strip()
    if product_type:
        parts.append(f"product_type:'{_escape_single_quotes(product_type)}'")

    collection = criteria.collection_handle.strip()
    if collection:
        parts.append(f"collection:'{_escape_single_quotes(collection)}'")

    return " AND ".join(parts) if parts else None
