"""
Bulk Tagger - Shopify bulk product tagging
"""

__version__ = "1.0.0"
__author__ = "Bulk Tagger Team"

from .core.shopify_client import ShopifyClient
from .services.bulk_tag_service import BulkTagService

__all__ = [
    "ShopifyClient",
    "BulkTagService",
]
