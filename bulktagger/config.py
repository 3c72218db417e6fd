"""
Configuration module for the bulk tagger.
Contains Shopify API settings, pagination limits and timeouts.
"""

import os
from typing import Optional
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


# Shopify Admin API Configuration
SHOPIFY_SHOP_DOMAIN = os.getenv("SHOPIFY_SHOP_DOMAIN")
SHOPIFY_ACCESS_TOKEN = os.getenv("SHOPIFY_ACCESS_TOKEN")
SHOPIFY_API_VERSION = os.getenv("SHOPIFY_API_VERSION", "2025-07")


def build_api_url(shop_domain: Optional[str], api_version: str = SHOPIFY_API_VERSION) -> Optional[str]:
    """Admin GraphQL endpoint for a shop, or None when no shop is configured."""
    if not shop_domain:
        return None
    domain = shop_domain.strip().rstrip("/")
    if domain.startswith("https://"):
        domain = domain[len("https://"):]
    return f"https://{domain}/admin/api/{api_version}/graphql.json"


SHOPIFY_API_URL = build_api_url(SHOPIFY_SHOP_DOMAIN)

# Pagination
FETCH_PAGE_LIMIT = 250  # Max products per page allowed by the Admin API
PREVIEW_COUNT = 10  # Products shown in preview mode

# Rate limiting / retries
RATE_LIMIT_DELAY = _env_float("RATE_LIMIT_DELAY", 0.3)  # Seconds between page fetches
MAX_RETRIES = 3  # Adapter-level retries for 429/5xx responses

# Timeouts (seconds)
REQUEST_TIMEOUT = _env_float("REQUEST_TIMEOUT", 30.0)
UPLOAD_TIMEOUT = _env_float("UPLOAD_TIMEOUT", 60.0)
RESULT_FETCH_TIMEOUT = _env_float("RESULT_FETCH_TIMEOUT", 60.0)

# Staged upload settings for bulk mutation variables
STAGED_UPLOAD_FILENAME = "bulk_tag_vars"
STAGED_UPLOAD_MIME_TYPE = "text/jsonl"

# Client-driven polling cadence (CLI only; the core never sleeps between polls)
POLL_INTERVAL_SECONDS = _env_float("POLL_INTERVAL_SECONDS", 3.0)

# Validation configuration
REQUIRED_ENV_VARS = ["SHOPIFY_SHOP_DOMAIN", "SHOPIFY_ACCESS_TOKEN"]
