"""
Health check endpoints for system status
"""

from fastapi import APIRouter
from typing import Dict, Any
import logging
from datetime import datetime

from ...core.shopify_client import ShopifyClient

router = APIRouter(prefix="/health", tags=["health"])
logger = logging.getLogger(__name__)


@router.get("/")
async def health_check() -> Dict[str, Any]:
    """Report whether the Shopify Admin API is reachable with the configured token"""
    health_status = {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "services": {}
    }

    try:
        shopify = ShopifyClient()
        if shopify.test_connection():
            health_status["services"]["shopify_api"] = {
                "status": "healthy",
                "authenticated": True
            }
        else:
            health_status["services"]["shopify_api"] = {
                "status": "unhealthy",
                "authenticated": False
            }
            health_status["status"] = "degraded"
    except Exception as e:
        logger.warning("Shopify health check failed: %s", e)
        health_status["services"]["shopify_api"] = {
            "status": "unhealthy",
            "error": str(e)
        }
        health_status["status"] = "degraded"

    return health_status
