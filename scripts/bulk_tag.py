#!/usr/bin/env python3
"""
Apply or remove a tag on every product matching the given filters.

Examples:
    python scripts/bulk_tag.py --keyword shirt --tag sale
    python scripts/bulk_tag.py --product-type Shoes --tag clearance --remove
    python scripts/bulk_tag.py --collection summer --preview
"""

import argparse
import json
import logging
import sys
import time
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from bulktagger.config import POLL_INTERVAL_SECONDS
from bulktagger.core.models import FilterCriteria, TagAction
from bulktagger.services.bulk_tag_service import BulkTagService

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
logger = logging.getLogger("bulk_tag")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Bulk tag Shopify products via a bulk mutation")
    parser.add_argument("--keyword", default="", help="Title contains this text")
    parser.add_argument("--product-type", default="", help="Exact product type")
    parser.add_argument("--collection", default="", help="Collection handle")
    parser.add_argument("--tag", default="", help="Tag to apply (or remove with --remove)")
    parser.add_argument("--remove", action="store_true", help="Remove the tag instead of applying it")
    parser.add_argument("--preview", action="store_true", help="Only show matching products")
    parser.add_argument("--no-wait", action="store_true", help="Print the job parameters and exit")
    parser.add_argument("--interval", type=float, default=POLL_INTERVAL_SECONDS, help="Seconds between status checks")
    parser.add_argument("--max-polls", type=int, default=0, help="Stop polling after N checks (0 = no limit)")
    return parser.parse_args()


def wait_for_summary(svc: BulkTagService, job_params: dict, interval: float, max_polls: int = 0) -> dict:
    """Poll until the bulk operation reaches a terminal state."""
    polls = 0
    while True:
        polls += 1
        out = svc.status(job_params)
        status = out.get("bulkOperationStatus") or {}
        if out.get("error"):
            logger.warning("Status check %d: %s", polls, out["error"])
        else:
            logger.info("Status check %d: %s", polls, status.get("status", "unknown"))

        if not out.get("keepPolling"):
            return out
        job_params = out.get("jobParams") or job_params
        if max_polls and polls >= max_polls:
            logger.warning("Giving up after %d status checks; job parameters: %s", polls, job_params)
            return out
        time.sleep(interval)


def main() -> int:
    args = parse_args()
    criteria = FilterCriteria(
        keyword=args.keyword,
        product_type=args.product_type,
        collection_handle=args.collection,
    )

    try:
        svc = BulkTagService()
    except ValueError as exc:
        logger.error("%s", exc)
        return 2

    if args.preview:
        out = svc.preview(criteria)
        print(json.dumps(out, indent=2))
        return 1 if out.get("error") else 0

    action = TagAction.REMOVE if args.remove else TagAction.APPLY
    started = svc.start(criteria, args.tag, action)
    if not started.get("success"):
        logger.error("❌ %s", started.get("error"))
        return 1

    print(json.dumps({"preRunSummary": started["preRunSummary"]}, indent=2))
    job_params = started.get("jobParams")
    if not job_params:
        logger.info("✅ Nothing to submit")
        return 0
    if args.no_wait:
        print(json.dumps({"jobParams": job_params}, indent=2))
        return 0

    out = wait_for_summary(svc, job_params, args.interval, args.max_polls)
    if out.get("keepPolling"):
        return 3
    if not out.get("finalSummary"):
        logger.error("❌ Lost track of the bulk operation; no summary available")
        return 1
    print(json.dumps({"finalSummary": out["finalSummary"]}, indent=2))
    if out.get("error"):
        logger.error("❌ %s", out["error"])
        return 1
    logger.info("✅ Bulk tag run finished")
    return 0


if __name__ == "__main__":
    sys.exit(main())
