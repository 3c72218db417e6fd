"""
Split collected products into mutations and products already in the target state.
"""

import logging
from typing import Iterable, List, Union

from .models import MutationPlan, MutationRecord, Product, Summary, TagAction

logger = logging.getLogger(__name__)


def normalize_tag(tag: str) -> str:
    """Trim a tag; blank tags are rejected."""
    cleaned = (tag or "").strip()
    if not cleaned:
        raise ValueError("Tag name cannot be empty.")
    return cleaned


def apply_tag(tags: List[str], tag: str) -> List[str]:
    """Existing tags in order, with ``tag`` appended."""
    return [*tags, tag]


def remove_tag(tags: List[str], tag: str) -> List[str]:
    """Existing tags in order, minus every case-insensitive match of ``tag``."""
    wanted = tag.lower()
    return [t for t in tags if t.lower() != wanted]


def plan_mutation(
    products: Iterable[Product],
    tag: str,
    action: Union[TagAction, str] = TagAction.APPLY,
) -> MutationPlan:
    """
    Build at most one mutation record per product.

    Applying skips products that already carry the tag; removing skips
    products that lack it. The returned summary is the pre-run estimate:
    ``updated`` counts submitted records, ``failed`` is always 0.
    """
    action = TagAction(action)
    tag = normalize_tag(tag)

    records: List[MutationRecord] = []
    total = 0
    for product in products:
        total += 1
        has_tag = product.has_tag(tag)
        if action is TagAction.APPLY and not has_tag:
            records.append(MutationRecord(product_id=product.id, tags=apply_tag(product.tags, tag)))
        elif action is TagAction.REMOVE and has_tag:
            records.append(MutationRecord(product_id=product.id, tags=remove_tag(product.tags, tag)))

    summary = Summary(
        updated=len(records),
        failed=0,
        skipped=total - len(records),
        total=total,
        tag=tag,
        action=action,
        estimated=True,
    )
    logger.info(
        "Planned %s of tag %r: %d to update, %d skipped, %d total",
        action.value, tag, summary.updated, summary.skipped, summary.total,
    )
    return MutationPlan(records=records, summary=summary)
