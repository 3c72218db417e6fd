"""
Pydantic models for data validation and type safety.
"""

import json
from typing import Any, Dict, List, Optional
from enum import Enum
from pydantic import BaseModel, Field
from pydantic import ConfigDict
from pydantic import field_validator, model_validator


class TagAction(str, Enum):
    """Mutation applied to every matching product"""
    APPLY = "apply"
    REMOVE = "remove"

    @property
    def skipped_key(self) -> str:
        """Wire name of the 'already in target state' counter"""
        return "alreadyHadTag" if self is TagAction.APPLY else "didNotHaveTag"


class BulkOperationState(str, Enum):
    """Lifecycle states reported by currentBulkOperation"""
    CREATED = "CREATED"
    RUNNING = "RUNNING"
    CANCELING = "CANCELING"
    COMPLETED = "COMPLETED"
    CANCELED = "CANCELED"
    FAILED = "FAILED"
    EXPIRED = "EXPIRED"


TERMINAL_STATES = frozenset({
    BulkOperationState.COMPLETED.value,
    BulkOperationState.FAILED.value,
    BulkOperationState.CANCELED.value,
    BulkOperationState.EXPIRED.value,
})


class FilterCriteria(BaseModel):
    """Filters selecting the products to tag"""
    keyword: str = ""
    product_type: str = ""
    collection_handle: str = ""

    @field_validator("keyword", "product_type", "collection_handle", mode="before")
    @classmethod
    def none_to_blank(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value)

    def is_blank(self) -> bool:
        return not (self.keyword.strip() or self.product_type.strip() or self.collection_handle.strip())


class Product(BaseModel):
    """Snapshot of a product taken while collecting"""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str = ""
    handle: str = ""
    product_type: str = Field(default="", alias="productType")
    tags: List[str] = Field(default_factory=list)

    @field_validator("title", "handle", "product_type", mode="before")
    @classmethod
    def none_to_blank(cls, value: Any) -> str:
        return "" if value is None else value

    @field_validator("tags", mode="before")
    @classmethod
    def parse_tags(cls, value: Any) -> List[str]:
        if value is None or value == "":
            return []
        if isinstance(value, str):
            # Older API versions return a comma separated string
            return [t.strip() for t in value.split(",") if t.strip()]
        return list(value)

    def has_tag(self, tag: str) -> bool:
        wanted = tag.strip().lower()
        return any(t.lower() == wanted for t in self.tags)


class MutationRecord(BaseModel):
    """One line of the bulk mutation variables file"""
    product_id: str
    tags: List[str]

    def to_jsonl_line(self) -> str:
        return json.dumps({"input": {"id": self.product_id, "tags": self.tags}}, ensure_ascii=False)


class Summary(BaseModel):
    """
    Outcome counts for a run.

    ``skipped`` counts products already in the target state (alreadyHadTag
    when applying, didNotHaveTag when removing). ``estimated`` is True for
    pre-run summaries, and ``error`` is set only on fallback summaries.
    """
    updated: int = Field(ge=0)
    failed: int = Field(default=0, ge=0)
    skipped: int = Field(default=0, ge=0)
    total: int = Field(ge=0)
    tag: str
    action: TagAction = TagAction.APPLY
    estimated: bool = False
    error: Optional[str] = None

    @model_validator(mode="after")
    def check_totals(self) -> "Summary":
        if self.total != self.updated + self.failed + self.skipped:
            raise ValueError(
                f"inconsistent summary: total={self.total} != updated={self.updated} "
                f"+ failed={self.failed} + skipped={self.skipped}"
            )
        return self

    @property
    def already_had_tag(self) -> Optional[int]:
        return self.skipped if self.action is TagAction.APPLY else None

    @property
    def did_not_have_tag(self) -> Optional[int]:
        return self.skipped if self.action is TagAction.REMOVE else None

    def to_payload(self) -> Dict[str, Any]:
        """Camel-cased payload with the action specific skipped counter"""
        return {
            "updated": self.updated,
            self.action.skipped_key: self.skipped,
            "failed": self.failed,
            "total": self.total,
            "tag": self.tag,
            "action": self.action.value,
            "estimated": self.estimated,
            "error": self.error,
        }


class JobContext(BaseModel):
    """Facts needed to finish a run once its bulk job completes"""
    total_filtered: int = Field(ge=0)
    total_processed: int = Field(ge=0)
    tag: str
    action: TagAction = TagAction.APPLY
    job_id: Optional[str] = None

    @model_validator(mode="after")
    def check_counts(self) -> "JobContext":
        if self.total_processed > self.total_filtered:
            raise ValueError("total_processed cannot exceed total_filtered")
        if not self.tag.strip():
            raise ValueError("tag cannot be blank")
        return self


class BulkOperationStatus(BaseModel):
    """Current bulk mutation operation as reported by the platform"""
    id: str
    status: str
    object_count: int = 0
    url: Optional[str] = None
    error_code: Optional[str] = None
    created_at: Optional[str] = None
    completed_at: Optional[str] = None

    @field_validator("object_count", mode="before")
    @classmethod
    def parse_count(cls, value: Any) -> int:
        if value is None or value == "":
            return 0
        try:
            return int(value)
        except (TypeError, ValueError):
            return 0

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES

    @property
    def is_completed(self) -> bool:
        return self.status == BulkOperationState.COMPLETED.value

    def to_payload(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "status": self.status,
            "objectCount": self.object_count,
            "url": self.url,
            "errorCode": self.error_code,
        }


class MutationPlan(BaseModel):
    """Records to submit plus the pre-run estimate"""
    records: List[MutationRecord] = Field(default_factory=list)
    summary: Summary

    @property
    def is_empty(self) -> bool:
        return not self.records


class SubmissionResult(BaseModel):
    """Outcome of submit_job; job_id is None when nothing needed submitting"""
    job_id: Optional[str] = None
    summary: Summary
