from functools import lru_cache
from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from ...core.job_context import CONTEXT_PARAMS, CHECK_STATUS_PARAM
from ...core.models import FilterCriteria, TagAction
from ...services.bulk_tag_service import BulkTagService

router = APIRouter(prefix="/tags", tags=["tags"])


@lru_cache(maxsize=1)
def get_service() -> BulkTagService:
    try:
        return BulkTagService()
    except ValueError as exc:
        # Missing credentials
        raise HTTPException(status_code=503, detail=str(exc)) from exc


class TagRunRequest(BaseModel):
    keyword: str = ""
    productType: str = ""
    collectionHandle: str = ""
    tagToApply: str = ""
    action: TagAction = TagAction.APPLY


@router.get("")
def load(
    request: Request,
    keyword: str = "",
    productType: str = "",
    collectionHandle: str = "",
    preview: bool = False,
    svc: BulkTagService = Depends(get_service),
):
    """Preview matching products, or check the tracked job when checkStatus=true."""
    params = request.query_params
    if params.get(CHECK_STATUS_PARAM, "").lower() == "true":
        context_params = {name: params[name] for name in CONTEXT_PARAMS if name in params}
        return svc.status(context_params)

    criteria = FilterCriteria(keyword=keyword, product_type=productType, collection_handle=collectionHandle)
    return svc.preview(criteria, preview=preview)


@router.post("")
def start(body: TagRunRequest, svc: BulkTagService = Depends(get_service)):
    """Start a bulk tag run for the filtered products."""
    criteria = FilterCriteria(
        keyword=body.keyword,
        product_type=body.productType,
        collection_handle=body.collectionHandle,
    )
    out = svc.start(criteria, body.tagToApply, body.action)
    if not out.get("success"):
        status_code = 502 if out.get("stage") else 400
        raise HTTPException(status_code=status_code, detail=out.get("error"))
    return out
