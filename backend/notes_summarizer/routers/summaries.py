from __future__ import annotations

import logging
import math
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from ..errors import ApiError, ConfigurationError
from ..models.summary import (
    Pagination,
    SummarizeRequest,
    SummaryCreated,
    SummaryDetail,
    SummaryListItem,
    SummaryListResponse,
    UpdateSummaryRequest,
)
from ..services import ai
from ..state import State, get_state

router = APIRouter(prefix="/summarize", tags=["summaries"])
logger = logging.getLogger("app")


def _get_or_404(state: State, summary_id: str) -> Dict[str, Any]:
    summary = state.store.get(summary_id)
    if summary is None:
        raise HTTPException(status_code=404, detail="Summary not found")
    return summary


@router.post("", status_code=201)
def create_summary(payload: SummarizeRequest, request: Request, state: State = Depends(get_state)) -> Dict[str, Any]:
    try:
        generated = ai.generate_summary(state.ai, payload.original_text, payload.custom_prompt)
    except ConfigurationError as e:
        raise ApiError(500, "Failed to generate summary", message=str(e))

    record = state.store.create(
        title=payload.title,
        original_text=payload.original_text,
        custom_prompt=payload.custom_prompt,
        generated_summary=generated.text,
        tags=payload.tags,
        source=generated.source,
    )
    logger.info(
        f"summary generated and saved id={record['id']} source={generated.source}",
        extra={"request_id": getattr(request.state, "request_id", None)},
    )
    return {"ok": True, "data": SummaryCreated(**record).model_dump()}


@router.get("", response_model=SummaryListResponse)
def list_summaries(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    state: State = Depends(get_state),
) -> SummaryListResponse:
    items = state.store.list_page(page=page, limit=limit)
    total = state.store.count()
    return SummaryListResponse(
        data=[SummaryListItem(**it) for it in items],
        pagination=Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit)),
    )


@router.post("/test-ai")
def check_ai(state: State = Depends(get_state)) -> Dict[str, Any]:
    result = ai.check_connection(state.ai)
    if not result["success"]:
        raise ApiError(500, "AI service connection failed", details=result.get("error"))
    return {"ok": True, "message": "AI service is working correctly", "response": result.get("response")}


@router.get("/{summary_id}")
def get_summary(summary_id: str, state: State = Depends(get_state)) -> Dict[str, Any]:
    summary = _get_or_404(state, summary_id)
    detail = SummaryDetail(**summary, shared_with=state.store.share_history(summary_id))
    return {"ok": True, "data": detail.model_dump()}


@router.put("/{summary_id}")
def update_summary(summary_id: str, payload: UpdateSummaryRequest, state: State = Depends(get_state)) -> Dict[str, Any]:
    updated = state.store.update(
        summary_id,
        edited_summary=payload.edited_summary,
        title=payload.title,
        tags=payload.tags,
    )
    if updated is None:
        raise HTTPException(status_code=404, detail="Summary not found")
    data = {
        k: updated[k]
        for k in ("id", "title", "generated_summary", "edited_summary", "final_summary", "tags", "updated_at")
    }
    return {"ok": True, "data": data}


@router.delete("/{summary_id}")
def delete_summary(summary_id: str, state: State = Depends(get_state)) -> Dict[str, Any]:
    if not state.store.delete(summary_id):
        raise HTTPException(status_code=404, detail="Summary not found")
    return {"ok": True, "message": "Summary deleted successfully"}
