from __future__ import annotations

from typing import Annotated, List, Optional

from pydantic import BaseModel, Field

Tag = Annotated[str, Field(max_length=50)]


class ShareEntry(BaseModel):
    email: str
    shared_at: str


class SummarizeRequest(BaseModel):
    original_text: str = Field(..., min_length=10, max_length=50_000, description="Meeting transcript or notes")
    custom_prompt: str = Field(..., min_length=5, max_length=1_000, description="How the summary should look")
    title: str = Field(..., min_length=1, max_length=200)
    tags: List[Tag] = Field(default_factory=list)


class UpdateSummaryRequest(BaseModel):
    edited_summary: str = Field(..., min_length=1, max_length=10_000)
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    tags: Optional[List[Tag]] = None


class SummaryCreated(BaseModel):
    id: str
    title: str
    generated_summary: str
    final_summary: str
    tags: List[str]
    source: str = Field(..., description="groq|fallback")
    created_at: str


class SummaryDetail(BaseModel):
    id: str
    title: str
    original_text: str
    custom_prompt: str
    generated_summary: str
    edited_summary: Optional[str] = None
    final_summary: str
    tags: List[str]
    source: str
    is_shared: bool
    shared_with: List[ShareEntry] = Field(default_factory=list)
    created_at: str
    updated_at: str


class SummaryListItem(BaseModel):
    id: str
    title: str
    tags: List[str]
    is_shared: bool
    created_at: str
    updated_at: str


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class SummaryListResponse(BaseModel):
    ok: bool = True
    data: List[SummaryListItem]
    pagination: Pagination


