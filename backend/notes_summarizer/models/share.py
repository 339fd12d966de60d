from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from .summary import ShareEntry


class ShareRequest(BaseModel):
    summary_id: str = Field(..., pattern=r"^[0-9a-fA-F]{24}$", description="Summary to send")
    recipients: List[str] = Field(..., min_length=1, description="Email addresses")


class EmailCheckRequest(BaseModel):
    test_email: str = Field(..., min_length=3, max_length=320)


class ShareResult(BaseModel):
    summary_id: str
    recipients: List[str]
    shared_at: str
    message_id: Optional[str] = None


class ShareHistory(BaseModel):
    summary_id: str
    title: str
    is_shared: bool
    share_history: List[ShareEntry]
    total_shares: int
    unique_recipients: int


class ShareStats(BaseModel):
    total_summaries: int
    shared_summaries: int
    unshared_summaries: int
    share_rate: float = Field(..., description="Percent of summaries shared, one decimal")
    total_shares: int
    unique_recipients: int
    average_shares_per_summary: float
