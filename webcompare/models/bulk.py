"""Bulk comparison job tracking."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from webcompare.models.comparison import ComparisonOutcome


class BulkPageResult(BaseModel):
    page_id: str
    page_name: str
    page_path: str
    success: bool
    comparison: Optional[ComparisonOutcome] = None
    error: Optional[str] = None


class BulkJob(BaseModel):
    job_id: str
    website_id: str
    status: Literal["accepted", "running", "completed"] = "accepted"
    total_pages: int
    results: list[BulkPageResult] = Field(default_factory=list)
    submitted_at: datetime
    completed_at: Optional[datetime] = None

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success)
