"""Comparison records and the values returned by the engine."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field


class ComparisonStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class Comparison(BaseModel):
    comparison_id: str
    page_id: str
    created_at: datetime
    sequence: int  # tie-breaker for rows sharing a timestamp
    status: ComparisonStatus = ComparisonStatus.PENDING
    baseline_image: Optional[str] = None
    current_image: Optional[str] = None
    diff_image: Optional[str] = None
    diff_percentage: Optional[float] = Field(default=None, ge=0.0, le=100.0)
    error_message: Optional[str] = None

    @property
    def order_key(self) -> tuple[datetime, int]:
        return (self.created_at, self.sequence)


class ComparisonRegistry(BaseModel):
    last_updated: str = ""
    next_sequence: int = 1
    comparisons: dict[str, Comparison] = Field(default_factory=dict)


class ComparisonOutcome(BaseModel):
    """Result of one run_comparison call."""

    comparison_id: str
    status: ComparisonStatus
    diff_percentage: Optional[float] = None
    is_first_comparison: bool


class BaselineCandidate(BaseModel):
    """An image from a page's history that may be chosen as the new baseline."""

    candidate_id: str  # "{comparison_id}-{role}"
    source_comparison_id: str
    image_ref: str
    role: Literal["baseline", "current"]
    created_at: datetime
    diff_percentage: Optional[float] = None
