"""Payloads handed to failure notifiers."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class Recipient(BaseModel):
    email: str
    name: str | None = None

    def formatted(self) -> str:
        return f"{self.name} <{self.email}>" if self.name else self.email


class ComparisonFailure(BaseModel):
    page_name: str
    page_path: str
    page_url: str
    website_name: str
    website_url: str
    error_message: str
    timestamp: datetime


class FailedPage(BaseModel):
    page_name: str
    page_path: str
    error_message: str


class BulkComparisonFailure(BaseModel):
    website_name: str
    website_url: str
    total_pages: int
    failed_pages: list[FailedPage] = Field(default_factory=list)
    successful_pages: int = 0
    timestamp: datetime
