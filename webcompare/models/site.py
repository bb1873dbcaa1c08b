"""Website and page records read by the comparison engine."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class Collaborator(BaseModel):
    email: str
    name: str | None = None
    permission: Literal["VIEW", "EDIT"] = "VIEW"


class Website(BaseModel):
    website_id: str
    name: str
    url: str
    owner_email: str | None = None
    owner_name: str | None = None
    collaborators: list[Collaborator] = Field(default_factory=list)
    created_at: datetime


class Page(BaseModel):
    page_id: str
    website_id: str
    name: str
    path: str  # relative to the website's base URL
    created_at: datetime


class SiteCatalogData(BaseModel):
    last_updated: str = ""
    websites: dict[str, Website] = Field(default_factory=dict)
    pages: dict[str, Page] = Field(default_factory=dict)
