"""Site catalog — websites and their monitored pages, stored as JSON."""

from __future__ import annotations

import json
import logging
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path

from webcompare.errors import PageNotFoundError, WebsiteNotFoundError
from webcompare.models.notification import Recipient
from webcompare.models.site import Collaborator, Page, SiteCatalogData, Website
from webcompare.storage.comparison_store import ComparisonStore
from webcompare.url_utils import resolve_page_url, validate_base_url

logger = logging.getLogger(__name__)


class SiteCatalog:
    """Read-mostly lookup of websites and pages.

    The engine only resolves pages through this class; the add/remove
    methods back the CLI.
    """

    def __init__(self, catalog_path: Path, comparison_store: ComparisonStore | None = None):
        self.path = catalog_path
        self.comparison_store = comparison_store

    def load(self) -> SiteCatalogData:
        if self.path.exists():
            with open(self.path) as f:
                data = json.load(f)
            return SiteCatalogData.model_validate(data)
        return SiteCatalogData()

    def save(self, catalog: SiteCatalogData) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        catalog.last_updated = time.strftime("%Y-%m-%dT%H:%M:%SZ")
        with open(self.path, "w") as f:
            json.dump(catalog.model_dump(mode="json"), f, indent=2)
        logger.debug("Saved site catalog to %s", self.path)

    # Websites

    def add_website(
        self,
        name: str,
        url: str,
        owner_email: str | None = None,
        owner_name: str | None = None,
        collaborators: list[Collaborator] | None = None,
    ) -> Website:
        validate_base_url(url)
        catalog = self.load()
        website = Website(
            website_id=f"site_{uuid.uuid4().hex[:8]}",
            name=name,
            url=url,
            owner_email=owner_email,
            owner_name=owner_name,
            collaborators=collaborators or [],
            created_at=datetime.now(timezone.utc),
        )
        catalog.websites[website.website_id] = website
        self.save(catalog)
        logger.info("Added website %s (%s)", website.name, website.url)
        return website

    def get_website(self, website_id: str) -> Website:
        website = self.load().websites.get(website_id)
        if website is None:
            raise WebsiteNotFoundError(website_id)
        return website

    def list_websites(self) -> list[Website]:
        return sorted(self.load().websites.values(), key=lambda w: w.created_at)

    # Pages

    def add_page(self, website_id: str, name: str, path: str) -> Page:
        catalog = self.load()
        if website_id not in catalog.websites:
            raise WebsiteNotFoundError(website_id)
        page = Page(
            page_id=f"page_{uuid.uuid4().hex[:8]}",
            website_id=website_id,
            name=name,
            path=path,
            created_at=datetime.now(timezone.utc),
        )
        catalog.pages[page.page_id] = page
        self.save(catalog)
        logger.info("Added page %s (%s) to %s", page.name, page.path, website_id)
        return page

    def get_page(self, page_id: str) -> Page:
        page = self.load().pages.get(page_id)
        if page is None:
            raise PageNotFoundError(page_id)
        return page

    def pages_for_website(self, website_id: str) -> list[Page]:
        """All pages of a website, newest first."""
        catalog = self.load()
        if website_id not in catalog.websites:
            raise WebsiteNotFoundError(website_id)
        pages = [p for p in catalog.pages.values() if p.website_id == website_id]
        return sorted(pages, key=lambda p: p.created_at, reverse=True)

    def remove_page(self, page_id: str) -> None:
        catalog = self.load()
        if page_id not in catalog.pages:
            raise PageNotFoundError(page_id)
        del catalog.pages[page_id]
        self.save(catalog)
        if self.comparison_store is not None:
            self.comparison_store.delete_for_page(page_id)
        logger.info("Removed page %s", page_id)

    def resolve(self, page_id: str) -> tuple[Page, Website, str]:
        """Return the page, its website, and the page's full URL."""
        page = self.get_page(page_id)
        website = self.get_website(page.website_id)
        return page, website, resolve_page_url(website.url, page.path)

    @staticmethod
    def recipients_for(website: Website) -> list[Recipient]:
        """Website owner plus collaborators with edit permission, deduplicated by email."""
        recipients: list[Recipient] = []
        seen: set[str] = set()
        candidates = [(website.owner_email, website.owner_name)] + [
            (c.email, c.name) for c in website.collaborators if c.permission == "EDIT"
        ]
        for email, name in candidates:
            if not email or email.lower() in seen:
                continue
            seen.add(email.lower())
            recipients.append(Recipient(email=email, name=name))
        return recipients
