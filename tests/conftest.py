"""Pytest configuration and shared fixtures."""

from pathlib import Path
from unittest.mock import Mock

import pytest
from PIL import Image

from tests.helpers import VIEWPORT_H, VIEWPORT_W, FakeCapture, make_image
from webcompare.engine.orchestrator import ComparisonEngine
from webcompare.models.config import EngineConfig, NotificationConfig, ViewportConfig
from webcompare.models.site import Collaborator, Page, Website
from webcompare.notifications.notifier import Notifier
from webcompare.storage.comparison_store import ComparisonStore
from webcompare.storage.content_store import ContentStore
from webcompare.storage.site_catalog import SiteCatalog


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def engine_config(tmp_path: Path) -> EngineConfig:
    """Create an engine config rooted in a temp directory."""
    return EngineConfig(
        data_dir=str(tmp_path / "data"),
        viewport=ViewportConfig(width=VIEWPORT_W, height=VIEWPORT_H),
        capture_timeout_seconds=30,
        diff_tolerance=0.1,
        notifications=NotificationConfig(provider="log"),
    )


# ============================================================================
# Storage Fixtures
# ============================================================================


@pytest.fixture
def content_store(engine_config: EngineConfig) -> ContentStore:
    return ContentStore(engine_config.screenshots_dir)


@pytest.fixture
def comparison_store(engine_config: EngineConfig) -> ComparisonStore:
    return ComparisonStore(engine_config.comparisons_path)


@pytest.fixture
def catalog(engine_config: EngineConfig, comparison_store: ComparisonStore) -> SiteCatalog:
    return SiteCatalog(engine_config.catalog_path, comparison_store=comparison_store)


@pytest.fixture
def website(catalog: SiteCatalog) -> Website:
    return catalog.add_website(
        "Example",
        "https://example.com",
        owner_email="owner@example.com",
        owner_name="Owner",
        collaborators=[
            Collaborator(email="editor@example.com", name="Editor", permission="EDIT"),
            Collaborator(email="viewer@example.com", permission="VIEW"),
        ],
    )


@pytest.fixture
def page(catalog: SiteCatalog, website: Website) -> Page:
    return catalog.add_page(website.website_id, "Home", "/home")


# ============================================================================
# Engine Fixtures
# ============================================================================


@pytest.fixture
def fake_capture(content_store: ContentStore) -> FakeCapture:
    return FakeCapture(content_store)


@pytest.fixture
def notifier() -> Mock:
    return Mock(spec=Notifier)


@pytest.fixture
def engine(
    engine_config, catalog, comparison_store, content_store, fake_capture, notifier,
) -> ComparisonEngine:
    return ComparisonEngine(
        config=engine_config,
        catalog=catalog,
        comparisons=comparison_store,
        content_store=content_store,
        capture=fake_capture,
        notifier=notifier,
    )


@pytest.fixture
def canonical_white() -> Image.Image:
    return make_image(VIEWPORT_W, VIEWPORT_H)
