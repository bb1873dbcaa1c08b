"""Comparison store — persists comparison rows in a JSON registry."""

from __future__ import annotations

import json
import logging
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path

from webcompare.errors import ComparisonNotFoundError
from webcompare.models.comparison import Comparison, ComparisonRegistry, ComparisonStatus

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = frozenset({
    "status", "baseline_image", "current_image", "diff_image", "diff_percentage", "error_message",
})


class ComparisonStore:
    """Manages the comparisons JSON file.

    Every operation loads the registry, applies its change and writes it
    back, so readers always see the latest committed rows.
    """

    def __init__(self, registry_path: Path):
        self.path = registry_path

    def load(self) -> ComparisonRegistry:
        """Load registry from disk, or create a new one."""
        if self.path.exists():
            with open(self.path) as f:
                data = json.load(f)
            return ComparisonRegistry.model_validate(data)
        return ComparisonRegistry()

    def save(self, registry: ComparisonRegistry) -> None:
        """Persist registry to disk atomically."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        registry.last_updated = time.strftime("%Y-%m-%dT%H:%M:%SZ")
        tmp = self.path.with_suffix(".tmp")
        with open(tmp, "w") as f:
            json.dump(registry.model_dump(mode="json"), f, indent=2)
        tmp.replace(self.path)
        logger.debug("Saved comparison registry to %s", self.path)

    def create(self, page_id: str) -> Comparison:
        registry = self.load()
        comparison = Comparison(
            comparison_id=f"cmp_{uuid.uuid4().hex[:12]}",
            page_id=page_id,
            created_at=datetime.now(timezone.utc),
            sequence=registry.next_sequence,
        )
        registry.next_sequence += 1
        registry.comparisons[comparison.comparison_id] = comparison
        self.save(registry)
        logger.debug("Created comparison %s for page %s", comparison.comparison_id, page_id)
        return comparison

    def get(self, comparison_id: str) -> Comparison:
        comparison = self.load().comparisons.get(comparison_id)
        if comparison is None:
            raise ComparisonNotFoundError(comparison_id)
        return comparison

    def update(self, comparison_id: str, **fields) -> Comparison:
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {sorted(unknown)}")
        registry = self.load()
        current = registry.comparisons.get(comparison_id)
        if current is None:
            raise ComparisonNotFoundError(comparison_id)
        updated = Comparison.model_validate({**current.model_dump(), **fields})
        registry.comparisons[comparison_id] = updated
        self.save(registry)
        return updated

    def list_for_page(
        self,
        page_id: str,
        status: ComparisonStatus | None = None,
        newest_first: bool = True,
    ) -> list[Comparison]:
        rows = [
            c for c in self.load().comparisons.values()
            if c.page_id == page_id and (status is None or c.status == status)
        ]
        return sorted(rows, key=lambda c: c.order_key, reverse=newest_first)

    def latest_with_baseline(self, page_id: str, exclude_id: str | None = None) -> Comparison | None:
        """Most recent comparison of a page that has a baseline image, if any."""
        for c in self.list_for_page(page_id):
            if c.comparison_id != exclude_id and c.baseline_image is not None:
                return c
        return None

    def set_baseline_after(self, page_id: str, after: Comparison, image_ref: str) -> list[str]:
        """Point every later comparison of the page at ``image_ref``.

        Only ``baseline_image`` changes; diff results are left as computed.
        Returns the ids that were updated.
        """
        registry = self.load()
        updated: list[str] = []
        for c in registry.comparisons.values():
            if c.page_id == page_id and c.order_key > after.order_key:
                c.baseline_image = image_ref
                updated.append(c.comparison_id)
        if updated:
            self.save(registry)
        return updated

    def delete_for_page(self, page_id: str) -> int:
        registry = self.load()
        doomed = [cid for cid, c in registry.comparisons.items() if c.page_id == page_id]
        for cid in doomed:
            del registry.comparisons[cid]
        if doomed:
            self.save(registry)
            logger.info("Deleted %d comparisons for page %s", len(doomed), page_id)
        return len(doomed)
