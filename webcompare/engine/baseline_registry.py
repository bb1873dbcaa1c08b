"""Baseline registry — list candidate baselines and override the active one."""

from __future__ import annotations

import logging

from webcompare.engine.differ import compare_screenshots
from webcompare.engine.locks import PageLocks
from webcompare.models.comparison import BaselineCandidate, Comparison, ComparisonStatus
from webcompare.models.config import EngineConfig
from webcompare.storage.comparison_store import ComparisonStore
from webcompare.storage.content_store import ContentStore

logger = logging.getLogger(__name__)


class BaselineRegistry:
    """Read and replace the baselines comparisons are diffed against."""

    def __init__(
        self,
        config: EngineConfig,
        comparisons: ComparisonStore,
        content_store: ContentStore,
        locks: PageLocks | None = None,
    ):
        self.config = config
        self.comparisons = comparisons
        self.content_store = content_store
        self.locks = locks or PageLocks()

    def list_candidates(self, comparison_id: str) -> list[BaselineCandidate]:
        """Every image seen by the page's completed comparisons, newest first.

        Each comparison contributes its baseline and its current image as
        separate candidates when present.
        """
        target = self.comparisons.get(comparison_id)
        candidates: list[BaselineCandidate] = []
        for c in self.comparisons.list_for_page(target.page_id, status=ComparisonStatus.COMPLETED):
            for role, ref in (("baseline", c.baseline_image), ("current", c.current_image)):
                if ref is None:
                    continue
                candidates.append(BaselineCandidate(
                    candidate_id=f"{c.comparison_id}-{role}",
                    source_comparison_id=c.comparison_id,
                    image_ref=ref,
                    role=role,
                    created_at=c.created_at,
                    diff_percentage=c.diff_percentage,
                ))
        return candidates

    async def override_baseline(self, comparison_id: str, image_ref: str) -> Comparison:
        """Make ``image_ref`` the baseline of a comparison and of every later one.

        The target's diff is recomputed when it has a current image; a failed
        recompute, including one caused by ``image_ref`` not naming a stored
        image, is logged and leaves the previous diff in place. Later
        comparisons only get the new baseline reference, not a new diff.

        Raises:
            ComparisonNotFoundError: If the comparison does not exist.
        """
        target = self.comparisons.get(comparison_id)

        async with self.locks.for_page(target.page_id):
            updated = self.comparisons.update(comparison_id, baseline_image=image_ref)
            logger.info("Baseline of comparison %s set to %s", comparison_id, image_ref)

            if updated.current_image:
                try:
                    result = await compare_screenshots(
                        self.content_store, image_ref, updated.current_image,
                        self.config.diff_tolerance,
                    )
                except Exception as e:
                    logger.error("Error recalculating diff for %s: %s", comparison_id, e)
                else:
                    updated = self.comparisons.update(
                        comparison_id,
                        diff_image=result.diff_ref,
                        diff_percentage=result.diff_percentage,
                        status=ComparisonStatus.COMPLETED,
                    )

            propagated = self.comparisons.set_baseline_after(target.page_id, updated, image_ref)
            if propagated:
                logger.info("Propagated baseline to %d later comparisons", len(propagated))
            return updated
