"""Bulk comparison — compare every page of a website in one background task."""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timezone

from webcompare.engine.orchestrator import ComparisonEngine
from webcompare.errors import NotFoundError
from webcompare.models.bulk import BulkJob, BulkPageResult
from webcompare.models.notification import BulkComparisonFailure, FailedPage
from webcompare.models.site import Page
from webcompare.notifications.notifier import send_safely

logger = logging.getLogger(__name__)


class BulkComparisonRunner:
    """Queues website-wide comparison jobs.

    ``submit`` returns as soon as the job is accepted; its pages are then
    compared one after another in a single background task. Submitting a
    website whose previous job is still running returns that job.
    """

    def __init__(self, engine: ComparisonEngine):
        self.engine = engine
        self._jobs: dict[str, BulkJob] = {}
        self._tasks: dict[str, asyncio.Task] = {}
        self._active: dict[str, str] = {}  # website_id -> job_id

    async def submit(self, website_id: str) -> BulkJob:
        """Accept a bulk job for a website.

        Raises:
            WebsiteNotFoundError: If the website does not exist.
            NotFoundError: If the website has no pages.
        """
        active_id = self._active.get(website_id)
        if active_id is not None:
            logger.info("Bulk job %s for %s already running", active_id, website_id)
            return self._jobs[active_id]

        pages = self.engine.catalog.pages_for_website(website_id)
        if not pages:
            raise NotFoundError("No pages found for this website")

        job = BulkJob(
            job_id=f"bulk_{uuid.uuid4().hex[:8]}",
            website_id=website_id,
            total_pages=len(pages),
            submitted_at=datetime.now(timezone.utc),
        )
        self._jobs[job.job_id] = job
        self._active[website_id] = job.job_id
        self._tasks[job.job_id] = asyncio.create_task(self._run(job, pages))
        logger.info("Processing %d pages for website %s (job %s)", len(pages), website_id, job.job_id)
        return job

    def get(self, job_id: str) -> BulkJob:
        job = self._jobs.get(job_id)
        if job is None:
            raise NotFoundError(f"Bulk job not found: {job_id}")
        return job

    async def wait(self, job_id: str) -> BulkJob:
        job = self.get(job_id)
        task = self._tasks.get(job_id)
        if task is not None:
            await asyncio.shield(task)
        return job

    async def _run(self, job: BulkJob, pages: list[Page]) -> None:
        job.status = "running"
        try:
            for page in pages:
                job.results.append(await self._compare_page(page))
            await self._notify_failures(job)
        finally:
            job.status = "completed"
            job.completed_at = datetime.now(timezone.utc)
            self._active.pop(job.website_id, None)
            self._tasks.pop(job.job_id, None)
            logger.info(
                "Bulk job %s finished: %d succeeded, %d failed",
                job.job_id, job.succeeded, job.failed,
            )

    async def _compare_page(self, page: Page) -> BulkPageResult:
        try:
            outcome = await self.engine.run_comparison(page.page_id)
        except Exception as e:
            logger.error("Error creating comparison for page %s: %s", page.page_id, e)
            return BulkPageResult(
                page_id=page.page_id, page_name=page.name, page_path=page.path,
                success=False, error=str(e) or "Unknown error",
            )
        return BulkPageResult(
            page_id=page.page_id, page_name=page.name, page_path=page.path,
            success=True, comparison=outcome,
        )

    async def _notify_failures(self, job: BulkJob) -> None:
        failed = [r for r in job.results if not r.success]
        if not failed:
            return
        try:
            website = self.engine.catalog.get_website(job.website_id)
        except NotFoundError:
            logger.warning("Website %s vanished before bulk notification", job.website_id)
            return
        failure = BulkComparisonFailure(
            website_name=website.name,
            website_url=website.url,
            total_pages=job.total_pages,
            failed_pages=[
                FailedPage(page_name=r.page_name, page_path=r.page_path, error_message=r.error or "")
                for r in failed
            ],
            successful_pages=job.succeeded,
            timestamp=datetime.now(timezone.utc),
        )
        await send_safely(
            self.engine.notifier.notify_bulk_failure,
            self.engine.catalog.recipients_for(website),
            failure,
        )
