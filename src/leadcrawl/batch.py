"""Batch orchestration: crawl many businesses with bounded concurrency."""

import asyncio
import dataclasses
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx

from leadcrawl.browser_config import BrowserConfig
from leadcrawl.config import CrawlConfig, JobConfig, settings
from leadcrawl.constants import MAX_BROWSER_PAGES
from leadcrawl.database import AbstractBusinessStore
from leadcrawl.extractors import extract_all_data
from leadcrawl.fetcher import PageFetcher
from leadcrawl.infrastructure.browser_pool import PagePool
from leadcrawl.infrastructure.domain_tracker import DomainTracker, FailureTracker
from leadcrawl.infrastructure.rate_limiter import TokenBucketLimiter
from leadcrawl.models import Business, CrawlState, ExtractedData
from leadcrawl.output_manager import OutputManager
from leadcrawl.site_crawler import CrawlOutcome, SiteCrawler

logger = logging.getLogger(__name__)


@dataclass
class RunMetrics:
    """Aggregate counters for one batch run."""
    processed: int = 0
    failed: int = 0
    filtered: int = 0
    http_count: int = 0
    browser_count: int = 0
    total_pages: int = 0
    total_bytes: int = 0
    early_exit_count: int = 0
    abandoned_count: int = 0
    duration_ms: int = 0

    def record_crawl(self, outcome: CrawlOutcome) -> None:
        self.processed += 1
        self.total_pages += len(outcome.pages)
        self.total_bytes += outcome.total_bytes
        self.http_count += outcome.http_count
        self.browser_count += outcome.browser_count

    def to_dict(self) -> Dict[str, int]:
        return dataclasses.asdict(self)


def build_raw_document(
    business: Business,
    outcome: CrawlOutcome,
    crawled_at: datetime,
) -> Dict[str, Any]:
    """The raw payload: every harvested page with its markup."""
    return {
        "business_id": business.business_id,
        "website_uri": business.website_uri,
        "crawled_at": crawled_at.isoformat(),
        "crawl_method": outcome.method.value,
        "duration_ms": outcome.duration_ms,
        "final_state": outcome.state.value,
        "pages": [page.to_dict() for page in outcome.pages],
    }


def build_crawl_update(
    outcome: CrawlOutcome,
    extracted: ExtractedData,
    raw_key: str,
    extracted_key: str,
    crawled_at: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Fields written onto a business record after a successful crawl."""
    record = extracted.to_record("", "")
    social = extracted.social

    return {
        # Crawl status
        "web_crawled": True,
        "web_crawled_at": (crawled_at or datetime.now()).isoformat(),
        "web_crawl_status": "partial" if outcome.state == CrawlState.ABANDONED else "complete",

        # Blob references
        "web_raw_key": raw_key,
        "web_extracted_key": extracted_key,

        # Crawl metadata
        "web_pages_count": len(outcome.pages),
        "web_crawl_method": outcome.method.value,
        "web_total_bytes": outcome.total_bytes,
        "web_crawl_duration_ms": outcome.duration_ms,

        # Contact information
        "web_emails": extracted.emails,
        "web_phones": extracted.phones,
        "web_contact_page": extracted.contact_page_url,
        "web_social_linkedin": social.linkedin,
        "web_social_facebook": social.facebook,
        "web_social_instagram": social.instagram,
        "web_social_twitter": social.twitter,

        # Team/employee data
        "web_team_members": record["team"]["members"] or None,
        "web_team_count": len(extracted.team_members),
        "web_headcount_estimate": extracted.headcount_estimate,
        "web_headcount_source": extracted.headcount_source,
        "web_new_hires": record["team"]["new_hire_mentions"] or None,
        "web_has_team_page": bool(extracted.team_members),

        # Acquisition signals
        "web_acquisition_signals": record["acquisition"]["signals"] or None,
        "web_has_acquisition_signal": extracted.has_acquisition_signal,
        "web_ownership_note": extracted.acquisition_summary,

        # Business history
        "web_founded_year": extracted.founded_year,
        "web_founded_source": extracted.founded_source,
        "web_years_in_business": extracted.years_in_business,
        "web_history_snippets": record["history"]["snippets"] or None,

        "pipeline_status": "crawled",
    }


class BatchRunner:
    """
    Crawl every eligible business of a job.

    Businesses are processed in fixed-size slices of `concurrency`, each
    slice crawled concurrently. The page pool, rate state and health
    trackers are created per run and shared by every crawl in it.
    """

    def __init__(
        self,
        store: AbstractBusinessStore,
        output: OutputManager,
        job: Optional[JobConfig] = None,
        crawl_config: Optional[CrawlConfig] = None,
        browser_config: Optional[BrowserConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the runner.

        Args:
            store: Business record store
            output: Blob store for raw and extracted payloads
            job: Run input (filters, concurrency, page cap, fast mode)
            crawl_config: Crawl/fetch tunables; page cap and early exit
                toggle are taken from the job
            browser_config: Browser tier settings
            client: HTTP client shared by all fetches
        """
        self.store = store
        self.output = output
        self.job = job or JobConfig()
        self.crawl_config = dataclasses.replace(
            crawl_config or CrawlConfig(),
            max_pages=self.job.max_pages_per_site,
            enable_early_exit=self.job.enable_early_exit,
        )
        self.browser_config = browser_config or BrowserConfig(
            backend=settings.BROWSER_BACKEND,
            executable_path=settings.BROWSER_EXECUTABLE_PATH,
        )
        self.client = client

        self.metrics = RunMetrics()
        self.domain_tracker = DomainTracker()
        self.failure_tracker = FailureTracker()

    async def run(self) -> RunMetrics:
        """
        Run the job.

        Returns:
            RunMetrics for the run
        """
        concurrency = self.job.resolved_concurrency()
        self._log_job_settings(concurrency)

        businesses = self.store.get_businesses_to_crawl(
            business_ids=self.job.business_ids,
            filter_rules=self.job.filter_rules,
            skip_if_done=self.job.skip_if_done,
            force_recrawl=self.job.force_recrawl,
        )
        if not businesses:
            logger.info("No businesses need crawling. Exiting.")
            return self.metrics

        start = time.monotonic()
        page_pool = await self._start_page_pool(concurrency)
        throttle = None
        if self.crawl_config.requests_per_second > 0:
            throttle = TokenBucketLimiter(rate=self.crawl_config.requests_per_second)
            logger.info(f"HTTP throttle: {self.crawl_config.requests_per_second:g} req/sec")
        fetcher = PageFetcher(
            self.crawl_config, page_pool=page_pool, throttle=throttle, client=self.client
        )
        crawler = SiteCrawler(
            fetcher,
            self.crawl_config,
            domain_tracker=self.domain_tracker,
            failure_tracker=self.failure_tracker,
        )

        try:
            for i in range(0, len(businesses), concurrency):
                batch = businesses[i:i + concurrency]
                await asyncio.gather(*(self.process_business(crawler, record) for record in batch))
                logger.info(
                    f"Progress: {self.metrics.processed + self.metrics.failed}/{len(businesses)}"
                )
        finally:
            await fetcher.close()
            if page_pool is not None:
                await page_pool.stop()

        self.metrics.duration_ms = int((time.monotonic() - start) * 1000)
        self.log_summary(len(businesses))

        if self.job.job_id:
            self.store.update_job_metrics(self.job.job_id, self.metrics.to_dict(), step="crawl")

        return self.metrics

    async def _start_page_pool(self, concurrency: int) -> Optional[PagePool]:
        if self.job.fast_mode:
            logger.info("Fast mode enabled - skipping browser tier")
            return None

        pool_size = min(concurrency, MAX_BROWSER_PAGES)
        pool = PagePool(self.browser_config, max_pages=pool_size)
        try:
            await pool.start()
        except Exception as e:
            logger.warning(f"Failed to launch browser, using HTTP tier only: {e}")
            return None

        logger.info(f"Page pool created with {pool_size} pages")
        return pool

    async def process_business(self, crawler: SiteCrawler, record: Dict[str, Any]) -> bool:
        """
        Crawl, extract and persist one business.

        Any exception is logged and counted as a failure; it never aborts
        the batch.

        Returns:
            True on success
        """
        business = Business.from_record(record)

        try:
            logger.info(f"Crawling: {business.display_name} ({business.website_uri})")
            outcome = await crawler.crawl(business.website_uri)

            if outcome.early_exit:
                self.metrics.early_exit_count += 1
            if outcome.state == CrawlState.ABANDONED:
                self.metrics.abandoned_count += 1

            if outcome.failed:
                logger.info(f"✗ No pages crawled for {business.display_name}")
                self.store.mark_business_crawl_failed(business.business_id)
                self.metrics.failed += 1
                return False

            extracted = extract_all_data(outcome.pages, business.known_phones)

            crawled_at = datetime.now()
            raw_key, extracted_key = self.output.save_crawl(
                business.business_id,
                build_raw_document(business, outcome, crawled_at),
                extracted.to_record(business.business_id, business.website_uri, crawled_at),
                timestamp=crawled_at,
            )

            self.store.update_business_with_crawl_data(
                business.business_id,
                build_crawl_update(outcome, extracted, raw_key, extracted_key, crawled_at),
            )

            self.metrics.record_crawl(outcome)
            early = " [early]" if outcome.early_exit else ""
            logger.info(
                f"✓ Crawled {len(outcome.pages)} pages{early} "
                f"(http: {outcome.http_count}, browser: {outcome.browser_count}), "
                f"{len(extracted.emails)} emails, {len(extracted.team_members)} team members"
            )
            return True

        except Exception:
            self.metrics.failed += 1
            logger.exception(f"✗ Failed for {business.display_name}")
            return False

    def _log_job_settings(self, concurrency: int) -> None:
        job = self.job
        logger.info(f"Using concurrency: {concurrency}")
        logger.info(f"Max pages per site: {job.max_pages_per_site}")
        logger.info(f"Skip if already crawled: {job.skip_if_done}")
        logger.info(f"Force recrawl: {job.force_recrawl}")
        logger.info(f"Fast mode (no browser): {job.fast_mode}")
        logger.info(f"Early exit enabled: {job.enable_early_exit}")
        rules = ", ".join(str(r.to_dict()) for r in job.filter_rules)
        logger.info(f"Filter rules: {rules or 'none'}")
        if job.business_ids is not None:
            preview = ", ".join(job.business_ids[:5])
            more = "..." if len(job.business_ids) > 5 else ""
            logger.info(f"Business IDs filter: {len(job.business_ids)} IDs: {preview}{more}")

    def log_summary(self, total: int) -> None:
        m = self.metrics
        avg_ms = round(m.duration_ms / total) if total else 0
        early_pct = round(100 * m.early_exit_count / m.processed) if m.processed else 0

        logger.info("=" * 60)
        logger.info("Crawl run complete")
        logger.info("=" * 60)
        logger.info(f"Duration: {m.duration_ms / 1000:.1f}s ({avg_ms}ms avg per business)")
        logger.info(f"Processed: {m.processed}")
        logger.info(f"Failed: {m.failed}")
        logger.info(f"Early exits: {m.early_exit_count} ({early_pct}%)")
        logger.info(f"Abandoned: {m.abandoned_count}")
        logger.info(f"Total pages crawled: {m.total_pages}")
        logger.info(f"Methods - HTTP: {m.http_count}, Browser: {m.browser_count}")
        logger.info(f"Total bytes: {m.total_bytes / 1024 / 1024:.2f} MB")

        self.failure_tracker.log_summary()
        self.domain_tracker.log_problem_domains()


async def run_job(
    store: AbstractBusinessStore,
    output: OutputManager,
    job: JobConfig,
    crawl_config: Optional[CrawlConfig] = None,
) -> RunMetrics:
    """Convenience wrapper: build a BatchRunner and run it."""
    return await BatchRunner(store, output, job, crawl_config).run()


__all__: List[str] = [
    "BatchRunner",
    "RunMetrics",
    "build_crawl_update",
    "build_raw_document",
    "run_job",
]
