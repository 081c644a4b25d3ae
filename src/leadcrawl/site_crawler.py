"""Single-site crawl loop: frontier, fetch, link expansion, early exit and backoff."""

import asyncio
import logging
import re
import time
from dataclasses import dataclass, field
from typing import List, Optional

from leadcrawl.config import CrawlConfig, EarlyExitCriteria
from leadcrawl.fetcher import PageFetcher
from leadcrawl.infrastructure.domain_tracker import (
    DomainTracker,
    FailureBreakdown,
    FailureTracker,
)
from leadcrawl.models import CrawlState, FetchMethod, Page
from leadcrawl.urls import Frontier

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
TEAM_PAGE_PATTERN = re.compile(r"\b(about|team|staff|people|leadership)\b")


def check_early_exit(pages: List[Page], criteria: Optional[EarlyExitCriteria] = None) -> bool:
    """
    Check if enough key data has been gathered to stop crawling.

    Args:
        pages: Pages harvested so far
        criteria: Minimum page count and required signals

    Returns:
        True when the page minimum is reached and every required signal
        is present
    """
    criteria = criteria or EarlyExitCriteria()

    if len(pages) < criteria.min_pages:
        return False

    if criteria.require_email and not any(EMAIL_PATTERN.search(p.text) for p in pages):
        return False

    if criteria.require_team_page and not any(
        TEAM_PAGE_PATTERN.search(p.url.lower()) for p in pages
    ):
        return False

    return True


@dataclass
class CrawlOutcome:
    """Everything one site crawl produced."""
    seed_url: str
    state: CrawlState = CrawlState.SEEDED
    pages: List[Page] = field(default_factory=list)
    http_count: int = 0
    browser_count: int = 0
    failures: FailureTracker = field(default_factory=FailureTracker)
    duration_ms: int = 0

    @property
    def method(self) -> FetchMethod:
        """Tier that produced most pages."""
        if self.browser_count > self.http_count:
            return FetchMethod.BROWSER
        return FetchMethod.HTTP

    @property
    def early_exit(self) -> bool:
        return self.state == CrawlState.EARLY_EXITED

    @property
    def failed(self) -> bool:
        """A crawl with no pages is a hard failure for the business."""
        return not self.pages

    @property
    def total_bytes(self) -> int:
        return sum(page.size_bytes for page in self.pages)

    @property
    def failure_breakdown(self) -> FailureBreakdown:
        return self.failures.get_breakdown()


class SiteCrawler:
    """
    Crawl one business website, one URL at a time.

    State machine: seeded -> crawling -> early_exited | exhausted | abandoned.
    Pages harvested before the crawl ends are always retained.
    """

    def __init__(
        self,
        fetcher: PageFetcher,
        config: Optional[CrawlConfig] = None,
        domain_tracker: Optional[DomainTracker] = None,
        failure_tracker: Optional[FailureTracker] = None,
    ):
        """
        Initialize the crawler.

        Args:
            fetcher: Fetch layer shared across crawls
            config: Page cap, delays, abandon threshold, early exit settings
            domain_tracker: Run-scoped per-domain statistics
            failure_tracker: Run-scoped failure histogram
        """
        self.fetcher = fetcher
        self.config = config or CrawlConfig()
        self.domain_tracker = domain_tracker
        self.failure_tracker = failure_tracker

    async def crawl(self, website_uri: str) -> CrawlOutcome:
        """
        Crawl a site starting from its root URL.

        Args:
            website_uri: Seed URL; https:// is assumed when no scheme is given

        Returns:
            CrawlOutcome with the final state and harvested pages
        """
        if "://" not in website_uri:
            website_uri = f"https://{website_uri}"

        outcome = CrawlOutcome(seed_url=website_uri)
        frontier = Frontier(website_uri)
        if not frontier.add(website_uri):
            logger.warning(f"Seed URL rejected: {website_uri}")
            outcome.state = CrawlState.EXHAUSTED
            return outcome

        start = time.monotonic()
        outcome.state = CrawlState.CRAWLING
        try:
            await asyncio.wait_for(
                self._run(frontier, outcome),
                timeout=self.config.deadline_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"[deadline] {website_uri} - gave up after {self.config.deadline_seconds:.0f}s "
                f"with {len(outcome.pages)} pages"
            )
            outcome.state = CrawlState.ABANDONED
        finally:
            outcome.duration_ms = int((time.monotonic() - start) * 1000)

        return outcome

    async def _run(self, frontier: Frontier, outcome: CrawlOutcome) -> None:
        consecutive_failures = 0

        while frontier and len(outcome.pages) < self.config.max_pages:
            url = frontier.pop()
            if url is None:
                break

            result = await self.fetcher.fetch(url)

            if result.page is not None:
                outcome.pages.append(result.page)
                consecutive_failures = 0

                if self.domain_tracker is not None:
                    self.domain_tracker.record_success(url)

                if result.method == FetchMethod.BROWSER:
                    outcome.browser_count += 1
                else:
                    outcome.http_count += 1

                # Near-empty pages are usually error shells; don't expand from them
                if len(result.page.text) > self.config.min_text_for_links:
                    frontier.add_all(result.page.links)

                if self.config.enable_early_exit and check_early_exit(
                    outcome.pages, self.config.early_exit
                ):
                    logger.info(f"[early exit] Found key data after {len(outcome.pages)} pages")
                    outcome.state = CrawlState.EARLY_EXITED
                    return

            else:
                consecutive_failures += 1
                if result.error is not None:
                    outcome.failures.record(result.error)
                    if self.failure_tracker is not None:
                        self.failure_tracker.record(result.error)
                    if self.domain_tracker is not None:
                        self.domain_tracker.record_failure(url, result.error)

            await asyncio.sleep(self.request_delay(consecutive_failures) / 1000)

            if consecutive_failures >= self.config.max_consecutive_failures:
                logger.info(f"[giving up] {consecutive_failures} consecutive failures")
                outcome.state = CrawlState.ABANDONED
                return

        outcome.state = CrawlState.EXHAUSTED

    def request_delay(self, consecutive_failures: int) -> int:
        """Milliseconds to wait before the next request; grows with failures."""
        base = self.config.failure_delay_ms if consecutive_failures > 0 else self.config.base_delay_ms
        return min(base * (consecutive_failures + 1), self.config.max_delay_ms)
