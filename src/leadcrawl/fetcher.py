"""Two-tier page fetching: a lightweight HTTP client with headless-browser fallback."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import httpx

from leadcrawl.browser_config import get_random_user_agent
from leadcrawl.config import CrawlConfig
from leadcrawl.errors import (
    CrawlError,
    ErrorType,
    classify_error,
    is_retriable,
    should_skip_browser,
)
from leadcrawl.html_parser import (
    extract_links,
    extract_text,
    extract_title,
    needs_browser_render,
    parse_html,
)
from leadcrawl.infrastructure.browser_pool import PagePool
from leadcrawl.infrastructure.rate_limiter import TokenBucketLimiter
from leadcrawl.models import FetchMethod, Page
from leadcrawl.utils.challenge_handler import (
    is_challenge_page,
    needs_challenge_bypass,
    wait_for_challenge_async,
)

logger = logging.getLogger(__name__)

# Headers sent by a desktop browser on a top-level navigation
BROWSER_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Sec-Fetch-User": "?1",
}


@dataclass
class FetchOutcome:
    """Result of fetching one URL: a page or a classified error."""
    page: Optional[Page] = None
    method: FetchMethod = FetchMethod.HTTP
    error: Optional[CrawlError] = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.page is not None


def build_page(
    url: str, html: str, status_code: int, base_url: Optional[str] = None
) -> Page:
    """Reduce markup to a Page, parsing it once.

    Relative links resolve against base_url (where the response actually
    came from after redirects) when given, else against url.
    """
    soup = parse_html(html)
    title = extract_title(soup)
    links = extract_links(soup, base_url or url)
    text = extract_text(soup)
    return Page(
        url=url,
        title=title,
        html=html,
        text=text,
        links=links,
        status_code=status_code,
    )


class PageFetcher:
    """
    Fetch pages through the HTTP tier, escalating to the browser tier.

    The HTTP tier retries timeouts and connection failures with exponential
    backoff. The browser tier is used when the HTTP tier fails (except for
    DNS failures), when the response is a bot challenge, and when the
    markup looks like a JavaScript shell. Without a page pool the fetcher
    runs HTTP-only.

    Usage:
        async with PageFetcher(config, page_pool=pool) as fetcher:
            outcome = await fetcher.fetch(url)
    """

    def __init__(
        self,
        config: Optional[CrawlConfig] = None,
        page_pool: Optional[PagePool] = None,
        throttle: Optional[TokenBucketLimiter] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the fetcher.

        Args:
            config: Timeouts, retry and challenge-poll settings
            page_pool: Started browser page pool, or None for HTTP-only
            throttle: Rate limiter awaited before every HTTP request
            client: HTTP client to use instead of creating one
        """
        self.config = config or CrawlConfig()
        self.page_pool = page_pool
        self.throttle = throttle
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            follow_redirects=True,
            headers=BROWSER_HEADERS,
        )

    async def __aenter__(self) -> "PageFetcher":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    @property
    def browser_available(self) -> bool:
        return self.page_pool is not None and self.page_pool.is_started

    # ------------------------------------------------------------------
    # HTTP tier
    # ------------------------------------------------------------------

    async def _http_get(self, url: str, timeout: float) -> Tuple[int, str, str]:
        if self.throttle is not None:
            await self.throttle.acquire()

        response = await asyncio.wait_for(
            self._client.get(
                url,
                headers={"User-Agent": get_random_user_agent()},
                timeout=timeout,
            ),
            timeout=timeout,
        )
        return response.status_code, response.text, str(response.url)

    async def fetch_with_retry(
        self, url: str
    ) -> Tuple[Optional[Tuple[int, str, str]], Optional[CrawlError], int]:
        """
        Fetch through the HTTP tier, retrying transient failures.

        Each attempt gets a longer timeout (base + increment * attempt).
        Only timeouts and connection failures are retried.

        Args:
            url: URL to fetch

        Returns:
            Tuple of ((status, body, final URL) or None, error or None,
            attempts made)
        """
        last_error: Optional[CrawlError] = None
        attempts = 0

        for attempt in range(self.config.max_retries + 1):
            attempts = attempt + 1
            timeout = self.config.request_timeout + attempt * self.config.timeout_increment
            try:
                return await self._http_get(url, timeout), None, attempts
            except (httpx.HTTPError, httpx.InvalidURL, OSError, asyncio.TimeoutError) as e:
                last_error = classify_error(e)

            if not is_retriable(last_error):
                break

            if attempt < self.config.max_retries:
                backoff = min(self.config.backoff_base * (2 ** attempt), self.config.backoff_cap)
                logger.debug(
                    f"[retry {attempt + 1}/{self.config.max_retries}] {url} after {backoff:.1f}s"
                )
                await asyncio.sleep(backoff)

        return None, last_error, attempts

    # ------------------------------------------------------------------
    # Browser tier
    # ------------------------------------------------------------------

    async def _render(self, url: str, wait_for_challenge: bool) -> str:
        """Load a URL in a pooled browser page and return its markup."""
        async with self.page_pool.acquire() as page:
            await page.goto(
                url,
                wait_until=self.page_pool.config.wait_until,
                timeout=self.page_pool.config.timeout,
            )
            if not wait_for_challenge:
                return await page.content()

            result = await wait_for_challenge_async(
                page,
                max_polls=self.config.challenge_max_polls,
                poll_interval=self.config.challenge_poll_interval,
                url=url,
            )
            if not result.resolved:
                raise CrawlError(ErrorType.BOT_CHALLENGE, "Challenge not resolved")
            return result.html

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    async def fetch(self, url: str) -> FetchOutcome:
        """
        Fetch a URL and reduce it to a Page.

        Errors never propagate; they are returned on the outcome.

        Args:
            url: Absolute URL

        Returns:
            FetchOutcome with either a page or a classified error
        """
        response, error, attempts = await self.fetch_with_retry(url)

        if error is not None:
            if should_skip_browser(error):
                logger.info(f"[{error.label}] {url} - skipping (unrecoverable)")
                return FetchOutcome(error=error, attempts=attempts)

            if not self.browser_available:
                logger.info(f"[{error.label}] {url}")
                return FetchOutcome(error=error, attempts=attempts)

            logger.info(f"[{error.label}] {url} - trying browser")
            try:
                html = await self._render(url, wait_for_challenge=True)
            except CrawlError as e:
                logger.info(f"[challenge] {url} - {e.message}")
                return FetchOutcome(method=FetchMethod.BROWSER, error=e, attempts=attempts)
            except Exception as e:
                logger.info(f"[browser error] {url}: {str(e)[:100]}")
                return FetchOutcome(error=error, attempts=attempts)

            return self._success(url, html, 200, FetchMethod.BROWSER, attempts)

        status_code, html, final_url = response
        challenged = needs_challenge_bypass(status_code, html)

        if challenged and self.browser_available:
            logger.info(f"[challenge in body] {url} ({status_code}) - using browser")
            try:
                rendered = await self._render(url, wait_for_challenge=True)
            except CrawlError as e:
                logger.info(f"[challenge] {url} - {e.message}")
                return FetchOutcome(method=FetchMethod.BROWSER, error=e, attempts=attempts)
            except Exception as e:
                logger.info(f"[browser error] {url}: {str(e)[:100]}")
                return FetchOutcome(error=self._status_error(status_code, html), attempts=attempts)

            return self._success(url, rendered, 200, FetchMethod.BROWSER, attempts)

        if status_code >= 400 or challenged:
            failure = self._status_error(status_code, html)
            logger.info(f"[{status_code}] {url} - {failure.message}")
            return FetchOutcome(error=failure, attempts=attempts)

        if self.browser_available and needs_browser_render(
            html, min_text_length=self.config.min_rendered_text_length
        ):
            logger.info(f"[js] {url} - needs browser for rendering")
            try:
                rendered = await self._render(url, wait_for_challenge=False)
                return self._success(url, rendered, status_code, FetchMethod.BROWSER, attempts)
            except Exception as e:
                logger.info(f"[browser error] {url}: {str(e)[:100]}")

        return self._success(
            url, html, status_code, FetchMethod.HTTP, attempts, base_url=final_url
        )

    @staticmethod
    def _status_error(status_code: int, html: str) -> CrawlError:
        if is_challenge_page(html):
            return CrawlError(ErrorType.BOT_CHALLENGE, "Bot protection", status_code=status_code)
        return CrawlError(ErrorType.HTTP, f"HTTP {status_code}", status_code=status_code)

    @staticmethod
    def _success(
        url: str,
        html: str,
        status_code: int,
        method: FetchMethod,
        attempts: int,
        base_url: Optional[str] = None,
    ) -> FetchOutcome:
        page = build_page(url, html, status_code, base_url=base_url)
        logger.debug(
            f"[{method.value}] {url} - {len(page.text)} chars, {len(page.links)} links"
        )
        return FetchOutcome(page=page, method=method, attempts=attempts)
