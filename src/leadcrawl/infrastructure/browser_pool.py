"""
Browser Page Pool.

This module bounds and reuses headless-browser pages across concurrently
running site crawls. Pages are created lazily up to a fixed maximum,
returned to an idle set on release, and only closed when the pool stops.

Supports two backends:
- playwright: Standard Playwright
- rebrowser: rebrowser-playwright, a patched drop-in build with fewer
  automation fingerprints
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Optional

from leadcrawl.browser_config import BrowserConfig

logger = logging.getLogger(__name__)


@dataclass
class PoolStatus:
    """Current status of the page pool."""
    max_pages: int
    created: int
    idle: int
    in_use: int
    total_acquisitions: int
    uptime_seconds: float


class PagePool:
    """
    Manages a bounded pool of reusable browser pages.

    Features:
    - Async page acquisition with guaranteed release
    - Lazy page creation up to max_pages
    - Page reuse across fetches (no per-fetch startup cost)
    - Graceful shutdown of every page, the browser and the driver
    """

    def __init__(
        self,
        config: Optional[BrowserConfig] = None,
        max_pages: Optional[int] = None,
        browser: Any = None,
    ):
        """
        Initialize page pool.

        Args:
            config: Browser settings (backend, viewport, user agent, timeout)
            max_pages: Maximum concurrent pages; overrides config.max_pages
            browser: Already-launched browser to use instead of launching one
        """
        self.config = config or BrowserConfig()
        self.max_pages = max_pages or self.config.max_pages

        self._playwright = None
        self._browser = browser
        self._owns_browser = browser is None
        self._pages: List[Any] = []
        self._idle: List[Any] = []
        self._semaphore = asyncio.Semaphore(self.max_pages)
        self._lock = asyncio.Lock()
        self._started = browser is not None
        self._start_time: Optional[datetime] = datetime.now() if browser is not None else None
        self._total_acquisitions = 0

    async def start(self) -> None:
        """
        Launch the browser.

        Raises:
            ImportError: If the configured backend library is not installed
        """
        if self._started:
            return

        async_playwright = self._import_backend()
        self._playwright = await async_playwright().start()

        launch_options = {
            "headless": self.config.headless,
            "args": self.config.launch_args,
        }
        if self.config.executable_path:
            launch_options["executable_path"] = self.config.executable_path

        try:
            self._browser = await self._playwright.chromium.launch(**launch_options)
        except Exception:
            await self._playwright.stop()
            self._playwright = None
            raise

        self._start_time = datetime.now()
        self._started = True
        logger.info(
            f"Page pool started with up to {self.max_pages} pages "
            f"(backend: {self.config.backend})"
        )

    def _import_backend(self):
        if self.config.backend == "rebrowser":
            try:
                from rebrowser_playwright.async_api import async_playwright
            except ImportError:
                raise ImportError(
                    "rebrowser-playwright package not installed. "
                    "Install with: pip install 'leadcrawl[stealth]' && rebrowser_playwright install chromium"
                )
            return async_playwright

        try:
            from playwright.async_api import async_playwright
        except ImportError:
            raise ImportError(
                "playwright package not installed. "
                "Install with: pip install playwright && playwright install chromium"
            )
        return async_playwright

    async def stop(self) -> None:
        """
        Shutdown the pool gracefully.

        Closes every page, then the browser if the pool launched it.
        """
        if not self._started:
            return

        for page in self._pages:
            try:
                await page.close()
            except Exception as e:
                logger.warning(f"Error closing page: {e}")

        self._pages.clear()
        self._idle.clear()

        if self._owns_browser:
            if self._browser:
                try:
                    await self._browser.close()
                except Exception as e:
                    logger.warning(f"Error closing browser: {e}")
                self._browser = None

            if self._playwright:
                try:
                    await self._playwright.stop()
                except Exception as e:
                    logger.warning(f"Error stopping playwright: {e}")
                self._playwright = None

        self._started = False
        logger.info("Page pool stopped")

    async def _create_page(self) -> Any:
        page = await self._browser.new_page(
            user_agent=self.config.get_user_agent(),
            viewport={
                "width": self.config.viewport_width,
                "height": self.config.viewport_height,
            },
        )
        page.set_default_navigation_timeout(self.config.timeout)
        self._pages.append(page)
        logger.debug(f"Created browser page {len(self._pages)}/{self.max_pages}")
        return page

    @asynccontextmanager
    async def acquire(self):
        """
        Acquire a page from the pool.

        Blocks while max_pages pages are in use. The page goes back to the
        idle set on every exit path, including exceptions.

        Usage:
            async with pool.acquire() as page:
                await page.goto(url)

        Yields:
            Browser Page
        """
        if not self._started:
            raise RuntimeError("Page pool not started. Call start() first.")

        async with self._semaphore:
            async with self._lock:
                if self._idle:
                    page = self._idle.pop()
                else:
                    page = await self._create_page()
                self._total_acquisitions += 1

            try:
                yield page
            finally:
                self._idle.append(page)

    def get_status(self) -> PoolStatus:
        """Get current pool status."""
        uptime = 0.0
        if self._start_time:
            uptime = (datetime.now() - self._start_time).total_seconds()

        return PoolStatus(
            max_pages=self.max_pages,
            created=len(self._pages),
            idle=len(self._idle),
            in_use=len(self._pages) - len(self._idle),
            total_acquisitions=self._total_acquisitions,
            uptime_seconds=uptime,
        )

    @property
    def is_started(self) -> bool:
        """Whether the pool has a browser to create pages from."""
        return self._started
