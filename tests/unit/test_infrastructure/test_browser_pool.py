"""Unit tests for the browser page pool, using a fake browser."""

import pytest
import asyncio
import sys
from unittest.mock import AsyncMock, MagicMock, patch

pytest_plugins = ('pytest_asyncio',)

from leadcrawl.browser_config import BrowserConfig
from leadcrawl.infrastructure.browser_pool import PagePool, PoolStatus


def make_browser():
    """Fake browser whose new_page() returns a fresh fake page each call."""
    browser = MagicMock()

    async def new_page(**kwargs):
        page = MagicMock()
        page.close = AsyncMock()
        page.options = kwargs
        return page

    browser.new_page = AsyncMock(side_effect=new_page)
    browser.close = AsyncMock()
    return browser


class TestPagePoolLifecycle:
    """Tests for starting and stopping the pool."""

    def test_defaults(self):
        pool = PagePool()
        assert pool.max_pages == 5
        assert pool.config.backend == "playwright"
        assert pool.is_started is False

    def test_max_pages_overrides_config(self):
        pool = PagePool(BrowserConfig(max_pages=8), max_pages=2)
        assert pool.max_pages == 2

    def test_injected_browser_marks_started(self):
        pool = PagePool(browser=make_browser())
        assert pool.is_started

    @pytest.mark.asyncio
    async def test_acquire_before_start_raises(self):
        pool = PagePool()
        with pytest.raises(RuntimeError):
            async with pool.acquire():
                pass

    @pytest.mark.asyncio
    async def test_missing_rebrowser_raises_import_error(self):
        pool = PagePool(BrowserConfig(backend="rebrowser"))
        with patch.dict(sys.modules, {"rebrowser_playwright": None, "rebrowser_playwright.async_api": None}):
            with pytest.raises(ImportError, match="rebrowser-playwright"):
                await pool.start()
        assert pool.is_started is False

    @pytest.mark.asyncio
    async def test_stop_closes_pages_but_not_injected_browser(self):
        browser = make_browser()
        pool = PagePool(max_pages=2, browser=browser)

        async with pool.acquire() as page:
            pass

        await pool.stop()

        page.close.assert_awaited_once()
        browser.close.assert_not_awaited()
        assert pool.is_started is False


class TestPagePoolAcquire:
    """Tests for page acquisition and reuse."""

    @pytest.mark.asyncio
    async def test_pages_created_with_config(self):
        config = BrowserConfig(user_agent="TestAgent/1.0", timeout=15000)
        pool = PagePool(config, browser=make_browser())

        async with pool.acquire() as page:
            assert page.options["user_agent"] == "TestAgent/1.0"
            assert page.options["viewport"] == {"width": 1920, "height": 1080}
            page.set_default_navigation_timeout.assert_called_once_with(15000)

    @pytest.mark.asyncio
    async def test_released_page_is_reused(self):
        browser = make_browser()
        pool = PagePool(max_pages=2, browser=browser)

        async with pool.acquire() as first:
            pass
        async with pool.acquire() as second:
            pass

        assert first is second
        assert browser.new_page.await_count == 1
        assert pool.get_status().total_acquisitions == 2

    @pytest.mark.asyncio
    async def test_page_returned_on_exception(self):
        pool = PagePool(max_pages=1, browser=make_browser())

        with pytest.raises(ValueError):
            async with pool.acquire():
                raise ValueError("navigation failed")

        status = pool.get_status()
        assert status.idle == 1
        assert status.in_use == 0

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self):
        browser = make_browser()
        pool = PagePool(max_pages=2, browser=browser)
        in_use = 0
        peak = 0

        async def worker():
            nonlocal in_use, peak
            async with pool.acquire():
                in_use += 1
                peak = max(peak, in_use)
                await asyncio.sleep(0.01)
                in_use -= 1

        await asyncio.gather(*(worker() for _ in range(6)))

        assert peak == 2
        assert browser.new_page.await_count == 2
        status = pool.get_status()
        assert isinstance(status, PoolStatus)
        assert status.created == 2
        assert status.idle == 2
        assert status.total_acquisitions == 6
