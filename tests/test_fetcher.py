"""Tests for the two-tier page fetcher, using httpx.MockTransport and a fake browser."""

import pytest
import httpx
from unittest.mock import AsyncMock, MagicMock

pytest_plugins = ('pytest_asyncio',)

from leadcrawl.config import CrawlConfig
from leadcrawl.errors import ErrorType
from leadcrawl.fetcher import PageFetcher, build_page
from leadcrawl.infrastructure.browser_pool import PagePool
from leadcrawl.models import FetchMethod

CONTENT_HTML = (
    "<html><head><title>Acme Plumbing</title></head><body>"
    + "<p>Family owned plumbing and drain service for the Denver metro area.</p>" * 10
    + '<a href="/about">About</a><a href="/contact">Contact</a>'
    + "</body></html>"
)
SHELL_HTML = '<html><body><div id="root"></div><script src="/app.js"></script></body></html>'
CHALLENGE_HTML = "<html><head><title>Just a moment...</title></head><body>Checking your browser</body></html>"


def make_client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=True)


def make_pool(content=CONTENT_HTML, goto_error=None):
    """Started page pool whose only page renders the given markup."""
    page = MagicMock()
    page.goto = AsyncMock(side_effect=goto_error)
    page.content = AsyncMock(return_value=content)
    page.close = AsyncMock()

    browser = MagicMock()
    browser.new_page = AsyncMock(return_value=page)
    browser.close = AsyncMock()
    return PagePool(max_pages=1, browser=browser), page


@pytest.fixture
def config():
    return CrawlConfig(
        max_retries=2,
        backoff_base=0,
        backoff_cap=0,
        challenge_max_polls=1,
        challenge_poll_interval=0,
    )


class TestBuildPage:
    """Tests for reducing markup to a Page."""

    def test_build_page(self):
        page = build_page("https://acme.com/", CONTENT_HTML, 200)
        assert page.title == "Acme Plumbing"
        assert page.links == ["https://acme.com/about", "https://acme.com/contact"]
        assert "Family owned plumbing" in page.text
        assert page.size_bytes == len(CONTENT_HTML)

    def test_base_url_resolves_relative_links(self):
        html = '<a href="team">Team</a>'
        page = build_page("https://acme.com/about", html, 200, base_url="https://acme.com/about/")
        assert page.url == "https://acme.com/about"
        assert page.links == ["https://acme.com/about/team"]


class TestHttpTier:
    """Tests for HTTP fetching and retries."""

    @pytest.mark.asyncio
    async def test_success(self, config):
        client = make_client(lambda request: httpx.Response(200, html=CONTENT_HTML))
        async with PageFetcher(config, client=client) as fetcher:
            outcome = await fetcher.fetch("https://acme.com/")

        assert outcome.ok
        assert outcome.method == FetchMethod.HTTP
        assert outcome.attempts == 1
        assert outcome.page.status_code == 200
        assert outcome.page.title == "Acme Plumbing"

    @pytest.mark.asyncio
    async def test_links_resolve_against_redirect_target(self, config):
        def handler(request):
            if request.url.path == "/about":
                return httpx.Response(301, headers={"Location": "/about/"})
            return httpx.Response(200, html='<p>Our people</p><a href="team">Team</a>')

        fetcher = PageFetcher(config, client=make_client(handler))
        outcome = await fetcher.fetch("https://acme.com/about")

        assert outcome.ok
        assert outcome.page.url == "https://acme.com/about"
        assert outcome.page.links == ["https://acme.com/about/team"]

    @pytest.mark.asyncio
    async def test_sends_browser_headers(self, config):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, html=CONTENT_HTML)

        fetcher = PageFetcher(config, client=make_client(handler))
        await fetcher.fetch("https://acme.com/")

        assert seen[0].headers["User-Agent"].startswith("Mozilla/5.0")

    @pytest.mark.asyncio
    async def test_dns_failure_not_retried(self, config):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectError("[Errno -2] Name or service not known", request=request)

        fetcher = PageFetcher(config, client=make_client(handler))
        outcome = await fetcher.fetch("https://no-such-host.example/")

        assert not outcome.ok
        assert outcome.error.error_type == ErrorType.DNS
        assert outcome.attempts == 1
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_timeout_retried(self, config):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ReadTimeout("timed out", request=request)

        fetcher = PageFetcher(config, client=make_client(handler))
        outcome = await fetcher.fetch("https://acme.com/")

        assert outcome.error.error_type == ErrorType.TIMEOUT
        assert outcome.attempts == 3
        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_recovers_after_connection_failure(self, config):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) == 1:
                raise httpx.ConnectError("[Errno 111] Connection refused", request=request)
            return httpx.Response(200, html=CONTENT_HTML)

        fetcher = PageFetcher(config, client=make_client(handler))
        outcome = await fetcher.fetch("https://acme.com/")

        assert outcome.ok
        assert outcome.attempts == 2

    @pytest.mark.asyncio
    async def test_not_found(self, config):
        client = make_client(lambda request: httpx.Response(404, html="<p>Not found</p>"))
        outcome = await PageFetcher(config, client=client).fetch("https://acme.com/missing")

        assert outcome.error.error_type == ErrorType.HTTP
        assert outcome.error.status_code == 404
        assert outcome.attempts == 1

    @pytest.mark.asyncio
    async def test_challenge_without_browser(self, config):
        client = make_client(lambda request: httpx.Response(503, html=CHALLENGE_HTML))
        outcome = await PageFetcher(config, client=client).fetch("https://acme.com/")

        assert outcome.error.error_type == ErrorType.BOT_CHALLENGE
        assert outcome.error.status_code == 503

    @pytest.mark.asyncio
    async def test_plain_forbidden_without_browser(self, config):
        client = make_client(lambda request: httpx.Response(403, html="<p>Forbidden</p>"))
        outcome = await PageFetcher(config, client=client).fetch("https://acme.com/")

        assert outcome.error.error_type == ErrorType.HTTP
        assert outcome.error.status_code == 403

    @pytest.mark.asyncio
    async def test_throttle_awaited_per_request(self, config):
        throttle = MagicMock()
        throttle.acquire = AsyncMock()
        client = make_client(lambda request: httpx.Response(200, html=CONTENT_HTML))
        fetcher = PageFetcher(config, throttle=throttle, client=client)

        await fetcher.fetch("https://acme.com/")
        await fetcher.fetch("https://acme.com/about")

        assert throttle.acquire.await_count == 2

    @pytest.mark.asyncio
    async def test_close_leaves_injected_client_open(self, config):
        client = make_client(lambda request: httpx.Response(200, html=CONTENT_HTML))
        async with PageFetcher(config, client=client):
            pass
        assert not client.is_closed
        await client.aclose()


class TestBrowserEscalation:
    """Tests for escalating to the browser tier."""

    @pytest.mark.asyncio
    async def test_challenge_resolved_in_browser(self, config):
        pool, page = make_pool()
        client = make_client(lambda request: httpx.Response(403, html=CHALLENGE_HTML))
        outcome = await PageFetcher(config, page_pool=pool, client=client).fetch("https://acme.com/")

        assert outcome.ok
        assert outcome.method == FetchMethod.BROWSER
        assert outcome.page.status_code == 200
        page.goto.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_challenge_not_resolved(self, config):
        pool, page = make_pool(content=CHALLENGE_HTML)
        client = make_client(lambda request: httpx.Response(200, html=CHALLENGE_HTML))
        outcome = await PageFetcher(config, page_pool=pool, client=client).fetch("https://acme.com/")

        assert not outcome.ok
        assert outcome.method == FetchMethod.BROWSER
        assert outcome.error.error_type == ErrorType.BOT_CHALLENGE
        assert page.content.await_count == 2

    @pytest.mark.asyncio
    async def test_challenge_browser_crash_reports_status(self, config):
        pool, _ = make_pool(goto_error=RuntimeError("Target closed"))
        client = make_client(lambda request: httpx.Response(403, html=CHALLENGE_HTML))
        outcome = await PageFetcher(config, page_pool=pool, client=client).fetch("https://acme.com/")

        assert outcome.error.error_type == ErrorType.BOT_CHALLENGE
        assert outcome.error.status_code == 403

    @pytest.mark.asyncio
    async def test_js_shell_rendered(self, config):
        pool, _ = make_pool()
        client = make_client(lambda request: httpx.Response(200, html=SHELL_HTML))
        outcome = await PageFetcher(config, page_pool=pool, client=client).fetch("https://acme.com/")

        assert outcome.method == FetchMethod.BROWSER
        assert "Family owned plumbing" in outcome.page.text

    @pytest.mark.asyncio
    async def test_js_shell_render_failure_keeps_http_page(self, config):
        pool, _ = make_pool(goto_error=RuntimeError("Navigation failed"))
        client = make_client(lambda request: httpx.Response(200, html=SHELL_HTML))
        outcome = await PageFetcher(config, page_pool=pool, client=client).fetch("https://acme.com/")

        assert outcome.ok
        assert outcome.method == FetchMethod.HTTP
        assert outcome.page.html == SHELL_HTML

    @pytest.mark.asyncio
    async def test_content_page_skips_browser(self, config):
        pool, page = make_pool()
        client = make_client(lambda request: httpx.Response(200, html=CONTENT_HTML))
        outcome = await PageFetcher(config, page_pool=pool, client=client).fetch("https://acme.com/")

        assert outcome.method == FetchMethod.HTTP
        page.goto.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_transport_failure_escalates(self, config):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        pool, _ = make_pool()
        outcome = await PageFetcher(config, page_pool=pool, client=make_client(handler)).fetch(
            "https://acme.com/"
        )

        assert outcome.ok
        assert outcome.method == FetchMethod.BROWSER
        assert outcome.attempts == 3

    @pytest.mark.asyncio
    async def test_dns_failure_never_escalates(self, config):
        def handler(request):
            raise httpx.ConnectError("[Errno -2] Name or service not known", request=request)

        pool, page = make_pool()
        outcome = await PageFetcher(config, page_pool=pool, client=make_client(handler)).fetch(
            "https://no-such-host.example/"
        )

        assert outcome.error.error_type == ErrorType.DNS
        page.goto.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_browser_failure_keeps_transport_error(self, config):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        pool, _ = make_pool(goto_error=RuntimeError("Target closed"))
        outcome = await PageFetcher(config, page_pool=pool, client=make_client(handler)).fetch(
            "https://acme.com/"
        )

        assert outcome.error.error_type == ErrorType.TIMEOUT
        assert outcome.method == FetchMethod.HTTP
