"""Tests for the batch runner, against a local store and a mocked HTTP transport."""

from unittest.mock import patch

import httpx
import pytest

pytest_plugins = ('pytest_asyncio',)

from leadcrawl.batch import BatchRunner, RunMetrics, build_crawl_update
from leadcrawl.config import CrawlConfig, JobConfig
from leadcrawl.database import LocalSqliteBusinessStore
from leadcrawl.extractors import extract_all_data
from leadcrawl.models import CrawlState, ExtractedData, FilterOperator, FilterRule
from leadcrawl.output_manager import OutputManager
from leadcrawl.site_crawler import CrawlOutcome

FILLER = "<p>" + "Acme Plumbing has fixed leaks and drains across Denver for years. " * 10 + "</p>"

ACME_SITE = {
    "/": (
        "<html><head><title>Acme Plumbing</title></head><body>"
        f"{FILLER}<p>Questions? Email info@acme.com today.</p>"
        '<a href="/about">About</a><a href="/contact">Contact</a><a href="/services">Services</a>'
        "</body></html>"
    ),
    "/about": f"<html><body>{FILLER}<p>Founded in 1998 by Jane Doe.</p></body></html>",
    "/contact": f"<html><body>{FILLER}<p>Reach us at service@acme.com.</p></body></html>",
    "/services": f"<html><body>{FILLER}</body></html>",
}


def handler(request):
    if request.url.host == "acme.com":
        html = ACME_SITE.get(request.url.path)
        if html is None:
            return httpx.Response(404, html="<p>Not found</p>")
        return httpx.Response(200, html=html)
    raise httpx.ConnectError("[Errno -2] Name or service not known", request=request)


@pytest.fixture
def store(tmp_path):
    store = LocalSqliteBusinessStore(db_url=f"sqlite:///{tmp_path / 'batch.db'}")
    store.save_business({"business_id": "b1", "business_name": "Acme", "website_uri": "https://acme.com"})
    store.save_business({"business_id": "b2", "business_name": "Gone", "website_uri": "https://gone.example"})
    store.save_business({"business_id": "b3", "business_name": "No Site"})
    yield store
    store.close()


@pytest.fixture
def output(tmp_path):
    return OutputManager(str(tmp_path / "output"))


def make_runner(store, output, **job_fields):
    job_fields.setdefault("fast_mode", True)
    job_fields.setdefault("concurrency", 2)
    crawl_config = CrawlConfig(base_delay_ms=0, failure_delay_ms=0, max_retries=0)
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return BatchRunner(store, output, JobConfig(**job_fields), crawl_config, client=client)


class TestBatchRunner:
    """Tests for BatchRunner.run."""

    @pytest.mark.asyncio
    async def test_run(self, store, output):
        runner = make_runner(store, output, job_id="job-1")

        metrics = await runner.run()

        assert metrics.processed == 1
        assert metrics.failed == 1
        assert metrics.early_exit_count == 1
        assert metrics.total_pages == 3
        assert metrics.http_count == 3
        assert metrics.browser_count == 0
        assert store.get_job_metrics("job-1") == metrics.to_dict()

    @pytest.mark.asyncio
    async def test_successful_business_updated(self, store, output):
        await make_runner(store, output).run()

        record = store.get_business("b1")
        assert record["web_crawled"] is True
        assert record["web_crawl_status"] == "complete"
        assert record["pipeline_status"] == "crawled"
        assert record["web_pages_count"] == 3
        assert record["web_crawl_method"] == "http"
        assert record["web_emails"] == ["service@acme.com", "info@acme.com"]
        assert record["web_founded_year"] == 1998
        assert record["web_raw_key"].startswith("crawled-data/b1/")

        raw = output.get_json(record["web_raw_key"])
        assert [p["url"] for p in raw["pages"]] == [
            "https://acme.com/",
            "https://acme.com/about",
            "https://acme.com/contact",
        ]
        assert raw["final_state"] == "early_exited"

        extracted = output.get_json(record["web_extracted_key"])
        assert extracted["business_id"] == "b1"
        assert extracted["history"]["founded_year"] == 1998

    @pytest.mark.asyncio
    async def test_failed_business_marked(self, store, output):
        runner = make_runner(store, output)
        await runner.run()

        record = store.get_business("b2")
        assert record["web_crawled"] is True
        assert record["web_crawl_status"] == "failed"

        problems = runner.domain_tracker.problem_domains()
        assert [stat.domain for stat in problems] == ["gone.example"]
        assert runner.failure_tracker.get_breakdown().by_type == {"dns": 1}

    @pytest.mark.asyncio
    async def test_filtered_run(self, store, output):
        rules = [FilterRule("business_name", FilterOperator.EQUALS, "Gone")]
        metrics = await make_runner(store, output, filter_rules=rules).run()

        assert metrics.processed == 0
        assert metrics.failed == 1
        assert store.get_business("b1").get("web_crawled") is None

    @pytest.mark.asyncio
    async def test_nothing_to_crawl(self, store, output):
        metrics = await make_runner(store, output, business_ids=["b3"]).run()
        assert metrics.to_dict() == RunMetrics().to_dict()

    @pytest.mark.asyncio
    async def test_store_error_counted_not_raised(self, store, output):
        runner = make_runner(store, output, business_ids=["b1"])
        with patch.object(store, "update_business_with_crawl_data", side_effect=RuntimeError("disk full")):
            metrics = await runner.run()

        assert metrics.processed == 0
        assert metrics.failed == 1

    @pytest.mark.asyncio
    async def test_job_settings_override_crawl_config(self, store, output):
        runner = make_runner(store, output, max_pages_per_site=2, enable_early_exit=False)
        assert runner.crawl_config.max_pages == 2
        assert runner.crawl_config.enable_early_exit is False

        metrics = await runner.run()
        assert metrics.total_pages == 2


class TestBuildCrawlUpdate:
    """Tests for the fields written back onto a business record."""

    def test_abandoned_crawl_is_partial(self):
        outcome = CrawlOutcome(seed_url="https://acme.com", state=CrawlState.ABANDONED)
        update = build_crawl_update(outcome, ExtractedData(), "raw", "extracted")

        assert update["web_crawl_status"] == "partial"
        assert update["web_team_members"] is None
        assert update["web_new_hires"] is None
        assert update["web_acquisition_signals"] is None
        assert update["web_history_snippets"] is None
        assert update["web_has_team_page"] is False
        assert update["web_raw_key"] == "raw"
        assert update["web_extracted_key"] == "extracted"

    def test_complete_crawl(self):
        outcome = CrawlOutcome(seed_url="https://acme.com", state=CrawlState.EXHAUSTED)
        extracted = extract_all_data([])
        update = build_crawl_update(outcome, extracted, "raw", "extracted")

        assert update["web_crawl_status"] == "complete"
        assert update["web_pages_count"] == 0
        assert update["pipeline_status"] == "crawled"
