"""Command-line interface for the lead crawler."""

import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from leadcrawl.batch import BatchRunner
from leadcrawl.browser_config import BrowserConfig
from leadcrawl.config import CrawlConfig, JobConfig, settings
from leadcrawl.database import get_business_store
from leadcrawl.extractors import extract_all_data
from leadcrawl.fetcher import PageFetcher
from leadcrawl.infrastructure.browser_pool import PagePool
from leadcrawl.logging_config import job_log_path, setup_logging
from leadcrawl.output_manager import DateTimeEncoder, OutputManager
from leadcrawl.site_crawler import SiteCrawler


async def _crawl_site(url: str, config: CrawlConfig, fast: bool) -> Dict[str, Any]:
    """Crawl one site and extract its data.

    Args:
        url: Site root URL
        config: Crawl settings
        fast: Skip the browser tier

    Returns:
        Dictionary with crawl stats and the extracted record
    """
    page_pool: Optional[PagePool] = None
    if not fast:
        page_pool = PagePool(BrowserConfig(
            backend=settings.BROWSER_BACKEND,
            executable_path=settings.BROWSER_EXECUTABLE_PATH,
        ), max_pages=1)
        try:
            await page_pool.start()
        except Exception as e:
            print(f"Warning: browser unavailable, crawling with HTTP only ({e})", file=sys.stderr)
            page_pool = None

    try:
        async with PageFetcher(config, page_pool=page_pool) as fetcher:
            outcome = await SiteCrawler(fetcher, config).crawl(url)
    finally:
        if page_pool is not None:
            await page_pool.stop()

    extracted = extract_all_data(outcome.pages)
    return {
        "url": outcome.seed_url,
        "final_state": outcome.state.value,
        "crawl_method": outcome.method.value,
        "pages": [page.url for page in outcome.pages],
        "duration_ms": outcome.duration_ms,
        "failures": outcome.failure_breakdown.to_dict(),
        "extracted": extracted.to_record("", outcome.seed_url),
    }


def crawl_command(args):
    """Crawl a single site and print the extracted data."""
    config = CrawlConfig.from_file(args.config) if args.config else CrawlConfig.from_env()
    if args.max_pages:
        config.max_pages = args.max_pages
    if args.no_early_exit:
        config.enable_early_exit = False

    result = asyncio.run(_crawl_site(args.url, config, args.fast))
    output = json.dumps(result, indent=2, cls=DateTimeEncoder)

    if args.output_file:
        with open(args.output_file, "w") as f:
            f.write(output)
        print(f"\nResults written to {args.output_file}")
    else:
        print(output)

    if not result["pages"]:
        sys.exit(1)


def run_command(args):
    """Run a batch crawl against the business store."""
    if args.config:
        job = JobConfig.from_file(args.config)
        crawl_config = CrawlConfig.from_file(args.config)
    else:
        job = JobConfig()
        crawl_config = CrawlConfig.from_env()

    if args.job_id:
        job.job_id = args.job_id
    if args.concurrency:
        job.concurrency = args.concurrency
    if args.max_pages:
        job.max_pages_per_site = args.max_pages
    if args.fast:
        job.fast_mode = True
    if args.force:
        job.force_recrawl = True
    if args.ids:
        job.business_ids = list(args.ids)

    store = get_business_store()
    try:
        runner = BatchRunner(store, OutputManager(settings.OUTPUT_DIR), job, crawl_config)
        metrics = asyncio.run(runner.run())
    finally:
        store.close()

    print(json.dumps(metrics.to_dict(), indent=2))


def _load_records(path: Path) -> List[Dict[str, Any]]:
    with open(path, "r") as f:
        if path.suffix.lower() == ".json":
            data = json.load(f)
        else:
            data = yaml.safe_load(f)

    if isinstance(data, dict):
        data = data.get("businesses", [])
    if not isinstance(data, list):
        raise ValueError(f"Expected a list of business records in {path}")
    return data


def import_command(args):
    """Load business records into the store."""
    path = Path(args.file)
    if not path.exists():
        print(f"Error: {path} not found")
        sys.exit(1)

    try:
        records = _load_records(path)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    store = get_business_store()
    imported = 0
    try:
        for record in records:
            if not record.get("business_id"):
                print(f"Skipping record without business_id: {record.get('business_name', record)}")
                continue
            store.save_business(record)
            imported += 1
    finally:
        store.close()

    print(f"Imported {imported} of {len(records)} businesses")


def show_command(args):
    """Print a stored business record."""
    store = get_business_store()
    try:
        record = store.get_business(args.business_id)
    finally:
        store.close()

    if record is None:
        print(f"No business found with id {args.business_id}")
        sys.exit(1)
    print(json.dumps(record, indent=2, default=str))


def main():
    """Main CLI entry point."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Lead crawler - harvest contact, team and history signals from business websites"
    )

    # Global flags (before subcommands)
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=settings.LOG_LEVEL.upper(),
        help="Set logging verbosity (default: INFO)",
    )
    parser.add_argument(
        "--log-file",
        help="Write logs to file in addition to console",
    )
    parser.add_argument(
        "--log-dir",
        help="Write run logs to <log-dir>/<job-id>.log (needs --job-id)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Crawl command parser
    crawl_parser = subparsers.add_parser(
        "crawl", help="Crawl a single website and print the extracted data."
    )
    crawl_parser.add_argument("url", help="Website URL to crawl")
    crawl_parser.add_argument(
        "--max-pages",
        type=int,
        help="Maximum pages to crawl (default: 10)",
    )
    crawl_parser.add_argument(
        "--fast",
        action="store_true",
        help="HTTP only, never launch a browser",
    )
    crawl_parser.add_argument(
        "--no-early-exit",
        action="store_true",
        help="Keep crawling after contact data is found",
    )
    crawl_parser.add_argument(
        "--config",
        help="YAML or JSON file with crawl settings",
    )
    crawl_parser.add_argument(
        "--output-file",
        "-f",
        help="Write JSON output to file",
    )
    crawl_parser.set_defaults(func=crawl_command)

    # Run command parser
    run_parser = subparsers.add_parser(
        "run", help="Crawl every eligible business in the store."
    )
    run_parser.add_argument(
        "--config",
        help="YAML or JSON file with job: and crawl: sections",
    )
    run_parser.add_argument("--job-id", help="Job identifier for run metrics")
    run_parser.add_argument(
        "--concurrency",
        type=int,
        help="Businesses crawled at once (default: sized from task resources)",
    )
    run_parser.add_argument(
        "--max-pages",
        type=int,
        help="Maximum pages per site (default: 10)",
    )
    run_parser.add_argument(
        "--fast",
        action="store_true",
        help="Disable the browser tier",
    )
    run_parser.add_argument(
        "--force",
        action="store_true",
        help="Recrawl businesses that were already crawled",
    )
    run_parser.add_argument(
        "--ids",
        nargs="+",
        help="Only crawl these business IDs",
    )
    run_parser.set_defaults(func=run_command)

    # Import command parser
    import_parser = subparsers.add_parser(
        "import", help="Load business records (JSON or YAML list) into the store."
    )
    import_parser.add_argument("file", help="Path to the records file")
    import_parser.set_defaults(func=import_command)

    # Show command parser
    show_parser = subparsers.add_parser(
        "show", help="Print a stored business record."
    )
    show_parser.add_argument("business_id", help="Business identifier")
    show_parser.set_defaults(func=show_command)

    args = parser.parse_args()

    # Configure logging based on flags
    job_id = getattr(args, "job_id", None)
    log_file = args.log_file
    if log_file is None and args.log_dir and job_id:
        log_file = str(job_log_path(args.log_dir, job_id))
    setup_logging(level=args.log_level, log_file=log_file, job_id=job_id)

    if hasattr(args, "func"):
        args.func(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
