"""Website lead crawler and extraction engine."""

__version__ = "0.1.0"

from leadcrawl.models import (
    FetchMethod,
    CrawlState,
    Page,
    TeamMember,
    NewHireMention,
    AcquisitionSignal,
    HistorySnippet,
    SocialLinks,
    SchemaOrgData,
    ExtractedData,
    FilterOperator,
    FilterRule,
    Business,
)
from leadcrawl.config import settings, CrawlConfig, JobConfig, EarlyExitCriteria
from leadcrawl.errors import ErrorType, CrawlError, classify_error
from leadcrawl.fetcher import PageFetcher, FetchOutcome
from leadcrawl.site_crawler import SiteCrawler, CrawlOutcome, check_early_exit
from leadcrawl.extractors import extract_all_data
from leadcrawl.batch import BatchRunner, RunMetrics
from leadcrawl.database import get_business_store
from leadcrawl.output_manager import OutputManager

# Infrastructure
from leadcrawl.infrastructure import (
    PagePool,
    KeyRotator,
    TokenBucketLimiter,
    DomainTracker,
    FailureTracker,
)

__all__ = [
    # Models
    "FetchMethod",
    "CrawlState",
    "Page",
    "TeamMember",
    "NewHireMention",
    "AcquisitionSignal",
    "HistorySnippet",
    "SocialLinks",
    "SchemaOrgData",
    "ExtractedData",
    "FilterOperator",
    "FilterRule",
    "Business",
    # Config
    "settings",
    "CrawlConfig",
    "JobConfig",
    "EarlyExitCriteria",
    # Errors
    "ErrorType",
    "CrawlError",
    "classify_error",
    # Core
    "PageFetcher",
    "FetchOutcome",
    "SiteCrawler",
    "CrawlOutcome",
    "check_early_exit",
    "extract_all_data",
    "BatchRunner",
    "RunMetrics",
    "get_business_store",
    "OutputManager",
    # Infrastructure
    "PagePool",
    "KeyRotator",
    "TokenBucketLimiter",
    "DomainTracker",
    "FailureTracker",
]
