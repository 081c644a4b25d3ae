# src/leadcrawl/constants.py
"""Centralized constants for the lead crawler.

This module contains magic numbers shared across the fetch layer, the crawl
orchestrator and the extraction engine. For user-configurable crawl settings,
see config.py and CrawlConfig.
"""

# =============================================================================
# Fetch Layer Constants
# =============================================================================

# First-attempt timeout for the HTTP tier (seconds)
DEFAULT_REQUEST_TIMEOUT_SECONDS = 10.0

# Timeout added for each retry attempt (seconds): 10s, 15s, 20s
TIMEOUT_INCREMENT_SECONDS = 5.0

# Additional HTTP attempts after the first one
DEFAULT_MAX_RETRIES = 2

# Exponential backoff between HTTP attempts (seconds)
RETRY_BACKOFF_BASE_SECONDS = 1.0
RETRY_BACKOFF_CAP_SECONDS = 4.0

# Browser navigation timeout (milliseconds)
BROWSER_NAVIGATION_TIMEOUT_MS = 30000

# Bot challenge polling in the browser tier
CHALLENGE_MAX_POLLS = 10
CHALLENGE_POLL_INTERVAL_SECONDS = 3.0

# Status codes that suggest an anti-bot interstitial
CHALLENGE_STATUS_CODES = frozenset({403, 503})

# Pages with less visible text than this are treated as JS shells
MIN_RENDERED_TEXT_LENGTH = 500


# =============================================================================
# Crawl Orchestrator Constants
# =============================================================================

# Default page cap per business
DEFAULT_MAX_PAGES = 10

# Only expand links from pages with more text than this
MIN_TEXT_FOR_LINK_EXPANSION = 500

# Inter-request delays (milliseconds)
BASE_DELAY_MS = 50
FAILURE_DELAY_MS = 200
MAX_DELAY_MS = 2000

# Consecutive failures before a crawl is abandoned
MAX_CONSECUTIVE_FAILURES = 5

# Worst-case wall clock for a single site crawl (seconds)
DEFAULT_CRAWL_DEADLINE_SECONDS = 300.0

# Early exit defaults
EARLY_EXIT_MIN_PAGES = 3


# =============================================================================
# Page Pool / Rate Limiting Constants
# =============================================================================

# Upper bound on pooled browser pages
MAX_BROWSER_PAGES = 5

# Requests per second per API credential
RATE_LIMIT_PER_KEY_PER_SECOND = 8

# Minimum sleep while waiting on an empty bucket (seconds)
MIN_RATE_LIMIT_WAIT_SECONDS = 0.01


# =============================================================================
# Domain Health Constants
# =============================================================================

# Attempts required before a domain can be circuit-broken
DOMAIN_MIN_ATTEMPTS = 3

# Success rate below which a domain is skipped
DOMAIN_MIN_SUCCESS_RATE = 0.2

# Number of problem domains listed in the run summary
TOP_PROBLEM_DOMAINS = 10

# Number of error codes listed in the failure breakdown
TOP_ERROR_CODES = 5


# =============================================================================
# Extraction Constants
# =============================================================================

MAX_EMAILS = 10
MAX_PHONES = 5
MAX_TEAM_MEMBERS = 20
MAX_NEW_HIRES = 10
MAX_ACQUISITION_SIGNALS = 10
MAX_HISTORY_SNIPPETS = 5

# Plausible headcount range
MIN_HEADCOUNT = 2
MAX_HEADCOUNT = 10000

# Earliest plausible founding year
MIN_FOUNDED_YEAR = 1800

# "N years in business" must be below this
MAX_YEARS_IN_BUSINESS = 200

# Characters on each side of an acquisition match searched for a year
ACQUISITION_YEAR_WINDOW = 50

# History snippets
MIN_SNIPPET_SENTENCE_LENGTH = 20
MAX_SNIPPET_LENGTH = 300

# Unknown error messages are truncated to this length
MAX_ERROR_MESSAGE_LENGTH = 100


# =============================================================================
# Batch Constants
# =============================================================================

# Container resources used when sizing concurrency
DEFAULT_TASK_MEMORY_MIB = 4096
DEFAULT_TASK_CPU_UNITS = 1024

# Memory held back for the runtime itself
RESERVED_MEMORY_MIB = 500

# Approximate memory cost per concurrent crawl
FAST_MODE_MEMORY_PER_CRAWL_MIB = 50
BROWSER_MODE_MEMORY_PER_CRAWL_MIB = 300

# Blob key prefix for persisted crawl output
BLOB_KEY_PREFIX = "crawled-data"
