"""
Infrastructure Package.

Run-scoped shared resources for parallel crawling: the browser page pool,
token-bucket rate limiting and domain/failure health tracking.
"""

from .browser_pool import (
    PagePool,
    PoolStatus,
)
from .rate_limiter import (
    RateBucket,
    KeyRotator,
    TokenBucketLimiter,
    create_key_rotator_from_env,
)
from .domain_tracker import (
    DomainStat,
    DomainTracker,
    FailureBreakdown,
    FailureTracker,
)

__all__ = [
    # Page Pool
    "PagePool",
    "PoolStatus",
    # Rate Limiter
    "RateBucket",
    "KeyRotator",
    "TokenBucketLimiter",
    "create_key_rotator_from_env",
    # Health Tracking
    "DomainStat",
    "DomainTracker",
    "FailureBreakdown",
    "FailureTracker",
]
