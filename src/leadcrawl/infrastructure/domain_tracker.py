"""
Domain Health and Failure Tracking.

Run-scoped statistics shared by every crawl in a batch:
- DomainTracker: per-domain attempt/success/failure counts and a soft
  circuit breaker for domains that keep failing
- FailureTracker: histogram of failures by error type and code
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from leadcrawl.constants import (
    DOMAIN_MIN_ATTEMPTS,
    DOMAIN_MIN_SUCCESS_RATE,
    TOP_ERROR_CODES,
    TOP_PROBLEM_DOMAINS,
)
from leadcrawl.errors import CrawlError
from leadcrawl.urls import get_domain

logger = logging.getLogger(__name__)


@dataclass
class DomainStat:
    """Attempt counts for one domain."""
    domain: str
    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    errors: Dict[str, int] = field(default_factory=dict)  # error type -> count

    @property
    def success_rate(self) -> float:
        """Fraction of attempts that succeeded; 1.0 before any attempt."""
        if self.attempted == 0:
            return 1.0
        return self.succeeded / self.attempted

    def to_dict(self) -> Dict[str, Any]:
        return {
            "domain": self.domain,
            "attempted": self.attempted,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "errors": dict(self.errors),
            "success_rate": self.success_rate,
        }


class DomainTracker:
    """
    Track success/failure rates per domain.

    Updates never await, so concurrent crawls on one event loop cannot
    interleave inside a read-modify-write.
    """

    def __init__(self):
        self._stats: Dict[str, DomainStat] = {}

    @staticmethod
    def _domain(url: str) -> str:
        return get_domain(url) or "unknown"

    def _stat(self, url: str) -> DomainStat:
        domain = self._domain(url)
        stat = self._stats.get(domain)
        if stat is None:
            stat = self._stats[domain] = DomainStat(domain=domain)
        return stat

    def record_success(self, url: str) -> None:
        stat = self._stat(url)
        stat.attempted += 1
        stat.succeeded += 1

    def record_failure(self, url: str, error: CrawlError) -> None:
        stat = self._stat(url)
        stat.attempted += 1
        stat.failed += 1
        key = error.error_type.value
        stat.errors[key] = stat.errors.get(key, 0) + 1

    def get_stat(self, url: str) -> Optional[DomainStat]:
        return self._stats.get(self._domain(url))

    def get_stats(self) -> List[DomainStat]:
        return list(self._stats.values())

    def success_rate(self, url: str) -> float:
        """Success rate for the URL's domain; unknown domains count as healthy."""
        stat = self.get_stat(url)
        return stat.success_rate if stat else 1.0

    def should_skip_domain(
        self,
        url: str,
        min_attempts: int = DOMAIN_MIN_ATTEMPTS,
        min_success_rate: float = DOMAIN_MIN_SUCCESS_RATE,
    ) -> bool:
        """
        Check if a domain has failed often enough to stop trying it.

        Args:
            url: Any URL on the domain
            min_attempts: Sample size required before judging
            min_success_rate: Domains below this rate are skipped

        Returns:
            True once at least min_attempts were made and the success rate
            is below min_success_rate
        """
        stat = self.get_stat(url)
        if stat is None or stat.attempted < min_attempts:
            return False
        return stat.success_rate < min_success_rate

    def problem_domains(self, limit: int = TOP_PROBLEM_DOMAINS) -> List[DomainStat]:
        """Domains with at least one failure, most failures first."""
        failing = [stat for stat in self._stats.values() if stat.failed > 0]
        failing.sort(key=lambda stat: stat.failed, reverse=True)
        return failing[:limit]

    def log_problem_domains(self, limit: int = TOP_PROBLEM_DOMAINS) -> None:
        problems = self.problem_domains(limit)
        if not problems:
            return

        logger.info(f"[Domain Issues] Top {len(problems)} domains with failures:")
        for stat in problems:
            rate = round(100 * stat.success_rate)
            error_types = ", ".join(f"{t}:{c}" for t, c in stat.errors.items())
            logger.info(
                f"  {stat.domain}: {rate}% success "
                f"({stat.succeeded}/{stat.attempted}) - {error_types}"
            )


@dataclass
class FailureBreakdown:
    total: int = 0
    by_type: Dict[str, int] = field(default_factory=dict)
    by_code: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"total": self.total, "by_type": dict(self.by_type), "by_code": dict(self.by_code)}


class FailureTracker:
    """Aggregate failures by type and by transport code / HTTP status."""

    def __init__(self):
        self._failures: List[CrawlError] = []

    def __len__(self) -> int:
        return len(self._failures)

    def record(self, error: CrawlError) -> None:
        self._failures.append(error)

    def get_breakdown(self) -> FailureBreakdown:
        by_type: Counter = Counter()
        by_code: Counter = Counter()

        for error in self._failures:
            by_type[error.error_type.value] += 1
            if error.code:
                by_code[error.code] += 1
            if error.status_code is not None:
                by_code[f"HTTP_{error.status_code}"] += 1

        return FailureBreakdown(
            total=len(self._failures),
            by_type=dict(by_type.most_common()),
            by_code=dict(by_code.most_common()),
        )

    def log_summary(self, top_codes: int = TOP_ERROR_CODES) -> None:
        breakdown = self.get_breakdown()
        if breakdown.total == 0:
            return

        logger.info(f"[Failure Breakdown] {breakdown.total} total failures:")
        for error_type, count in breakdown.by_type.items():
            logger.info(f"  {error_type}: {count}")

        if breakdown.by_code:
            logger.info("By code:")
            for code, count in list(breakdown.by_code.items())[:top_codes]:
                logger.info(f"  {code}: {count}")
