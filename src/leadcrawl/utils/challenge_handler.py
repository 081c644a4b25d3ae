"""
Bot challenge detection and wait handling.

Detects anti-automation interstitials (Cloudflare "Just a moment..." pages
and similar) in fetched markup, and waits for a rendered browser page to
clear its challenge on its own.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from leadcrawl.constants import (
    CHALLENGE_MAX_POLLS,
    CHALLENGE_POLL_INTERVAL_SECONDS,
    CHALLENGE_STATUS_CODES,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Challenge Wait Result
# =============================================================================

@dataclass
class ChallengeWaitResult:
    """
    Outcome of waiting for a browser page to clear a bot challenge.
    """
    resolved: bool = False
    polls: int = 0
    wait_time_seconds: float = 0.0
    html: str = ""
    matched_markers: List[str] = field(default_factory=list)
    timestamp: Optional[datetime] = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = datetime.now()

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "resolved": self.resolved,
            "polls": self.polls,
            "wait_time_seconds": self.wait_time_seconds,
            "matched_markers": self.matched_markers,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }


# =============================================================================
# Challenge Markers
# =============================================================================

# Substrings that only appear on challenge interstitials
CHALLENGE_MARKERS = [
    "Just a moment",
    "cf-browser-verification",
    "cf_chl_opt",
    "challenge-platform",
    "__cf_chl_f_tk",
    "Enable JavaScript and cookies",
    "Checking your browser",
    "cf-spinner",
]


# =============================================================================
# Challenge Detection
# =============================================================================

def find_challenge_markers(html: str) -> List[str]:
    """
    List the challenge markers present in markup.

    Args:
        html: Page markup

    Returns:
        Markers found, in CHALLENGE_MARKERS order
    """
    return [marker for marker in CHALLENGE_MARKERS if marker in html]


def is_challenge_page(html: str) -> bool:
    """Check if markup is a bot challenge interstitial."""
    return any(marker in html for marker in CHALLENGE_MARKERS)


def needs_challenge_bypass(status_code: int, html: str) -> bool:
    """
    Check if a response indicates bot protection by status or body.

    Args:
        status_code: HTTP status of the response
        html: Response body

    Returns:
        True for 403/503 responses or bodies carrying challenge markers
    """
    if status_code in CHALLENGE_STATUS_CODES:
        return True
    return is_challenge_page(html)


async def wait_for_challenge_async(
    page,
    max_polls: int = CHALLENGE_MAX_POLLS,
    poll_interval: float = CHALLENGE_POLL_INTERVAL_SECONDS,
    url: str = "",
) -> ChallengeWaitResult:
    """
    Poll a rendered page until its challenge markers disappear.

    Args:
        page: Async Playwright Page instance, already navigated
        max_polls: Maximum number of waits before giving up
        poll_interval: Seconds between polls
        url: URL for log messages

    Returns:
        ChallengeWaitResult holding the final markup
    """
    result = ChallengeWaitResult()

    while True:
        html = await page.content()
        result.html = html
        result.matched_markers = find_challenge_markers(html)

        if not result.matched_markers:
            result.resolved = True
            if result.polls:
                logger.info(
                    f"[challenge] {url} cleared after {result.wait_time_seconds:.1f}s"
                )
            return result

        if result.polls >= max_polls:
            break

        result.polls += 1
        logger.debug(
            f"[challenge] Waiting for {url} ({result.polls}/{max_polls}): "
            f"{', '.join(result.matched_markers)}"
        )
        await asyncio.sleep(poll_interval)
        result.wait_time_seconds += poll_interval

    logger.warning(
        f"[challenge] {url} not resolved after {result.wait_time_seconds:.1f}s"
    )
    return result
