"""URL normalization, filtering and the per-crawl frontier."""

import heapq
import logging
import re
from itertools import count
from typing import Dict, Iterable, List, Optional, Set, Tuple
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

logger = logging.getLogger(__name__)

# Query parameters that only carry campaign tracking
TRACKING_PARAMS = frozenset({"utm_source", "utm_medium", "utm_campaign"})

DEFAULT_PORTS = {"http": 80, "https": 443}

# Non-content resources and crawl noise
SKIP_PATTERNS = [re.compile(p, re.IGNORECASE) for p in (
    # Non-http schemes
    r"^(?:mailto|tel|javascript|data|ftp):",

    # WordPress internals
    r"/wp-json/",
    r"/wp-includes/",
    r"/wp-content/plugins/",
    r"/wp-content/themes/",
    r"/wp-content/uploads/",
    r"/wp-admin/",
    r"/xmlrpc\.php",
    r"/wp-login\.php",
    r"/feed/?$",
    r"/comments/feed/",
    r"/trackback/",

    # Static assets and documents
    r"\.(?:css|js|woff2?|ttf|ico|svg|png|jpe?g|gif|webp)(?:\?.*)?$",
    r"\.(?:pdf|docx?|xlsx?|zip|rar|exe|dmg|mp3|mp4|wav|avi|mov|wmv|json|xml)$",

    # Site-builder internals (Wix, Squarespace)
    r"/copy-of-",
    r"/_api/",
    r"/wix-",
    r"/api/",
    r"/static/",

    # Common junk
    r"/cdn-cgi/",
    r"/oembed",
    r"\?replytocom=",
    r"/attachment/",
    r"/author/",
    r"/tag/",
    r"/category/",
    r"/page/\d+",
    r"\?share=",
    r"\?print=",
    r"/print/",
    r"/amp/?$",
    r"/embed/?$",

    # Accounts, commerce and search
    r"/login",
    r"/register",
    r"/cart",
    r"/checkout",
    r"/my-account",
    r"/search",
    r"\?s=",
    r"\?p=\d+",

    # Noisy listings
    r"/calendar/",
    r"/events/",
    r"/rss/?$",
)]

# Paths likely to hold contact, staff and history details, most valuable first
PRIORITY_PATHS = [
    "/about", "/about-us",
    "/contact", "/contact-us",
    "/team", "/our-team", "/staff", "/leadership", "/people",
    "/news", "/blog", "/press",
]


def normalize_url(url: str) -> Optional[str]:
    """Canonicalize a URL, or return None if it is not a crawlable http(s) URL.

    Lowercases scheme and host, drops default ports, the fragment and
    tracking parameters, and strips a trailing slash from non-root paths.

    Args:
        url: Absolute URL

    Returns:
        Canonical URL, or None when malformed
    """
    if not url or any(c.isspace() for c in url.strip()):
        return None

    try:
        parsed = urlparse(url.strip())
        port = parsed.port
    except ValueError:
        return None

    scheme = parsed.scheme.lower()
    host = (parsed.hostname or "").lower()
    if scheme not in DEFAULT_PORTS or not host:
        return None

    # IPv6 literals keep their brackets
    netloc = f"[{host}]" if ":" in host else host
    if port is not None and port != DEFAULT_PORTS[scheme]:
        netloc = f"{netloc}:{port}"

    path = parsed.path or "/"
    if len(path) > 1 and path.endswith("/"):
        path = path.rstrip("/") or "/"

    query = parsed.query
    if query:
        params = parse_qsl(query, keep_blank_values=True)
        if any(key.lower() in TRACKING_PARAMS for key, _ in params):
            query = urlencode([(k, v) for k, v in params if k.lower() not in TRACKING_PARAMS])

    return urlunparse((scheme, netloc, path, "", query, ""))


def get_domain(url: str) -> Optional[str]:
    """Lowercase host of a URL with any leading ``www.`` removed."""
    try:
        host = urlparse(url).hostname
    except ValueError:
        return None
    if not host:
        return None
    host = host.lower()
    return host[4:] if host.startswith("www.") else host


def is_same_domain(url: str, other: str) -> bool:
    """Whether two URLs share a domain, ignoring the www prefix."""
    domain = get_domain(url)
    return domain is not None and domain == get_domain(other)


def should_skip_url(url: str) -> bool:
    """Check if a URL points at a non-content resource or crawl noise."""
    return any(pattern.search(url) for pattern in SKIP_PATTERNS)


def priority_rank(url: str) -> int:
    """Index of the first priority path in the URL's path, or len(PRIORITY_PATHS)."""
    try:
        path = urlparse(url).path.lower()
    except ValueError:
        return len(PRIORITY_PATHS)
    for rank, fragment in enumerate(PRIORITY_PATHS):
        if fragment in path:
            return rank
    return len(PRIORITY_PATHS)


def prioritize_urls(urls: Iterable[str]) -> List[str]:
    """Order URLs so about/contact/team-style pages come first.

    The sort is stable: URLs of equal rank keep their input order.
    """
    return sorted(urls, key=priority_rank)


class Frontier:
    """
    Pending URLs for one site crawl.

    Tracks three sets: ``queued`` (ever enqueued, prevents duplicates),
    ``visited`` (terminal) and an ordered pending heap keyed by priority
    rank then insertion order. A URL moves queued -> visited exactly once.
    """

    def __init__(self, seed_url: str):
        self.seed_url = seed_url
        self.domain = get_domain(seed_url)
        self.queued: Set[str] = set()
        self.visited: Set[str] = set()
        self._pending: List[Tuple[int, int, str]] = []
        self._sequence = count()

    def __len__(self) -> int:
        return len(self._pending)

    def __bool__(self) -> bool:
        return bool(self._pending)

    def accepts(self, url: str) -> bool:
        """Whether a normalized URL is in scope for this crawl."""
        return is_same_domain(url, self.seed_url) and not should_skip_url(url)

    def add(self, url: str) -> bool:
        """Normalize and enqueue a URL.

        Args:
            url: Absolute URL

        Returns:
            True if the URL was enqueued, False if rejected or already seen
        """
        normalized = normalize_url(url)
        if normalized is None or not self.accepts(normalized):
            return False
        if normalized in self.queued or normalized in self.visited:
            return False

        self.queued.add(normalized)
        heapq.heappush(self._pending, (priority_rank(normalized), next(self._sequence), normalized))
        return True

    def add_all(self, urls: Iterable[str]) -> int:
        """Enqueue several URLs; returns how many were new."""
        return sum(1 for url in prioritize_urls(urls) if self.add(url))

    def pop(self) -> Optional[str]:
        """Take the highest-priority pending URL and mark it visited."""
        while self._pending:
            _, _, url = heapq.heappop(self._pending)
            if url in self.visited:
                continue
            self.visited.add(url)
            return url
        return None

    def stats(self) -> Dict[str, int]:
        return {
            "queued": len(self.queued),
            "visited": len(self.visited),
            "pending": len(self._pending),
        }
