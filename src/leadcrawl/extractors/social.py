"""Social profile links and the contact page."""

import logging
from typing import Iterable, Optional

from leadcrawl.extractors import patterns
from leadcrawl.models import Page, SocialLinks

logger = logging.getLogger(__name__)

PLATFORM_PATTERNS = {
    "linkedin": patterns.LINKEDIN,
    "facebook": patterns.FACEBOOK,
    "instagram": patterns.INSTAGRAM,
    "twitter": patterns.TWITTER,
}

# Host fragments for classifying Schema.org sameAs URLs
PLATFORM_HOSTS = {
    "linkedin": ("linkedin.com",),
    "facebook": ("facebook.com",),
    "instagram": ("instagram.com",),
    "twitter": ("twitter.com", "x.com"),
}


def extract_social_links(html: str) -> SocialLinks:
    """First profile URL per platform found in page markup."""
    social = SocialLinks()
    for platform, pattern in PLATFORM_PATTERNS.items():
        match = pattern.search(html)
        if match:
            setattr(social, platform, match.group(0))

    found = social.to_dict()
    if found:
        logger.debug(f"[extract:social] Found: {', '.join(f'{k}={v}' for k, v in found.items())}")
    return social


def social_from_same_as(urls: Iterable[str]) -> SocialLinks:
    """Classify Schema.org sameAs URLs by platform, first URL per platform."""
    social = SocialLinks()
    for url in urls:
        lowered = url.lower()
        for platform, hosts in PLATFORM_HOSTS.items():
            if getattr(social, platform) is None and any(h in lowered for h in hosts):
                setattr(social, platform, url)
                break
    return social


def find_contact_page_url(pages: Iterable[Page]) -> Optional[str]:
    """URL of the first harvested page that looks like a contact page."""
    for page in pages:
        if patterns.CONTACT_PAGE.search(page.url):
            return page.url
    return None
