"""Reduce fetched markup to page text, title and links."""

import re
from typing import List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from leadcrawl.constants import MIN_RENDERED_TEXT_LENGTH

# Elements whose content is never visible text
NON_TEXT_TAGS = ["script", "style", "noscript", "template", "svg", "iframe"]

# Elements that start a new line of text
BLOCK_TAGS = [
    "address", "article", "aside", "blockquote", "br", "dd", "div", "dl", "dt",
    "fieldset", "figcaption", "figure", "footer", "form", "h1", "h2", "h3", "h4",
    "h5", "h6", "header", "hr", "li", "main", "nav", "ol", "p", "pre", "section",
    "table", "td", "th", "tr", "ul", "title",
]

# Markers of a client-rendered shell with no server-side content
SPA_PATTERNS = [
    re.compile(r"<div\s+id=[\"']root[\"'][^>]*>\s*</div>", re.IGNORECASE),
    re.compile(r"<div\s+id=[\"']app[\"'][^>]*>\s*</div>", re.IGNORECASE),
    re.compile(r"<div\s+id=[\"']__next[\"'][^>]*>\s*</div>", re.IGNORECASE),
    re.compile(r"Loading\.\.\.", re.IGNORECASE),
    re.compile(r"<noscript[^>]*>.*(?:enable|requires?)\s+JavaScript", re.IGNORECASE),
]

SKIPPED_HREF_PREFIXES = ("#", "javascript:", "mailto:", "tel:")

_LINE_BREAK = "\u2029"
_HORIZONTAL_SPACE = re.compile(r"[^\S\u2029]+")


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "html.parser")


def extract_title(soup: BeautifulSoup) -> str:
    """Get the document title, or an empty string."""
    if soup.title and soup.title.string:
        return soup.title.string.strip()
    return ""


def extract_links(soup: BeautifulSoup, base_url: str) -> List[str]:
    """Resolve every hyperlink to an absolute URL.

    Fragment-only, javascript:, mailto: and tel: links are skipped.

    Args:
        soup: Parsed document
        base_url: URL the document was fetched from

    Returns:
        Absolute URLs, deduplicated, in document order
    """
    links: List[str] = []
    seen = set()

    for tag in soup.find_all(["a", "area"], href=True):
        href = tag["href"].strip()
        if not href or href.lower().startswith(SKIPPED_HREF_PREFIXES):
            continue
        try:
            absolute = urljoin(base_url, href)
        except ValueError:
            continue
        if absolute not in seen:
            seen.add(absolute)
            links.append(absolute)

    return links


def extract_text(soup: BeautifulSoup) -> str:
    """Get the visible text of a document, one line per block element.

    Scripts, styles and comments are dropped and runs of spaces collapsed.
    The soup is modified in place, so call this after title/link extraction.
    """
    for tag in soup(NON_TEXT_TAGS):
        tag.decompose()

    for tag in soup.find_all(BLOCK_TAGS):
        tag.insert_before(_LINE_BREAK)
        tag.insert_after(_LINE_BREAK)

    text = _HORIZONTAL_SPACE.sub(" ", soup.get_text())
    lines = (line.strip() for line in text.split(_LINE_BREAK))
    return "\n".join(line for line in lines if line)


def html_to_text(html: str) -> str:
    """Convenience wrapper: visible text of raw markup."""
    return extract_text(parse_html(html))


def needs_browser_render(html: str, text: Optional[str] = None,
                         min_text_length: int = MIN_RENDERED_TEXT_LENGTH) -> bool:
    """Check if markup looks like a JavaScript shell that needs rendering.

    Args:
        html: Raw markup from the HTTP tier
        text: Already-extracted visible text, if available
        min_text_length: Pages with less text than this need rendering

    Returns:
        True when the text is too short or an SPA marker is present
    """
    if text is None:
        text = html_to_text(html)

    if len(text) < min_text_length:
        return True

    return any(pattern.search(html) for pattern in SPA_PATTERNS)
