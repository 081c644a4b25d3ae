"""Founding year and company-history snippets."""

import logging
import re
from datetime import datetime
from typing import List, Optional, Tuple

from leadcrawl.constants import (
    MAX_HISTORY_SNIPPETS,
    MAX_SNIPPET_LENGTH,
    MAX_YEARS_IN_BUSINESS,
    MIN_FOUNDED_YEAR,
    MIN_SNIPPET_SENTENCE_LENGTH,
)
from leadcrawl.extractors import patterns
from leadcrawl.models import HistorySnippet

logger = logging.getLogger(__name__)

HISTORY_KEYWORDS = (
    "history", "story", "founded", "established", "began",
    "started", "heritage", "tradition", "legacy",
)

_SENTENCE_END = re.compile(r"[.!?]+")


def _valid_year(year: int, current_year: int) -> bool:
    return MIN_FOUNDED_YEAR <= year <= current_year


def _valid_age(years: int) -> bool:
    return 0 < years < MAX_YEARS_IN_BUSINESS


def extract_founded_year(
    text: str, current_year: Optional[int] = None
) -> Tuple[Optional[int], Optional[str]]:
    """
    Find the year a business was founded.

    Tries, in order of reliability: "founded/established/since YYYY",
    "N years in business", "celebrating N years", "family-owned since YYYY".
    The first match passing its range check wins.

    Args:
        text: Visible page text
        current_year: Reference year for "N years" phrasings

    Returns:
        Tuple of (year, matched phrase), or (None, None)
    """
    current_year = current_year or datetime.now().year

    for match in patterns.FOUNDED_YEAR.finditer(text):
        year = int(match.group(1))
        if _valid_year(year, current_year):
            return year, match.group(0)

    for pattern in (patterns.YEARS_IN_BUSINESS, patterns.ANNIVERSARY):
        for match in pattern.finditer(text):
            years = int(match.group(1))
            if _valid_age(years):
                return current_year - years, match.group(0)

    for match in patterns.FAMILY_OWNED.finditer(text):
        if match.group(1):
            year = int(match.group(1))
            if _valid_year(year, current_year):
                return year, match.group(0)

    return None, None


def extract_history_snippets(text: str, source_url: str) -> List[HistorySnippet]:
    """Sentences mentioning the company's history, founding or heritage."""
    snippets = []
    for sentence in _SENTENCE_END.split(text):
        sentence = sentence.strip()
        if len(sentence) <= MIN_SNIPPET_SENTENCE_LENGTH:
            continue
        lowered = sentence.lower()
        if any(keyword in lowered for keyword in HISTORY_KEYWORDS):
            snippets.append(HistorySnippet(text=sentence[:MAX_SNIPPET_LENGTH], source_url=source_url))
        if len(snippets) >= MAX_HISTORY_SNIPPETS:
            break

    if snippets:
        logger.debug(f"[extract:history] Found {len(snippets)} snippets: {snippets[0].text[:60]!r}")
    return snippets
