"""Ownership-change signals: acquisitions, sales, mergers, rebrands."""

import logging
from typing import List, Optional

from leadcrawl.constants import ACQUISITION_YEAR_WINDOW, MAX_ACQUISITION_SIGNALS
from leadcrawl.extractors import patterns
from leadcrawl.models import AcquisitionSignal

logger = logging.getLogger(__name__)

SIGNAL_PATTERNS = [
    (patterns.ACQUIRED, "acquired"),
    (patterns.SOLD_TO, "sold"),
    (patterns.MERGER, "merger"),
    (patterns.NEW_OWNERSHIP, "new_ownership"),
    (patterns.REBRANDED, "rebranded"),
]


def extract_acquisition_signals(text: str, source_url: str) -> List[AcquisitionSignal]:
    """
    Find phrases suggesting the business changed hands.

    A 4-digit year within ACQUISITION_YEAR_WINDOW characters of a match is
    attached as the signal's date.

    Args:
        text: Visible page text
        source_url: Page URL

    Returns:
        Up to MAX_ACQUISITION_SIGNALS signals, grouped by signal type
    """
    signals: List[AcquisitionSignal] = []

    for pattern, signal_type in SIGNAL_PATTERNS:
        for match in pattern.finditer(text):
            start = max(0, match.start() - ACQUISITION_YEAR_WINDOW)
            end = min(len(text), match.end() + ACQUISITION_YEAR_WINDOW)
            year = patterns.YEAR.search(text[start:end])

            signals.append(AcquisitionSignal(
                text=match.group(0).strip(),
                signal_type=signal_type,
                source_url=source_url,
                date_mentioned=year.group(1) if year else None,
            ))

    result = signals[:MAX_ACQUISITION_SIGNALS]
    if result:
        logger.debug(
            f"[extract:acquisition] Found {len(result)} signals: "
            f"{', '.join(s.signal_type for s in result)}"
        )
    return result


def summarize_acquisition(signals: List[AcquisitionSignal]) -> Optional[str]:
    """One-line ownership note from the first signal, e.g. ``acquired by X (2019)``."""
    if not signals:
        return None
    signal = signals[0]
    if signal.date_mentioned:
        return f"{signal.text} ({signal.date_mentioned})"
    return signal.text
