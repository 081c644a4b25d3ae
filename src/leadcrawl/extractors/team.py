"""Team members, headcount and new-hire mentions."""

import logging
from collections import Counter
from typing import Iterable, List, Optional, Set, Tuple

from leadcrawl.constants import (
    MAX_HEADCOUNT,
    MAX_NEW_HIRES,
    MAX_TEAM_MEMBERS,
    MIN_HEADCOUNT,
)
from leadcrawl.extractors import patterns
from leadcrawl.models import NewHireMention, TeamMember
from leadcrawl.utils.names import is_valid_person_name, normalize_name

logger = logging.getLogger(__name__)

STANDALONE_TITLE = "Team Member"

# Single-number headcount phrasings, in order of reliability
HEADCOUNT_PATTERNS = [
    (patterns.HEADCOUNT_DIRECT, "direct"),
    (patterns.HEADCOUNT_TEAM_OF, "team-of"),
    (patterns.HEADCOUNT_EMPLOYS, "employs"),
    (patterns.HEADCOUNT_OVER, "over"),
    (patterns.HEADCOUNT_PERSON_TEAM, "person-team"),
]


def is_team_page(url: str) -> bool:
    """Whether a URL suggests an about/team/staff page."""
    return bool(patterns.TEAM_PAGE_URL.search(url.lower()))


def extract_team_members(text: str, source_url: str) -> List[TeamMember]:
    """
    Find people named on a page.

    Two passes:
    1. "Name, Title" co-occurrence (e.g. "Jane Doe - Owner"), names must be
       capitalized.
    2. On team/about pages only, names standing alone on a line, normalized
       to title case and listed as "Team Member".

    Every candidate must pass is_valid_person_name().

    Args:
        text: Visible page text, one line per block element
        source_url: Page URL

    Returns:
        Up to MAX_TEAM_MEMBERS members, deduped by lowercase name
    """
    members: List[TeamMember] = []
    seen = set()

    for match in patterns.TEAM_MEMBER_WITH_TITLE.finditer(text):
        name = match.group(1).strip()
        title = " ".join(match.group(2).split())
        if not is_valid_person_name(name):
            continue
        if name.lower() not in seen:
            seen.add(name.lower())
            members.append(TeamMember(name=name, title=title, source_url=source_url))

    if is_team_page(source_url):
        for match in patterns.STANDALONE_NAME.finditer(text):
            raw_name = match.group(1).strip()
            if not is_valid_person_name(raw_name):
                continue
            name = normalize_name(raw_name)
            if name.lower() not in seen:
                seen.add(name.lower())
                members.append(TeamMember(name=name, title=STANDALONE_TITLE, source_url=source_url))

    result = members[:MAX_TEAM_MEMBERS]
    if result:
        logger.debug(
            f"[extract:team] Found {len(result)} members: "
            f"{', '.join(f'{m.name} ({m.title})' for m in result[:3])}"
        )
    return result


def dedupe_team_members(members: Iterable[TeamMember]) -> List[TeamMember]:
    """Drop repeat names (case-insensitive), keeping the first occurrence."""
    seen = set()
    unique = []
    for member in members:
        key = member.name.lower()
        if key not in seen:
            seen.add(key)
            unique.append(member)
    return unique[:MAX_TEAM_MEMBERS]


def extract_headcount(text: str) -> Tuple[Optional[int], Optional[str]]:
    """
    Estimate employee count from headcount phrasings.

    Every number in MIN_HEADCOUNT..MAX_HEADCOUNT becomes one candidate, even
    when several phrasings match it. Ranges ("10-20 employees") contribute
    their upper bound. The count seen most often wins, ties going to the
    larger count.

    Args:
        text: Visible page text

    Returns:
        Tuple of (estimate, matched phrase), or (None, None)
    """
    candidates: List[Tuple[int, str, str]] = []
    # Spans of numbers already counted, so overlapping phrasings vote once
    counted: Set[Tuple[int, int]] = set()

    for pattern, name in HEADCOUNT_PATTERNS:
        for match in pattern.finditer(text):
            count = int(match.group(1))
            if match.span(1) in counted or not MIN_HEADCOUNT <= count <= MAX_HEADCOUNT:
                continue
            counted.add(match.span(1))
            candidates.append((count, match.group(0).strip(), name))

    for match in patterns.HEADCOUNT_RANGE.finditer(text):
        low, high = int(match.group(1)), int(match.group(2))
        if match.span(2) in counted:
            continue
        if MIN_HEADCOUNT <= high <= MAX_HEADCOUNT and high > low:
            counted.add(match.span(2))
            candidates.append((high, match.group(0).strip(), "range"))

    if not candidates:
        return None, None

    frequency = Counter(count for count, _, _ in candidates)
    best = sorted(candidates, key=lambda c: (frequency[c[0]], c[0]), reverse=True)[0]

    logger.debug(f"[extract:headcount] ~{best[0]} employees from: {best[1]!r} ({best[2]})")
    return best[0], best[1]


def extract_new_hires(text: str, source_url: str) -> List[NewHireMention]:
    """Phrases announcing new staff ("welcome ...", "joins our team ...")."""
    mentions = []
    for match in patterns.NEW_HIRE.finditer(text):
        context = match.group(0).strip()
        if 10 < len(context) < 200:
            mentions.append(NewHireMention(text=context, source_url=source_url))
        if len(mentions) >= MAX_NEW_HIRES:
            break
    return mentions
