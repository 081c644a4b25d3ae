"""
Extraction Engine.

Derives structured lead signals from the pages harvested for one business.
Each sub-extractor is a pure function over page text or markup; this module
combines them across pages, with Schema.org JSON-LD taking priority over
regex heuristics where both apply.
"""

import logging
from datetime import datetime
from typing import Iterable, List, Optional

from leadcrawl.constants import (
    MAX_ACQUISITION_SIGNALS,
    MAX_EMAILS,
    MAX_HISTORY_SNIPPETS,
    MAX_NEW_HIRES,
    MAX_PHONES,
)
from leadcrawl.models import (
    AcquisitionSignal,
    ExtractedData,
    HistorySnippet,
    NewHireMention,
    Page,
    SchemaOrgData,
    SocialLinks,
    TeamMember,
)
from leadcrawl.structured_data import extract_schema_org
from leadcrawl.utils.phone import normalize_phone

from .acquisition import extract_acquisition_signals, summarize_acquisition
from .contact import extract_emails, extract_phones
from .history import extract_founded_year, extract_history_snippets
from .social import extract_social_links, find_contact_page_url, social_from_same_as
from .team import (
    dedupe_team_members,
    extract_headcount,
    extract_new_hires,
    extract_team_members,
    is_team_page,
)

logger = logging.getLogger(__name__)

SCHEMA_ORG_SOURCE = "Schema.org JSON-LD"

# URL fragments of the pages most likely to hold contact and staff details
EXTRACTION_PRIORITY = ("about", "contact", "team", "staff", "leadership")


def sort_pages_for_extraction(pages: Iterable[Page]) -> List[Page]:
    """Order pages so about/contact/team/staff/leadership pages come first."""
    def key(page: Page):
        url = page.url.lower()
        return tuple(fragment not in url for fragment in EXTRACTION_PRIORITY)

    return sorted(pages, key=key)


def _add_unique(target: List[str], values: Iterable[str]) -> None:
    for value in values:
        if value not in target:
            target.append(value)


def extract_all_data(pages: List[Page], known_phones: Iterable[str] = ()) -> ExtractedData:
    """
    Extract every signal from a business's harvested pages.

    Args:
        pages: Pages from one site crawl
        known_phones: The business's own numbers, excluded from discovered phones

    Returns:
        ExtractedData for the business
    """
    known_phones = list(known_phones)
    known_normalized = {normalize_phone(p) for p in known_phones}
    ordered = sort_pages_for_extraction(pages)

    emails: List[str] = []
    phones: List[str] = []
    social = SocialLinks()
    team: List[TeamMember] = []
    new_hires: List[NewHireMention] = []
    signals: List[AcquisitionSignal] = []
    snippets: List[HistorySnippet] = []
    founded_year: Optional[int] = None
    founded_source: Optional[str] = None
    headcount: Optional[int] = None
    headcount_source: Optional[str] = None
    schema: Optional[SchemaOrgData] = None

    logger.debug(f"[extraction] Processing {len(ordered)} pages...")

    for page in ordered:
        # First page with usable JSON-LD wins
        if schema is None:
            schema = extract_schema_org(page.html)
            if schema is not None:
                if schema.email:
                    _add_unique(emails, [schema.email])
                if schema.telephone:
                    phone = normalize_phone(schema.telephone)
                    if len(phone) == 10 and phone not in known_normalized:
                        _add_unique(phones, [phone])
                if schema.founding_year:
                    founded_year, founded_source = schema.founding_year, SCHEMA_ORG_SOURCE
                if schema.number_of_employees:
                    headcount, headcount_source = schema.number_of_employees, SCHEMA_ORG_SOURCE
                if schema.same_as:
                    social.merge(social_from_same_as(schema.same_as))
                if schema.founder:
                    team.append(TeamMember(name=schema.founder, title="Founder", source_url=page.url))

        _add_unique(emails, extract_emails(page.text))
        _add_unique(phones, extract_phones(page.text, known_phones))
        social.merge(extract_social_links(page.html))

        if founded_year is None:
            founded_year, founded_source = extract_founded_year(page.text)

        team.extend(extract_team_members(page.text, page.url))
        new_hires.extend(extract_new_hires(page.text, page.url))
        signals.extend(extract_acquisition_signals(page.text, page.url))
        snippets.extend(extract_history_snippets(page.text, page.url))

    # Repeated mentions across pages strengthen a headcount, so judge them together
    if headcount is None:
        headcount, headcount_source = extract_headcount("\n".join(p.text for p in ordered))

    signals = signals[:MAX_ACQUISITION_SIGNALS]
    data = ExtractedData(
        emails=emails[:MAX_EMAILS],
        phones=phones[:MAX_PHONES],
        contact_page_url=find_contact_page_url(pages),
        social=social,
        team_members=dedupe_team_members(team),
        headcount_estimate=headcount,
        headcount_source=headcount_source,
        new_hire_mentions=new_hires[:MAX_NEW_HIRES],
        acquisition_signals=signals,
        has_acquisition_signal=bool(signals),
        acquisition_summary=summarize_acquisition(signals),
        founded_year=founded_year,
        founded_source=founded_source,
        years_in_business=datetime.now().year - founded_year if founded_year else None,
        history_snippets=snippets[:MAX_HISTORY_SNIPPETS],
    )

    log_extraction_summary(data, schema)
    return data


def log_extraction_summary(data: ExtractedData, schema: Optional[SchemaOrgData] = None) -> None:
    logger.info("[extraction summary]")
    if schema is not None:
        logger.info(f"  Schema.org: {', '.join(schema.found_fields())}")
    logger.info(f"  Emails: {', '.join(data.emails) or 'none'}")
    logger.info(f"  Phones: {', '.join(data.phones) or 'none'}")

    profiles = ", ".join(f"{k}: {v}" for k, v in data.social.to_dict().items())
    logger.info(f"  Social: {profiles or 'none'}")

    if data.team_members:
        logger.info(f"  Team members ({len(data.team_members)}):")
        for member in data.team_members[:5]:
            logger.info(f"    - {member.name} ({member.title})")
        if len(data.team_members) > 5:
            logger.info(f"    ... and {len(data.team_members) - 5} more")
    else:
        logger.info("  Team members: none")

    source = f" (from: {data.headcount_source!r})" if data.headcount_source else ""
    logger.info(f"  Headcount: {data.headcount_estimate or 'unknown'}{source}")
    source = f" (from: {data.founded_source!r})" if data.founded_source else ""
    logger.info(f"  Founded: {data.founded_year or 'unknown'}{source}")

    if data.acquisition_signals:
        logger.info(f"  Acquisition signals ({len(data.acquisition_signals)}):")
        for signal in data.acquisition_signals[:3]:
            logger.info(f"    - {signal.signal_type}: {signal.text[:60]!r}")

    logger.info(f"  History snippets: {len(data.history_snippets)}")


__all__ = [
    "extract_all_data",
    "sort_pages_for_extraction",
    "extract_emails",
    "extract_phones",
    "extract_social_links",
    "social_from_same_as",
    "find_contact_page_url",
    "extract_team_members",
    "dedupe_team_members",
    "extract_headcount",
    "extract_new_hires",
    "is_team_page",
    "extract_founded_year",
    "extract_history_snippets",
    "extract_acquisition_signals",
    "summarize_acquisition",
]
