from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class FetchMethod(str, Enum):
    """Which fetch tier produced a page."""
    HTTP = "http"
    BROWSER = "browser"


class CrawlState(str, Enum):
    """Lifecycle of a single site crawl."""
    SEEDED = "seeded"
    CRAWLING = "crawling"
    EARLY_EXITED = "early_exited"
    EXHAUSTED = "exhausted"
    ABANDONED = "abandoned"


@dataclass(frozen=True)
class Page:
    """A harvested page. Immutable once produced."""
    url: str
    title: str
    html: str
    text: str
    links: List[str]
    status_code: int
    fetched_at: datetime = field(default_factory=datetime.now)

    @property
    def size_bytes(self) -> int:
        return len(self.html)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "title": self.title,
            "html": self.html,
            "text_content": self.text,
            "links": list(self.links),
            "status_code": self.status_code,
            "fetched_at": self.fetched_at.isoformat(),
        }


@dataclass
class TeamMember:
    """A person found on the site, with the title they were listed under."""
    name: str
    title: str
    source_url: str


@dataclass
class NewHireMention:
    text: str
    source_url: str


@dataclass
class AcquisitionSignal:
    """An ownership-change phrase found in page text."""
    text: str
    signal_type: str  # acquired, sold, merger, new_ownership, rebranded
    source_url: str
    date_mentioned: Optional[str] = None


@dataclass
class HistorySnippet:
    text: str
    source_url: str


@dataclass
class SocialLinks:
    """First-seen social profile URLs."""
    linkedin: Optional[str] = None
    facebook: Optional[str] = None
    instagram: Optional[str] = None
    twitter: Optional[str] = None

    def merge(self, other: "SocialLinks") -> None:
        """Fill any missing platform from another set of links."""
        for platform in ("linkedin", "facebook", "instagram", "twitter"):
            if getattr(self, platform) is None and getattr(other, platform):
                setattr(self, platform, getattr(other, platform))

    def to_dict(self) -> Dict[str, str]:
        return {k: v for k, v in asdict(self).items() if v}


@dataclass
class SchemaOrgData:
    """Business facts taken from Schema.org JSON-LD markup."""
    types: List[str] = field(default_factory=list)
    email: Optional[str] = None
    telephone: Optional[str] = None
    founding_date: Optional[str] = None
    founding_year: Optional[int] = None
    name: Optional[str] = None
    description: Optional[str] = None
    address: Dict[str, Optional[str]] = field(default_factory=dict)
    same_as: List[str] = field(default_factory=list)
    number_of_employees: Optional[int] = None
    founder: Optional[str] = None

    def found_fields(self) -> List[str]:
        """Names of the fields that carry a value."""
        return [k for k, v in asdict(self).items() if v and k != "types"]


@dataclass
class ExtractedData:
    """Structured signals derived from every page of one business."""

    # Contact info
    emails: List[str] = field(default_factory=list)
    phones: List[str] = field(default_factory=list)
    contact_page_url: Optional[str] = None
    social: SocialLinks = field(default_factory=SocialLinks)

    # Team/employee data
    team_members: List[TeamMember] = field(default_factory=list)
    headcount_estimate: Optional[int] = None
    headcount_source: Optional[str] = None
    new_hire_mentions: List[NewHireMention] = field(default_factory=list)

    # Acquisition signals
    acquisition_signals: List[AcquisitionSignal] = field(default_factory=list)
    has_acquisition_signal: bool = False
    acquisition_summary: Optional[str] = None

    # Business history
    founded_year: Optional[int] = None
    founded_source: Optional[str] = None
    years_in_business: Optional[int] = None
    history_snippets: List[HistorySnippet] = field(default_factory=list)

    def to_record(
        self,
        business_id: str,
        website_uri: str,
        extracted_at: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """Build the grouped document persisted as extracted.json."""
        return {
            "business_id": business_id,
            "website_uri": website_uri,
            "extracted_at": (extracted_at or datetime.now()).isoformat(),
            "contacts": {
                "emails": self.emails,
                "phones": self.phones,
                "contact_page_url": self.contact_page_url,
                "social": self.social.to_dict(),
            },
            "team": {
                "members": [asdict(m) for m in self.team_members],
                "headcount_estimate": self.headcount_estimate,
                "headcount_source": self.headcount_source,
                "new_hire_mentions": [asdict(m) for m in self.new_hire_mentions],
            },
            "acquisition": {
                "signals": [asdict(s) for s in self.acquisition_signals],
                "has_signal": self.has_acquisition_signal,
                "summary": self.acquisition_summary,
            },
            "history": {
                "founded_year": self.founded_year,
                "founded_source": self.founded_source,
                "years_in_business": self.years_in_business,
                "snippets": [asdict(s) for s in self.history_snippets],
            },
        }


class FilterOperator(str, Enum):
    EXISTS = "EXISTS"
    NOT_EXISTS = "NOT_EXISTS"
    EQUALS = "EQUALS"
    NOT_EQUALS = "NOT_EQUALS"


@dataclass
class FilterRule:
    """A field-based condition a business record must satisfy to be crawled."""
    field: str
    operator: FilterOperator
    value: Optional[Any] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FilterRule":
        return cls(
            field=data["field"],
            operator=FilterOperator(str(data["operator"]).upper()),
            value=data.get("value"),
        )

    def matches(self, record: Dict[str, Any]) -> bool:
        present = record.get(self.field) is not None
        if self.operator == FilterOperator.EXISTS:
            return present
        if self.operator == FilterOperator.NOT_EXISTS:
            return not present
        if self.operator == FilterOperator.EQUALS:
            return present and record[self.field] == self.value
        # NOT_EQUALS, like EQUALS, only applies to fields that are present
        return present and record[self.field] != self.value

    def to_dict(self) -> Dict[str, Any]:
        return {"field": self.field, "operator": self.operator.value, "value": self.value}


@dataclass
class Business:
    """The slice of a business record the crawler reads."""
    business_id: str
    website_uri: Optional[str] = None
    business_name: Optional[str] = None
    phone: Optional[str] = None
    international_phone: Optional[str] = None
    web_crawled: bool = False

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Business":
        return cls(
            business_id=str(record["business_id"]),
            website_uri=record.get("website_uri"),
            business_name=record.get("business_name"),
            phone=record.get("phone"),
            international_phone=record.get("international_phone"),
            web_crawled=bool(record.get("web_crawled", False)),
        )

    @property
    def known_phones(self) -> List[str]:
        """Phone numbers already on file, excluded from discovered contacts."""
        return [str(p) for p in (self.phone, self.international_phone) if p]

    @property
    def display_name(self) -> str:
        return self.business_name or self.business_id
