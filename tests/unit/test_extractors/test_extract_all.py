"""Tests for combining extractors across a business's pages."""

import json
from datetime import datetime

from leadcrawl.extractors import (
    SCHEMA_ORG_SOURCE,
    extract_all_data,
    sort_pages_for_extraction,
)
from leadcrawl.models import Page


def make_page(url, text="", html=""):
    return Page(url=url, title="", html=html, text=text, links=[], status_code=200)


SCHEMA_HTML = """
<html><head>
<script type="application/ld+json">{json}</script>
</head><body></body></html>
""".replace("{json}", json.dumps({
    "@context": "https://schema.org",
    "@type": "Plumber",
    "name": "Acme Plumbing",
    "email": "mailto:info@acme.com",
    "telephone": "(303) 555-0142",
    "foundingDate": "1998-04-01",
    "numberOfEmployees": {"@type": "QuantitativeValue", "value": 25},
    "sameAs": ["https://www.facebook.com/acmeplumbing"],
    "founder": {"@type": "Person", "name": "John Smith"},
}))


class TestSortPages:
    """Tests for extraction page ordering."""

    def test_priority_pages_first(self):
        pages = [
            make_page("https://acme.com/"),
            make_page("https://acme.com/services"),
            make_page("https://acme.com/contact"),
            make_page("https://acme.com/about"),
        ]
        ordered = [p.url for p in sort_pages_for_extraction(pages)]
        assert ordered == [
            "https://acme.com/about",
            "https://acme.com/contact",
            "https://acme.com/",
            "https://acme.com/services",
        ]


class TestExtractAllData:
    """Tests for extract_all_data."""

    def test_schema_org_seeds_and_takes_priority(self):
        about = make_page(
            "https://acme.com/about",
            text=(
                "About Acme\n"
                "Our story began with one truck and a dream.\n"
                "Jane Doe - Owner\n"
                "Our team of 40 technicians is ready.\n"
                "Email jane@acme.com"
            ),
            html='<a href="https://www.linkedin.com/company/acme-plumbing">LinkedIn</a>',
        )
        home = make_page(
            "https://acme.com/",
            text="Acme Plumbing serves Denver.\nCall (720) 555-0199 today.\nFounded in 2005.",
            html=SCHEMA_HTML,
        )

        data = extract_all_data([home, about], known_phones=["720-555-0199"])

        assert data.emails == ["jane@acme.com", "info@acme.com"]
        assert data.phones == ["3035550142"]
        assert data.social.linkedin == "https://www.linkedin.com/company/acme-plumbing"
        assert data.social.facebook == "https://www.facebook.com/acmeplumbing"

        assert data.founded_year == 1998
        assert data.founded_source == SCHEMA_ORG_SOURCE
        assert data.years_in_business == datetime.now().year - 1998
        assert data.headcount_estimate == 25
        assert data.headcount_source == SCHEMA_ORG_SOURCE

        assert [(m.name, m.title) for m in data.team_members] == [
            ("Jane Doe", "Owner"),
            ("John Smith", "Founder"),
        ]
        assert "Our story began with one truck and a dream" in data.history_snippets[0].text
        assert data.has_acquisition_signal is False
        assert data.acquisition_summary is None

    def test_headcount_judged_across_pages(self):
        pages = [
            make_page("https://acme.com/", text="A team of 12 serves you."),
            make_page("https://acme.com/services", text="Our team of 12 is licensed."),
            make_page("https://acme.com/careers", text="We now have over 8 employees."),
        ]
        data = extract_all_data(pages)
        assert data.headcount_estimate == 12

    def test_founded_year_from_first_page_in_priority_order(self):
        pages = [
            make_page("https://acme.com/", text="Established in 1990."),
            make_page("https://acme.com/about", text="Founded in 2001."),
        ]
        data = extract_all_data(pages)
        assert data.founded_year == 2001
        assert data.founded_source == "Founded in 2001"

    def test_contact_page_and_acquisition(self):
        pages = [
            make_page("https://acme.com/contact", text="Reach us at office@acme.com"),
            make_page("https://acme.com/news", text="In 2021 we were acquired by Summit Home Group."),
        ]
        data = extract_all_data(pages)

        assert data.contact_page_url == "https://acme.com/contact"
        assert data.has_acquisition_signal
        assert data.acquisition_summary == "acquired by Summit Home Group (2021)"

    def test_empty_pages(self):
        data = extract_all_data([])
        assert data.emails == []
        assert data.team_members == []
        assert data.founded_year is None
        assert data.years_in_business is None
        assert data.headcount_estimate is None

    def test_to_record_groups_fields(self):
        pages = [make_page("https://acme.com/contact", text="Call (303) 555-0142")]
        record = extract_all_data(pages).to_record("biz-1", "https://acme.com")

        assert record["business_id"] == "biz-1"
        assert record["contacts"]["phones"] == ["3035550142"]
        assert record["contacts"]["contact_page_url"] == "https://acme.com/contact"
        assert set(record) == {
            "business_id", "website_uri", "extracted_at",
            "contacts", "team", "acquisition", "history",
        }
