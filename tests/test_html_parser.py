"""Tests for reducing markup to text, title and links."""

from leadcrawl.html_parser import (
    extract_links,
    extract_text,
    extract_title,
    html_to_text,
    needs_browser_render,
    parse_html,
)

PAGE_HTML = """
<html>
<head>
  <title> Acme Plumbing </title>
  <style>.hero { color: red; }</style>
  <script>var tracking = "abc";</script>
</head>
<body>
  <h1>Acme     Plumbing</h1>
  <p>Call us &amp; save.</p>
  <div>Jane Doe</div>
  <!-- hidden comment -->
  <ul><li>Drains</li><li>Water heaters</li></ul>
  <noscript>Please enable JavaScript</noscript>
  <p>Licensed <b>and</b> insured</p>
</body>
</html>
"""


class TestExtractText:
    """Tests for visible-text extraction."""

    def test_one_line_per_block(self):
        lines = html_to_text(PAGE_HTML).split("\n")

        assert "Acme Plumbing" in lines
        assert "Call us & save." in lines
        assert "Jane Doe" in lines
        assert "Drains" in lines
        assert "Water heaters" in lines

    def test_inline_tags_stay_on_line(self):
        assert "Licensed and insured" in html_to_text(PAGE_HTML).split("\n")

    def test_drops_non_visible_content(self):
        text = html_to_text(PAGE_HTML)
        assert "tracking" not in text
        assert "color" not in text
        assert "hidden comment" not in text
        assert "enable JavaScript" not in text

    def test_no_blank_lines(self):
        assert "" not in html_to_text(PAGE_HTML).split("\n")

    def test_empty_markup(self):
        assert html_to_text("") == ""

    def test_strips_soup_in_place(self):
        soup = parse_html(PAGE_HTML)
        extract_text(soup)
        assert soup.find("script") is None
        assert soup.find("style") is None


class TestTitleAndLinks:
    """Tests for title and link extraction."""

    def test_title(self):
        assert extract_title(parse_html(PAGE_HTML)) == "Acme Plumbing"

    def test_missing_title(self):
        assert extract_title(parse_html("<p>No title</p>")) == ""

    def test_links_resolved_and_filtered(self):
        html = """
            <a href="/contact">Contact</a>
            <a href="team">Team</a>
            <a href="#top">Top</a>
            <a href="mailto:info@acme.com">Email</a>
            <a href="tel:3035550142">Call</a>
            <a href="javascript:void(0)">Menu</a>
            <a href="https://other.com/">Partner</a>
            <a href="/contact">Contact again</a>
            <a>No href</a>
            <map><area href="/map" alt="Map"></map>
        """
        links = extract_links(parse_html(html), "https://acme.com/about/")
        assert links == [
            "https://acme.com/contact",
            "https://acme.com/about/team",
            "https://other.com/",
            "https://acme.com/map",
        ]


class TestNeedsBrowserRender:
    """Tests for the JavaScript-shell heuristic."""

    def test_short_text_needs_render(self):
        assert needs_browser_render("<html><body><p>Hi</p></body></html>")

    def test_spa_root_needs_render(self):
        body = "<p>" + "Plenty of server rendered words here. " * 30 + "</p>"
        html = f'<html><body><div id="root"></div>{body}</body></html>'
        assert needs_browser_render(html)

    def test_content_page_does_not(self):
        body = "<p>" + "Plenty of server rendered words here. " * 30 + "</p>"
        assert not needs_browser_render(f"<html><body>{body}</body></html>")

    def test_uses_given_text(self):
        html = "<html><body><p>Hi</p></body></html>"
        assert not needs_browser_render(html, text="x" * 600)
        assert needs_browser_render(html, text="x" * 600, min_text_length=1000)
