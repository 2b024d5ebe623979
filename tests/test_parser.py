"""Tests for pagefacts.parser.PageFacts - the reusable front end."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

from pagefacts import PageFacts, settings
from pagefacts.items import ContentExtractionOptions, ExtractedDocument

URL = "https://example.com/"


def _doc() -> ExtractedDocument:
    return ExtractedDocument(source_url=URL, title="Example")


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------

class TestPageFactsInit:
    def test_defaults(self):
        facts = PageFacts()
        assert facts._timeout is None
        assert facts._render_js is False
        assert facts._fetch_robots is settings.FETCH_ROBOTS
        assert facts._phone_detector is None

    def test_full_config(self):
        detector = MagicMock()
        facts = PageFacts(timeout=9, render_js=True, fetch_robots=False, phone_detector=detector)
        assert facts._timeout == 9
        assert facts._render_js is True
        assert facts._fetch_robots is False
        assert facts._phone_detector is detector


# ---------------------------------------------------------------------------
# fetch()
# ---------------------------------------------------------------------------

class TestPageFactsFetch:
    def test_returns_document(self):
        doc = _doc()
        with patch("pagefacts.parser._fetch", return_value=doc) as mock_fetch:
            assert PageFacts().fetch(URL) is doc
        assert mock_fetch.call_args[0][0] == URL

    def test_uses_constructor_values(self):
        detector = MagicMock()
        facts = PageFacts(timeout=12, render_js=True, fetch_robots=False, phone_detector=detector)
        with patch("pagefacts.parser._fetch", return_value=_doc()) as mock_fetch:
            facts.fetch(URL)
        mock_fetch.assert_called_once_with(
            URL, timeout=12, render_js=True, fetch_robots=False, phone_detector=detector,
        )

    def test_kwargs_override_constructor(self):
        facts = PageFacts(timeout=12, render_js=True)
        with patch("pagefacts.parser._fetch", return_value=_doc()) as mock_fetch:
            facts.fetch(URL, timeout=3, render_js=False)
        kwargs = mock_fetch.call_args.kwargs
        assert kwargs["timeout"] == 3
        assert kwargs["render_js"] is False

    def test_extra_kwargs_forwarded(self):
        with patch("pagefacts.parser._fetch", return_value=_doc()) as mock_fetch:
            PageFacts().fetch(URL, user_agent="UA/1.0")
        assert mock_fetch.call_args.kwargs["user_agent"] == "UA/1.0"


# ---------------------------------------------------------------------------
# parse() / parse_from_browser()
# ---------------------------------------------------------------------------

class TestPageFactsParse:
    def test_parse_forwards_settings(self):
        detector = MagicMock()
        facts = PageFacts(fetch_robots=False, phone_detector=detector)
        with patch("pagefacts.parser._extract", return_value=_doc()) as mock_extract:
            facts.parse("<p>x</p>", url=URL)
        mock_extract.assert_called_once_with(
            "<p>x</p>", url=URL, fetch_robots=False, phone_detector=detector,
        )

    def test_parse_without_mock(self):
        doc = PageFacts(fetch_robots=False).parse("<title>Hi</title><p>x</p>", url="example.com")
        assert doc.title == "Hi"
        assert doc.source_url == "https://example.com"

    def test_parse_from_browser(self):
        page = MagicMock()
        page.content.return_value = "<title>Live</title><p>x</p>"
        page.url = URL
        doc = PageFacts(fetch_robots=False).parse_from_browser(page)
        page.content.assert_called_once_with()
        assert doc.title == "Live"
        assert doc.source_url == URL

    def test_parse_from_browser_leaves_browser_open(self):
        page = MagicMock()
        page.content.return_value = "<p>x</p>"
        page.url = URL
        PageFacts(fetch_robots=False).parse_from_browser(page)
        page.close.assert_not_called()
        page.context.browser.close.assert_not_called()


# ---------------------------------------------------------------------------
# content()
# ---------------------------------------------------------------------------

class TestPageFactsContent:
    def test_forwards_options_and_timeout(self):
        opts = ContentExtractionOptions(output_format="text")
        with patch("pagefacts.parser._fetch_content", return_value="text") as mock_content:
            assert PageFacts(timeout=4).content(URL, opts) == "text"
        mock_content.assert_called_once_with(URL, opts, timeout=4)

    def test_default_options(self):
        with patch("pagefacts.parser._fetch_content", return_value="# T\n\n") as mock_content:
            PageFacts().content(URL)
        mock_content.assert_called_once_with(URL, None, timeout=None)
