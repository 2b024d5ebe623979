"""pagefacts.parser - High-level PageFacts class.

Bundles a timeout, render mode, robots.txt preference and phone detector
into one reusable object.

Usage::

    from pagefacts import PageFacts

    facts = PageFacts(timeout=20)
    doc = facts.fetch("https://example.com/")

    # Parse pre-fetched HTML
    doc = facts.parse("<html>...</html>", url="https://example.com/")

    # Markdown of the main column only
    from pagefacts.items import ContentExtractionOptions
    md = facts.content(
        "https://example.com/",
        ContentExtractionOptions(include_elements=["main"]),
    )

    # Parse from a live Playwright page object (the caller owns the browser)
    from playwright.sync_api import sync_playwright
    with sync_playwright() as p:
        browser = p.chromium.launch()
        page = browser.new_page()
        page.goto("https://example.com/")
        doc = facts.parse_from_browser(page)
        browser.close()
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pagefacts import settings
from pagefacts.query import extract as _extract
from pagefacts.query import fetch as _fetch
from pagefacts.query import fetch_content as _fetch_content

if TYPE_CHECKING:
    from pagefacts.extractors.contacts import PhoneDetector
    from pagefacts.items import ContentExtractionOptions, ExtractedDocument


class PageFacts:
    """Reusable extraction front end.

    ``PageFacts()`` with no arguments behaves exactly like calling
    :func:`pagefacts.fetch` / :func:`pagefacts.extract` directly.

    Args:
        timeout:        Network timeout in seconds.  None uses the settings
                        default for each kind of request.
        render_js:      Render every :meth:`fetch` with headless Chromium.
        fetch_robots:   Include ``/robots.txt`` in extracted documents.
        phone_detector: Custom :class:`~pagefacts.extractors.contacts.PhoneDetector`.
    """

    def __init__(
        self,
        timeout: int | None = None,
        render_js: bool = False,
        fetch_robots: bool = settings.FETCH_ROBOTS,
        phone_detector: PhoneDetector | None = None,
    ) -> None:
        self._timeout = timeout
        self._render_js = render_js
        self._fetch_robots = fetch_robots
        self._phone_detector = phone_detector

    # ------------------------------------------------------------------
    # Public methods
    # ------------------------------------------------------------------

    def fetch(self, url: str, **kwargs: Any) -> ExtractedDocument:
        """Fetch and extract *url*.

        Keyword arguments are forwarded to :func:`pagefacts.query.fetch`;
        ``timeout``, ``render_js``, ``fetch_robots`` and ``phone_detector``
        default to the constructor values.
        """
        kwargs.setdefault("timeout", self._timeout)
        kwargs.setdefault("render_js", self._render_js)
        kwargs.setdefault("fetch_robots", self._fetch_robots)
        kwargs.setdefault("phone_detector", self._phone_detector)
        return _fetch(url, **kwargs)

    def parse(self, html: str, url: str) -> ExtractedDocument:
        """Extract pre-fetched *html* that was served from *url*."""
        return _extract(
            html,
            url=url,
            fetch_robots=self._fetch_robots,
            phone_detector=self._phone_detector,
        )

    def parse_from_browser(self, page: Any) -> ExtractedDocument:
        """Extract from a live Playwright ``Page``.

        Calls ``page.content()`` and reads ``page.url``; the browser's
        lifecycle stays with the caller.
        """
        html: str = page.content()
        url: str = page.url
        return self.parse(html, url=url)

    def content(self, url: str, options: ContentExtractionOptions | None = None) -> str:
        """Fetch *url* and render it per *options* (markdown by default)."""
        return _fetch_content(url, options, timeout=self._timeout)
