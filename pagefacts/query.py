"""pagefacts.query - single-URL fetch and extraction API.

Basic usage::

    from pagefacts.query import fetch

    doc = fetch("https://example.com/")
    print(doc.title)
    print(doc.emails, doc.phone_numbers)
    print([c.hex for c in doc.colors])

    # As a plain dict
    data = fetch("https://example.com/").model_dump()

JavaScript-heavy pages::

    doc = fetch("https://reactapp.io/", render_js=True)

Already-fetched markup (no network apart from the optional robots.txt)::

    from pagefacts.query import extract, extract_content
    from pagefacts.items import ContentExtractionOptions

    doc = extract(html, url="https://example.com/")
    md = extract_content(
        html,
        url="https://example.com/",
        options=ContentExtractionOptions(output_format="markdown"),
    )
"""

from __future__ import annotations

import gzip
import logging
import random
import time
import urllib.error
import urllib.request
import zlib
from typing import Any

from pagefacts import settings
from pagefacts.errors import EmptyResponse, ExtractionError, FetchError
from pagefacts.extractors.contacts import PhoneDetector, extract_emails, extract_phone_numbers
from pagefacts.extractors.content import format_content
from pagefacts.extractors.dom import parse_html
from pagefacts.extractors.structure import (
    extract_description,
    extract_favicon,
    extract_headings,
    extract_images,
    extract_links,
    extract_meta_tags,
    extract_og_image,
    extract_scripts,
    extract_stylesheets,
    extract_text_content,
    extract_title,
    extract_videos,
)
from pagefacts.extractors.style import extract_colors, extract_fonts
from pagefacts.extractors.urlnorm import normalize_url, origin_of
from pagefacts.items import ContentExtractionOptions, ExtractedDocument

logger = logging.getLogger(__name__)

_BROWSER_HEADERS: dict[str, str] = {
    "Accept": (
        "text/html,application/xhtml+xml,application/xml;"
        "q=0.9,image/avif,image/webp,*/*;q=0.8"
    ),
    "Accept-Language": "en-US,en;q=0.9",
    "Accept-Encoding": "gzip, deflate",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
}

_CHROMIUM_ARGS: list[str] = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--no-first-run",
    "--disable-notifications",
    "--disable-extensions",
    "--mute-audio",
]


# ---------------------------------------------------------------------------
# Low-level HTTP fetch
# ---------------------------------------------------------------------------

class _ValidatingRedirectHandler(urllib.request.HTTPRedirectHandler):
    """Re-checks every redirect target against the URL gate."""

    def redirect_request(self, req, fp, code, msg, headers, newurl):
        normalize_url(newurl)
        return super().redirect_request(req, fp, code, msg, headers, newurl)


def _build_opener() -> urllib.request.OpenerDirector:
    return urllib.request.build_opener(_ValidatingRedirectHandler())


def _decode_response_body(raw: bytes, headers: Any, url: str) -> str:
    encoding = ""
    if headers is not None:
        try:
            encoding = str(headers.get("Content-Encoding", "")).lower().strip()
        except Exception:
            encoding = ""

    try:
        if encoding == "gzip":
            raw = gzip.decompress(raw)
        elif encoding in ("deflate", "zlib"):
            raw = zlib.decompress(raw)
    except (OSError, zlib.error) as exc:
        raise FetchError(f"{encoding} decompression failed for {url}: {exc}", url=url) from exc
    if encoding == "br":
        raise FetchError(
            f"Brotli-encoded response from {url}; use render_js=True instead", url=url,
        )

    charset = "utf-8"
    if headers is not None:
        try:
            charset = headers.get_content_charset("utf-8") or "utf-8"
        except Exception:
            charset = "utf-8"
    try:
        return raw.decode(charset, errors="replace")
    except (LookupError, ValueError):
        return raw.decode("utf-8", errors="replace")


def _backoff(attempt: int, retry_after: int = 0) -> float:
    return max(retry_after, 2 ** attempt) + random.uniform(0, 1)


def fetch_html(
    url: str,
    *,
    timeout: int = settings.DEFAULT_TIMEOUT,
    user_agent: str | None = None,
    max_retries: int = settings.MAX_RETRIES,
) -> str:
    """Fetch *url* and return the response body as a decoded string.

    The URL goes through :func:`normalize_url` first, and so does every
    redirect target.  Retries up to *max_retries* times with jittered
    exponential backoff on 429/5xx responses and network-level failures.

    Raises:
        InvalidUrl:    *url* (or a redirect target) fails validation.
        FetchError:    HTTP errors, connection failures, bad encodings.
        EmptyResponse: the server answered with an empty body.
    """
    url = normalize_url(url)
    req = urllib.request.Request(
        url, headers={"User-Agent": user_agent or settings.USER_AGENT, **_BROWSER_HEADERS},
    )
    opener = _build_opener()

    last_exc: FetchError | None = None
    for attempt in range(max_retries + 1):
        try:
            with opener.open(req, timeout=timeout) as resp:
                body = _decode_response_body(resp.read(), resp.headers, url)
            if not body.strip():
                raise EmptyResponse(f"Website returned empty response: {url}", url=url)
            return body

        except urllib.error.HTTPError as exc:
            error = FetchError(
                f"HTTP {exc.code} fetching {url}: {exc.reason}", url=url, status=exc.code,
            )
            if exc.code in settings.RETRY_HTTP_CODES and attempt < max_retries:
                retry_after = 0
                ra_header = exc.headers.get("Retry-After", "") if exc.headers else ""
                if ra_header and ra_header.strip().isdigit():
                    retry_after = int(ra_header)
                delay = _backoff(attempt, retry_after)
                logger.warning(
                    "HTTP %d for %s, retrying in %.1fs (attempt %d/%d)",
                    exc.code, url, delay, attempt + 1, max_retries,
                )
                time.sleep(delay)
                last_exc = error
                continue
            raise error from exc

        except urllib.error.URLError as exc:
            error = FetchError(f"URL error fetching {url}: {exc.reason}", url=url)
            if attempt < max_retries:
                delay = _backoff(attempt)
                logger.warning(
                    "URL error for %s, retrying in %.1fs (attempt %d/%d): %s",
                    url, delay, attempt + 1, max_retries, exc.reason,
                )
                time.sleep(delay)
                last_exc = error
                continue
            raise error from exc

        except OSError as exc:
            error = FetchError(f"Network error fetching {url}: {exc}", url=url)
            if attempt < max_retries:
                delay = _backoff(attempt)
                logger.warning(
                    "Network error for %s, retrying in %.1fs (attempt %d/%d): %s",
                    url, delay, attempt + 1, max_retries, exc,
                )
                time.sleep(delay)
                last_exc = error
                continue
            raise error from exc

    raise last_exc or FetchError(f"All retries exhausted for {url}", url=url)


def fetch_rendered_html(
    url: str,
    *,
    timeout: int = settings.RENDER_TIMEOUT,
    user_agent: str | None = None,
) -> str:
    """Render *url* in headless Chromium (requires playwright) and return the DOM.

    Waits for network idle, dismisses any ``alert``/``confirm`` dialogs, and
    always closes the browser before returning or raising.
    """
    url = normalize_url(url)
    try:
        from playwright.sync_api import sync_playwright
    except ImportError as exc:
        raise FetchError(
            "render_js=True requires playwright: pip install 'pagefacts[render]' && "
            "playwright install chromium",
            url=url,
        ) from exc

    logger.info("Rendering %s with headless Chromium", url)
    try:
        with sync_playwright() as p:
            browser = p.chromium.launch(headless=True, args=_CHROMIUM_ARGS)
            try:
                context = browser.new_context(
                    user_agent=user_agent or settings.USER_AGENT,
                    viewport={"width": 1920, "height": 1080},
                    extra_http_headers={"Accept-Language": "en-US,en;q=0.9"},
                )
                page = context.new_page()
                page.on("dialog", lambda dialog: dialog.dismiss())
                page.goto(url, timeout=timeout * 1_000, wait_until="networkidle")
                html: str = page.content()
            finally:
                browser.close()
    except FetchError:
        raise
    except Exception as exc:
        raise FetchError(f"Playwright error fetching {url}: {exc}", url=url) from exc

    if not html.strip():
        raise EmptyResponse(f"Browser returned an empty page for {url}", url=url)
    return html


def fetch_robots_txt(url: str, *, timeout: int = settings.ROBOTS_TIMEOUT) -> str | None:
    """Best-effort GET of ``{origin}/robots.txt``.

    Returns the body only for an HTTP 200 answer; any failure returns None.
    """
    try:
        origin = origin_of(normalize_url(url))
        robots_url = f"{origin}/robots.txt"
        req = urllib.request.Request(robots_url, headers={"User-Agent": settings.USER_AGENT})
        with _build_opener().open(req, timeout=timeout) as resp:
            if resp.status != 200:
                logger.debug("robots.txt for %s answered HTTP %s", origin, resp.status)
                return None
            return _decode_response_body(resp.read(), resp.headers, robots_url)
    except Exception as exc:
        logger.debug("robots.txt unavailable for %s: %s", url, exc)
        return None


# ---------------------------------------------------------------------------
# Extraction (markup -> ExtractedDocument / formatted string)
# ---------------------------------------------------------------------------

def extract(
    html: str,
    *,
    url: str,
    fetch_robots: bool | None = None,
    phone_detector: PhoneDetector | None = None,
) -> ExtractedDocument:
    """Extract every fact from already-rendered *html* fetched from *url*.

    Args:
        html:           Complete document markup.
        url:            The URL the markup came from.  Validated with
                        :func:`normalize_url` and used to resolve references.
        fetch_robots:   Whether to GET ``/robots.txt`` for the origin.
                        Defaults to ``settings.FETCH_ROBOTS``.
        phone_detector: Optional :class:`PhoneDetector` replacing the
                        default ``phonenumbers``-backed one.

    Raises:
        InvalidUrl:      *url* fails validation.
        EmptyResponse:   *html* is empty or whitespace.
        ExtractionError: the document could not be processed.
    """
    source_url = normalize_url(url)
    if not html or not html.strip():
        raise EmptyResponse(f"No document supplied for {source_url}", url=source_url)

    logger.info("extract: %s (%d chars)", source_url, len(html))
    try:
        soup = parse_html(html)
        doc = ExtractedDocument(
            source_url=source_url,
            title=extract_title(soup),
            description=extract_description(soup),
            og_image=extract_og_image(soup, source_url),
            favicon=extract_favicon(soup, source_url),
            headings=extract_headings(soup),
            links=extract_links(soup, source_url),
            images=extract_images(soup, source_url),
            videos=extract_videos(soup, source_url),
            fonts=extract_fonts(soup, source_url),
            colors=extract_colors(soup),
            emails=extract_emails(soup),
            phone_numbers=extract_phone_numbers(soup, detector=phone_detector),
            meta_tags=extract_meta_tags(soup),
            scripts=extract_scripts(soup, source_url),
            stylesheets=extract_stylesheets(soup, source_url),
            text_content=extract_text_content(soup),
        )
    except ExtractionError:
        raise
    except Exception as exc:
        raise ExtractionError(
            f"Failed to extract data from {source_url}: {exc}", url=source_url,
        ) from exc

    if fetch_robots if fetch_robots is not None else settings.FETCH_ROBOTS:
        robots = fetch_robots_txt(source_url)
        if robots is not None:
            doc = doc.model_copy(update={"robots_txt": robots})
    return doc


def extract_content(
    html: str,
    *,
    url: str,
    options: ContentExtractionOptions | None = None,
) -> str:
    """Narrow and render *html* as text, html, markdown or json.

    Raises:
        InvalidUrl:      *url* fails validation.
        EmptyResponse:   *html* is empty or whitespace.
        InvalidSelector: an include/exclude selector does not compile.
        ExtractionError: the document could not be processed.
    """
    source_url = normalize_url(url)
    if not html or not html.strip():
        raise EmptyResponse(f"No document supplied for {source_url}", url=source_url)

    options = options or ContentExtractionOptions()
    try:
        return format_content(html, options)
    except ExtractionError as exc:
        exc.url = exc.url or source_url
        raise
    except Exception as exc:
        raise ExtractionError(
            f"Failed to extract content from {source_url}: {exc}", url=source_url,
        ) from exc


# ---------------------------------------------------------------------------
# Main public API
# ---------------------------------------------------------------------------

def fetch(
    url: str,
    *,
    render_js: bool = False,
    timeout: int | None = None,
    user_agent: str | None = None,
    fetch_robots: bool | None = None,
    phone_detector: PhoneDetector | None = None,
) -> ExtractedDocument:
    """Fetch *url* and return its :class:`~pagefacts.items.ExtractedDocument`.

    Args:
        url:            HTTP/HTTPS URL; a bare host gets ``https://``.
        render_js:      Render with headless Chromium via Playwright instead
                        of a plain HTTP GET.
        timeout:        Network timeout in seconds.  Defaults to
                        ``settings.RENDER_TIMEOUT`` when rendering and
                        ``settings.DEFAULT_TIMEOUT`` otherwise.
        user_agent:     Custom User-Agent string.
        fetch_robots:   Whether to include ``/robots.txt``.
        phone_detector: Optional custom :class:`PhoneDetector`.

    Raises:
        :class:`~pagefacts.errors.ExtractionError` (or one of its
        subclasses) for invalid URLs, fetch failures and empty pages.

    Example::

        doc = fetch("example.com")
        print(doc.source_url)   # https://example.com
    """
    normalized = normalize_url(url)
    logger.info("fetch: %s (render_js=%s)", normalized, render_js)

    if render_js:
        html = fetch_rendered_html(
            normalized, timeout=timeout or settings.RENDER_TIMEOUT, user_agent=user_agent,
        )
    else:
        html = fetch_html(
            normalized, timeout=timeout or settings.DEFAULT_TIMEOUT, user_agent=user_agent,
        )
    return extract(
        html, url=normalized, fetch_robots=fetch_robots, phone_detector=phone_detector,
    )


def fetch_content(
    url: str,
    options: ContentExtractionOptions | None = None,
    *,
    timeout: int | None = None,
    user_agent: str | None = None,
) -> str:
    """Fetch *url* over plain HTTP and render it per *options*."""
    normalized = normalize_url(url)
    logger.info("fetch_content: %s", normalized)
    html = fetch_html(
        normalized, timeout=timeout or settings.CONTENT_TIMEOUT, user_agent=user_agent,
    )
    return extract_content(html, url=normalized, options=options)
