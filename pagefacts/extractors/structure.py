"""Structural extraction: headings, links, media, meta tags and resources.

Each public ``extract_*`` function takes a parsed document and the normalized
source URL, walks the tree independently, and returns plain model objects.
Nothing here raises for a single bad element; unresolvable references are
skipped.
"""

from __future__ import annotations

import html as html_lib
import logging
import re
from collections.abc import Callable, Iterable
from typing import TypeVar
from urllib.parse import urlsplit

from bs4 import BeautifulSoup, Tag

from pagefacts.extractors.dom import attr, collapse_ws, iter_tags, rel_value, safe_str
from pagefacts.extractors.urlnorm import is_external, origin_of, resolve_url
from pagefacts.items import Heading, Image, Link, Video

logger = logging.getLogger(__name__)

T = TypeVar("T")

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _dedupe(items: Iterable[T], key: Callable[[T], str]) -> list[T]:
    """Keep the first item for every distinct *key*."""
    seen: set[str] = set()
    unique: list[T] = []
    for item in items:
        k = key(item)
        if k in seen:
            continue
        seen.add(k)
        unique.append(item)
    return unique


def _meta_content(soup: BeautifulSoup, **attrs: str) -> str:
    tag = soup.find("meta", attrs=attrs)
    if isinstance(tag, Tag):
        return safe_str(tag.get("content")).strip()
    return ""


# ---------------------------------------------------------------------------
# Page-level metadata
# ---------------------------------------------------------------------------

def extract_title(soup: BeautifulSoup) -> str:
    title_tag = soup.find("title")
    return title_tag.get_text().strip() if isinstance(title_tag, Tag) else ""


def extract_description(soup: BeautifulSoup) -> str:
    return (
        _meta_content(soup, name="description")
        or _meta_content(soup, property="og:description")
    )


def extract_og_image(soup: BeautifulSoup, base_url: str) -> str | None:
    raw = (
        _meta_content(soup, property="og:image")
        or _meta_content(soup, name="twitter:image")
    )
    return resolve_url(raw, base_url) if raw else None


def extract_meta_tags(soup: BeautifulSoup) -> dict[str, str]:
    """Map every ``<meta>`` name/property to its content; later tags win."""
    tags: dict[str, str] = {}
    for tag in iter_tags(soup, "meta"):
        name = attr(tag, "name", "property")
        content = safe_str(tag.get("content"))
        if name and content:
            tags[name] = content
    return tags


def extract_text_content(soup: BeautifulSoup) -> str:
    """Space-join the trimmed text of every paragraph."""
    parts = [p.get_text().strip() for p in iter_tags(soup, "p")]
    return " ".join(part for part in parts if part)


# ---------------------------------------------------------------------------
# Headings
#
# Four independent passes, appended in order.  Passes 3 and 4 look at every
# element, so one visual heading may be reported several times at different
# levels.  No reconciliation happens between passes.
# ---------------------------------------------------------------------------

_HEADING_TAGS: tuple[str, ...] = ("h1", "h2", "h3", "h4", "h5", "h6")

_FONT_SIZE_LEVELS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"font-size:\s*(3|4|5)\dpx"), "h1"),
    (re.compile(r"font-size:\s*(2|3)\dpx"), "h2"),
    (re.compile(r"font-size:\s*(18|19|20)px"), "h3"),
)

_CLASS_LEVELS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"h1|hero-title|page-title|main-title"), "h1"),
    (re.compile(r"h2|section-title"), "h2"),
    (re.compile(r"h3|block-title"), "h3"),
)


def _native_headings(soup: BeautifulSoup) -> list[Heading]:
    headings: list[Heading] = []
    for tag in iter_tags(soup, _HEADING_TAGS):
        text = collapse_ws(tag.get_text())
        if text:
            headings.append(Heading(level=tag.name, text=text))
    return headings


def _aria_headings(soup: BeautifulSoup) -> list[Heading]:
    headings: list[Heading] = []
    for tag in iter_tags(soup, attrs={"role": "heading"}):
        raw_level = safe_str(tag.get("aria-level")).strip()
        level = f"h{raw_level}" if raw_level in ("1", "2", "3", "4", "5", "6") else "h2"
        headings.append(Heading(level=level, text=tag.get_text().strip()))
    return headings


def _font_size_headings(soup: BeautifulSoup) -> list[Heading]:
    headings: list[Heading] = []
    for tag in iter_tags(soup, style=True):
        style = safe_str(tag.get("style")).lower()
        if "font-size" not in style:
            continue
        text = tag.get_text().strip()
        if len(text) < 4:
            continue
        for pattern, level in _FONT_SIZE_LEVELS:
            if pattern.search(style):
                headings.append(Heading(level=level, text=text))
                break
    return headings


def _class_headings(soup: BeautifulSoup) -> list[Heading]:
    headings: list[Heading] = []
    for tag in iter_tags(soup, class_=True):
        text = tag.get_text().strip()
        if not text:
            continue
        cls = safe_str(tag.get("class")).lower()
        for pattern, level in _CLASS_LEVELS:
            if pattern.search(cls):
                headings.append(Heading(level=level, text=text))
                break
    return headings


_HEADING_PASSES: tuple[Callable[[BeautifulSoup], list[Heading]], ...] = (
    _native_headings,
    _aria_headings,
    _font_size_headings,
    _class_headings,
)


def extract_headings(soup: BeautifulSoup) -> list[Heading]:
    headings: list[Heading] = []
    for heading_pass in _HEADING_PASSES:
        found = heading_pass(soup)
        logger.debug("%s found %d headings", heading_pass.__name__, len(found))
        headings.extend(found)
    return headings


# ---------------------------------------------------------------------------
# Links
# ---------------------------------------------------------------------------

_SKIPPED_LINK_PREFIXES: tuple[str, ...] = ("javascript:", "mailto:", "tel:")


def extract_links(soup: BeautifulSoup, base_url: str) -> list[Link]:
    """Return unique links in document order; first occurrence of an href wins."""
    base_origin = origin_of(base_url)
    links: list[Link] = []
    seen: set[str] = set()

    for a in iter_tags(soup, "a", href=True):
        href = safe_str(a.get("href")).strip()
        if not href or href.lower().startswith(_SKIPPED_LINK_PREFIXES):
            continue

        full_url = resolve_url(href, base_url)
        if full_url is None:
            logger.debug("Skipping invalid URL: %r", href)
            continue
        if full_url in seen:
            continue
        seen.add(full_url)

        text = a.get_text().strip() or attr(a, "aria-label", "title") or href
        links.append(
            Link(text=text, href=full_url, external=is_external(full_url, base_origin)),
        )

    return links


# ---------------------------------------------------------------------------
# Favicon and images
# ---------------------------------------------------------------------------

# Priority order for <link rel="..."> favicon declarations
_FAVICON_RELS: tuple[str, ...] = (
    "icon",
    "shortcut icon",
    "apple-touch-icon",
    "apple-touch-icon-precomposed",
)


def _favicon_links(soup: BeautifulSoup, rel: str) -> list[Tag]:
    return [
        link for link in iter_tags(soup, "link", href=True)
        if rel_value(link) == rel
    ]


def extract_favicon(soup: BeautifulSoup, base_url: str) -> str:
    """Return the first declared favicon, falling back to ``/favicon.ico``."""
    for rel in _FAVICON_RELS:
        for link in _favicon_links(soup, rel):
            resolved = resolve_url(safe_str(link.get("href")), base_url)
            if resolved:
                return resolved
    return f"{origin_of(base_url)}/favicon.ico"


def extract_images(soup: BeautifulSoup, base_url: str) -> list[Image]:
    """Return ``<img>`` sources plus favicon images, unique by resolved src."""
    images: list[Image] = []
    seen: set[str] = set()

    for img in iter_tags(soup, "img", src=True):
        src = resolve_url(safe_str(img.get("src")), base_url)
        if not src or src in seen:
            continue
        seen.add(src)
        images.append(Image(src=src, alt=safe_str(img.get("alt"))))

    declared_favicon = False
    for rel in _FAVICON_RELS:
        for link in _favicon_links(soup, rel):
            src = resolve_url(safe_str(link.get("href")), base_url)
            if not src:
                continue
            declared_favicon = True
            if src in seen:
                continue
            seen.add(src)
            sizes = safe_str(link.get("sizes")).strip()
            images.append(Image(src=src, alt=f"Favicon {sizes}" if sizes else "Favicon"))

    default_favicon = f"{origin_of(base_url)}/favicon.ico"
    if not declared_favicon and default_favicon not in seen:
        images.append(Image(src=default_favicon, alt="Favicon"))

    return images


# ---------------------------------------------------------------------------
# Videos
#
# Each detector returns zero or more candidates; extract_videos() merges them
# in order and keeps the first candidate for every resolved src.
# ---------------------------------------------------------------------------

VIDEO_EXTENSIONS: tuple[str, ...] = (
    ".mp4", ".webm", ".ogg", ".mov", ".avi", ".wmv", ".flv", ".mkv",
)
_EMBED_EXTENSIONS: tuple[str, ...] = (".mp4", ".webm", ".ogg")
_LAZY_SRC_ATTRS: tuple[str, ...] = ("src", "data-src", "data-lazy-src", "data-original")
_POSTER_ATTRS: tuple[str, ...] = ("poster", "data-poster", "data-lazy-poster")
_IFRAME_VIDEO_KEYWORDS: tuple[str, ...] = ("video", "player", "embed")

_YOUTUBE_ID_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"youtube\.com/embed/([^\"&?/\s]{11})"),
    re.compile(r"youtube\.com/watch\?v=([^\"&?/\s]{11})"),
    re.compile(r"youtu\.be/([^\"&?/\s]{11})"),
    re.compile(r"youtube\.com/v/([^\"&?/\s]{11})"),
    re.compile(r"youtube\.com/.*[?&]v=([^\"&?/\s]{11})"),
    re.compile(r"youtube-nocookie\.com/embed/([^\"&?/\s]{11})"),
)

_MARKUP_VIDEO_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(
        r"https?://[^\s\"<>]+\.(?:mp4|webm|ogg|mov|avi|wmv|flv|mkv)(?:\?[^\s\"<>]*)?",
        re.IGNORECASE,
    ),
    re.compile(r"https?://[^\s\"<>]*youtube\.com[^\s\"<>]*", re.IGNORECASE),
    re.compile(r"https?://[^\s\"<>]*youtu\.be[^\s\"<>]*", re.IGNORECASE),
    re.compile(r"https?://[^\s\"<>]*vimeo\.com[^\s\"<>]*", re.IGNORECASE),
    re.compile(r"https?://[^\s\"<>]*dailymotion\.com[^\s\"<>]*", re.IGNORECASE),
)

# Characters a regex sweep drags along from surrounding JS/CSS
_TRAILING_JUNK = "'),;\\"


def youtube_thumbnail(video_id: str) -> str:
    return f"https://img.youtube.com/vi/{video_id}/maxresdefault.jpg"


def detect_platform(url: str) -> tuple[str | None, str | None]:
    """Return ``(platform, thumbnail)`` for a known video-host URL."""
    for pattern in _YOUTUBE_ID_PATTERNS:
        match = pattern.search(url)
        if match:
            return "youtube", youtube_thumbnail(match.group(1))
    lower = url.lower()
    if "vimeo.com" in lower:
        return "vimeo", None
    if "dailymotion.com" in lower or "dai.ly/" in lower:
        return "dailymotion", None
    return None, None


def _has_extension(url: str, extensions: tuple[str, ...]) -> bool:
    try:
        path = urlsplit(url).path.lower()
    except ValueError:
        path = url.lower()
    return path.endswith(extensions)


def _videos_from_video_tags(soup: BeautifulSoup, base_url: str) -> list[Video]:
    videos: list[Video] = []
    for video in iter_tags(soup, "video"):
        poster_raw = attr(video, *_POSTER_ATTRS)
        poster = resolve_url(poster_raw, base_url) if poster_raw else None

        src = resolve_url(attr(video, *_LAZY_SRC_ATTRS), base_url)
        if src:
            videos.append(Video(src=src, type="video", thumbnail=poster))

        for source in iter_tags(video, "source"):
            src = resolve_url(attr(source, *_LAZY_SRC_ATTRS), base_url)
            if src:
                videos.append(
                    Video(src=src, type=attr(source, "type") or "video", thumbnail=poster),
                )
    return videos


def _videos_from_iframes(soup: BeautifulSoup, base_url: str) -> list[Video]:
    videos: list[Video] = []
    for iframe in iter_tags(soup, "iframe"):
        raw = attr(iframe, *_LAZY_SRC_ATTRS)
        if not raw:
            continue
        platform, thumbnail = detect_platform(raw)
        lower = raw.lower()
        if platform is None and not any(kw in lower for kw in _IFRAME_VIDEO_KEYWORDS):
            continue
        src = resolve_url(raw, base_url)
        if src:
            videos.append(Video(src=src, type="embed", platform=platform, thumbnail=thumbnail))
    return videos


def _videos_from_embeds(soup: BeautifulSoup, base_url: str) -> list[Video]:
    videos: list[Video] = []
    for embed in iter_tags(soup, "embed", src=True):
        raw = safe_str(embed.get("src")).strip()
        lower = raw.lower()
        if any(ext in lower for ext in _EMBED_EXTENSIONS) or "video" in lower:
            src = resolve_url(raw, base_url)
            if src:
                videos.append(Video(src=src, type="embed"))

    for obj in iter_tags(soup, "object", data=True):
        raw = safe_str(obj.get("data")).strip()
        if any(ext in raw.lower() for ext in _EMBED_EXTENSIONS):
            src = resolve_url(raw, base_url)
            if src:
                videos.append(Video(src=src, type="object"))
    return videos


def _videos_from_anchors(soup: BeautifulSoup, base_url: str) -> list[Video]:
    videos: list[Video] = []
    for a in iter_tags(soup, "a", href=True):
        raw = safe_str(a.get("href")).strip()
        if not _has_extension(raw, VIDEO_EXTENSIONS):
            continue
        src = resolve_url(raw, base_url)
        if src:
            videos.append(Video(src=src, type="direct"))
    return videos


def _videos_from_meta(soup: BeautifulSoup, base_url: str) -> list[Video]:
    videos: list[Video] = []
    og_video = (
        _meta_content(soup, property="og:video")
        or _meta_content(soup, property="og:video:url")
        or _meta_content(soup, property="og:video:secure_url")
    )
    if og_video:
        src = resolve_url(og_video, base_url)
        if src:
            platform, thumbnail = detect_platform(src)
            videos.append(Video(src=src, type="embed", platform=platform, thumbnail=thumbnail))

    player = (
        _meta_content(soup, name="twitter:player")
        or _meta_content(soup, property="twitter:player")
    )
    if player:
        src = resolve_url(player, base_url)
        if src:
            videos.append(Video(src=src, type="embed"))
    return videos


def _videos_from_markup(markup: str, known: set[str]) -> list[Video]:
    """Last-resort regex sweep for raw video URLs not captured structurally."""
    videos: list[Video] = []
    for pattern in _MARKUP_VIDEO_PATTERNS:
        for match in pattern.finditer(markup):
            url = html_lib.unescape(match.group(0)).rstrip(_TRAILING_JUNK)
            if not url or url in known:
                continue
            known.add(url)
            platform, thumbnail = detect_platform(url)
            if platform == "youtube":
                videos.append(Video(src=url, type="embed", platform=platform, thumbnail=thumbnail))
            elif platform:
                videos.append(Video(src=url, type="embed", platform=platform))
            else:
                videos.append(Video(src=url, type="direct"))
    return videos


_VIDEO_DETECTORS: tuple[Callable[[BeautifulSoup, str], list[Video]], ...] = (
    _videos_from_video_tags,
    _videos_from_iframes,
    _videos_from_embeds,
    _videos_from_anchors,
    _videos_from_meta,
)


def extract_videos(soup: BeautifulSoup, base_url: str) -> list[Video]:
    candidates: list[Video] = []
    for detector in _VIDEO_DETECTORS:
        try:
            found = detector(soup, base_url)
        except Exception as exc:
            logger.debug("Video detector %s failed: %s", detector.__name__, exc)
            continue
        candidates.extend(found)

    known = {v.src for v in candidates}
    candidates.extend(_videos_from_markup(str(soup), known))

    videos = _dedupe(candidates, key=lambda v: v.src)
    logger.debug("Found %d video(s) for %s", len(videos), base_url)
    return videos


# ---------------------------------------------------------------------------
# Scripts and stylesheets (document order, not deduplicated)
# ---------------------------------------------------------------------------

def extract_scripts(soup: BeautifulSoup, base_url: str) -> list[str]:
    scripts: list[str] = []
    for script in iter_tags(soup, "script", src=True):
        src = resolve_url(safe_str(script.get("src")), base_url)
        if src:
            scripts.append(src)
    return scripts


def extract_stylesheets(soup: BeautifulSoup, base_url: str) -> list[str]:
    stylesheets: list[str] = []
    for link in iter_tags(soup, "link", href=True):
        if "stylesheet" not in rel_value(link).split():
            continue
        href = resolve_url(safe_str(link.get("href")), base_url)
        if href:
            stylesheets.append(href)
    return stylesheets
