"""Font and color-palette extraction.

Both facts are gathered by an ordered list of small detector functions.  Each
detector yields raw candidates tagged with a provenance label; a single merge
step canonicalizes, deduplicates and ranks them.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterator
from typing import NamedTuple
from urllib.parse import parse_qs, urlsplit

from bs4 import BeautifulSoup

from pagefacts import settings
from pagefacts.extractors.dom import iter_tags, rel_value, safe_str
from pagefacts.extractors.urlnorm import resolve_url
from pagefacts.items import Color, Font

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Fonts
# ---------------------------------------------------------------------------

GENERIC_FONT_FAMILIES: frozenset[str] = frozenset(
    {"serif", "sans-serif", "monospace", "cursive", "fantasy", "inherit", "initial", "unset"},
)

FONT_FILE_EXTENSIONS: tuple[str, ...] = (".woff", ".woff2", ".ttf", ".otf", ".eot", ".svg")

# Well-known families looked for anywhere in the serialized document
COMMON_FONTS: tuple[str, ...] = (
    "Arial", "Helvetica", "Times New Roman", "Courier New", "Verdana", "Georgia",
    "Palatino", "Garamond", "Bookman", "Comic Sans", "Trebuchet", "Impact",
    "Roboto", "Open Sans", "Lato", "Montserrat", "Oswald", "Raleway", "Ubuntu",
    "Playfair Display", "Merriweather", "Poppins", "Source Sans Pro", "Nunito",
)

_FONT_FAMILY_RE = re.compile(r"font-family\s*:\s*([^;}]+)", re.IGNORECASE)
_FONT_FACE_RE = re.compile(
    r"@font-face\s*\{[^}]*font-family\s*:\s*['\"]?([^'\";}]+)['\"]?[^}]*\}",
    re.IGNORECASE,
)
_FONT_FILE_NAME_RE = re.compile(r"([^/]+)\.(?:woff2?|ttf|otf|eot)$", re.IGNORECASE)


class FontHit(NamedTuple):
    declared: str
    source: str
    url: str | None = None
    type: str | None = None


FontDetector = Callable[[BeautifulSoup, str], Iterator[FontHit]]


def first_family_token(declared: str) -> str:
    """``'"Open Sans", Arial, sans-serif'`` -> ``'Open Sans'``."""
    return declared.split(",")[0].strip().strip("'\"").strip()


def _fonts_from_google_links(soup: BeautifulSoup, base_url: str) -> Iterator[FontHit]:
    for link in iter_tags(soup, "link", href=True):
        href = safe_str(link.get("href")).strip()
        if "fonts.googleapis.com" not in href:
            continue
        try:
            # parse_qs decodes both %XX escapes and "+" and keeps repeated family=
            families = parse_qs(urlsplit(href).query).get("family", [])
        except ValueError as exc:
            logger.debug("Skipping unparseable font link %r: %s", href, exc)
            continue
        url = resolve_url(href, base_url) or href
        for family in families:
            for name in family.split("|"):
                yield FontHit(name.split(":")[0], "Google Fonts", url, "google")


def _fonts_from_font_files(soup: BeautifulSoup, base_url: str) -> Iterator[FontHit]:
    for link in iter_tags(soup, "link", href=True):
        href = safe_str(link.get("href")).strip()
        try:
            path = urlsplit(href).path
        except ValueError as exc:
            logger.debug("Skipping unparseable font link %r: %s", href, exc)
            continue
        if "font" not in rel_value(link) and not path.lower().endswith(FONT_FILE_EXTENSIONS):
            continue
        url = resolve_url(href, base_url) or href
        m = _FONT_FILE_NAME_RE.search(path)
        name = re.sub(r"[-_]", " ", m.group(1)) if m else "Custom Font"
        yield FontHit(name, "Font File", url, "file")


def _fonts_from_inline_styles(soup: BeautifulSoup, base_url: str) -> Iterator[FontHit]:
    for el in iter_tags(soup, style=True):
        m = _FONT_FAMILY_RE.search(safe_str(el.get("style")))
        if m:
            yield FontHit(m.group(1), "Inline Style")


def _fonts_from_style_blocks(soup: BeautifulSoup, base_url: str) -> Iterator[FontHit]:
    for block in iter_tags(soup, "style"):
        css = block.get_text()
        for m in _FONT_FACE_RE.finditer(css):
            yield FontHit(m.group(1), "CSS @font-face")
        for m in _FONT_FAMILY_RE.finditer(css):
            yield FontHit(m.group(1), "CSS Style")


def _fonts_from_common_names(soup: BeautifulSoup, base_url: str) -> Iterator[FontHit]:
    markup = str(soup)
    for name in COMMON_FONTS:
        if name in markup:
            yield FontHit(name, "Detected in HTML")


FONT_DETECTORS: tuple[FontDetector, ...] = (
    _fonts_from_google_links,
    _fonts_from_font_files,
    _fonts_from_inline_styles,
    _fonts_from_style_blocks,
    _fonts_from_common_names,
)


def extract_fonts(soup: BeautifulSoup, base_url: str) -> list[Font]:
    """Return fonts unique by lower-cased first-family token, sorted by name."""
    found: dict[str, Font] = {}
    for detector in FONT_DETECTORS:
        try:
            hits = list(detector(soup, base_url))
        except Exception as exc:
            logger.debug("Font detector %s failed: %s", detector.__name__, exc)
            continue
        for hit in hits:
            name = first_family_token(hit.declared)
            key = name.lower()
            if not name or key in GENERIC_FONT_FAMILIES or key in found:
                continue
            found[key] = Font(name=name, source=hit.source, url=hit.url, type=hit.type)

    fonts = sorted(found.values(), key=lambda f: f.name.lower())
    logger.debug("Found %d font(s)", len(fonts))
    return fonts


# ---------------------------------------------------------------------------
# Colors
# ---------------------------------------------------------------------------

NAMED_COLORS: dict[str, str] = {
    "black": "#000000", "white": "#ffffff", "red": "#ff0000", "green": "#008000",
    "blue": "#0000ff", "yellow": "#ffff00", "cyan": "#00ffff", "magenta": "#ff00ff",
    "silver": "#c0c0c0", "gray": "#808080", "grey": "#808080", "maroon": "#800000",
    "olive": "#808000", "lime": "#00ff00", "aqua": "#00ffff", "teal": "#008080",
    "navy": "#000080", "fuchsia": "#ff00ff", "purple": "#800080", "orange": "#ffa500",
    "pink": "#ffc0cb",
}

_HEX_RE = re.compile(r"^#([0-9a-f]{3}|[0-9a-f]{6})$")
_RGB_RE = re.compile(
    r"^rgba?\(\s*(\d{1,3})\s*,\s*(\d{1,3})\s*,\s*(\d{1,3})(?:\s*,\s*[\d.]+%?)?\s*\)$",
)
_IMPORTANT_RE = re.compile(r"\s*!important\s*$", re.IGNORECASE)
_CSS_URL_RE = re.compile(r"url\([^)]*\)", re.IGNORECASE)
_COLOR_TOKEN_RE = re.compile(r"#[0-9a-fA-F]{3,6}\b|rgba?\([^)]*\)|[a-zA-Z]+")

# (?<![-\w]) keeps "color:" from matching inside "background-color:"
_BACKGROUND_RE = re.compile(r"(?<![-\w])background(?:-color)?\s*:\s*([^;{}]+)", re.IGNORECASE)
_TEXT_COLOR_RE = re.compile(r"(?<![-\w])color\s*:\s*([^;{}]+)", re.IGNORECASE)
_BORDER_RE = re.compile(r"(?<![-\w])border(?:-color)?\s*:\s*([^;{}]+)", re.IGNORECASE)

_HEX_LITERAL_RE = re.compile(r"#(?:[0-9a-f]{3}|[0-9a-f]{6})\b", re.IGNORECASE)
_RGB_LITERAL_RE = re.compile(
    r"rgba?\(\s*\d+\s*,\s*\d+\s*,\s*\d+(?:\s*,\s*[\d.]+)?\s*\)", re.IGNORECASE,
)

# property regex, usage label, whether the value may be a shorthand
_COLOR_PROPERTIES: tuple[tuple[re.Pattern[str], str, bool], ...] = (
    (_BACKGROUND_RE, "Background", True),
    (_TEXT_COLOR_RE, "Text", False),
    (_BORDER_RE, "Border", True),
)


class ColorHit(NamedTuple):
    value: str
    usage: str


ColorDetector = Callable[[BeautifulSoup], Iterator[ColorHit]]


def color_to_hex(value: str) -> str | None:
    """Return the canonical ``#rrggbb`` form of a CSS color, or None.

    Understands 3/6-digit hex, ``rgb()``/``rgba()`` and a small table of named
    colors.  ``transparent``, keywords such as ``inherit`` and anything else
    unparseable give None.
    """
    color = _IMPORTANT_RE.sub("", (value or "").strip().lower())
    if not color:
        return None

    m = _HEX_RE.match(color)
    if m:
        digits = m.group(1)
        if len(digits) == 3:
            digits = "".join(ch * 2 for ch in digits)
        return "#" + digits

    m = _RGB_RE.match(color)
    if m:
        channels = [int(c) for c in m.groups()]
        if any(c > 255 for c in channels):
            return None
        return "#" + "".join(f"{c:02x}" for c in channels)

    return NAMED_COLORS.get(color)


def hex_to_rgb(hex_value: str) -> str:
    """``'#ff8000'`` -> ``'rgb(255, 128, 0)'``; ``''`` for anything else."""
    m = re.match(r"^#([0-9a-f]{2})([0-9a-f]{2})([0-9a-f]{2})$", hex_value or "", re.IGNORECASE)
    if not m:
        return ""
    r, g, b = (int(part, 16) for part in m.groups())
    return f"rgb({r}, {g}, {b})"


def _declared_color(value: str, shorthand: bool) -> str | None:
    """Return the raw color inside a declaration value, searching shorthands."""
    value = _IMPORTANT_RE.sub("", value.strip())
    if color_to_hex(value):
        return value
    if not shorthand:
        return None
    for token in _COLOR_TOKEN_RE.findall(_CSS_URL_RE.sub(" ", value)):
        if color_to_hex(token):
            return token
    return None


def _colors_from_inline_styles(soup: BeautifulSoup) -> Iterator[ColorHit]:
    for el in iter_tags(soup, style=True):
        style = safe_str(el.get("style"))
        for pattern, usage, shorthand in _COLOR_PROPERTIES:
            m = pattern.search(style)
            if not m:
                continue
            color = _declared_color(m.group(1), shorthand)
            if color:
                yield ColorHit(color, usage)


def _colors_from_style_blocks(soup: BeautifulSoup) -> Iterator[ColorHit]:
    for block in iter_tags(soup, "style"):
        css = block.get_text()
        for pattern, usage, shorthand in _COLOR_PROPERTIES:
            for m in pattern.finditer(css):
                color = _declared_color(m.group(1), shorthand)
                if color:
                    yield ColorHit(color, usage)


def _colors_from_markup(soup: BeautifulSoup) -> Iterator[ColorHit]:
    markup = str(soup)
    for m in _HEX_LITERAL_RE.finditer(markup):
        yield ColorHit(m.group(0), "Detected")
    for m in _RGB_LITERAL_RE.finditer(markup):
        yield ColorHit(m.group(0), "Detected")


COLOR_DETECTORS: tuple[ColorDetector, ...] = (
    _colors_from_inline_styles,
    _colors_from_style_blocks,
    _colors_from_markup,
)


class _PaletteEntry:
    __slots__ = ("value", "usages", "frequency")

    def __init__(self, value: str, usage: str) -> None:
        self.value = value
        self.usages = [usage]
        self.frequency = 1


def extract_colors(soup: BeautifulSoup, limit: int = settings.COLOR_LIMIT) -> list[Color]:
    """Return the color palette ranked by frequency, then hex, capped at *limit*."""
    palette: dict[str, _PaletteEntry] = {}
    for detector in COLOR_DETECTORS:
        try:
            hits = list(detector(soup))
        except Exception as exc:
            logger.debug("Color detector %s failed: %s", detector.__name__, exc)
            continue
        for hit in hits:
            hex_value = color_to_hex(hit.value)
            if hex_value is None:
                continue
            entry = palette.get(hex_value)
            if entry is None:
                palette[hex_value] = _PaletteEntry(hit.value.strip(), hit.usage)
                continue
            entry.frequency += 1
            if hit.usage not in entry.usages:
                entry.usages.append(hit.usage)

    ranked = sorted(palette.items(), key=lambda item: (-item[1].frequency, item[0]))
    colors = [
        Color(
            hex=hex_value,
            rgb=hex_to_rgb(hex_value),
            value=entry.value,
            usage=", ".join(entry.usages),
            frequency=entry.frequency,
        )
        for hex_value, entry in ranked[: max(limit, 0)]
    ]
    logger.debug("Found %d color(s) (%d before cap)", len(colors), len(palette))
    return colors
