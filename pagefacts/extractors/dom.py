"""Small BeautifulSoup helpers shared by the extractors."""

from __future__ import annotations

import re
from collections.abc import Iterator
from typing import Any

from bs4 import BeautifulSoup, Tag

_WHITESPACE_RE = re.compile(r"\s+")


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "lxml")


def safe_str(val: Any, default: str = "") -> str:
    """Safely convert a BeautifulSoup attribute value (str | list | None) to str."""
    if val is None:
        return default
    if isinstance(val, list):
        return " ".join(str(v) for v in val)
    return str(val)


def attr(tag: Tag, *names: str) -> str:
    """Return the first non-blank attribute among *names*, stripped."""
    for name in names:
        value = safe_str(tag.get(name)).strip()
        if value:
            return value
    return ""


def collapse_ws(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def rel_value(tag: Tag) -> str:
    """Return the ``rel`` attribute as one lower-cased, space-joined string."""
    return safe_str(tag.get("rel")).strip().lower()


def iter_tags(soup: BeautifulSoup | Tag, *args: Any, **kwargs: Any) -> Iterator[Tag]:
    """``find_all`` restricted to :class:`Tag` results."""
    for el in soup.find_all(*args, **kwargs):
        if isinstance(el, Tag):
            yield el
