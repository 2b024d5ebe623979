"""Content selection and rendering (text / html / markdown / json).

The selector narrows a document down to the subtree the caller asked for;
the renderers turn that subtree into one string.  Markdown here is a light
approximation built from headings, paragraphs, lists, quotes, code blocks
and images, walked in document order.
"""

from __future__ import annotations

import copy
import json
import logging

from bs4 import BeautifulSoup, Tag
from soupsieve import SelectorSyntaxError

from pagefacts.errors import InvalidSelector
from pagefacts.extractors.dom import collapse_ws, iter_tags, parse_html, safe_str
from pagefacts.items import ContentExtractionOptions

logger = logging.getLogger(__name__)

_ALWAYS_REMOVED = ("script", "style", "noscript")

_HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")
_MARKDOWN_TAGS = (*_HEADING_TAGS, "p", "ul", "ol", "blockquote", "pre", "img")
# Blocks rendered as a whole; anything nested inside them (except images)
# is already part of their text.
_CONTAINER_TAGS = frozenset({"ul", "ol", "blockquote", "pre"})


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------

def _select(root: BeautifulSoup | Tag, selector: str) -> list[Tag]:
    try:
        return root.select(selector)
    except (SelectorSyntaxError, ValueError) as exc:
        raise InvalidSelector(f"Invalid CSS selector {selector!r}: {exc}", selector=selector) from exc


def select_content(html: str, options: ContentExtractionOptions) -> Tag:
    """Return the filtered subtree described by *options*.

    Starts from ``<body>`` (or the whole document), keeps only the
    ``include_elements`` matches when any match, drops ``exclude_elements``
    matches and script/style/noscript, and unwraps links when
    ``ignore_links`` is set.

    Raises:
        InvalidSelector: an include or exclude selector does not parse.
    """
    source = parse_html(html)
    body = source.find("body")
    start = body.decode_contents() if isinstance(body, Tag) else str(source)

    working = parse_html(start)
    root: Tag = working.body if working.body is not None else working

    if options.include_elements:
        container = parse_html("<div></div>").div
        for selector in options.include_elements:
            for el in _select(root, selector):
                container.append(copy.copy(el))
        if any(isinstance(child, Tag) for child in container.contents):
            root = container
        else:
            logger.debug("Include selectors matched nothing; keeping the full document")

    for selector in options.exclude_elements:
        for el in _select(root, selector):
            el.extract()

    for el in list(iter_tags(root, _ALWAYS_REMOVED)):
        el.extract()

    if options.ignore_links:
        for a in list(iter_tags(root, "a")):
            a.replace_with(a.get_text())

    return root


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

def _inside_container(el: Tag) -> bool:
    return any(parent.name in _CONTAINER_TAGS for parent in el.parents)


def _paragraph_markdown(p: Tag, ignore_links: bool) -> str:
    text = p.get_text().strip()
    if ignore_links:
        return text
    for a in iter_tags(p, "a"):
        href = safe_str(a.get("href")).strip()
        link_text = a.get_text().strip()
        if href and link_text:
            text = text.replace(link_text, f"[{link_text}]({href})", 1)
    return text


def _list_markdown(lst: Tag) -> str:
    ordered = lst.name == "ol"
    out = ""
    for i, li in enumerate(iter_tags(lst, "li", recursive=False)):
        text = li.get_text().strip()
        if text:
            out += f"{i + 1}. {text}\n" if ordered else f"- {text}\n"
    return out + "\n"


def to_markdown(root: Tag, options: ContentExtractionOptions) -> str:
    """Convert the filtered subtree into Markdown, in document order."""
    parts: list[str] = []

    for el in iter_tags(root, _MARKDOWN_TAGS):
        name = el.name
        if name == "img":
            if options.text_only:
                continue
            src = safe_str(el.get("src")).strip()
            if src:
                parts.append(f"![{safe_str(el.get('alt'))}]({src})\n\n")
            continue

        if _inside_container(el):
            continue

        if name in _HEADING_TAGS:
            text = el.get_text().strip()
            if text:
                parts.append(f"{'#' * int(name[1])} {text}\n\n")
        elif name == "p":
            text = _paragraph_markdown(el, options.ignore_links)
            if text:
                parts.append(f"{text}\n\n")
        elif name in ("ul", "ol"):
            parts.append(_list_markdown(el))
        elif name == "blockquote":
            text = el.get_text().strip()
            if text:
                parts.append(f"> {text}\n\n")
        elif name == "pre":
            code = el.get_text().strip()
            if code:
                parts.append(f"```\n{code}\n```\n\n")

    markdown = "".join(parts)
    if not markdown.strip():
        return root.get_text()
    return markdown


def render_content(root: Tag, options: ContentExtractionOptions, title: str = "") -> str:
    fmt = options.output_format
    if fmt == "text":
        return collapse_ws(root.get_text())
    if fmt == "html":
        return root.get_text() if options.text_only else root.decode_contents()
    if fmt == "json":
        payload = {
            "title": title,
            "content": collapse_ws(root.get_text()),
            "html": root.decode_contents(),
        }
        return json.dumps(payload, indent=2, ensure_ascii=False)
    return to_markdown(root, options)


def format_content(html: str, options: ContentExtractionOptions) -> str:
    """Select and render *html* according to *options*."""
    title_tag = parse_html(html).find("title")
    title = title_tag.get_text().strip() if isinstance(title_tag, Tag) else ""
    root = select_content(html, options)
    return render_content(root, options, title=title)
