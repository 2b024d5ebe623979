"""Tests for pagefacts.extractors.structure."""

from __future__ import annotations

from pagefacts.extractors.dom import parse_html
from pagefacts.extractors.structure import (
    detect_platform,
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

SITE = "https://acme-widgets.com"
BASE = "https://example.com/page"


def _soup(body: str, head: str = ""):
    return parse_html(f"<html><head>{head}</head><body>{body}</body></html>")


# ---------------------------------------------------------------------------
# Page metadata
# ---------------------------------------------------------------------------

class TestPageMetadata:
    def test_title_trimmed(self, site_soup):
        assert extract_title(site_soup) == "Acme Widgets - Home"

    def test_missing_title(self):
        assert extract_title(_soup("<p>x</p>")) == ""

    def test_description_prefers_meta_description(self, site_soup):
        assert extract_description(site_soup) == "Hand-made widgets since 1999."

    def test_description_falls_back_to_og(self):
        soup = _soup("", head='<meta property="og:description" content="From OG">')
        assert extract_description(soup) == "From OG"

    def test_og_image_resolved(self, site_soup):
        assert extract_og_image(site_soup, SITE) == "https://acme-widgets.com/img/og.png"

    def test_og_image_twitter_fallback(self):
        soup = _soup("", head='<meta name="twitter:image" content="https://cdn.x.com/t.png">')
        assert extract_og_image(soup, BASE) == "https://cdn.x.com/t.png"

    def test_og_image_absent(self):
        assert extract_og_image(_soup("<p>x</p>"), BASE) is None

    def test_meta_tags_map(self, site_soup):
        tags = extract_meta_tags(site_soup)
        assert tags["description"] == "Hand-made widgets since 1999."
        assert tags["og:image"] == "/img/og.png"
        assert tags["twitter:card"] == "summary"

    def test_meta_tags_last_write_wins(self):
        soup = _soup("", head=(
            '<meta name="author" content="First">'
            '<meta name="author" content="Second">'
        ))
        assert extract_meta_tags(soup) == {"author": "Second"}

    def test_text_content_joins_paragraphs(self):
        soup = _soup("<p> One </p><p></p><p>Two</p><div>not a paragraph</div>")
        assert extract_text_content(soup) == "One Two"


# ---------------------------------------------------------------------------
# Headings
# ---------------------------------------------------------------------------

class TestHeadings:
    def test_site_headings_in_pass_order(self, site_soup):
        headings = [(h.level, h.text) for h in extract_headings(site_soup)]
        assert headings == [
            ("h1", "Welcome to Acme"),
            ("h3", "Our story"),
            ("h1", "Big banner text"),
            ("h2", "Featured widgets"),
        ]

    def test_native_whitespace_collapsed_and_empty_dropped(self):
        headings = extract_headings(_soup("<h2>  A\n  B </h2><h3>   </h3>"))
        assert [(h.level, h.text) for h in headings] == [("h2", "A B")]

    def test_aria_level_default(self):
        headings = extract_headings(_soup('<div role="heading">Untitled level</div>'))
        assert headings[0].level == "h2"

    def test_aria_level_out_of_range_defaults(self):
        headings = extract_headings(_soup('<div role="heading" aria-level="9">Deep</div>'))
        assert headings[0].level == "h2"

    def test_font_size_buckets(self):
        soup = _soup(
            '<div style="font-size:44px">Huge text</div>'
            '<div style="font-size: 24px">Medium text</div>'
            '<div style="font-size:19px">Small heading</div>'
            '<div style="font-size:12px">Body copy</div>',
        )
        assert [(h.level, h.text) for h in extract_headings(soup)] == [
            ("h1", "Huge text"),
            ("h2", "Medium text"),
            ("h3", "Small heading"),
        ]

    def test_font_size_short_text_ignored(self):
        assert extract_headings(_soup('<span style="font-size:40px">Hi</span>')) == []

    def test_class_keywords(self):
        soup = _soup(
            '<div class="hero-title">Hero</div>'
            '<div class="block-title">Block</div>'
            '<div class="card">Plain</div>',
        )
        assert [(h.level, h.text) for h in extract_headings(soup)] == [
            ("h1", "Hero"),
            ("h3", "Block"),
        ]

    def test_same_heading_reported_by_several_passes(self):
        headings = extract_headings(_soup('<h1 class="page-title">Title here</h1>'))
        assert [(h.level, h.text) for h in headings] == [
            ("h1", "Title here"),
            ("h1", "Title here"),
        ]


# ---------------------------------------------------------------------------
# Links
# ---------------------------------------------------------------------------

class TestLinks:
    def test_relative_link_is_internal(self):
        links = extract_links(_soup('<a href="/about">About</a>'), BASE)
        assert len(links) == 1
        assert links[0].href == "https://example.com/about"
        assert links[0].external is False

    def test_other_origin_is_external(self):
        links = extract_links(_soup('<a href="https://other.com/x">X</a>'), BASE)
        assert links[0].external is True

    def test_site_links(self, site_soup):
        links = extract_links(site_soup, SITE)
        assert [(link.text, link.href, link.external) for link in links] == [
            ("Home", "https://acme-widgets.com/", False),
            ("About us", "https://acme-widgets.com/about", False),
            ("Partner", "https://partner.example.org/deal", True),
            ("widgets", "https://acme-widgets.com/widgets", False),
            ("Demo video", "https://acme-widgets.com/downloads/demo.webm?dl=1", False),
        ]

    def test_skips_script_mail_and_tel_targets(self):
        soup = _soup(
            '<a href="javascript:void(0)">a</a><a href="mailto:x@y.com">b</a>'
            '<a href="TEL:123">c</a><a href="">d</a>',
        )
        assert extract_links(soup, BASE) == []

    def test_text_falls_back_to_href(self):
        links = extract_links(_soup('<a href="/x"></a>'), BASE)
        assert links[0].text == "/x"

    def test_unresolvable_href_skipped(self):
        soup = _soup('<a href="http://[oops/">bad</a><a href="/ok">ok</a>')
        assert [link.href for link in extract_links(soup, BASE)] == ["https://example.com/ok"]

    def test_duplicates_first_wins(self):
        soup = _soup('<a href="/a">First</a><a href="https://example.com/a">Second</a>')
        links = extract_links(soup, BASE)
        assert len(links) == 1
        assert links[0].text == "First"


# ---------------------------------------------------------------------------
# Favicon and images
# ---------------------------------------------------------------------------

class TestImages:
    def test_favicon_first_declared(self, site_soup):
        assert extract_favicon(site_soup, SITE) == "https://acme-widgets.com/static/favicon-32.png"

    def test_favicon_shortcut_icon(self):
        soup = _soup("", head='<link rel="shortcut icon" href="/fav.ico">')
        assert extract_favicon(soup, BASE) == "https://example.com/fav.ico"

    def test_favicon_default(self):
        assert extract_favicon(_soup("<p>x</p>"), BASE) == "https://example.com/favicon.ico"

    def test_site_images(self, site_soup):
        images = [(i.src, i.alt) for i in extract_images(site_soup, SITE)]
        assert images == [
            ("https://acme-widgets.com/img/logo.svg", "Acme logo"),
            ("https://acme-widgets.com/img/widget.jpg", "A widget"),
            ("https://acme-widgets.com/static/favicon-32.png", "Favicon 32x32"),
            ("https://acme-widgets.com/static/apple.png", "Favicon"),
        ]

    def test_default_favicon_image_when_none_declared(self):
        images = extract_images(_soup('<img src="/a.png">'), BASE)
        assert [i.src for i in images] == [
            "https://example.com/a.png",
            "https://example.com/favicon.ico",
        ]

    def test_images_unique_by_src(self):
        images = extract_images(
            _soup('<img src="/a.png" alt="1"><img src="https://example.com/a.png" alt="2">'),
            BASE,
        )
        assert [i.alt for i in images if i.src.endswith("a.png")] == ["1"]


# ---------------------------------------------------------------------------
# Videos
# ---------------------------------------------------------------------------

class TestVideos:
    def test_site_videos(self, site_soup):
        videos = extract_videos(site_soup, SITE)
        assert [(v.src, v.type, v.platform) for v in videos] == [
            ("https://acme-widgets.com/media/intro.mp4", "video", None),
            ("https://player.vimeo.com/video/123456", "embed", "vimeo"),
            ("https://acme-widgets.com/downloads/demo.webm?dl=1", "direct", None),
            ("https://www.youtube.com/embed/dQw4w9WgXcQ", "embed", "youtube"),
        ]
        assert videos[0].thumbnail == "https://acme-widgets.com/media/intro.jpg"
        assert videos[3].thumbnail == "https://img.youtube.com/vi/dQw4w9WgXcQ/maxresdefault.jpg"

    def test_source_children_keep_type(self):
        soup = _soup(
            '<video data-poster="/p.jpg"><source data-src="/v.webm" type="video/webm"></video>',
        )
        videos = extract_videos(soup, BASE)
        assert videos[0].src == "https://example.com/v.webm"
        assert videos[0].type == "video/webm"
        assert videos[0].thumbnail == "https://example.com/p.jpg"

    def test_generic_iframe_needs_video_keyword(self):
        soup = _soup(
            '<iframe src="https://maps.example.com/map"></iframe>'
            '<iframe src="https://media.example.com/player/42"></iframe>',
        )
        assert [v.src for v in extract_videos(soup, BASE)] == [
            "https://media.example.com/player/42",
        ]

    def test_embed_and_object(self):
        soup = _soup('<embed src="/clip.mp4"><object data="/movie.ogg"></object>')
        assert [(v.src, v.type) for v in extract_videos(soup, BASE)] == [
            ("https://example.com/clip.mp4", "embed"),
            ("https://example.com/movie.ogg", "object"),
        ]

    def test_markup_sweep_finds_script_urls(self):
        soup = _soup(
            '<script>var clip = "https://cdn.example.net/promo.mp4";</script>'
            "<script>load('https://youtu.be/abcdefghijk');</script>",
        )
        videos = extract_videos(soup, BASE)
        assert [(v.src, v.type, v.platform) for v in videos] == [
            ("https://cdn.example.net/promo.mp4", "direct", None),
            ("https://youtu.be/abcdefghijk", "embed", "youtube"),
        ]

    def test_videos_unique_by_src(self):
        soup = _soup(
            '<video src="https://cdn.example.net/a.mp4"></video>'
            '<a href="https://cdn.example.net/a.mp4">download</a>',
        )
        videos = extract_videos(soup, BASE)
        assert len(videos) == 1
        assert videos[0].type == "video"

    def test_detect_platform(self):
        assert detect_platform("https://www.youtube.com/watch?v=dQw4w9WgXcQ") == (
            "youtube",
            "https://img.youtube.com/vi/dQw4w9WgXcQ/maxresdefault.jpg",
        )
        assert detect_platform("https://vimeo.com/1") == ("vimeo", None)
        assert detect_platform("https://dai.ly/x7") == ("dailymotion", None)
        assert detect_platform("https://example.com/v.mp4") == (None, None)


# ---------------------------------------------------------------------------
# Scripts and stylesheets
# ---------------------------------------------------------------------------

class TestResources:
    def test_scripts(self, site_soup):
        assert extract_scripts(site_soup, SITE) == [
            "https://acme-widgets.com/js/app.js",
            "https://cdn.example.net/lib.js",
        ]

    def test_stylesheets(self, site_soup):
        sheets = extract_stylesheets(site_soup, SITE)
        assert sheets[0] == "https://acme-widgets.com/css/site.css"
        assert sheets[1].startswith("https://fonts.googleapis.com/css2?")
        assert len(sheets) == 2

    def test_resources_not_deduplicated(self):
        soup = _soup('<script src="/a.js"></script><script src="/a.js"></script>')
        assert extract_scripts(soup, BASE) == ["https://example.com/a.js"] * 2
