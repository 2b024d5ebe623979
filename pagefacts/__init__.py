"""pagefacts - extract structured facts and formatted content from web pages.

Quick single-URL usage::

    from pagefacts import fetch

    doc = fetch("https://example.com/")
    print(doc.title)
    print([h.text for h in doc.headings])
    print(doc.emails, doc.phone_numbers)

Already-rendered markup::

    from pagefacts import extract, extract_content, ContentExtractionOptions

    doc = extract(html, url="https://example.com/")
    text = extract_content(
        html,
        url="https://example.com/",
        options=ContentExtractionOptions(output_format="text"),
    )

Custom phone detection::

    class MyDetector:
        def find(self, text, region=None):
            ...  # yield objects with matched_text, is_valid, is_possible,
                 # format_international() and format_e164()

    doc = extract(html, url="https://example.com/", phone_detector=MyDetector())
"""

from pagefacts.errors import (
    EmptyResponse,
    ExtractionError,
    FetchError,
    ForbiddenTarget,
    InvalidSelector,
    InvalidUrl,
    UnsupportedScheme,
)
from pagefacts.extractors.contacts import LibPhoneNumberDetector, PhoneDetector, PhoneMatch
from pagefacts.extractors.urlnorm import normalize_url, resolve_url
from pagefacts.items import (
    Color,
    ContentExtractionOptions,
    ExtractedDocument,
    Font,
    Heading,
    Image,
    Link,
    Video,
)
from pagefacts.parser import PageFacts
from pagefacts.query import (
    extract,
    extract_content,
    fetch,
    fetch_content,
    fetch_html,
    fetch_rendered_html,
    fetch_robots_txt,
)

__version__ = "0.1.0"
__all__ = [
    "Color",
    "ContentExtractionOptions",
    "EmptyResponse",
    "ExtractedDocument",
    "ExtractionError",
    "FetchError",
    "Font",
    "ForbiddenTarget",
    "Heading",
    "Image",
    "InvalidSelector",
    "InvalidUrl",
    "LibPhoneNumberDetector",
    "Link",
    "PageFacts",
    "PhoneDetector",
    "PhoneMatch",
    "UnsupportedScheme",
    "Video",
    "extract",
    "extract_content",
    "fetch",
    "fetch_content",
    "fetch_html",
    "fetch_rendered_html",
    "fetch_robots_txt",
    "normalize_url",
    "resolve_url",
]
