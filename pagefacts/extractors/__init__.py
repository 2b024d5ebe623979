"""Extraction sub-package: independent, side-effect free fact extractors."""

from .contacts import (
    LibPhoneNumberDetector,
    PhoneDetector,
    PhoneMatch,
    extract_emails,
    extract_phone_numbers,
    is_dummy_number,
)
from .content import format_content, select_content, to_markdown
from .structure import (
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
from .style import color_to_hex, extract_colors, extract_fonts
from .urlnorm import normalize_url, origin_of, resolve_url

__all__ = [
    "LibPhoneNumberDetector",
    "PhoneDetector",
    "PhoneMatch",
    "color_to_hex",
    "extract_colors",
    "extract_description",
    "extract_emails",
    "extract_favicon",
    "extract_fonts",
    "extract_headings",
    "extract_images",
    "extract_links",
    "extract_meta_tags",
    "extract_og_image",
    "extract_phone_numbers",
    "extract_scripts",
    "extract_stylesheets",
    "extract_text_content",
    "extract_title",
    "extract_videos",
    "format_content",
    "is_dummy_number",
    "normalize_url",
    "origin_of",
    "resolve_url",
    "select_content",
    "to_markdown",
]
