"""Pydantic schemas for extracted documents and content-extraction options."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Literal

from pydantic import BaseModel, Field, field_serializer, field_validator

HeadingLevel = Literal["h1", "h2", "h3", "h4", "h5", "h6"]
OutputFormat = Literal["text", "html", "markdown", "json"]

# ---------------------------------------------------------------------------
# Document parts
# ---------------------------------------------------------------------------

class Heading(BaseModel):
    model_config = {"frozen": True}

    level: HeadingLevel
    text: str = ""


class Link(BaseModel):
    model_config = {"frozen": True}

    text: str = ""
    href: str
    external: bool = False


class Image(BaseModel):
    model_config = {"frozen": True}

    src: str
    alt: str = ""


class Video(BaseModel):
    model_config = {"frozen": True}

    src: str
    type: str = "video"  # video|<mime type>|embed|object|direct
    platform: str | None = None  # youtube|vimeo|dailymotion
    thumbnail: str | None = None


class Font(BaseModel):
    model_config = {"frozen": True}

    name: str
    source: str  # provenance label, e.g. "Google Fonts"
    url: str | None = None
    type: str | None = None  # google|file


class Color(BaseModel):
    model_config = {"frozen": True}

    hex: str = Field(pattern=r"^#[0-9a-f]{6}$")
    rgb: str = ""
    value: str = ""  # first raw value the color was seen as
    usage: str = ""  # comma-joined provenance labels
    frequency: int = Field(default=1, ge=1)


# ---------------------------------------------------------------------------
# Assembled record
# ---------------------------------------------------------------------------

class ExtractedDocument(BaseModel):
    """Canonical, deduplicated record of the facts found in one document."""

    model_config = {"frozen": True}

    # Identity
    source_url: str

    # Page-level metadata
    title: str = ""
    description: str = ""
    og_image: str | None = None
    favicon: str | None = None

    # Structure
    headings: tuple[Heading, ...] = ()
    links: tuple[Link, ...] = ()
    images: tuple[Image, ...] = ()
    videos: tuple[Video, ...] = ()

    # Style
    fonts: tuple[Font, ...] = ()
    colors: tuple[Color, ...] = Field(default=(), max_length=50)

    # Contact identifiers
    emails: tuple[str, ...] = ()
    phone_numbers: tuple[str, ...] = ()

    # Resources
    meta_tags: Mapping[str, str] = Field(default_factory=dict, validate_default=True)
    scripts: tuple[str, ...] = ()
    stylesheets: tuple[str, ...] = ()

    # Content
    text_content: str = ""
    robots_txt: str | None = None

    @field_validator("title", "description", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()
        return v or ""

    # read-only view; frozen alone still hands out the mutable dict
    @field_validator("meta_tags", mode="after")
    @classmethod
    def freeze_meta_tags(cls, v: Mapping[str, str]) -> Mapping[str, str]:
        return MappingProxyType(dict(v))

    @field_serializer("meta_tags")
    def dump_meta_tags(self, v: Mapping[str, str]) -> dict[str, str]:
        return dict(v)


# ---------------------------------------------------------------------------
# Content extraction input
# ---------------------------------------------------------------------------

class ContentExtractionOptions(BaseModel):
    output_format: OutputFormat = "markdown"
    text_only: bool = False
    ignore_links: bool = False
    include_elements: list[str] = Field(default_factory=list)
    exclude_elements: list[str] = Field(default_factory=list)

    @field_validator("include_elements", "exclude_elements", mode="before")
    @classmethod
    def drop_blank_selectors(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, str):
            v = [v]
        if isinstance(v, (list, tuple)):
            return [s.strip() for s in v if isinstance(s, str) and s.strip()]
        return v
