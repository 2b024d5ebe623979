"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from pagefacts.extractors.dom import parse_html

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def _read_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


@pytest.fixture
def site_html() -> str:
    return _read_fixture("site.html")


@pytest.fixture
def site_soup(site_html):
    return parse_html(site_html)
