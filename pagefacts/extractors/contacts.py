"""Contact identifier extraction: email addresses and phone numbers.

Phone-number recognition is delegated to a :class:`PhoneDetector`.  This
module only cleans candidate strings, decides which sources to scan, and
throws away placeholder numbers (555-01xx, 123-456-7890, 000-000-0000 ...).
The default detector wraps the ``phonenumbers`` library; tests and callers
can pass any object that satisfies the protocol.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable
from urllib.parse import unquote

import phonenumbers
from bs4 import BeautifulSoup, Tag

from pagefacts import settings
from pagefacts.extractors.dom import attr, iter_tags, safe_str

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Emails
# ---------------------------------------------------------------------------

EMAIL_RE = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")

# Substrings that mark placeholder / unmonitored addresses
_EMAIL_BLOCKLIST: tuple[str, ...] = ("example.com", "test@", "noreply", "no-reply")


def is_acceptable_email(email: str) -> bool:
    if len(email) <= 3:
        return False
    if any(marker in email for marker in _EMAIL_BLOCKLIST):
        return False
    if email.startswith("@") or email.endswith("@"):
        return False
    return email.count("@") == 1


def _email_candidates(soup: BeautifulSoup) -> Iterator[str]:
    for a in iter_tags(soup, "a", href=True):
        href = safe_str(a.get("href")).strip()
        if href.lower().startswith("mailto:"):
            address = href[len("mailto:"):].split("?")[0].split("&")[0]
            yield unquote(address).strip()

    yield soup.get_text(" ")
    yield str(soup)

    for tag in iter_tags(soup, content=True):
        content = safe_str(tag.get("content"))
        if "@" in content:
            yield content

    for tag in iter_tags(soup, attrs={"data-email": True}):
        yield safe_str(tag.get("data-email"))
    for tag in iter_tags(soup, attrs={"data-mail": True}):
        yield safe_str(tag.get("data-mail"))


def extract_emails(soup: BeautifulSoup) -> list[str]:
    """Return sorted, lower-cased, de-duplicated email addresses."""
    emails: set[str] = set()
    for candidate in _email_candidates(soup):
        for match in EMAIL_RE.findall(candidate):
            email = match.lower().strip()
            if is_acceptable_email(email):
                emails.add(email)
    result = sorted(emails)
    logger.debug("Found %d email(s)", len(result))
    return result


# ---------------------------------------------------------------------------
# Dummy / placeholder phone numbers
# ---------------------------------------------------------------------------

_NON_DIGIT_RE = re.compile(r"\D")

_DUMMY_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^555\d{4}$"),  # US 555-0100 .. 555-9999 test range
    re.compile(r"^555\d{7}$"),  # 555-XXX-XXXX
    re.compile(r"^1234567890?$"),
    re.compile(r"^0123456789?$"),
    re.compile(r"^9876543210?$"),
    re.compile(r"^(\d)\1{9,}$"),  # one digit repeated, 10+ long
)
_REPEATED_RUN_RE = re.compile(r"(\d)\1{6,}")

_TEST_NUMBERS: frozenset[str] = frozenset(
    {
        "5550100", "5550199", "5551234", "5555555",
        "1234567", "12345678", "123456789", "1234567890",
        "0000000", "00000000", "000000000", "0000000000",
        "1111111", "11111111", "111111111", "1111111111",
        "9999999", "99999999", "999999999", "9999999999",
    },
)


def _is_sequential(digits: str) -> bool:
    head = digits[:10]
    steps = [int(b) - int(a) for a, b in zip(head, head[1:])]
    return bool(steps) and (all(s == 1 for s in steps) or all(s == -1 for s in steps))


def is_dummy_number(phone: str) -> bool:
    """Return True if *phone* looks like a placeholder or test number."""
    digits = _NON_DIGIT_RE.sub("", phone or "")
    if not digits:
        return True
    if any(p.match(digits) for p in _DUMMY_PATTERNS):
        return True
    if len(digits) >= 10 and _REPEATED_RUN_RE.search(digits):
        return True
    if len(digits) >= 7 and _is_sequential(digits):
        return True
    return digits in _TEST_NUMBERS


# ---------------------------------------------------------------------------
# Phone detector protocol and default implementation
# ---------------------------------------------------------------------------

@runtime_checkable
class PhoneMatch(Protocol):
    """One number found in free text by a :class:`PhoneDetector`."""

    matched_text: str
    is_valid: bool
    is_possible: bool

    def format_international(self) -> str:
        ...

    def format_e164(self) -> str:
        ...


@runtime_checkable
class PhoneDetector(Protocol):
    """Finds candidate phone numbers in free text."""

    def find(self, text: str, region: str | None = None) -> Iterable[PhoneMatch]:
        """Yield every candidate number in *text*.

        *region* is an optional ISO 3166 country hint used to read numbers
        written without an international prefix.
        """
        ...


@dataclass(frozen=True)
class LibPhoneMatch:
    matched_text: str
    number: phonenumbers.PhoneNumber

    @property
    def is_valid(self) -> bool:
        return phonenumbers.is_valid_number(self.number)

    @property
    def is_possible(self) -> bool:
        return phonenumbers.is_possible_number(self.number)

    def format_international(self) -> str:
        return phonenumbers.format_number(
            self.number, phonenumbers.PhoneNumberFormat.INTERNATIONAL,
        )

    def format_e164(self) -> str:
        return phonenumbers.format_number(self.number, phonenumbers.PhoneNumberFormat.E164)


class LibPhoneNumberDetector:
    """:class:`PhoneDetector` backed by Google's libphonenumber port."""

    name = "phonenumbers"

    def find(self, text: str, region: str | None = None) -> Iterator[LibPhoneMatch]:
        matcher = phonenumbers.PhoneNumberMatcher(
            text, region, leniency=phonenumbers.Leniency.POSSIBLE,
        )
        for match in matcher:
            yield LibPhoneMatch(matched_text=match.raw_string, number=match.number)


# ---------------------------------------------------------------------------
# Phone extraction
# ---------------------------------------------------------------------------

_PHONE_PREFIX_RE = re.compile(r"^(?:tel:|call\s*:?|phone\s*:?)", re.IGNORECASE)
_PHONE_JUNK_RE = re.compile(r"[^\d+\-().\s]")
_HAS_DIGIT_RE = re.compile(r"\+?\d")
_MIN_CANDIDATE_LENGTH = 7
_MIN_TEXT_DIGITS = 7

_SKIPPED_TEXT_TAGS: frozenset[str] = frozenset({"script", "style", "noscript"})

_PHONE_DATA_ATTRS: tuple[str, ...] = (
    "data-phone",
    "data-tel",
    "data-telephone",
    "data-mobile",
    "data-contact",
    "data-phone-number",
)
_JSONLD_PHONE_KEYS: tuple[str, ...] = ("telephone", "phone", "phoneNumber")

_PHONE_SELECTORS = (
    "address, .phone, .telephone, .contact-phone, "
    "[class*='phone'], [class*='tel'], [id*='phone'], [id*='tel']"
)


def clean_phone_candidate(raw: str) -> str:
    """Strip ``tel:``/``call:``/``phone:`` prefixes and non-phone characters."""
    cleaned = _PHONE_PREFIX_RE.sub("", (raw or "").strip())
    return _PHONE_JUNK_RE.sub("", cleaned).strip()


class PhoneCollector:
    """Accumulates formatted numbers from many sources of one document."""

    def __init__(self, detector: PhoneDetector, region: str | None = None) -> None:
        self._detector = detector
        self._region = region
        self._seen_texts: set[str] = set()
        self.numbers: set[str] = set()

    def scan_text(self, text: str, *, require_valid: bool = False) -> bool:
        """Run the detector over free *text*; return True if it matched anything."""
        if sum(ch.isdigit() for ch in text) < _MIN_TEXT_DIGITS:
            return False
        key = f"{int(require_valid)}:{text}"
        if key in self._seen_texts:
            return False
        self._seen_texts.add(key)

        try:
            matches = list(self._detector.find(text, self._region))
        except Exception as exc:
            logger.debug("Phone detector failed on %r: %s", text[:80], exc)
            return False

        for match in matches:
            self._accept(match, require_valid=require_valid)
        return bool(matches)

    def add_candidate(self, raw: str) -> None:
        """Clean a single phone-like string and hand it to the detector."""
        cleaned = clean_phone_candidate(raw)
        if len(cleaned) < _MIN_CANDIDATE_LENGTH or is_dummy_number(cleaned):
            return
        self.scan_text(cleaned)

    def _accept(self, match: PhoneMatch, *, require_valid: bool) -> None:
        if require_valid and not match.is_valid:
            return
        if not (match.is_valid or match.is_possible):
            return
        if is_dummy_number(match.matched_text):
            return
        try:
            formatted = match.format_international()
        except Exception:
            try:
                formatted = match.format_e164()
            except Exception as exc:
                logger.debug("Could not format phone %r: %s", match.matched_text, exc)
                return
        if formatted and not is_dummy_number(formatted):
            self.numbers.add(formatted)


def _walk_jsonld(node: Any, collector: PhoneCollector) -> None:
    if isinstance(node, str):
        if _HAS_DIGIT_RE.search(node) and not collector.scan_text(node, require_valid=True):
            collector.add_candidate(node)
    elif isinstance(node, dict):
        for key in _JSONLD_PHONE_KEYS:
            value = node.get(key)
            if isinstance(value, str) and value:
                collector.add_candidate(value)
        contact = node.get("contactPoint")
        if isinstance(contact, dict) and isinstance(contact.get("telephone"), str):
            collector.add_candidate(contact["telephone"])
        for value in node.values():
            _walk_jsonld(value, collector)
    elif isinstance(node, list):
        for value in node:
            _walk_jsonld(value, collector)


def _element_texts(soup: BeautifulSoup) -> Iterator[str]:
    body = soup.find("body")
    root = body if isinstance(body, Tag) else soup
    for el in iter_tags(root, True):
        if el.name in _SKIPPED_TEXT_TAGS:
            continue
        if any(parent.name in _SKIPPED_TEXT_TAGS for parent in el.parents):
            continue
        text = el.get_text()
        if len(text) > 5:
            yield text


def extract_phone_numbers(
    soup: BeautifulSoup,
    detector: PhoneDetector | None = None,
    region: str | None = None,
) -> list[str]:
    """Return sorted, internationally formatted, dummy-filtered phone numbers.

    Sources are scanned from most to least structured: ``tel:`` links, page
    text, per-element text, ``content`` attributes, ``data-phone``-style
    attributes, JSON-LD, microdata, phone-ish hrefs, phone-ish class/id
    selectors and phone-ish ``<meta>`` tags.
    """
    collector = PhoneCollector(
        detector or LibPhoneNumberDetector(),
        region if region is not None else settings.PHONE_DEFAULT_REGION,
    )

    # 1. tel: links
    for a in iter_tags(soup, "a", href=True):
        href = safe_str(a.get("href")).strip()
        if href.lower().startswith("tel:"):
            collector.add_candidate(href[len("tel:"):].split("?")[0])

    # 2. whole-page text
    collector.scan_text(soup.get_text(" "))

    # 3. per-element text, script/style excluded
    for text in _element_texts(soup):
        collector.scan_text(text, require_valid=True)

    # 4. content attributes that look phone-ish
    for tag in iter_tags(soup, content=True):
        content = safe_str(tag.get("content"))
        lower = content.lower()
        if not ("+" in content or "tel" in lower or "phone" in lower):
            continue
        if _HAS_DIGIT_RE.search(content) and not collector.scan_text(content, require_valid=True):
            collector.add_candidate(content)

    # 5. data-phone family
    for tag in iter_tags(soup, True):
        value = attr(tag, *_PHONE_DATA_ATTRS)
        if value:
            collector.add_candidate(value)

    # 6. JSON-LD structured data
    for script in iter_tags(soup, "script", type="application/ld+json"):
        try:
            data = json.loads(script.string or "")
        except (json.JSONDecodeError, TypeError):
            logger.debug("Skipping unparseable JSON-LD block")
            continue
        _walk_jsonld(data, collector)

    # 7. microdata
    for tag in iter_tags(soup, attrs={"itemprop": ["telephone", "phone"]}):
        value = tag.get_text().strip() or safe_str(tag.get("content")).strip()
        if value:
            collector.add_candidate(value)

    # 8. phone-flavoured hrefs
    for a in iter_tags(soup, "a", href=True):
        href = safe_str(a.get("href"))
        lower = href.lower()
        if "tel:" in lower:
            number = href[lower.rindex("tel:") + len("tel:"):]
            collector.add_candidate(number.split("?")[0].split("#")[0])

    # 9. phone-flavoured class/id selectors
    for tag in soup.select(_PHONE_SELECTORS):
        collector.scan_text(tag.get_text(), require_valid=True)

    # 10. phone-flavoured meta tags
    for tag in iter_tags(soup, "meta", content=True):
        key = attr(tag, "name", "property").lower()
        if "phone" in key or "tel" in key:
            collector.add_candidate(safe_str(tag.get("content")))

    numbers = sorted(n for n in collector.numbers if not is_dummy_number(n))
    logger.debug("Found %d phone number(s)", len(numbers))
    return numbers
