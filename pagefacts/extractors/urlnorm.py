"""URL validation, SSRF guarding and reference resolution.

``normalize_url`` is the only gate in front of the network: every fetch helper
calls it before opening a connection.  ``resolve_url`` turns the href/src
values found in a document into absolute URLs and never raises.
"""

from __future__ import annotations

import ipaddress
import logging
import re
import socket
from urllib.parse import SplitResult, urljoin, urlsplit

from pagefacts.errors import ForbiddenTarget, InvalidUrl, UnsupportedScheme

logger = logging.getLogger(__name__)

_ALLOWED_SCHEMES: frozenset[str] = frozenset({"http", "https"})

_DEFAULT_PORTS: dict[str, int] = {"http": 80, "https": 443}

# "scheme://" prefix, or a well-known scheme that is written without slashes
_SCHEME_RE = re.compile(r"^([a-zA-Z][a-zA-Z0-9+.\-]*)://")
_OPAQUE_SCHEMES: frozenset[str] = frozenset(
    {"javascript", "mailto", "data", "file", "tel", "sms", "about", "blob"},
)

# Hostnames that must never be fetched (loopback, link-local, private ranges)
_PRIVATE_HOST_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"(^|\.)localhost$"),
    re.compile(r"^127\."),
    re.compile(r"^10\."),
    re.compile(r"^172\.(1[6-9]|2[0-9]|3[01])\."),
    re.compile(r"^192\.168\."),
    re.compile(r"^0\.0\.0\.0$"),
    re.compile(r"^::1$"),
    re.compile(r"^f[cd][0-9a-f]{2}:"),  # fc00::/7
    re.compile(r"^fe[89ab][0-9a-f]:"),  # fe80::/10
)


def _split(url: str) -> SplitResult:
    parsed = urlsplit(url)
    # Accessing .port validates it; urlsplit itself is lazy about ports.
    _ = parsed.port
    return parsed


def _is_ip_literal(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
        return True
    except ValueError:
        pass
    # inet_aton also takes the integer, hex, octal and short dotted forms
    # (2130706433, 0x7f000001, 0177.0.0.1, 127.1) that resolvers accept.
    try:
        socket.inet_aton(host)
    except (OSError, ValueError):
        return False
    return True


def normalize_url(url: str) -> str:
    """Validate *url* and return it with an explicit scheme.

    Transformations applied:
    - Strip surrounding whitespace
    - Prepend ``https://`` when no scheme is present

    Raises:
        InvalidUrl:        the result does not parse as a URL with a host.
        UnsupportedScheme: the scheme is anything other than http/https.
        ForbiddenTarget:   the host is loopback, link-local, private, or a
                           bare IP literal.
    """
    raw = (url or "").strip()
    if not raw:
        raise InvalidUrl("Invalid URL format: empty URL", url=url or "")

    scheme_match = _SCHEME_RE.match(raw)
    if scheme_match:
        scheme = scheme_match.group(1).lower()
        if scheme not in _ALLOWED_SCHEMES:
            raise UnsupportedScheme(
                f"Only HTTP and HTTPS protocols are allowed, got {scheme!r}", url=raw,
            )
        normalized = raw
    else:
        head = raw.split(":", 1)[0].lower()
        if ":" in raw and head in _OPAQUE_SCHEMES:
            raise UnsupportedScheme(
                f"Only HTTP and HTTPS protocols are allowed, got {head!r}", url=raw,
            )
        normalized = "https://" + raw

    try:
        parsed = _split(normalized)
    except ValueError as exc:
        raise InvalidUrl(f"Invalid URL format: {raw!r}", url=raw) from exc

    host = (parsed.hostname or "").lower()
    if not host or any(ch.isspace() for ch in host):
        raise InvalidUrl(f"Invalid URL format: {raw!r}", url=raw)
    # "localhost." is the fully-qualified spelling of "localhost"
    host = host[:-1] if host.endswith(".") else host
    if not host:
        raise InvalidUrl(f"Invalid URL format: {raw!r}", url=raw)

    if _is_ip_literal(host) or any(p.search(host) for p in _PRIVATE_HOST_PATTERNS):
        raise ForbiddenTarget(
            f"Access to private/internal IP addresses is not allowed: {host}", url=raw,
        )

    if parsed.scheme.lower() not in _ALLOWED_SCHEMES:
        raise UnsupportedScheme(
            f"Only HTTP and HTTPS protocols are allowed, got {parsed.scheme!r}", url=raw,
        )

    return normalized


def origin_of(url: str) -> str:
    """Return ``scheme://host[:port]`` for *url*, or ``""`` if it has no host.

    Default ports are dropped so ``https://a.com:443`` and ``https://a.com``
    share an origin.
    """
    try:
        parsed = _split(url)
    except ValueError:
        return ""
    host = (parsed.hostname or "").lower()
    if not host:
        return ""
    scheme = parsed.scheme.lower()
    if ":" in host:
        host = f"[{host}]"
    port = parsed.port
    if port is not None and _DEFAULT_PORTS.get(scheme) != port:
        return f"{scheme}://{host}:{port}"
    return f"{scheme}://{host}"


def resolve_url(reference: str | None, base_url: str) -> str | None:
    """Resolve a possibly-relative *reference* against *base_url*.

    - absolute http(s) references pass through unchanged
    - ``//host/x`` inherits the base scheme
    - ``/x`` inherits the base origin
    - anything else is joined onto the base URL's full path

    Returns None when the reference is empty, unparseable, or resolves to a
    non-http(s) URL.  Never raises.
    """
    ref = (reference or "").strip()
    if not ref:
        return None

    try:
        lower = ref.lower()
        if lower.startswith(("http://", "https://")):
            resolved = ref
        elif ref.startswith("//"):
            resolved = f"{_split(base_url).scheme or 'https'}:{ref}"
        elif ref.startswith("/"):
            origin = origin_of(base_url)
            if not origin:
                return None
            resolved = origin + ref
        else:
            resolved = urljoin(base_url, ref)

        parsed = _split(resolved)
    except ValueError as exc:
        logger.debug("Skipping unresolvable reference %r: %s", ref, exc)
        return None

    if parsed.scheme.lower() not in _ALLOWED_SCHEMES or not parsed.netloc:
        return None
    return resolved


def is_external(url: str, base_origin: str) -> bool:
    """Return True if *url*'s origin differs from *base_origin*."""
    return origin_of(url) != base_origin
