"""Runtime settings for pagefacts.

Values are read once at import time.  Each one can be overridden through the
environment variable named next to it.
"""

from __future__ import annotations

import os


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw not in ("0", "false", "no", "off")


# ---------------------------------------------------------------------------
# User-agent
# ---------------------------------------------------------------------------
USER_AGENT = os.getenv(
    "PAGEFACTS_USER_AGENT",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36",
)

# ---------------------------------------------------------------------------
# Timeouts (seconds)
# ---------------------------------------------------------------------------
DEFAULT_TIMEOUT = _env_int("PAGEFACTS_TIMEOUT", 30)
CONTENT_TIMEOUT = _env_int("PAGEFACTS_CONTENT_TIMEOUT", 15)
ROBOTS_TIMEOUT = _env_int("PAGEFACTS_ROBOTS_TIMEOUT", 5)
RENDER_TIMEOUT = _env_int("PAGEFACTS_RENDER_TIMEOUT", 60)

# ---------------------------------------------------------------------------
# Retry policy (fetch layer only; extraction never retries)
# ---------------------------------------------------------------------------
MAX_RETRIES = _env_int("PAGEFACTS_MAX_RETRIES", 3)
RETRY_HTTP_CODES: frozenset[int] = frozenset({429, 500, 502, 503, 504})

# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------
COLOR_LIMIT = 50

# ISO 3166 region used to read national-format numbers (e.g. "US").  Unset
# means only internationally-prefixed numbers are recognised in free text.
PHONE_DEFAULT_REGION = os.getenv("PAGEFACTS_PHONE_REGION", "").strip().upper() or None

FETCH_ROBOTS = _env_flag("PAGEFACTS_FETCH_ROBOTS", True)
