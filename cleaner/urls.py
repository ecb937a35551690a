"""URL sanitization for ``<a href>`` and ``<img src>``.

Raw attribute values are resolved against a neutral placeholder origin so
that absolute and relative URLs parse the same way; the placeholder is
stripped again from the result, leaving relative URLs relative.
"""

from __future__ import annotations

import re
from urllib.parse import SplitResult, urljoin, urlsplit, urlunsplit

PLACEHOLDER_BASE = "https://example.invalid"
_PLACEHOLDER_HOST = "example.invalid"

_SAFE_SCHEMES = ("http", "https")
_SPECIAL_SCHEMES = ("http", "https", "ftp", "ws", "wss", "file")

# Bare relatives that fail URL parsing but are visually safe.
_BARE_RELATIVE_RE = re.compile(r"^/?[\w#/?=&.+%-]+$", re.ASCII)

_STRIPPED_CHARS_RE = re.compile(r"[\t\n\r]")
_FORBIDDEN_HOST_RE = re.compile(r"[\s<>^|%\\]")


def _resolve(value: str) -> SplitResult:
    """Resolve *value* against the placeholder base.

    Raises:
        ValueError: For URLs a WHATWG parser would reject (bad port, broken
            IPv6 literal, missing or malformed host on a special scheme).
    """
    parts = urlsplit(urljoin(PLACEHOLDER_BASE + "/", value))
    scheme = parts.scheme.lower()
    if scheme in _SPECIAL_SCHEMES and scheme != "file":
        host = parts.hostname
        if not host or _FORBIDDEN_HOST_RE.search(host):
            raise ValueError(f"invalid host in {value!r}")
        parts.port  # noqa: B018 -- raises ValueError on a bad port
    path = parts.path
    if scheme in _SPECIAL_SCHEMES and not path:
        path = "/"
    return SplitResult(
        scheme,
        parts.netloc.lower() if scheme in _SPECIAL_SCHEMES else parts.netloc,
        path.replace(" ", "%20"),
        parts.query.replace(" ", "%20"),
        parts.fragment.replace(" ", "%20"),
    )


def sanitize_url(raw: str | None, strict: bool) -> str | None:
    """Return a safe form of *raw*, or ``None`` when it must be dropped.

    Strict mode keeps only http/https URLs and relative URLs (those that
    resolved onto the placeholder origin); ``javascript:``, ``data:``,
    ``mailto:`` and ``tel:`` are rejected.  Non-strict mode keeps anything
    that parses.  Values that fail to parse fall back to a literal
    safe-character check.
    """
    value = _STRIPPED_CHARS_RE.sub("", (raw or "").strip())
    try:
        parts = _resolve(value)
    except ValueError:
        if _BARE_RELATIVE_RE.match(value):
            return value
        return None

    relative = parts.scheme == "https" and parts.netloc == _PLACEHOLDER_HOST
    href = urlunsplit(parts)
    if relative:
        href = href[len(PLACEHOLDER_BASE):] or "/"

    if not strict:
        return href
    if parts.scheme in _SAFE_SCHEMES:
        return href
    return None
