"""
AJAX-crawling escaped fragments.

A `#!state` fragment is never sent to servers, so crawlers request
`?_escaped_fragment_=state` instead. Pages without a hashbang can opt in with
`<meta name="fragment" content="!">`, in which case the marker is appended with an
empty payload.
"""

from __future__ import annotations

import re
from urllib.parse import unquote

from ol_link_preview.errors import URLError
from ol_link_preview.urls import split_url

ESCAPED_FRAGMENT = "_escaped_fragment_="

_FRAGMENT_RE = re.compile(r"#!(.*)", re.DOTALL)
_BAD_PERCENT_RE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_PERCENT_ENCODED_BYTES = frozenset(b" #%&+")


def _is_dropped(b: int) -> bool:
    return b <= 31 or b == 127


def escape_fragment(fragment: str | bytes) -> str:
    """
    Escape a fragment payload byte by byte.

    Control bytes (0-31, 127) are dropped. Space, `#`, `%`, `&`, `+` and bytes >= 128
    are percent-encoded. Everything else passes through.
    """
    raw = fragment if isinstance(fragment, bytes) else fragment.encode("utf-8", errors="surrogateescape")
    out: list[str] = []
    for b in raw:
        if _is_dropped(b):
            continue
        if b in _PERCENT_ENCODED_BYTES or b >= 128:
            out.append(f"%{b:02X}")
        else:
            out.append(chr(b))
    return "".join(out)


def unescape_url(url: str) -> str:
    if _BAD_PERCENT_RE.search(url):
        raise URLError(f"Invalid percent-escape in URL: {url!r}")
    return unquote(url, errors="surrogateescape")


def has_escaped_fragment(url: str) -> bool:
    return ESCAPED_FRAGMENT in unquote(url)


def has_hashbang(url: str) -> bool:
    return "#!" in url


def to_fragment_url(url: str) -> str:
    """
    Return the escaped-fragment form of `url`.

    URLs that already carry the `_escaped_fragment_=` marker are returned unchanged.
    """
    unescaped = unescape_url(url)
    if ESCAPED_FRAGMENT in unescaped:
        return url

    sep = "&" if split_url(url).query else "?"
    m = _FRAGMENT_RE.search(unescaped)
    if m:
        rebuilt = unescaped[: m.start()] + sep + ESCAPED_FRAGMENT + escape_fragment(m.group(1))
    else:
        rebuilt = unescaped + sep + ESCAPED_FRAGMENT

    try:
        rebuilt.encode("utf-8")
    except UnicodeEncodeError as e:
        raise URLError(f"Escaped-fragment URL is not valid text: {url!r}") from e
    parts = split_url(rebuilt)
    if not parts.scheme or not parts.netloc:
        raise URLError(f"Escaped-fragment URL is not absolute: {rebuilt!r}")
    return rebuilt
