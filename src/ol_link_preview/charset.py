from __future__ import annotations

import codecs
import re

from charset_normalizer import from_bytes

from ol_link_preview.errors import CharsetError
from ol_link_preview.log import get_logger

logger = get_logger(__name__)

FALLBACK_ENCODING = "windows-1252"
PRESCAN_BYTES = 1024

_META_CHARSET_RE = re.compile(rb"""<meta[^>]*?charset\s*=\s*["']?\s*([A-Za-z0-9_.:-]+)""", re.IGNORECASE)

# Browsers decode these labels as windows-1252.
_WINDOWS_1252_LABELS = frozenset({"ascii", "us-ascii", "iso-8859-1", "iso8859-1", "latin1", "latin-1", "l1"})

_BOMS = (
    (codecs.BOM_UTF8, "utf-8-sig"),
    (codecs.BOM_UTF16_LE, "utf-16"),
    (codecs.BOM_UTF16_BE, "utf-16"),
)


def encoding_from_meta(body: bytes) -> str | None:
    m = _META_CHARSET_RE.search(body[:PRESCAN_BYTES])
    if not m:
        return None
    return m.group(1).decode("ascii", errors="ignore") or None


def _normalize_label(label: str | None) -> str | None:
    """Codec name for an encoding label, or None when Python has no such text codec."""
    label = (label or "").strip().strip("'\"").lower()
    if not label:
        return None
    if label in _WINDOWS_1252_LABELS:
        return FALLBACK_ENCODING
    try:
        name = codecs.lookup(label).name
        b"".decode(name)
    except LookupError:
        logger.debug("charset_label_ignored", label=label)
        return None
    return name


def _is_utf8(body: bytes) -> bool:
    # A capped body may end inside a multibyte sequence; final=False tolerates that.
    try:
        codecs.getincrementaldecoder("utf-8")().decode(body, final=False)
    except UnicodeDecodeError:
        return False
    return True


def detect_encoding(body: bytes, charset: str | None) -> str:
    """
    Pick the encoding of an HTML body.

    Order: byte-order mark, the charset declared by the response, `<meta charset>` in
    the first 1024 bytes, valid UTF-8, charset_normalizer detection, windows-1252.
    Declared labels with no matching codec are skipped.
    """
    for bom, encoding in _BOMS:
        if body.startswith(bom):
            return encoding

    for declared in (charset, encoding_from_meta(body)):
        encoding = _normalize_label(declared)
        if encoding:
            return encoding

    if _is_utf8(body):
        return "utf-8"

    best = from_bytes(body).best()
    if best is not None:
        encoding = _normalize_label(best.encoding)
        if encoding:
            return encoding
    return FALLBACK_ENCODING


def to_utf8(body: bytes, charset: str | None) -> bytes:
    """
    Re-encode `body` as UTF-8.

    `charset` is the encoding declared by the response headers
    (`httpx.Response.charset_encoding`), if any.
    """
    if not body:
        return b""
    encoding = detect_encoding(body, charset)
    logger.debug("charset_detected", encoding=encoding, declared=charset)
    try:
        return body.decode(encoding, errors="replace").encode("utf-8")
    except (LookupError, UnicodeError) as e:
        raise CharsetError(f"Cannot decode body as {encoding}") from e
