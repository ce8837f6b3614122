from __future__ import annotations


class ScrapeError(RuntimeError):
    pass


class URLError(ScrapeError):
    """Malformed or unparseable URL at any resolution step."""


class TransportError(ScrapeError):
    """Request construction or network failure."""


class CharsetError(ScrapeError):
    """Response body could not be decoded to UTF-8."""
