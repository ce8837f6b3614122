from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


@dataclass
class ResolutionState:
    """
    Mutable state of one `scrape()` call, carried across redirect iterations.

    `target` is the URL the caller asked for. It stays fixed while `url` follows
    canonical links and transport redirects.
    """

    url: str
    target: str
    max_redirect: int
    language: str = ""
    authorization: str = ""
    escaped_fragment_url: str | None = None

    @property
    def request_url(self) -> str:
        return self.escaped_fragment_url or self.url


@dataclass
class PreviewRecord:
    title: str = ""
    description: str = ""
    images: list[str] = field(default_factory=list)
    link: str = ""
    name: str = ""
    icon: str = ""


@dataclass
class Document:
    body: bytes
    preview: PreviewRecord


class RedirectKind(str, Enum):
    CANONICAL = "canonical"
    FRAGMENT = "fragment"


@dataclass(frozen=True)
class RedirectSignal:
    kind: RedirectKind
    url: str | None = None


@dataclass(frozen=True)
class FetchResult:
    body: bytes
    url: str
    content_type: str | None = None
    status_code: int | None = None


@dataclass(frozen=True)
class ScanResult:
    preview: PreviewRecord
    redirect: RedirectSignal | None = None
