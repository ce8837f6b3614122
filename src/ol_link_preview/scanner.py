from __future__ import annotations

import re
from collections.abc import Callable, Iterator

from ol_link_preview.errors import URLError
from ol_link_preview.fragment import has_escaped_fragment
from ol_link_preview.log import get_logger
from ol_link_preview.models import (
    PreviewRecord,
    RedirectKind,
    RedirectSignal,
    ResolutionState,
    ScanResult,
)
from ol_link_preview.tokenizer import Token, TokenKind, tokenize
from ol_link_preview.urls import clean, host_of, origin_of, resolve_against_origin

logger = get_logger(__name__)

_ICON_RELS = frozenset({"icon", "shortcut icon"})
_WS_RE = re.compile(r"\s+")


def default_icon(target: str) -> str:
    return origin_of(target) + "/favicon.ico"


def _attr(token: Token, key: str) -> str:
    for k, v in token.attrs:
        if clean(k) == key:
            return v
    return ""


class _Scan:
    """Accumulator for one pass over one fetched document."""

    def __init__(self, state: ResolutionState) -> None:
        self.state = state
        self.fetched_url = state.url
        self.same_host = host_of(state.url) == host_of(state.target)
        self.fragment_allowed = state.escaped_fragment_url is None and not has_escaped_fragment(state.url)
        self.preview = PreviewRecord(
            link=state.url,
            name=host_of(state.url),
            icon=default_icon(state.target),
        )
        self.head_passed = False
        self.og_image = False
        self.canonical: str | None = None
        self.fragment = False

    def on_link(self, token: Token) -> None:
        rel = clean(_attr(token, "rel"))
        href = _attr(token, "href").strip()
        if not href:
            return
        if rel == "canonical":
            resolved = resolve_against_origin(href, self.state.url)
            if resolved != self.fetched_url:
                self.canonical = resolved
        elif rel in _ICON_RELS and self.same_host:
            try:
                self.preview.icon = resolve_against_origin(href, self.state.url)
            except URLError:
                logger.debug("icon_href_ignored", href=href)

    def on_meta(self, token: Token) -> None:
        if len(token.attrs) != 2:
            return
        content = _attr(token, "content")
        if self.fragment_allowed and clean(_attr(token, "name")) == "fragment" and content.strip() == "!":
            self.fragment = True
            return

        key = clean(_attr(token, "property") or _attr(token, "name"))
        p = self.preview
        if key == "og:site_name":
            p.name = content
        elif key == "og:title":
            p.title = content
        elif key == "og:description":
            p.description = content
        elif key == "description":
            if not p.description:
                p.description = content
        elif key == "og:url":
            p.link = content
        elif key == "og:image" and content.strip():
            self.og_image = True
            p.images = [resolve_against_origin(content, self.state.url)]

    def on_img(self, token: Token) -> None:
        if self.og_image:
            return
        src = _attr(token, "src").strip()
        if src:
            self.preview.images.append(resolve_against_origin(src, self.state.url))

    def redirect(self) -> RedirectSignal | None:
        if not self.head_passed or self.state.max_redirect <= 0:
            return None
        if self.canonical:
            return RedirectSignal(RedirectKind.CANONICAL, self.canonical)
        if self.fragment:
            return RedirectSignal(RedirectKind.FRAGMENT)
        return None

    def complete(self) -> bool:
        p = self.preview
        return bool(p.title and p.description and self.og_image and self.head_passed)


class PreviewScanner:
    """
    Builds a `PreviewRecord` from one forward pass over a document's tokens.

    The pass stops early when a canonical link or an escaped-fragment opt-in must be
    followed (only once `<head>` is over and budget remains), or when every field a
    preview needs has been found.
    """

    def __init__(
        self,
        *,
        stop_when_complete: bool = True,
        tokenizer: Callable[[str], Iterator[Token]] = tokenize,
    ) -> None:
        self._stop_when_complete = stop_when_complete
        self._tokenizer = tokenizer

    def scan(self, state: ResolutionState, body: bytes) -> ScanResult:
        scan = _Scan(state)
        title_pending = False

        for token in self._tokenizer(body.decode("utf-8", errors="replace")):
            if title_pending:
                title_pending = False
                if token.kind is TokenKind.TEXT:
                    if not scan.preview.title:
                        # Collapsed on purpose: raw title text carries source indentation.
                        scan.preview.title = _WS_RE.sub(" ", token.data).strip()
                    continue
            if not token.is_tag:
                continue

            tag = token.tag
            if tag == "head":
                if token.kind is TokenKind.END:
                    scan.head_passed = True
            elif tag == "body":
                scan.head_passed = True
            elif tag == "link":
                scan.on_link(token)
            elif tag == "meta":
                scan.on_meta(token)
            elif tag == "title":
                title_pending = token.kind is TokenKind.START
            elif tag == "img":
                scan.on_img(token)

            signal = scan.redirect()
            if signal is not None:
                logger.debug("redirect_signal", kind=signal.kind.value, url=signal.url, page=state.url)
                return ScanResult(preview=scan.preview, redirect=signal)

            if self._stop_when_complete and scan.complete():
                logger.debug("scan_complete_early", url=state.url)
                break

        return ScanResult(preview=scan.preview)
