from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from html.parser import HTMLParser

FEED_CHUNK_CHARS = 8192


class TokenKind(str, Enum):
    START = "start"
    END = "end"
    SELF_CLOSING = "self_closing"
    TEXT = "text"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    tag: str = ""
    attrs: list[tuple[str, str]] = field(default_factory=list)
    data: str = ""

    @property
    def is_tag(self) -> bool:
        return self.kind is not TokenKind.TEXT


def _attrs(attrs: list[tuple[str, str | None]]) -> list[tuple[str, str]]:
    return [(k, v or "") for k, v in attrs]


class _TokenCollector(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.pending: list[Token] = []
        self._text: list[str] = []

    def flush_text(self) -> None:
        # HTMLParser may split one run of text across feed() calls.
        if self._text:
            self.pending.append(Token(TokenKind.TEXT, data="".join(self._text)))
            self._text = []

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self.flush_text()
        self.pending.append(Token(TokenKind.START, tag=tag.lower(), attrs=_attrs(attrs)))

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self.flush_text()
        self.pending.append(Token(TokenKind.SELF_CLOSING, tag=tag.lower(), attrs=_attrs(attrs)))

    def handle_endtag(self, tag: str) -> None:
        self.flush_text()
        self.pending.append(Token(TokenKind.END, tag=tag.lower()))

    def handle_data(self, data: str) -> None:
        self._text.append(data)

    def drain(self) -> list[Token]:
        out, self.pending = self.pending, []
        return out


def tokenize(text: str, *, chunk_chars: int = FEED_CHUNK_CHARS) -> Iterator[Token]:
    """
    Lazily tokenize HTML.

    The text is fed to the parser in chunks so a consumer that stops early never pays
    for the rest of the document. A parser error ends the stream.
    """
    parser = _TokenCollector()
    for i in range(0, len(text), chunk_chars):
        try:
            parser.feed(text[i : i + chunk_chars])
        except Exception:  # noqa: BLE001
            parser.flush_text()
            yield from parser.drain()
            return
        yield from parser.drain()
    try:
        parser.close()
    except Exception:  # noqa: BLE001
        pass
    parser.flush_text()
    yield from parser.drain()
