from __future__ import annotations

from collections.abc import Generator
from dataclasses import dataclass, field

import httpx
import pytest

from ol_link_preview.config import Settings


@dataclass
class FakePage:
    status: int = 200
    body: bytes = b""
    headers: dict[str, str] = field(default_factory=dict)


class FakeSite:
    """In-memory web served through `httpx.MockTransport`."""

    def __init__(self) -> None:
        self.pages: dict[str, FakePage] = {}
        self.requests: list[httpx.Request] = []

    @staticmethod
    def _key(url: str | httpx.URL) -> str:
        return str(httpx.URL(str(url)))

    def add(
        self,
        url: str,
        html: str | bytes,
        *,
        status: int = 200,
        content_type: str = "text/html; charset=utf-8",
    ) -> None:
        body = html.encode("utf-8") if isinstance(html, str) else html
        self.pages[self._key(url)] = FakePage(status=status, body=body, headers={"content-type": content_type})

    def redirect(self, url: str, location: str, *, status: int = 301) -> None:
        self.pages[self._key(url)] = FakePage(status=status, headers={"location": location})

    @property
    def requested_urls(self) -> list[str]:
        return [str(r.url) for r in self.requests]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        page = self.pages.get(self._key(request.url))
        if page is None:
            return httpx.Response(404, headers={"content-type": "text/html"}, content=b"<title>Not Found</title>")
        return httpx.Response(page.status, headers=page.headers, content=page.body)


@pytest.fixture()
def site() -> FakeSite:
    return FakeSite()


@pytest.fixture()
def client(site: FakeSite) -> Generator[httpx.Client, None, None]:
    with httpx.Client(transport=httpx.MockTransport(site.handler), follow_redirects=True) as c:
        yield c


@pytest.fixture()
def settings() -> Settings:
    return Settings.model_validate({"LINK_PREVIEW_USER_AGENT": "test-agent/1.0"})
