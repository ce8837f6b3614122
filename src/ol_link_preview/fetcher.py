from __future__ import annotations

import httpx

from ol_link_preview.charset import to_utf8
from ol_link_preview.config import Settings
from ol_link_preview.credentials import CredentialMaterializer, SessionCookieMaterializer
from ol_link_preview.errors import TransportError, URLError
from ol_link_preview.fragment import has_escaped_fragment, has_hashbang, to_fragment_url
from ol_link_preview.log import get_logger
from ol_link_preview.models import FetchResult, ResolutionState

logger = get_logger(__name__)


def _normalized(url: str) -> str:
    try:
        return str(httpx.URL(url))
    except httpx.InvalidURL as e:
        raise URLError(f"Invalid request URL: {url!r}") from e


class DocumentFetcher:
    """
    Issues one GET per call and charges it against the state's redirect budget.

    Transport-level redirects are followed by httpx; the served URL is written back
    into the state so later scans resolve against it.
    """

    def __init__(
        self,
        client: httpx.Client,
        *,
        settings: Settings,
        credentials: CredentialMaterializer | None = None,
    ) -> None:
        self._client = client
        self._settings = settings
        self._credentials = credentials or SessionCookieMaterializer()

    def _headers(self, state: ResolutionState) -> dict[str, str]:
        headers = {
            "User-Agent": self._settings.user_agent,
            "Accept-Language": state.language or self._settings.default_language,
        }
        if state.authorization:
            headers.update(self._credentials.headers(state.authorization))
        return headers

    def _read_body(self, r: httpx.Response) -> bytes:
        limit = self._settings.max_body_bytes
        buf = bytearray()
        for chunk in r.iter_bytes():
            buf.extend(chunk)
            if len(buf) >= limit:
                logger.debug("body_truncated", url=str(r.url), limit=limit)
                del buf[limit:]
                break
        return bytes(buf)

    def fetch(self, state: ResolutionState) -> FetchResult:
        state.max_redirect -= 1

        if state.escaped_fragment_url is None:
            if has_hashbang(state.url):
                state.escaped_fragment_url = to_fragment_url(state.url)
            elif has_escaped_fragment(state.url):
                state.escaped_fragment_url = state.url

        request_url = state.request_url
        expected_url = _normalized(request_url)
        headers = self._headers(state)

        try:
            with self._client.stream("GET", request_url, headers=headers) as r:
                if self._settings.raise_for_status:
                    r.raise_for_status()
                raw = self._read_body(r)
                effective_url = str(r.url)
                content_type = r.headers.get("content-type")
                charset = r.charset_encoding
                status_code = r.status_code
        except httpx.InvalidURL as e:
            raise URLError(f"Invalid request URL: {request_url!r}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"GET {request_url} failed: {e}") from e

        logger.info(
            "document_fetched",
            url=request_url,
            effective_url=effective_url,
            status_code=status_code,
            remaining_redirects=state.max_redirect,
        )

        if effective_url != expected_url:
            state.escaped_fragment_url = None
            state.url = effective_url

        return FetchResult(
            body=to_utf8(raw, charset),
            url=state.url,
            content_type=content_type,
            status_code=status_code,
        )
