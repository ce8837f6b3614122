from __future__ import annotations

from contextlib import AbstractContextManager, nullcontext

import httpx

from ol_link_preview.config import Settings, load_settings
from ol_link_preview.credentials import CredentialMaterializer
from ol_link_preview.fetcher import DocumentFetcher
from ol_link_preview.fragment import to_fragment_url
from ol_link_preview.log import get_logger
from ol_link_preview.models import Document, RedirectKind, ResolutionState
from ol_link_preview.scanner import PreviewScanner
from ol_link_preview.urls import require_absolute

logger = get_logger(__name__)


class Scraper:
    """
    Resolves one URI into a `Document`.

    Each iteration fetches the current URL and scans it. A redirect signal from the
    scanner (canonical link or escaped-fragment opt-in) updates the state and starts
    the next iteration. The fetcher charges every request against `max_redirect`, so
    the loop ends after at most `max(max_redirect, 1)` fetches.
    """

    def __init__(
        self,
        uri: str,
        max_redirect: int,
        language: str = "",
        authorization: str = "",
        *,
        settings: Settings | None = None,
        client: httpx.Client | None = None,
        credentials: CredentialMaterializer | None = None,
        scanner: PreviewScanner | None = None,
    ) -> None:
        require_absolute(uri)
        self.state = ResolutionState(
            url=uri,
            target=uri,
            max_redirect=max_redirect,
            language=language,
            authorization=authorization,
        )
        self.settings = settings or load_settings()
        self._client = client
        self._credentials = credentials
        self._scanner = scanner or PreviewScanner()

    def _client_context(self) -> AbstractContextManager[httpx.Client]:
        if self._client is not None:
            return nullcontext(self._client)
        return httpx.Client(timeout=self.settings.timeout_s, follow_redirects=True)

    def scrape(self) -> Document:
        state = self.state
        log = logger.bind(target=state.target)

        with self._client_context() as client:
            fetcher = DocumentFetcher(client, settings=self.settings, credentials=self._credentials)
            for _ in range(max(state.max_redirect, 0) + 1):
                fetched = fetcher.fetch(state)
                result = self._scanner.scan(state, fetched.body)
                doc = Document(body=fetched.body, preview=result.preview)

                signal = result.redirect
                if signal is None or state.max_redirect <= 0:
                    break

                if signal.kind is RedirectKind.CANONICAL:
                    log.info("follow_canonical", url=signal.url, remaining_redirects=state.max_redirect)
                    state.url = signal.url
                    state.escaped_fragment_url = None
                else:
                    state.escaped_fragment_url = to_fragment_url(state.url)
                    log.info(
                        "follow_escaped_fragment",
                        url=state.escaped_fragment_url,
                        remaining_redirects=state.max_redirect,
                    )

        return doc


def scrape(
    uri: str,
    max_redirect: int,
    language: str = "",
    authorization: str = "",
    *,
    settings: Settings | None = None,
    client: httpx.Client | None = None,
    credentials: CredentialMaterializer | None = None,
) -> Document:
    return Scraper(
        uri,
        max_redirect,
        language,
        authorization,
        settings=settings,
        client=client,
        credentials=credentials,
    ).scrape()
