from __future__ import annotations

import httpx
import pytest

from ol_link_preview.config import Settings
from ol_link_preview.errors import TransportError
from ol_link_preview.fetcher import DocumentFetcher
from ol_link_preview.models import ResolutionState


def _state(url: str, *, max_redirect: int = 3, language: str = "", authorization: str = "") -> ResolutionState:
    return ResolutionState(
        url=url,
        target=url,
        max_redirect=max_redirect,
        language=language,
        authorization=authorization,
    )


def test_fetch_sends_identifying_headers(site, client, settings) -> None:
    site.add("https://example.com/page", "<title>ok</title>")
    state = _state("https://example.com/page")

    result = DocumentFetcher(client, settings=settings).fetch(state)

    assert result.body == b"<title>ok</title>"
    assert result.status_code == 200
    sent = site.requests[0].headers
    assert sent["user-agent"] == "test-agent/1.0"
    assert sent["accept-language"] == "en"
    assert "cookie" not in sent


def test_fetch_uses_requested_language_and_credentials(site, client, settings) -> None:
    site.add("https://example.com/page", "<title>ok</title>")
    state = _state("https://example.com/page", language="fr-CA", authorization="Bearer tok")

    DocumentFetcher(client, settings=settings).fetch(state)

    sent = site.requests[0].headers
    assert sent["accept-language"] == "fr-CA"
    assert sent["cookie"].startswith("access_token=tok; refresh_token=tok;")


def test_fetch_charges_budget_before_request(settings) -> None:
    def boom(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    state = _state("https://example.com/page", max_redirect=2)
    with httpx.Client(transport=httpx.MockTransport(boom)) as failing:
        with pytest.raises(TransportError):
            DocumentFetcher(failing, settings=settings).fetch(state)
    assert state.max_redirect == 1


def test_fetch_follows_transport_redirect(site, client, settings) -> None:
    site.redirect("https://example.com/old", "https://www.example.com/new")
    site.add("https://www.example.com/new", "<title>moved</title>")
    state = _state("https://example.com/old")

    result = DocumentFetcher(client, settings=settings).fetch(state)

    assert result.url == "https://www.example.com/new"
    assert state.url == "https://www.example.com/new"
    assert state.target == "https://example.com/old"


def test_fetch_requests_escaped_fragment_for_hashbang_url(site, client, settings) -> None:
    site.add("https://example.com/?_escaped_fragment_=/about", "<title>about</title>")
    state = _state("https://example.com/#!/about")

    result = DocumentFetcher(client, settings=settings).fetch(state)

    assert site.requested_urls == ["https://example.com/?_escaped_fragment_=/about"]
    assert state.escaped_fragment_url == "https://example.com/?_escaped_fragment_=/about"
    assert state.url == "https://example.com/#!/about"
    assert result.body == b"<title>about</title>"


def test_fetch_treats_marked_url_as_its_own_override(site, client, settings) -> None:
    site.add("https://example.com/page?_escaped_fragment_=", "<title>snapshot</title>")
    state = _state("https://example.com/page?_escaped_fragment_=")

    DocumentFetcher(client, settings=settings).fetch(state)

    assert state.escaped_fragment_url == "https://example.com/page?_escaped_fragment_="


def test_fetch_decodes_declared_charset(site, client, settings) -> None:
    site.add(
        "https://example.com/page",
        "<title>Café</title>".encode("latin-1"),
        content_type="text/html; charset=ISO-8859-1",
    )
    result = DocumentFetcher(client, settings=settings).fetch(_state("https://example.com/page"))
    assert result.body == "<title>Café</title>".encode()


def test_fetch_scans_error_pages_by_default(site, client, settings) -> None:
    site.add("https://example.com/gone", "<title>Gone</title>", status=410)
    result = DocumentFetcher(client, settings=settings).fetch(_state("https://example.com/gone"))
    assert result.status_code == 410
    assert result.body == b"<title>Gone</title>"


def test_fetch_can_raise_for_status(site, client) -> None:
    site.add("https://example.com/gone", "<title>Gone</title>", status=410)
    strict = Settings.model_validate({"LINK_PREVIEW_RAISE_FOR_STATUS": True})
    with pytest.raises(TransportError):
        DocumentFetcher(client, settings=strict).fetch(_state("https://example.com/gone"))


def test_fetch_truncates_large_bodies(site, client) -> None:
    site.add("https://example.com/big", "<p>" + "x" * 5000 + "</p>")
    small = Settings.model_validate({"LINK_PREVIEW_MAX_BODY_BYTES": 100})
    result = DocumentFetcher(client, settings=small).fetch(_state("https://example.com/big"))
    assert len(result.body) == 100


def test_fetch_keeps_utf8_when_cap_splits_a_character(site, client) -> None:
    title = "日本語のタイトル" * 3
    html = f"<head><title>{title}</title></head><body>" + "本文" * 40
    body = html.encode()
    site.add("https://example.com/ja", body, content_type="text/html")
    capped = Settings.model_validate({"LINK_PREVIEW_MAX_BODY_BYTES": len(body) - 1})

    result = DocumentFetcher(client, settings=capped).fetch(_state("https://example.com/ja"))

    assert result.body.decode().startswith(f"<head><title>{title}</title></head><body>")
