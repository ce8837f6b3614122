from __future__ import annotations

from urllib.parse import SplitResult, urljoin, urlsplit

from ol_link_preview.errors import URLError


def clean(s: str | None) -> str:
    """Normalization shared by every attribute key/value comparison."""
    return (s or "").strip().lower()


def split_url(url: str) -> SplitResult:
    try:
        return urlsplit(url)
    except ValueError as e:
        raise URLError(f"Invalid URL: {url!r}") from e


def is_absolute(url: str) -> bool:
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return bool(parts.scheme and parts.netloc)


def require_absolute(url: str) -> str:
    parts = split_url(url)
    if parts.scheme not in {"http", "https"} or not parts.netloc:
        raise URLError(f"Not an absolute http(s) URL: {url!r}")
    return url


def host_of(url: str) -> str:
    return split_url(url).netloc


def origin_of(url: str) -> str:
    parts = split_url(url)
    return f"{parts.scheme}://{parts.netloc}"


def resolve_against_origin(href: str, base_url: str) -> str:
    """
    Resolve `href` against the scheme and host of `base_url`.

    Absolute hrefs are returned as-is. Relative paths resolve from the site root, not
    from the directory of `base_url`.
    """
    href = href.strip()
    if is_absolute(href):
        return href
    try:
        return urljoin(origin_of(base_url) + "/", href)
    except ValueError as e:
        raise URLError(f"Cannot resolve {href!r} against {base_url!r}") from e
