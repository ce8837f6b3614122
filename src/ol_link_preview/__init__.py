from ol_link_preview.config import Settings, load_settings
from ol_link_preview.credentials import CredentialMaterializer, NoCredentials, SessionCookieMaterializer
from ol_link_preview.errors import CharsetError, ScrapeError, TransportError, URLError
from ol_link_preview.fetcher import DocumentFetcher
from ol_link_preview.fragment import escape_fragment, to_fragment_url
from ol_link_preview.models import Document, PreviewRecord, RedirectKind, RedirectSignal, ResolutionState
from ol_link_preview.scanner import PreviewScanner
from ol_link_preview.scraper import Scraper, scrape

__all__ = [
    "__version__",
    "CharsetError",
    "CredentialMaterializer",
    "Document",
    "DocumentFetcher",
    "NoCredentials",
    "PreviewRecord",
    "PreviewScanner",
    "RedirectKind",
    "RedirectSignal",
    "ResolutionState",
    "ScrapeError",
    "Scraper",
    "SessionCookieMaterializer",
    "Settings",
    "TransportError",
    "URLError",
    "escape_fragment",
    "load_settings",
    "scrape",
    "to_fragment_url",
]

__version__ = "0.1.0"
