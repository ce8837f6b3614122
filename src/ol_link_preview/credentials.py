from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from ol_link_preview.errors import TransportError


class CredentialMaterializer(Protocol):
    def headers(self, authorization: str) -> dict[str, str]: ...


class NoCredentials:
    def headers(self, authorization: str) -> dict[str, str]:
        return {}


@dataclass(frozen=True)
class SessionCookieMaterializer:
    """
    Turns an `Authorization` value into the session cookies one deployment expects.

    The scheme prefix (`Bearer `) is stripped and the token is copied into every
    access/refresh cookie with a far-future expiry.
    """

    prefix_len: int = 7
    expires_at: str = "1947832244556"

    def headers(self, authorization: str) -> dict[str, str]:
        if not authorization:
            return {}
        if len(authorization) <= self.prefix_len:
            raise TransportError("Authorization credential is too short to carry a token")
        token = authorization[self.prefix_len :]
        cookie = (
            f"access_token={token}; refresh_token={token}; brainer_v4=true; "
            f"expires_at={self.expires_at}; main_access_token={token}; "
            f"main_refresh_token={token}; main_expires_at={self.expires_at};"
        )
        return {"Cookie": cookie}
