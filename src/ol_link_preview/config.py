from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    user_agent: str = Field(default="ol-link-preview", alias="LINK_PREVIEW_USER_AGENT")
    default_language: str = Field(default="en", alias="LINK_PREVIEW_DEFAULT_LANGUAGE")

    timeout_s: float = Field(default=20.0, alias="LINK_PREVIEW_TIMEOUT_S")
    max_body_bytes: int = Field(default=2 * 1024 * 1024, alias="LINK_PREVIEW_MAX_BODY_BYTES")
    raise_for_status: bool = Field(default=False, alias="LINK_PREVIEW_RAISE_FOR_STATUS")


def load_settings() -> Settings:
    return Settings()
