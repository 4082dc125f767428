"""HTTP session and endpoint builder for the Gemini REST API (API key embedded in the URL)."""
from dataclasses import dataclass
from typing import Any

import requests

from app.core.config import settings
from app.core.credentials import normalize_api_key, with_key

_http_session: Any = None


def get_http_session() -> requests.Session:
    """Return a singleton requests.Session shared by the upload client, poller and invoker.
    Why available: Single place to get the HTTP client so connection pooling is reused across jobs."""
    global _http_session
    if _http_session is None:
        _http_session = requests.Session()
    return _http_session


@dataclass(frozen=True)
class GeminiEndpoints:
    """Builds authenticated Gemini REST URLs from a base URL and an already-encoded API key."""

    base_url: str
    encoded_key: str

    @classmethod
    def from_settings(cls, raw_key: str | None = None) -> "GeminiEndpoints":
        key = settings.api_key if raw_key is None else raw_key
        return cls(base_url=settings.gemini_api_base.rstrip("/"), encoded_key=normalize_api_key(key))

    def authorize(self, url: str) -> str:
        return with_key(url, self.encoded_key)

    def upload_start_url(self) -> str:
        return self.authorize(f"{self.base_url}/upload/v1beta/files")

    def generate_url(self, model: str) -> str:
        return self.authorize(f"{self.base_url}/v1beta/models/{model}:generateContent")

    def file_url(self, file_uri: str) -> str:
        # file_uri is already absolute, e.g. <base>/v1beta/files/abc
        return self.authorize(file_uri)
