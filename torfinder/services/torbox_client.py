"""
TorBox Client
Forwards cache checks and torrent creation to the TorBox API with the caller's credential
"""
from dataclasses import dataclass
import json
from typing import Any, Iterable, Optional

import requests
from loguru import logger

from ..core.errors import AuthError, UpstreamError
from ..core.logging_setup import mask_secret


@dataclass
class UpstreamResponse:
    """Upstream status and body, kept verbatim for pass-through."""

    status_code: int
    text: str
    content_type: str = "application/json"

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        return json.loads(self.text)


def authorization_header(credential: str) -> str:
    """Use an ``Authorization`` value as given; prefix a bare token with ``Bearer``."""
    value = str(credential or "").strip()
    if not value or value.lower() == "bearer":
        raise AuthError("Missing Authorization")
    if value.lower().startswith("bearer "):
        return value
    return f"Bearer {value}"


class TorBoxClient:
    """TorBox API client; holds no credential of its own"""

    BASE_URL = "https://api.torbox.app/v1/api"

    def __init__(self, settings=None, session=None):
        self.settings = settings
        self.session = session or requests.Session()

    def _base_url(self) -> str:
        if self.settings is None:
            return self.BASE_URL
        return str(self.settings.get("torbox_api_url", self.BASE_URL) or self.BASE_URL).rstrip("/")

    def _timeout(self) -> float:
        if self.settings is None:
            return 15.0
        try:
            return float(self.settings.get("torbox_request_timeout_seconds", 15.0) or 15.0)
        except (TypeError, ValueError):
            return 15.0

    def _request(self, method: str, endpoint: str, credential: str, **kwargs) -> UpstreamResponse:
        auth = authorization_header(credential)
        url = f"{self._base_url()}{endpoint}"
        try:
            response = self.session.request(
                method,
                url,
                headers={"Authorization": auth},
                timeout=kwargs.pop("timeout", self._timeout()),
                **kwargs,
            )
        except requests.RequestException as e:
            logger.error(f"TorBox {method} {endpoint} failed (key {mask_secret(auth)}): {e}")
            raise UpstreamError("Upstream error") from e

        if response.status_code >= 400:
            logger.warning(f"TorBox {method} {endpoint}: {response.status_code}")
        return UpstreamResponse(
            status_code=response.status_code,
            text=response.text,
            content_type=response.headers.get("content-type", "application/json") or "application/json",
        )

    def check_cached(self, hashes: Iterable[str], credential: str) -> UpstreamResponse:
        """One batched cache-status request for every hash."""
        params = [("hash", str(h)) for h in hashes]
        params.append(("format", "object"))
        return self._request("GET", "/torrents/checkcached", credential, params=params)

    def create_torrent(self, magnet: str, credential: str, name: Optional[str] = None) -> UpstreamResponse:
        """Ask TorBox to start downloading a magnet."""
        data = {"magnet": magnet}
        if name:
            data["name"] = name
        return self._request("POST", "/torrents/createtorrent", credential, data=data)
