"""
Finder API Client
HTTP client for the finder web API, used by the CLI session
"""
from typing import Iterable, List

import requests
from loguru import logger

from ..core.errors import UpstreamError
from ..models.search_result import SearchResult
from ..services.torbox_client import UpstreamResponse, authorization_header


class FinderApiClient:
    """Talks to a running finder server; mirrors the TorBox client's backend contract"""

    def __init__(self, base_url: str = "http://127.0.0.1:8000", session=None, timeout: float = 60.0):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _call(self, method: str, path: str, **kwargs) -> requests.Response:
        try:
            return self.session.request(method, f"{self.base_url}{path}", timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error(f"{method} {path} failed: {e}")
            raise UpstreamError(f"Finder server unreachable: {e}") from e

    @staticmethod
    def _error_text(response: requests.Response) -> str:
        try:
            payload = response.json()
        except ValueError:
            return response.text or f"HTTP {response.status_code}"
        if isinstance(payload, dict) and payload.get("error"):
            return str(payload["error"])
        return response.text

    def search(self, query: str, provider: str = "torbox", limit: int = 50) -> List[SearchResult]:
        response = self._call("GET", "/search", params={"q": query, "provider": provider, "limit": limit})
        if not response.ok:
            raise UpstreamError(self._error_text(response), status_code=response.status_code, body=response.text)
        try:
            items = response.json().get("items") or []
        except (ValueError, AttributeError) as e:
            raise UpstreamError("Search returned malformed JSON", body=response.text) from e
        if not isinstance(items, list):
            raise UpstreamError("Search returned malformed JSON", body=response.text)
        results = []
        for item in items:
            if not isinstance(item, dict) or not item.get("magnet"):
                continue
            results.append(SearchResult(
                title=item.get("title") or "",
                magnet=item["magnet"],
                size=item.get("size"),
                seeders=item.get("seeders"),
                leechers=item.get("leechers"),
                source=item.get("source") or provider,
            ))
        return results

    def _forward(self, path: str, payload: dict, credential: str) -> UpstreamResponse:
        response = self._call(
            "POST",
            path,
            json=payload,
            headers={"Authorization": authorization_header(credential)},
        )
        return UpstreamResponse(
            status_code=response.status_code,
            text=response.text,
            content_type=response.headers.get("content-type", "application/json") or "application/json",
        )

    def check_cached(self, hashes: Iterable[str], credential: str) -> UpstreamResponse:
        return self._forward("/check-cached", {"hashes": list(hashes)}, credential)

    def create_torrent(self, magnet: str, credential: str) -> UpstreamResponse:
        return self._forward("/add", {"magnet": magnet}, credential)
