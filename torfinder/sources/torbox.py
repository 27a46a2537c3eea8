"""
TorBox Search Source
Hosted multi-indexer search; no credential needed
"""
from typing import Any, Dict, List
from urllib.parse import quote

import requests
from loguru import logger

from ..core.errors import ProviderError
from ..core.normalizer import FIELD_MAPS
from .base import BaseSource


class TorBoxSearchSource(BaseSource):
    """Aggregator backed by the TorBox search API"""

    key = "torbox"
    label = "TorBox"
    field_map = FIELD_MAPS["torbox"]

    def __init__(self, settings=None, session=None):
        self.settings = settings
        self.last_error = ""
        self.session = session or requests.Session()
        self.session.headers.update({
            'User-Agent': 'torfinder/1.0',
            'Accept': 'application/json',
        })
        self.reload_from_settings()

    def reload_from_settings(self):
        base_url = "https://search-api.torbox.app"
        timeout = 15.0
        if self.settings is not None:
            base_url = str(self.settings.get("torbox_search_url", base_url) or base_url)
            timeout = float(self.settings.get("torbox_request_timeout_seconds", timeout) or timeout)
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def search(self, query: str, limit: int = 50) -> List[Dict[str, Any]]:
        self.last_error = ""
        url = f"{self.base_url}/torrents/search/{quote(query, safe='')}"
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            self.last_error = f"TorBox search failed: {e}"
            raise ProviderError(self.key, self.last_error) from e

        if not response.ok:
            self.last_error = f"TorBox search failed ({response.status_code})"
            raise ProviderError(self.key, self.last_error, response.status_code, response.text)

        try:
            payload = response.json()
        except ValueError as e:
            self.last_error = "TorBox search returned malformed JSON"
            raise ProviderError(self.key, self.last_error, body=response.text) from e

        rows = self._extract_rows(payload)
        logger.debug(f"TorBox search '{query}': {len(rows)} raw rows")
        return rows[:limit]

    @staticmethod
    def _extract_rows(payload: Any) -> List[Dict[str, Any]]:
        """The body is either a list, {"results": [...]} or {"data": {"torrents": [...]}}."""
        if isinstance(payload, list):
            return payload
        if not isinstance(payload, dict):
            return []
        if isinstance(payload.get("results"), list):
            return payload["results"]
        data = payload.get("data")
        if isinstance(data, list):
            return data
        if isinstance(data, dict) and isinstance(data.get("torrents"), list):
            return data["torrents"]
        return []
