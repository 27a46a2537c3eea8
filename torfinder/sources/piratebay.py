"""
PirateBay Search Source
apibay JSON first, scraped search page as fallback
"""
from typing import Any, Dict, List
from urllib.parse import quote

import requests
from bs4 import BeautifulSoup
from loguru import logger

from ..core.magnet import build_magnet
from .scraped import ScrapedSiteSource

ZERO_HASH = "0000000000000000000000000000000000000000"


class PirateBaySource(ScrapedSiteSource):
    """The Pirate Bay torrent search source"""

    key = "tpb"
    label = "The Pirate Bay"

    def reload_from_settings(self):
        super().reload_from_settings()
        base_url = "https://thepiratebay.org"
        api_endpoints = ["https://apibay.org"]
        api_enabled = True
        if self.settings is not None:
            base_url = str(self.settings.get("piratebay_base_url", base_url) or base_url)
            api_endpoints = list(self.settings.get("piratebay_api_endpoints", api_endpoints) or [])
            api_enabled = bool(self.settings.get("piratebay_api_enabled", True))
        self.base_url = base_url.rstrip("/")
        self.api_endpoints = [a.rstrip("/") for a in api_endpoints if a]
        self.api_enabled = api_enabled

    def search(self, query: str, limit: int = 50) -> List[Dict[str, Any]]:
        """
        Prefer the API path for reliability, then scrape the HTML listing.
        """
        if self.api_enabled and self.api_endpoints:
            api_rows = self._search_via_api(query, limit)
            if api_rows:
                return api_rows
        return super().search(query, limit)

    def _search_via_api(self, query: str, limit: int) -> List[Dict[str, Any]]:
        for base in self.api_endpoints:
            url = f"{base}/q.php?q={quote(query, safe='')}&cat=0"
            try:
                response = self.session.get(url, timeout=self.request_timeout, headers={
                    "Accept": "application/json,text/plain,*/*",
                })
                response.raise_for_status()
                rows = response.json()
            except (requests.RequestException, ValueError) as e:
                logger.warning(f"PirateBay API error ({base}): {e}")
                continue
            if not isinstance(rows, list):
                continue
            records = self._parse_api_rows(rows)
            if records:
                return records[:limit]
        return []

    def _parse_api_rows(self, rows: List[dict]) -> List[Dict[str, Any]]:
        records: List[Dict[str, Any]] = []
        for row in rows:
            if not isinstance(row, dict):
                continue
            name = str(row.get("name") or "").strip()
            infohash = str(row.get("info_hash") or "").strip()
            # apibay answers "no results" with a single zero-hash row
            if not name or len(infohash) != 40 or infohash == ZERO_HASH:
                continue
            records.append({
                "title": name,
                "magnet": build_magnet(infohash, name),
                "size": self.parse_count(str(row.get("size") or "")),
                "seeders": self.parse_count(str(row.get("seeders") or "")),
                "leechers": self.parse_count(str(row.get("leechers") or "")),
                "source": self.label,
            })
        return records

    def search_url(self, query: str) -> str:
        return f"{self.base_url}/search/{quote(query, safe='')}/1/99/0"

    def parse_rows(self, soup: BeautifulSoup) -> List[Dict[str, Any]]:
        """Parse the page into candidates across old/new TPB layouts."""
        rows = []
        # Older mirrors include <tbody>; newer mirrors often don't.
        for row in soup.select("#searchResult tr"):
            try:
                candidate = self._parse_row(row)
            except Exception:
                continue
            if candidate:
                rows.append(candidate)
        return rows

    def _parse_row(self, row):
        if not row.find_all("td"):
            return None

        title_elem = row.select_one('.detName a') or row.select_one('a[href*="/torrent/"]')
        if not title_elem:
            return None
        title = title_elem.get_text(strip=True)
        detail_path = title_elem.get('href', '')
        if not title:
            return None

        magnet_elem = row.select_one('a[href^="magnet:"]')

        def _count_from(selectors):
            for selector in selectors:
                elem = row.select_one(selector)
                if elem:
                    value = self.parse_count(elem.get_text(strip=True))
                    if value is not None:
                        return value
            return None

        seeders = _count_from(['td:nth-of-type(6)', 'td:nth-of-type(3)'])
        leechers = _count_from(['td:nth-of-type(7)', 'td:nth-of-type(4)'])

        size = None
        desc_elem = row.select_one('.detDesc')
        if desc_elem:
            # Format: "Uploaded ..., Size 1.5 GiB, ..."
            desc_text = desc_elem.get_text().replace("\xa0", " ")
            if 'Size' in desc_text:
                size = desc_text.split('Size', 1)[1].split(',')[0].strip() or None
        else:
            size_elem = row.select_one('td:nth-of-type(5)')
            if size_elem:
                size = size_elem.get_text(strip=True) or None

        return {
            "title": title,
            "detail_url": self.absolute(self.base_url, detail_path) if detail_path else "",
            "magnet": magnet_elem['href'] if magnet_elem else "",
            "size": size,
            "seeders": seeders,
            "leechers": leechers,
        }
