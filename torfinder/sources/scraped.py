"""
Scraped Site Source
Search-page scraping through a text-extraction proxy with per-row magnet lookup
"""
from abc import abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional
import re

import requests
from bs4 import BeautifulSoup
from loguru import logger

from ..core.errors import ProviderError
from .base import BaseSource

MAGNET_PATTERN = re.compile(r"magnet:\?[^\s\"'<>)\]]+", re.IGNORECASE)


class ScrapedSiteSource(BaseSource):
    """
    Base for HTML sites fetched through the proxy.

    Only the search page is fatal. Each row's detail page is fetched on its
    own and a failing row is dropped; output keeps listing order.
    """

    def __init__(self, settings=None, session=None):
        self.settings = settings
        self.last_error = ""
        self.session = session or requests.Session()
        self.session.headers.update({
            'User-Agent': 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36',
            'Accept': 'text/html,application/xhtml+xml,application/xml',
            'Accept-Language': 'en-US,en;q=0.9',
            # Ask the proxy for the page markup instead of its markdown rendering
            'X-Return-Format': 'html',
        })
        self.reload_from_settings()

    def reload_from_settings(self):
        proxy_url = "https://r.jina.ai/"
        self.request_timeout = 20.0
        self.detail_timeout = 15.0
        self.detail_concurrency = 4
        if self.settings is not None:
            proxy_url = str(self.settings.get("text_proxy_url", proxy_url) or "")
            self.request_timeout = float(self.settings.get("scrape_request_timeout_seconds", 20.0) or 20.0)
            self.detail_timeout = float(self.settings.get("scrape_detail_timeout_seconds", 15.0) or 15.0)
            self.detail_concurrency = int(self.settings.get("scrape_detail_concurrency", 4) or 4)
        self.proxy_url = proxy_url

    def proxied(self, url: str) -> str:
        if not self.proxy_url:
            return url
        return f"{self.proxy_url}{url}"

    @abstractmethod
    def search_url(self, query: str) -> str:
        """Site URL of the search-results page for a query."""

    @abstractmethod
    def parse_rows(self, soup: BeautifulSoup) -> List[Dict[str, Any]]:
        """Return row candidates: title, detail_url, size, seeders, leechers (and magnet when inline)."""

    def search(self, query: str, limit: int = 50) -> List[Dict[str, Any]]:
        self.last_error = ""
        html = self._fetch_search_page(query)
        soup = BeautifulSoup(html, 'html.parser')
        candidates = self.parse_rows(soup)[:limit]
        logger.debug(f"{self.label} '{query}': {len(candidates)} rows to resolve")
        return self._resolve_candidates(candidates)

    def _fetch_search_page(self, query: str) -> str:
        url = self.proxied(self.search_url(query))
        try:
            response = self.session.get(url, timeout=self.request_timeout)
        except requests.RequestException as e:
            self.last_error = f"{self.label} search failed: {e}"
            raise ProviderError(self.key, self.last_error) from e
        if not response.ok:
            self.last_error = f"{self.label} search failed ({response.status_code})"
            raise ProviderError(self.key, self.last_error, response.status_code, response.text)
        return response.text

    def _resolve_candidates(self, candidates: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        if not candidates:
            return []
        workers = max(1, min(self.detail_concurrency, len(candidates)))
        records: List[Dict[str, Any]] = []
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [pool.submit(self._resolve_row, c) for c in candidates]
            # Iterate in submission order so completion order never reorders rows
            for candidate, future in zip(candidates, futures):
                try:
                    record = future.result()
                except Exception as e:
                    logger.debug(f"{self.label} row skipped ({candidate.get('detail_url')}): {e}")
                    continue
                if record:
                    records.append(record)
        skipped = len(candidates) - len(records)
        if skipped:
            logger.info(f"{self.label}: {skipped}/{len(candidates)} rows skipped without a magnet")
        return records

    def _resolve_row(self, candidate: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        magnet = candidate.get("magnet") or ""
        if not magnet:
            detail_url = candidate.get("detail_url") or ""
            if not detail_url:
                return None
            magnet = self._get_magnet_link(detail_url)
        if not magnet:
            return None
        return {
            "title": candidate.get("title", ""),
            "magnet": magnet,
            "size": candidate.get("size"),
            "seeders": candidate.get("seeders"),
            "leechers": candidate.get("leechers"),
            "source": self.label,
        }

    def _get_magnet_link(self, detail_url: str) -> str:
        """Fetch a detail page and return its magnet link; raises on fetch errors."""
        response = self.session.get(self.proxied(detail_url), timeout=self.detail_timeout)
        response.raise_for_status()
        return self.find_magnet(response.text)

    @staticmethod
    def find_magnet(text: str) -> str:
        soup = BeautifulSoup(text or "", 'html.parser')
        magnet_elem = soup.select_one('a[href^="magnet:"]')
        if magnet_elem and magnet_elem.get('href'):
            return magnet_elem['href']
        # Markdown or plain text renderings keep the URI but drop the anchor
        match = MAGNET_PATTERN.search(text or "")
        return match.group(0).replace("&amp;", "&") if match else ""

    @staticmethod
    def parse_count(text: str) -> Optional[int]:
        digits = (text or "").strip().replace(",", "")
        return int(digits) if digits.isdigit() else None

    @staticmethod
    def absolute(base_url: str, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return base_url.rstrip("/") + "/" + path.lstrip("/")
