"""
1337x Search Source
Listing rows from the search page, magnet from each torrent's detail page
"""
from typing import Any, Dict, List
from urllib.parse import quote

from bs4 import BeautifulSoup

from .scraped import ScrapedSiteSource


class X1337Source(ScrapedSiteSource):
    """1337x torrent search source"""

    key = "1337x"
    label = "1337x"

    def reload_from_settings(self):
        super().reload_from_settings()
        base_url = "https://1337x.to"
        if self.settings is not None:
            base_url = str(self.settings.get("x1337_base_url", base_url) or base_url)
        self.base_url = base_url.rstrip("/")

    def search_url(self, query: str) -> str:
        return f"{self.base_url}/search/{quote(query, safe='')}/1/"

    def parse_rows(self, soup: BeautifulSoup) -> List[Dict[str, Any]]:
        rows = []
        for row in soup.select('table.table-list tbody tr'):
            try:
                candidate = self._parse_listing_row(row)
            except Exception:
                continue
            if candidate:
                rows.append(candidate)
        return rows

    def _parse_listing_row(self, row):
        """Parse metadata from one search-row and return a detail-page candidate."""
        # First anchor is the category icon, second the torrent page
        links = [a for a in row.select('td.name a') if '/torrent/' in (a.get('href') or '')]
        if not links:
            return None
        name_elem = links[-1]
        title = name_elem.get_text(strip=True)
        detail_path = name_elem.get('href', '')
        if not title or not detail_path:
            return None

        seeds_elem = row.select_one('td.seeds')
        leeches_elem = row.select_one('td.leeches')
        size_elem = row.select_one('td.size')

        size = None
        if size_elem:
            # The size cell carries a nested seeders span after the size text
            size = next(size_elem.stripped_strings, None)

        return {
            "title": title,
            "detail_url": self.absolute(self.base_url, detail_path),
            "size": size,
            "seeders": self.parse_count(seeds_elem.get_text(strip=True)) if seeds_elem else None,
            "leechers": self.parse_count(leeches_elem.get_text(strip=True)) if leeches_elem else None,
        }
