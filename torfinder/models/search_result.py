"""
Search Result Model
Canonical torrent listing shared by every provider
"""
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, Union
import re

from ..core.magnet import extract_info_hash


@dataclass
class SearchResult:
    """Torrent search result"""
    title: str
    magnet: str
    size: Union[int, float, str, None] = None  # bytes, or the provider's size text
    seeders: Optional[int] = None
    leechers: Optional[int] = None
    source: str = ""

    @property
    def info_hash(self) -> Optional[str]:
        return extract_info_hash(self.magnet)

    @staticmethod
    def normalize_size(size_str) -> int:
        """
        Normalize size string to bytes
        Handles: "1.5 GB", "500 MB", "2.3 GiB", "1,024 KB", etc.
        """
        if isinstance(size_str, (int, float)):
            return int(size_str)

        size_str = str(size_str or "").strip().upper().replace(",", "")

        match = re.match(r'([\d.]+)\s*([KMGT]I?B|B)', size_str)
        if not match:
            return 0

        try:
            value = float(match.group(1))
        except ValueError:
            return 0
        unit = match.group(2)

        # Conversion factors (binary: KiB, MiB, GiB vs decimal: KB, MB, GB)
        multipliers = {
            'B': 1,
            'KB': 1000, 'KIB': 1024,
            'MB': 1000**2, 'MIB': 1024**2,
            'GB': 1000**3, 'GIB': 1024**3,
            'TB': 1000**4, 'TIB': 1024**4,
        }

        return int(value * multipliers.get(unit, 1))

    @staticmethod
    def format_size(size) -> str:
        """Format a size to human readable text; text that already has a unit is kept."""
        if size is None:
            return ""
        if isinstance(size, (int, float)):
            bytes_size = float(size)
        else:
            text = str(size).strip()
            if re.search(r"[A-Za-z]", text):
                return text
            digits = re.sub(r"[^\d]", "", text)
            if not digits:
                return text
            bytes_size = float(digits)
        if bytes_size <= 0:
            return str(size)
        for unit in ['B', 'KB', 'MB', 'GB']:
            if bytes_size < 1024.0:
                return f"{bytes_size:.2f} {unit}"
            bytes_size /= 1024.0
        return f"{bytes_size:.2f} TB"

    @property
    def size_formatted(self) -> str:
        """Get formatted size string"""
        return self.format_size(self.size)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
