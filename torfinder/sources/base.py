"""
Source SDK
Base interface for torrent search providers.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List

from ..core.normalizer import DEFAULT_FIELD_MAP, FieldMap


class BaseSource(ABC):
    """
    Provider contract: return raw, provider-shaped records for a query.

    Whole-provider failures raise ``ProviderError``; the caller maps records
    to SearchResult with ``field_map``.
    """
    key = "unnamed"
    label = "UnnamedSource"
    field_map: FieldMap = DEFAULT_FIELD_MAP
    last_error = ""

    @abstractmethod
    def search(self, query: str, limit: int = 50) -> List[Dict[str, Any]]:
        """Return at most ``limit`` raw records for a query."""
        raise NotImplementedError

    def reload_from_settings(self) -> None:
        """Optional hook called when settings change."""
        return None

    def healthcheck(self) -> Dict[str, Any]:
        """Lightweight health payload."""
        return {
            "id": self.key,
            "label": self.label,
            "ok": not bool(self.last_error),
            "error": self.last_error,
        }
