"""
Source Manager
Routes a query to the selected provider and normalizes what it returns
"""
from typing import Dict, List, Optional
import threading
import time

from loguru import logger

from ..models.search_result import SearchResult
from ..sources.base import BaseSource
from .errors import ProviderError, ValidationError
from .event_bus import EventBus, Events
from .normalizer import normalize

MIN_LIMIT = 1
MAX_LIMIT = 100


class SourceManager:
    """Registry of providers keyed by provider id"""

    def __init__(self, event_bus: Optional[EventBus] = None, max_limit: int = MAX_LIMIT):
        self.event_bus = event_bus or EventBus()
        self.max_limit = max_limit
        self._sources: Dict[str, BaseSource] = {}
        self._lock = threading.RLock()

    def register(self, source):
        """Register a search source"""
        if not isinstance(source, BaseSource):
            raise TypeError(f"Invalid source type for register(): {type(source)}. Expected BaseSource.")
        if not getattr(source, "key", ""):
            raise ValueError("Source must define non-empty 'key'.")
        with self._lock:
            self._sources[source.key] = source

    def unregister(self, key: str):
        """Unregister a source"""
        with self._lock:
            self._sources.pop(key, None)

    def get(self, key: str) -> Optional[BaseSource]:
        with self._lock:
            return self._sources.get(key)

    def providers(self) -> List[Dict[str, str]]:
        """Provider ids with their display labels, in registration order."""
        with self._lock:
            return [{"id": key, "label": src.label} for key, src in self._sources.items()]

    def reload_sources(self):
        """Re-read settings in every source"""
        with self._lock:
            sources = list(self._sources.values())
        for source in sources:
            source.reload_from_settings()

    def search(self, query: str, provider: str, limit: int = 50) -> List[SearchResult]:
        """
        Search one provider and return at most ``limit`` normalized results.

        Raises ValidationError for bad input and ProviderError when the
        provider fails as a whole.
        """
        query = (query or "").strip()
        if not query:
            raise ValidationError("Query must not be empty.")
        if isinstance(limit, bool) or not isinstance(limit, int) or not MIN_LIMIT <= limit <= self.max_limit:
            raise ValidationError(f"limit must be an integer between {MIN_LIMIT} and {self.max_limit}.")
        source = self.get(provider)
        if source is None:
            raise ValidationError(f"Unknown provider: {provider}")

        self.event_bus.emit(Events.SEARCH_STARTED, {"query": query, "provider": provider, "limit": limit})
        started = time.monotonic()
        try:
            raw = source.search(query, limit)
        except ProviderError as e:
            logger.warning(f"Search error in {provider}: {e.message}")
            self.event_bus.emit(Events.SEARCH_ERROR, {"query": query, "provider": provider, "error": e.message})
            raise
        except Exception as e:
            # Adapters must not crash the caller; anything unexpected becomes a provider failure
            logger.exception(f"Unexpected error in {provider}")
            self.event_bus.emit(Events.SEARCH_ERROR, {"query": query, "provider": provider, "error": str(e)})
            raise ProviderError(provider, f"{source.label} search failed: {e}") from e

        results = normalize(raw, source.label, source.field_map)[:limit]
        elapsed_ms = (time.monotonic() - started) * 1000
        logger.info(f"Search '{query}' via {provider}: {len(results)} results ({elapsed_ms:.0f} ms)")
        self.event_bus.emit(Events.SEARCH_COMPLETED, {
            "query": query,
            "provider": provider,
            "count": len(results),
        })
        return results
