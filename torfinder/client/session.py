"""
Search Session
In-memory view state for one user: results, cache status and the active filter
"""
from enum import Enum
from typing import Dict, List, Optional
import threading

from loguru import logger

from ..core.cache_joiner import CacheStatusJoiner, CacheStatusMap
from ..core.errors import AuthError, FinderError, UpstreamError
from ..core.event_bus import EventBus, Events
from ..core.magnet import extract_info_hash
from ..core.submission import SubmissionGateway
from ..models.search_result import SearchResult
from .credentials import CredentialStore, MemoryCredentialStore


class SessionState(str, Enum):
    IDLE = "idle"
    SEARCHING = "searching"
    RESULTS_READY = "results_ready"
    CACHE_CHECKING = "cache_checking"
    SEARCH_FAILED = "search_failed"


class FilterMode(str, Enum):
    ALL = "all"
    CACHED = "cached"
    UNCACHED = "uncached"


def is_cached(result: SearchResult, cache_map: CacheStatusMap) -> bool:
    """Unknown hashes and missing entries count as not cached."""
    info_hash = extract_info_hash(result.magnet)
    return bool(info_hash and cache_map.get(info_hash, False))


def filter_results(results: List[SearchResult], cache_map: CacheStatusMap, mode) -> List[SearchResult]:
    """Visible subset for a filter mode; a pure function of its inputs."""
    mode = FilterMode(mode)
    if mode is FilterMode.ALL:
        return list(results)
    want_cached = mode is FilterMode.CACHED
    return [r for r in results if is_cached(r, cache_map) == want_cached]


def cache_label(result: SearchResult, cache_map: CacheStatusMap) -> str:
    info_hash = extract_info_hash(result.magnet)
    if not info_hash:
        return "hash unknown"
    if info_hash not in cache_map:
        return "unknown"
    return "cached" if cache_map[info_hash] else "not cached"


class SearchSession:
    """
    Drives search -> cache check for one user and holds the resulting view.

    Only one search runs at a time. Every search takes a new generation
    number and results from an older generation are dropped, so a slow
    search abandoned with ``cancel()`` can never overwrite a newer one.
    """

    def __init__(
        self,
        api,
        credential_store: Optional[CredentialStore] = None,
        event_bus: Optional[EventBus] = None,
        remember: bool = True,
    ):
        self.api = api
        self.credential_store = credential_store or MemoryCredentialStore()
        self.event_bus = event_bus or EventBus()
        self.joiner = CacheStatusJoiner(api)
        self.gateway = SubmissionGateway(api)
        self._lock = threading.RLock()
        self._generation = 0
        self._remember = remember
        self._credential: Optional[str] = self.credential_store.get() if remember else None

        self.state = SessionState.IDLE
        self.results: List[SearchResult] = []
        self.cache_map: CacheStatusMap = {}
        self.filter_mode = FilterMode.ALL
        self.message = ""

    # -- credential -------------------------------------------------------

    @property
    def credential(self) -> Optional[str]:
        return self._credential

    def set_credential(self, credential: Optional[str]) -> None:
        self._credential = (credential or "").strip() or None
        self._sync_store()

    def set_remember(self, remember: bool) -> None:
        self._remember = bool(remember)
        self._sync_store()

    def _sync_store(self) -> None:
        if not self._remember:
            self.credential_store.clear()
        elif self._credential:
            self.credential_store.set(self._credential)

    # -- view -------------------------------------------------------------

    @property
    def busy(self) -> bool:
        return self.state in (SessionState.SEARCHING, SessionState.CACHE_CHECKING)

    def set_filter(self, mode) -> None:
        self.filter_mode = FilterMode(mode)
        self.event_bus.emit(Events.FILTER_CHANGED, {"filter": self.filter_mode.value})

    def visible(self) -> List[SearchResult]:
        with self._lock:
            return filter_results(self.results, self.cache_map, self.filter_mode)

    def cache_label(self, result: SearchResult) -> str:
        with self._lock:
            return cache_label(result, self.cache_map)

    def counts(self) -> Dict[str, int]:
        with self._lock:
            cached = sum(1 for r in self.results if is_cached(r, self.cache_map))
            return {"all": len(self.results), "cached": cached, "uncached": len(self.results) - cached}

    # -- state machine ----------------------------------------------------

    def begin_search(self) -> Optional[int]:
        """Enter SEARCHING and return the new generation, or None while busy."""
        with self._lock:
            if self.busy:
                return None
            self._generation += 1
            self.state = SessionState.SEARCHING
            self.cache_map = {}
            self.message = ""
            return self._generation

    def is_current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._generation

    def apply_results(self, generation: int, results: List[SearchResult]) -> bool:
        with self._lock:
            if generation != self._generation:
                logger.debug(f"Discarding results of stale search #{generation}")
                self.event_bus.emit(Events.SEARCH_DISCARDED, {"generation": generation})
                return False
            self.results = list(results)
            self.state = SessionState.RESULTS_READY
        self.event_bus.emit(Events.SEARCH_COMPLETED, {"generation": generation, "count": len(results)})
        return True

    def apply_search_failure(self, generation: int, error: FinderError) -> bool:
        with self._lock:
            if generation != self._generation:
                return False
            self.results = []
            self.cache_map = {}
            self.state = SessionState.SEARCH_FAILED
            self.message = f"Search failed: {error.message}"
        self.event_bus.emit(Events.SEARCH_ERROR, {"generation": generation, "error": error.message})
        return True

    def begin_cache_check(self, generation: int) -> bool:
        with self._lock:
            if generation != self._generation or self.state is not SessionState.RESULTS_READY:
                return False
            self.state = SessionState.CACHE_CHECKING
        self.event_bus.emit(Events.CACHE_CHECK_STARTED, {"generation": generation})
        return True

    def apply_cache_map(self, generation: int, cache_map: CacheStatusMap) -> bool:
        with self._lock:
            if generation != self._generation:
                return False
            self.cache_map = dict(cache_map)
            self.state = SessionState.RESULTS_READY
        self.event_bus.emit(Events.CACHE_CHECK_COMPLETED, {"generation": generation, "count": len(cache_map)})
        return True

    def apply_cache_failure(self, generation: int, error: FinderError) -> bool:
        """Keep the results; only the cached filter goes empty."""
        with self._lock:
            if generation != self._generation:
                return False
            self.cache_map = {}
            self.state = SessionState.RESULTS_READY
            self.message = f"Cache check failed: {error.message}"
        self.event_bus.emit(Events.CACHE_CHECK_FAILED, {"generation": generation, "error": error.message})
        return True

    def cancel(self) -> None:
        """Abandon any in-flight search; its output will be discarded."""
        with self._lock:
            self._generation += 1
            if self.busy:
                self.state = SessionState.IDLE

    def reset(self) -> None:
        with self._lock:
            self._generation += 1
            self.state = SessionState.IDLE
            self.results = []
            self.cache_map = {}
            self.message = ""

    # -- actions ----------------------------------------------------------

    def search(self, query: str, provider: str = "torbox", limit: int = 50) -> bool:
        """
        Run search then, with a credential, the cache check.

        Returns False when the search was refused (one already running) or
        its output went stale; failures are reported through ``message``.
        """
        generation = self.begin_search()
        if generation is None:
            logger.warning("Search already in progress")
            return False
        self.event_bus.emit(Events.SEARCH_STARTED, {"generation": generation, "query": query})

        try:
            results = list(self.api.search(query, provider, limit))
        except FinderError as e:
            return self.apply_search_failure(generation, e)
        except Exception as e:
            logger.exception("Search failed unexpectedly")
            return self.apply_search_failure(generation, UpstreamError(f"Unexpected error: {e}"))
        if not self.apply_results(generation, results):
            return False

        credential = self.credential
        if not credential or not results:
            return True
        if not self.begin_cache_check(generation):
            return False
        try:
            cache_map = self.joiner.check_cached(results, credential)
        except FinderError as e:
            logger.warning(f"Cache check failed: {e.message}")
            return self.apply_cache_failure(generation, e)
        except Exception as e:
            logger.exception("Cache check failed unexpectedly")
            return self.apply_cache_failure(generation, UpstreamError(f"Unexpected error: {e}"))
        return self.apply_cache_map(generation, cache_map)

    def submit(self, magnet: str):
        """Send a magnet to TorBox with the session credential."""
        if not self.credential:
            self.message = "Add your TorBox API key first."
            raise AuthError("Missing Authorization")
        try:
            response = self.gateway.submit(magnet, self.credential)
        except FinderError as e:
            self.message = f"Add failed: {e.message}"
            self.event_bus.emit(Events.SUBMIT_FAILED, {"error": e.message})
            raise
        if response.ok:
            self.message = "Added to TorBox!"
            self.event_bus.emit(Events.SUBMIT_COMPLETED, {"status": response.status_code})
        else:
            self.message = f"Add failed: {response.text}"
            self.event_bus.emit(Events.SUBMIT_FAILED, {"status": response.status_code, "error": response.text})
        return response
