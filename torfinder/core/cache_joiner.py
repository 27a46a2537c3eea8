"""
Cache-Status Joiner
Correlates search results with the debrid service's cache status by info hash
"""
from typing import Any, Dict, Iterable, List

from loguru import logger

from ..models.search_result import SearchResult
from .errors import AuthError, UpstreamError
from .magnet import extract_info_hash

CacheStatusMap = Dict[str, bool]


def collect_hashes(results: Iterable[SearchResult]) -> List[str]:
    """Derivable info hashes of ``results``, deduplicated, in first-seen order."""
    seen = set()
    hashes: List[str] = []
    for result in results:
        info_hash = extract_info_hash(getattr(result, "magnet", None))
        if info_hash and info_hash not in seen:
            seen.add(info_hash)
            hashes.append(info_hash)
    return hashes


def parse_cache_payload(payload: Any, requested: Iterable[str]) -> CacheStatusMap:
    """
    Turn an upstream cache response into a CacheStatusMap.

    Accepts ``{hash: record}`` or that mapping under ``data``. Only hashes
    that were requested are kept.
    """
    wanted = {h.lower() for h in requested}
    if isinstance(payload, dict) and "data" in payload and not any(
        str(k).lower() in wanted for k in payload.keys()
    ):
        payload = payload.get("data")

    status: CacheStatusMap = {}
    if isinstance(payload, dict):
        for key, record in payload.items():
            info_hash = str(key).lower()
            if info_hash not in wanted:
                continue
            if isinstance(record, dict) and "cached" in record:
                status[info_hash] = bool(record.get("cached"))
            else:
                # TorBox's object format only lists hashes it holds
                status[info_hash] = bool(record)
    elif isinstance(payload, list):
        for record in payload:
            if not isinstance(record, dict):
                continue
            info_hash = str(record.get("hash") or "").lower()
            if info_hash in wanted:
                status[info_hash] = bool(record.get("cached", True))
    return status


class CacheStatusJoiner:
    """
    Issues one batched cache check for a result list.

    ``backend`` is anything with ``check_cached(hashes, credential)``
    returning an UpstreamResponse: the TorBox client on the server, the
    finder API client on the client side.
    """

    def __init__(self, backend):
        self.backend = backend

    def check_cached(self, results: Iterable[SearchResult], credential: str) -> CacheStatusMap:
        if not credential:
            raise AuthError("Missing Authorization")
        hashes = collect_hashes(results)
        if not hashes:
            return {}

        response = self.backend.check_cached(hashes, credential)
        if not response.ok:
            raise UpstreamError(
                f"Cache check failed ({response.status_code})",
                status_code=response.status_code,
                body=response.text,
            )
        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamError("Cache check returned malformed JSON", body=response.text) from e

        status = parse_cache_payload(payload, hashes)
        cached = sum(1 for v in status.values() if v)
        logger.debug(f"Cache check: {cached}/{len(hashes)} cached, {len(hashes) - len(status)} unknown")
        return status
