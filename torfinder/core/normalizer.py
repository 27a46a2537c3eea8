"""
Result Normalizer
Maps provider-specific raw records onto SearchResult through declarative field tables
"""
import math
from typing import Any, Dict, Iterable, List, Optional, Sequence

from ..models.search_result import SearchResult

FieldMap = Dict[str, Sequence[str]]

# Canonical field -> raw keys tried in order; the first non-empty value wins.
DEFAULT_FIELD_MAP: FieldMap = {
    "title": ("title", "name"),
    "magnet": ("magnet", "magnet_link", "magnetURI"),
    "size": ("size", "filesize"),
    "seeders": ("seeders", "seeds"),
    "leechers": ("leechers", "peers"),
    "source": ("source", "provider"),
}

FIELD_MAPS: Dict[str, FieldMap] = {
    "torbox": {
        "title": ("title", "name", "raw_title"),
        "magnet": ("magnet", "magnet_link", "magnetURI"),
        "size": ("size", "filesize"),
        "seeders": ("seeders", "seeds", "last_known_seeders"),
        "leechers": ("leechers", "peers", "last_known_peers"),
        "source": ("source", "provider", "tracker"),
    },
    "1337x": DEFAULT_FIELD_MAP,
    "tpb": DEFAULT_FIELD_MAP,
}


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _first(record: Dict[str, Any], keys: Iterable[str]) -> Any:
    for key in keys:
        value = record.get(key)
        if not _is_empty(value):
            return value
    return None


def _to_count(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = value
    else:
        try:
            number = float(str(value).strip().replace(",", ""))
        except ValueError:
            return None
    # NaN and infinities are not counts
    if isinstance(number, float) and not math.isfinite(number):
        return None
    return int(number)


def _to_size(value: Any):
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, (int, float)):
        return value
    if value is None:
        return None
    text = str(value).strip()
    if text.isdigit():
        return int(text)
    return text


def normalize(
    records: Any,
    source_label: str,
    field_map: Optional[FieldMap] = None,
) -> List[SearchResult]:
    """
    Map raw provider records to SearchResult, dropping any without a magnet.

    ``source_label`` is used when a record names no source of its own.
    """
    mapping = field_map or FIELD_MAPS.get(source_label, DEFAULT_FIELD_MAP)
    if not isinstance(records, (list, tuple)):
        return []

    results: List[SearchResult] = []
    for record in records:
        if not isinstance(record, dict):
            continue
        magnet = _first(record, mapping.get("magnet", ()))
        if not isinstance(magnet, str) or not magnet.strip():
            continue
        title = _first(record, mapping.get("title", ()))
        source = _first(record, mapping.get("source", ()))
        results.append(SearchResult(
            title=str(title).strip() if title is not None else "",
            magnet=magnet.strip(),
            size=_to_size(_first(record, mapping.get("size", ()))),
            seeders=_to_count(_first(record, mapping.get("seeders", ()))),
            leechers=_to_count(_first(record, mapping.get("leechers", ()))),
            source=str(source) if source is not None else source_label,
        ))
    return results
