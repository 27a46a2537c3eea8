"""
Magnet identity
Derives the canonical info hash used to correlate results with cache status.
"""
import base64
import binascii
import re
from typing import Iterable, Optional
from urllib.parse import parse_qs, quote

_HEX_HASH = re.compile(r"^[0-9a-fA-F]{40}$")
_B32_HASH = re.compile(r"^[A-Za-z2-7]{32}$")
_BTIH_PREFIX = "urn:btih:"

DEFAULT_TRACKERS = [
    "udp://tracker.opentrackr.org:1337/announce",
    "udp://open.stealth.si:80/announce",
    "udp://tracker.torrent.eu.org:451/announce",
    "udp://exodus.desync.com:6969/announce",
]


def _normalize_btih(value: str) -> Optional[str]:
    value = value.strip()
    if _HEX_HASH.match(value):
        return value.lower()
    if _B32_HASH.match(value):
        try:
            return binascii.hexlify(base64.b32decode(value.upper())).decode("ascii")
        except (binascii.Error, ValueError):
            return None
    return None


def extract_info_hash(magnet_uri) -> Optional[str]:
    """
    Return the lower-case hex BitTorrent info hash of a magnet URI, or None.

    Never raises: anything that is not a magnet with a ``urn:btih:`` exact
    topic (hex or base32) yields None.
    """
    if not isinstance(magnet_uri, str):
        return None
    text = magnet_uri.strip()
    if not text.lower().startswith("magnet:?"):
        return None
    try:
        params = parse_qs(text.split("?", 1)[1], keep_blank_values=False)
    except (ValueError, UnicodeError):
        return None

    for key, values in params.items():
        if key.lower() != "xt" and not re.match(r"^xt\.\d+$", key.lower()):
            continue
        for topic in values:
            if not topic.lower().startswith(_BTIH_PREFIX):
                continue
            info_hash = _normalize_btih(topic[len(_BTIH_PREFIX):])
            if info_hash:
                return info_hash
    return None


def build_magnet(info_hash: str, title: str = "", trackers: Optional[Iterable[str]] = None) -> str:
    """Build a magnet URI from a known info hash."""
    tracker_list = DEFAULT_TRACKERS if trackers is None else list(trackers)
    dn = f"&dn={quote(title, safe='')}" if title else ""
    tr = "".join(f"&tr={quote(t, safe='')}" for t in tracker_list)
    return f"magnet:?xt=urn:btih:{info_hash}{dn}{tr}"
