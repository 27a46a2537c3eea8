"""
Submission Gateway
Sends one magnet to the debrid service; no retries
"""
from loguru import logger

from .errors import AuthError, ValidationError
from .magnet import extract_info_hash


class SubmissionGateway:
    """``backend`` exposes ``create_torrent(magnet, credential)`` returning an UpstreamResponse."""

    def __init__(self, backend):
        self.backend = backend

    def submit(self, magnet: str, credential: str):
        magnet = (magnet or "").strip()
        if not magnet:
            raise ValidationError("Missing magnet")
        if not (credential or "").strip():
            raise AuthError("Missing Authorization")

        response = self.backend.create_torrent(magnet, credential)
        label = extract_info_hash(magnet) or "unknown hash"
        if response.ok:
            logger.info(f"Submitted {label} ({response.status_code})")
        else:
            logger.warning(f"Submit of {label} rejected ({response.status_code})")
        return response
