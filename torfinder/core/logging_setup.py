"""
Logging setup
Single loguru sink shared by the web app and the CLI client
"""
import sys

from loguru import logger

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


def setup_logging(level: str = "INFO", sink=None) -> None:
    """Replace loguru's default handler with the app format at ``level``."""
    logger.remove()
    logger.add(
        sink if sink is not None else sys.stderr,
        format=LOG_FORMAT,
        level=str(level or "INFO").upper(),
    )


def mask_secret(value: str) -> str:
    """Mask a credential for log output, keeping the last 4 chars."""
    text = str(value or "")
    if text.lower().startswith("bearer "):
        text = text[7:]
    if len(text) <= 4:
        return "****"
    return f"****{text[-4:]}"
