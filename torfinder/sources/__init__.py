from .base import BaseSource
from .piratebay import PirateBaySource
from .scraped import ScrapedSiteSource
from .torbox import TorBoxSearchSource
from .x1337 import X1337Source

__all__ = [
    "BaseSource",
    "PirateBaySource",
    "ScrapedSiteSource",
    "TorBoxSearchSource",
    "X1337Source",
]
