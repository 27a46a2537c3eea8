"""Runtime bootstrap for the finder web API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.cache_joiner import CacheStatusJoiner
from ..core.event_bus import EventBus
from ..core.logging_setup import setup_logging
from ..core.settings_manager import SettingsManager
from ..core.source_manager import SourceManager
from ..core.submission import SubmissionGateway
from ..services.torbox_client import TorBoxClient
from ..sources.piratebay import PirateBaySource
from ..sources.torbox import TorBoxSearchSource
from ..sources.x1337 import X1337Source


@dataclass
class FinderRuntime:
    """Shared service graph used by web endpoints."""

    settings: SettingsManager
    event_bus: EventBus
    torbox: TorBoxClient
    source_manager: SourceManager
    joiner: CacheStatusJoiner
    gateway: SubmissionGateway


def build_runtime(settings: Optional[SettingsManager] = None, configure_logging: bool = True) -> FinderRuntime:
    """Create and wire core services."""

    settings = settings or SettingsManager()
    if configure_logging:
        setup_logging(settings.get("log_level", "INFO"))
    event_bus = EventBus()
    torbox = TorBoxClient(settings)
    source_manager = SourceManager(event_bus, max_limit=int(settings.get("max_limit", 100) or 100))

    # Registration order is the order providers are listed in
    source_manager.register(TorBoxSearchSource(settings))
    source_manager.register(X1337Source(settings))
    source_manager.register(PirateBaySource(settings))

    return FinderRuntime(
        settings=settings,
        event_bus=event_bus,
        torbox=torbox,
        source_manager=source_manager,
        joiner=CacheStatusJoiner(torbox),
        gateway=SubmissionGateway(torbox),
    )
