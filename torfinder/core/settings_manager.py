"""
Settings Manager
Holds application settings in memory, seeded from defaults and the environment
"""
from typing import Any, Dict, List, Optional, Union
import threading

from loguru import logger
from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnvOverrides(BaseSettings):
    """TORFINDER_* environment variables; unset or invalid fields stay None"""

    model_config = SettingsConfigDict(
        env_prefix="TORFINDER_",
        case_sensitive=False,
        env_ignore_empty=True,
        extra="ignore",
    )

    default_limit: Optional[int] = None
    max_limit: Optional[int] = None
    default_provider: Optional[str] = None

    torbox_search_url: Optional[str] = None
    torbox_api_url: Optional[str] = None
    torbox_request_timeout_seconds: Optional[float] = None

    text_proxy_url: Optional[str] = None
    x1337_base_url: Optional[str] = None
    piratebay_base_url: Optional[str] = None
    # str in the union lets comma separated values through when JSON decoding fails
    piratebay_api_endpoints: Union[List[str], str, None] = None
    piratebay_api_enabled: Optional[bool] = None
    scrape_request_timeout_seconds: Optional[float] = None
    scrape_detail_timeout_seconds: Optional[float] = None
    scrape_detail_concurrency: Optional[int] = None

    host: Optional[str] = None
    port: Optional[int] = None
    log_level: Optional[str] = None

    @field_validator("*", mode="wrap")
    @classmethod
    def _skip_invalid(cls, value, handler, info):
        try:
            return handler(value)
        except ValidationError as e:
            logger.warning(f"Ignoring TORFINDER_{info.field_name.upper()}: {e.errors()[0]['msg']}")
            return None

    @field_validator("piratebay_api_endpoints", mode="before")
    @classmethod
    def _split_endpoints(cls, value):
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        if isinstance(value, list):
            return [str(v) for v in value]
        return value


class SettingsManager:
    """Manages application settings; nothing is persisted"""

    DEFAULT_SETTINGS = {
        # Search
        "default_limit": 50,
        "max_limit": 100,
        "default_provider": "torbox",

        # TorBox
        "torbox_search_url": "https://search-api.torbox.app",
        "torbox_api_url": "https://api.torbox.app/v1/api",
        "torbox_request_timeout_seconds": 15.0,

        # Scraped sites
        "text_proxy_url": "https://r.jina.ai/",
        "x1337_base_url": "https://1337x.to",
        "piratebay_base_url": "https://thepiratebay.org",
        "piratebay_api_endpoints": [
            "https://apibay.org",
        ],
        "piratebay_api_enabled": True,
        "scrape_request_timeout_seconds": 20.0,
        "scrape_detail_timeout_seconds": 15.0,
        "scrape_detail_concurrency": 4,

        # Web
        "host": "127.0.0.1",
        "port": 8000,
        "log_level": "INFO",
    }

    def __init__(self, overrides: Optional[Dict[str, Any]] = None):
        self._lock = threading.RLock()
        self._settings: Dict[str, Any] = {}
        self._load()
        if overrides:
            self.update(overrides)

    def _load(self):
        """Load defaults, then apply TORFINDER_* environment overrides"""
        env = EnvOverrides().model_dump(exclude_none=True)
        with self._lock:
            self._settings = dict(self.DEFAULT_SETTINGS)
            self._settings.update(env)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a setting value"""
        with self._lock:
            return self._settings.get(key, default)

    def set(self, key: str, value: Any):
        """Set a setting value"""
        with self._lock:
            self._settings[str(key)] = value

    def update(self, settings_dict: Dict[str, Any]):
        """Update multiple settings at once"""
        with self._lock:
            self._settings.update(dict(settings_dict or {}))

    def get_all(self) -> Dict[str, Any]:
        """Get all settings"""
        with self._lock:
            return self._settings.copy()

    def reset(self):
        """Reset to defaults plus environment overrides"""
        self._load()
