"""
================================================================================
DarkMahou v1.0 - Provider Registry
================================================================================
Holds the provider instance shared by the Flask routes.

The provider is built lazily from the environment (ProviderConfig.from_env())
with its own ResultCache sized from the same config.
================================================================================
"""

import threading
from typing import Optional

from darkmahou_app.config import ProviderConfig
from darkmahou_app.search import ResultCache

from .base import (
    AnimeTorrent, BaseTorrentProvider, Media, SourceStatus, set_log_callback, source_log,
)
from .darkmahou import DarkMahouProvider


_provider: Optional[DarkMahouProvider] = None
_provider_lock = threading.Lock()


def get_provider() -> DarkMahouProvider:
    """Get the global provider instance."""
    global _provider
    with _provider_lock:
        if _provider is None:
            config = ProviderConfig.from_env()
            cache = ResultCache(ttl=config.cache_ttl, max_size=config.cache_max_size)
            _provider = DarkMahouProvider(config, cache=cache)
        return _provider


def set_provider(provider: Optional[DarkMahouProvider]) -> None:
    """Replace the global provider (tests inject one with a fake session)."""
    global _provider
    with _provider_lock:
        _provider = provider


def reset_provider() -> None:
    set_provider(None)


__all__ = [
    'AnimeTorrent', 'BaseTorrentProvider', 'Media', 'SourceStatus',
    'DarkMahouProvider', 'get_provider', 'set_provider', 'reset_provider',
    'set_log_callback', 'source_log',
]
