"""
================================================================================
DarkMahou v1.0 - Base Torrent Provider
================================================================================
Abstract base class for anime torrent providers.

Every provider exposes the same interface to the host:
  1. search(query)        -> torrents for the best matching anime page
  2. smart_search(...)    -> search() narrowed by episode/resolution/batch
  3. get_torrent_info_hash(torrent) / get_torrent_magnet_link(torrent)
  4. get_latest()         -> recent releases (may be empty)

RATE LIMITING:
  - Token bucket algorithm prevents hammering servers
  - Automatic cooldown on 429/403 responses
================================================================================
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Dict, Any, Callable
from enum import Enum
import time
import threading
import random


# =============================================================================
# LOGGING CALLBACK (avoids circular imports)
# =============================================================================

# Global logger callback - set by the app factory on startup
_log_callback: Optional[Callable[[str], None]] = None


def set_log_callback(callback: Optional[Callable[[str], None]]) -> None:
    """Set the logging callback function. Called by create_app() on startup."""
    global _log_callback
    _log_callback = callback


def source_log(msg: str) -> None:
    """Log a message using the registered callback or fallback to print."""
    if _log_callback:
        _log_callback(msg)
    else:
        print(msg)


# =============================================================================
# ENUMS & DATA CLASSES
# =============================================================================

class SourceStatus(Enum):
    """Current operational status of a provider."""
    ONLINE = "online"
    RATE_LIMITED = "rate_limited"
    CLOUDFLARE = "cloudflare"
    OFFLINE = "offline"
    UNKNOWN = "unknown"


@dataclass
class Media:
    """The anime the host is looking for."""
    id: int = 0
    romaji_title: Optional[str] = None
    english_title: Optional[str] = None


@dataclass
class AnimeTorrent:
    """
    Standardized torrent entry returned to the host.

    Sizes, seeders and dates are not published by the site, so they keep
    their neutral defaults.
    """
    name: str
    link: str                        # Anime page the torrent was found on
    magnet_link: str = ""
    info_hash: str = ""
    resolution: str = ""
    is_batch: bool = False
    episode_number: int = -1
    release_group: str = ""
    date: str = ""
    size: int = 0
    formatted_size: str = "N/A"
    seeders: int = 0
    leechers: int = 0
    download_count: int = 0
    download_url: str = ""
    is_best_release: bool = False
    confirmed: bool = True

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the host's JSON shape (camelCase keys)."""
        return {
            "name": self.name,
            "date": self.date,
            "size": self.size,
            "formattedSize": self.formatted_size,
            "seeders": self.seeders,
            "leechers": self.leechers,
            "downloadCount": self.download_count,
            "link": self.link,
            "downloadUrl": self.download_url,
            "magnetLink": self.magnet_link,
            "infoHash": self.info_hash,
            "resolution": self.resolution,
            "isBatch": self.is_batch,
            "episodeNumber": self.episode_number,
            "releaseGroup": self.release_group,
            "isBestRelease": self.is_best_release,
            "confirmed": self.confirmed,
        }


# =============================================================================
# BASE PROVIDER CLASS
# =============================================================================

class BaseTorrentProvider(ABC):
    """
    Abstract base class for anime torrent providers.

    RATE LIMITING:
        Built-in token bucket rate limiter prevents server abuse.
        Configure via rate_limit and rate_limit_burst attributes.

    Example:
        class NyaaProvider(BaseTorrentProvider):
            id = "nyaa"
            name = "Nyaa"
            rate_limit = 1.0

            def search(self, query, media=None):
                ...
    """

    # =========================================================================
    # PROVIDER CONFIGURATION (Override in subclass)
    # =========================================================================

    id: str = "base"
    name: str = "Base Provider"
    base_url: str = ""

    # Rate limiting (requests per second)
    rate_limit: float = 2.0
    rate_limit_burst: int = 5
    request_timeout: int = 15

    # Feature flags
    can_smart_search: bool = False
    smart_search_filters: List[str] = []
    supports_adult: bool = False
    provider_type: str = "main"

    # =========================================================================
    # INITIALIZATION
    # =========================================================================

    def __init__(self):
        """Initialize provider with rate limiter state."""
        self._status = SourceStatus.UNKNOWN
        self._last_error: Optional[str] = None
        self._failure_count = 0
        self._cooldown_until = 0.0

        self._lock = threading.Lock()

        # Token bucket for rate limiting
        self._tokens = float(self.rate_limit_burst)
        self._last_request = time.time()

        self.session = None

    # =========================================================================
    # RATE LIMITING (Token Bucket Algorithm)
    # =========================================================================

    def _wait_for_rate_limit(self) -> None:
        """
        Block until a token is available for a request.

        TOKEN BUCKET ALGORITHM:
          - Bucket holds up to `rate_limit_burst` tokens
          - Tokens regenerate at `rate_limit` per second
          - Each request consumes 1 token
        """
        with self._lock:
            now = time.time()

            # Cooldown from 429/Cloudflare
            if now < self._cooldown_until:
                time.sleep(self._cooldown_until - now)
                now = time.time()

            time_passed = now - self._last_request
            self._tokens = min(
                self.rate_limit_burst,
                self._tokens + time_passed * self.rate_limit
            )

            if self._tokens < 1:
                wait_time = (1 - self._tokens) / self.rate_limit
                # Small jitter to prevent thundering herd
                wait_time += random.uniform(0.05, 0.15)
                time.sleep(wait_time)
                self._tokens = 1

            self._tokens -= 1
            self._last_request = time.time()

    # =========================================================================
    # STATUS MANAGEMENT
    # =========================================================================

    def _handle_rate_limit(self, retry_after: int = 60) -> None:
        """Handle 429 Too Many Requests response."""
        with self._lock:
            self._cooldown_until = time.time() + retry_after
            self._status = SourceStatus.RATE_LIMITED
            self._failure_count += 1

    def _handle_cloudflare(self) -> None:
        """Handle Cloudflare protection detection."""
        with self._lock:
            self._status = SourceStatus.CLOUDFLARE
            self._cooldown_until = time.time() + 300
            self._failure_count += 1

    def _handle_success(self) -> None:
        with self._lock:
            self._status = SourceStatus.ONLINE
            self._failure_count = 0

    def _handle_error(self, error: str) -> None:
        """Track errors; five in a row takes the provider offline for 5 minutes."""
        with self._lock:
            self._last_error = error
            self._failure_count += 1
            if self._failure_count >= 5:
                self._status = SourceStatus.OFFLINE
                self._cooldown_until = time.time() + 300

    @property
    def status(self) -> SourceStatus:
        """Current status, accounting for cooldown expiry."""
        if self._cooldown_until > 0 and time.time() >= self._cooldown_until:
            with self._lock:
                self._status = SourceStatus.UNKNOWN
                self._cooldown_until = 0
        return self._status

    @property
    def is_available(self) -> bool:
        return self.status in (SourceStatus.ONLINE, SourceStatus.UNKNOWN)

    def get_health_info(self) -> Dict[str, Any]:
        """Get health info for status display."""
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status.value,
            "is_available": self.is_available,
            "failure_count": self._failure_count,
            "last_error": self._last_error,
            "cooldown_remaining": max(0, self._cooldown_until - time.time())
        }

    def reset(self) -> None:
        """Reset all error states."""
        with self._lock:
            self._status = SourceStatus.UNKNOWN
            self._failure_count = 0
            self._cooldown_until = 0
            self._last_error = None
            self._tokens = float(self.rate_limit_burst)

    # =========================================================================
    # HOST INTERFACE
    # =========================================================================

    def get_settings(self) -> Dict[str, Any]:
        return {
            "canSmartSearch": self.can_smart_search,
            "smartSearchFilters": list(self.smart_search_filters),
            "supportsAdult": self.supports_adult,
            "type": self.provider_type,
        }

    @abstractmethod
    def search(self, query: str, media: Optional[Media] = None) -> List[AnimeTorrent]:
        """
        Search torrents by anime title.

        Returns:
            List of AnimeTorrent (empty on any failure)
        """
        pass

    def smart_search(self, query: str = "", episode_number: int = 0,
                     resolution: str = "", batch: bool = False,
                     media: Optional[Media] = None) -> List[AnimeTorrent]:
        """Search narrowed by episode, resolution and batch flags."""
        return []

    def get_torrent_info_hash(self, torrent: AnimeTorrent) -> str:
        return ""

    def get_torrent_magnet_link(self, torrent: AnimeTorrent) -> str:
        return ""

    def get_latest(self) -> List[AnimeTorrent]:
        """Get recently released torrents."""
        return []

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} id='{self.id}' status={self.status.value}>"
