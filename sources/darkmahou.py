"""
================================================================================
DarkMahou v1.0 - DarkMahou Provider
================================================================================
Brazilian anime torrent site (darkmahou.io), WordPress based.

FLOW:
  1. Translate the query to Portuguese ("Season 2" -> "2ª temporada")
  2. GET /?s=<query> and pick the best matching anime page
  3. GET the anime page and collect its magnet links
  4. Parse each torrent name into episode/resolution/batch/group

Results, resolved pages and parsed torrent lists are cached for 5 minutes.
Every failure ends in an empty result, never an exception.
================================================================================
"""

import time
from datetime import datetime, timezone
from typing import Callable, List, Optional
from urllib.parse import quote

import requests

from darkmahou_app.config import DEFAULT_CONFIG, ProviderConfig
from darkmahou_app.search import AnimePageResolver, PortugueseTranslator, ResultCache, get_cache
from darkmahou_app.search.cache import MetricsSnapshot
from darkmahou_app.torrents import (
    extract_info_hash, extract_magnet_links, parse, torrent_name_from_magnet,
)
from darkmahou_app.torrents.models import is_valid_info_hash
from darkmahou_app.torrents.parser import is_valid_magnet_link

from .base import AnimeTorrent, BaseTorrentProvider, Media, source_log


TorrentFilter = Callable[[AnimeTorrent], bool]


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


class DarkMahouProvider(BaseTorrentProvider):
    """DarkMahou scraper provider."""

    # =========================================================================
    # CONFIGURATION
    # =========================================================================

    id = "darkmahou"
    name = "DarkMahou"
    base_url = DEFAULT_CONFIG.base_url

    rate_limit = 2.0
    rate_limit_burst = 4
    request_timeout = 20

    can_smart_search = True
    smart_search_filters = ["episodeNumber", "resolution", "query"]
    supports_adult = False
    provider_type = "main"

    def __init__(self, config: Optional[ProviderConfig] = None,
                 cache: Optional[ResultCache] = None,
                 session: Optional[requests.Session] = None):
        super().__init__()
        self.config = config or DEFAULT_CONFIG
        self.base_url = self.config.base_url
        self.request_timeout = self.config.request_timeout
        self.cache = cache if cache is not None else get_cache()
        self.resolver = AnimePageResolver(self.cache, self.config)
        self.translator = PortugueseTranslator()
        self.session = session if session is not None else requests.Session()
        self.session.headers.update({"User-Agent": self.config.user_agent})

    # =========================================================================
    # REQUEST HELPERS
    # =========================================================================

    def _request_html(self, url: str) -> Optional[str]:
        """Fetch HTML with rate limiting. None on any failure."""
        if not self.session:
            return None

        self._wait_for_rate_limit()

        try:
            response = self.session.get(url, timeout=self.request_timeout)
        except requests.RequestException as e:
            self._handle_error(str(e))
            self._log(f"⚠️ Request failed: {url} ({e})")
            return None

        if response.status_code == 200:
            self._handle_success()
            return response.text
        elif response.status_code == 403:
            self._handle_cloudflare()
        elif response.status_code == 429:
            self._handle_rate_limit(60)
        else:
            self._handle_error(f"HTTP {response.status_code}")

        self._log(f"⚠️ HTTP {response.status_code} for {url}")
        return None

    def _log(self, msg: str) -> None:
        source_log(msg)

    def _search_url(self, query: str) -> str:
        return f"{self.base_url}/?s={quote(query)}"

    # =========================================================================
    # PUBLIC API METHODS
    # =========================================================================

    def search(self, query: str, media: Optional[Media] = None) -> List[AnimeTorrent]:
        """Search torrents for the anime page best matching query."""
        start = time.perf_counter()
        try:
            return self._search(query)
        except Exception as e:
            self._log(f"❌ Error in search: {e}")
            return []
        finally:
            self.cache.metrics.record_search_time(_elapsed_ms(start))

    def _search(self, query: str) -> List[AnimeTorrent]:
        if not query or not query.strip():
            return []

        self._log(f"🔍 Searching DarkMahou: {query}")

        cache_key = f"search_{query}"
        cached = self.cache.get(cache_key)
        if cached:
            self._log(f"⚡ Cache hit for search: {query}")
            return cached

        converted_query = self.translator.parse(query)
        html = self._request_html(self._search_url(converted_query))
        if not html:
            return []

        page_url = self.resolver.resolve_page_url(html, converted_query)
        if not page_url:
            self._log(f"No anime page found for: {query}")
            return []

        self._log(f"📺 Found anime page: {page_url}")
        results = self._fetch_torrents(page_url)

        if results:
            self.cache.set(cache_key, results)
        self._log(f"✅ Found {len(results)} torrents")
        return results

    def smart_search(self, query: str = "", episode_number: int = 0,
                     resolution: str = "", batch: bool = False,
                     media: Optional[Media] = None) -> List[AnimeTorrent]:
        """
        Search, then keep torrents matching the requested filters.

        Batches and unknown episodes always pass the episode filter, since
        they may contain the requested episode.
        """
        if not query and media:
            query = media.romaji_title or media.english_title or ""
        if not query:
            return []

        self._log(f"🎯 Smart search for: {query} - Episode: {episode_number or 1}")
        results = self.search(query, media)
        if not results:
            return []

        return self.apply_filters(results, self.build_filters(episode_number, resolution, batch))

    @staticmethod
    def build_filters(episode_number: int = 0, resolution: str = "",
                      batch: bool = False) -> List[TorrentFilter]:
        filters: List[TorrentFilter] = []

        if episode_number and episode_number > 0:
            filters.append(lambda t: (
                t.episode_number == episode_number
                or t.is_batch
                or t.episode_number == -1
            ))

        if resolution:
            filters.append(lambda t: not t.resolution or resolution in t.resolution)

        if batch:
            filters.append(lambda t: t.is_batch)

        return filters

    @staticmethod
    def apply_filters(results: List[AnimeTorrent], filters: List[TorrentFilter]) -> List[AnimeTorrent]:
        for torrent_filter in filters:
            results = [t for t in results if torrent_filter(t)]
        return results

    def get_torrent_info_hash(self, torrent: AnimeTorrent) -> str:
        """Stored info hash if valid, else derived from the magnet link."""
        if not isinstance(torrent, AnimeTorrent):
            self._log("Invalid torrent object provided")
            return ""

        if is_valid_info_hash(torrent.info_hash):
            return torrent.info_hash.lower()

        if is_valid_magnet_link(torrent.magnet_link):
            info_hash = extract_info_hash(torrent.magnet_link)
            if info_hash:
                return info_hash

        self._log(f"No valid info hash found for torrent: {torrent.name or 'Unknown'}")
        return ""

    def get_torrent_magnet_link(self, torrent: AnimeTorrent) -> str:
        if not isinstance(torrent, AnimeTorrent):
            self._log("Invalid torrent object provided")
            return ""

        if is_valid_magnet_link(torrent.magnet_link):
            return torrent.magnet_link

        self._log(f"No valid magnet link found for torrent: {torrent.name or 'Unknown'}")
        return ""

    def get_latest(self) -> List[AnimeTorrent]:
        """DarkMahou has no latest listing."""
        return []

    def get_performance_metrics(self) -> MetricsSnapshot:
        metrics = self.cache.get_metrics()
        self._log(
            f"📊 Performance: search={metrics.search_time:.0f}ms parse={metrics.parse_time:.0f}ms "
            f"hits={metrics.cache_hits} misses={metrics.cache_misses} "
            f"fuzzy={metrics.fuzzy_match_count} efficiency={metrics.cache_efficiency:.1f}%"
        )
        return metrics

    # =========================================================================
    # TORRENT PAGE PARSING
    # =========================================================================

    def _fetch_torrents(self, page_url: str) -> List[AnimeTorrent]:
        html = self._request_html(page_url)
        if not html:
            return []
        return self.parse_torrents(html, page_url)

    def parse_torrents(self, html: str, page_url: str) -> List[AnimeTorrent]:
        """Parse the magnet links of an anime page (cached per page URL)."""
        start = time.perf_counter()
        try:
            cache_key = f"torrents_{page_url}"
            cached = self.cache.get(cache_key)
            if cached:
                return cached

            results = [
                self._create_torrent(candidate.link, candidate.episode_title, page_url, index)
                for index, candidate in enumerate(extract_magnet_links(html), start=1)
            ]
            self._log(f"Found {len(results)} unique torrents on {page_url}")

            if results:
                self.cache.set(cache_key, results)
            return results
        except Exception as e:
            self._log(f"❌ Error parsing torrents: {e}")
            return []
        finally:
            self.cache.metrics.record_parse_time(_elapsed_ms(start))

    def _create_torrent(self, magnet_link: str, episode_title: str,
                        page_url: str, index: int) -> AnimeTorrent:
        name = torrent_name_from_magnet(magnet_link, index)
        metadata = parse(name, episode_title, magnet_link)
        return AnimeTorrent(
            name=name,
            link=page_url,
            magnet_link=magnet_link,
            info_hash=metadata.info_hash,
            resolution=metadata.resolution,
            is_batch=metadata.is_batch,
            episode_number=metadata.episode_number,
            release_group=metadata.release_group,
            date=datetime.now(timezone.utc).isoformat(),
        )
