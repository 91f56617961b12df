from urllib.parse import quote

from darkmahou_app.config import ProviderConfig
from darkmahou_app.search import ResultCache
from sources import AnimeTorrent, Media, SourceStatus
from sources.darkmahou import DarkMahouProvider

from conftest import FRIEREN_URL, FakeResponse, FakeSession, search_url


EP7_NAME = "[SubsPlease] Sousou no Frieren - 07 (1080p)"
EP8_NAME = "[SubsPlease] Sousou no Frieren - 08 (720p)"
BATCH_NAME = "[DKB] Sousou no Frieren 01-28 (Batch) [1080p]"


def test_search_parses_every_unique_torrent(provider, site_session):
    results = provider.search("Sousou no Frieren")

    assert [t.name for t in results] == [EP7_NAME, EP8_NAME, BATCH_NAME]
    assert site_session.calls == [search_url("Sousou no Frieren"), FRIEREN_URL]

    ep7 = results[0]
    assert ep7.link == FRIEREN_URL
    assert ep7.info_hash == "a" * 40
    assert ep7.episode_number == 7
    assert ep7.resolution == "1080p"
    assert ep7.release_group == "SubsPlease"
    assert ep7.is_batch is False

    batch = results[2]
    assert batch.is_batch is True
    assert batch.episode_number == -1


def test_user_agent_header_is_set(provider, site_session):
    assert site_session.headers["User-Agent"] == provider.config.user_agent


def test_repeated_search_is_served_from_cache(provider, site_session):
    first = provider.search("Sousou no Frieren")
    second = provider.search("sousou  no frieren")

    assert [t.name for t in second] == [t.name for t in first]
    assert len(site_session.calls) == 2
    assert provider.get_performance_metrics().cache_hits >= 1


def test_cached_results_are_copies(provider):
    provider.search("Sousou no Frieren")[0].name = "changed"
    assert provider.search("Sousou no Frieren")[0].name == EP7_NAME


def test_smart_search_episode_keeps_batches(provider):
    results = provider.smart_search("Sousou no Frieren", episode_number=7)
    assert [t.name for t in results] == [EP7_NAME, BATCH_NAME]


def test_smart_search_resolution(provider):
    results = provider.smart_search("Sousou no Frieren", resolution="720p")
    assert [t.name for t in results] == [EP8_NAME]


def test_smart_search_batch_only(provider):
    results = provider.smart_search("Sousou no Frieren", batch=True)
    assert [t.name for t in results] == [BATCH_NAME]


def test_smart_search_falls_back_to_media_title(provider):
    results = provider.smart_search(media=Media(romaji_title="Sousou no Frieren"))
    assert len(results) == 3
    assert provider.smart_search() == []


def test_unknown_torrents_pass_episode_filter():
    unknown = AnimeTorrent(name="Episode 1", link="")
    other = AnimeTorrent(name="x", link="", episode_number=3)
    filters = DarkMahouProvider.build_filters(episode_number=5)
    assert DarkMahouProvider.apply_filters([unknown, other], filters) == [unknown]


def test_query_is_translated_before_searching():
    session = FakeSession()
    provider = DarkMahouProvider(cache=ResultCache(), session=session)

    assert provider.search("Frieren Season 2") == []
    assert session.calls == [search_url("Frieren 2ª temporada")]


def test_base_url_comes_from_config():
    session = FakeSession()
    config = ProviderConfig(base_url="https://mirror.example")
    provider = DarkMahouProvider(config=config, cache=ResultCache(), session=session)

    provider.search("Frieren")
    assert session.calls == [f"https://mirror.example/?s={quote('Frieren')}"]


def test_http_error_returns_empty_and_tracks_failure():
    provider = DarkMahouProvider(cache=ResultCache(), session=FakeSession())

    assert provider.search("Dungeon Meshi") == []
    health = provider.get_health_info()
    assert health["failure_count"] == 1
    assert health["last_error"] == "HTTP 404"


def test_network_error_returns_empty(connection_error):
    provider = DarkMahouProvider(cache=ResultCache(), session=FakeSession(error=connection_error))

    assert provider.search("Sousou no Frieren") == []
    assert "connection refused" in provider.get_health_info()["last_error"]


def test_cloudflare_block_marks_provider_unavailable():
    session = FakeSession({search_url("Frieren"): FakeResponse(403, "Just a moment...")})
    provider = DarkMahouProvider(cache=ResultCache(), session=session)

    assert provider.search("Frieren") == []
    assert provider.status == SourceStatus.CLOUDFLARE
    assert provider.is_available is False

    provider.reset()
    assert provider.status == SourceStatus.UNKNOWN


def test_no_matching_page_returns_empty():
    session = FakeSession({search_url("Frieren"): "<html><body>Nada encontrado</body></html>"})
    provider = DarkMahouProvider(cache=ResultCache(), session=session)

    assert provider.search("Frieren") == []
    assert provider.status == SourceStatus.ONLINE


def test_blank_query():
    session = FakeSession()
    provider = DarkMahouProvider(cache=ResultCache(), session=session)
    assert provider.search("   ") == []
    assert session.calls == []


def test_parse_torrents_without_magnets(provider):
    assert provider.parse_torrents("<html></html>", FRIEREN_URL) == []


def test_torrent_info_hash(provider):
    stored = AnimeTorrent(name="a", link="", info_hash="ABCDEF0123456789ABCDEF0123456789ABCDEF01")
    assert provider.get_torrent_info_hash(stored) == "abcdef0123456789abcdef0123456789abcdef01"

    derived = AnimeTorrent(name="b", link="", magnet_link=f"magnet:?xt=urn:btih:{'C' * 40}&dn=b")
    assert provider.get_torrent_info_hash(derived) == "c" * 40

    assert provider.get_torrent_info_hash(AnimeTorrent(name="c", link="")) == ""
    assert provider.get_torrent_info_hash("not a torrent") == ""


def test_torrent_magnet_link(provider):
    link = f"magnet:?xt=urn:btih:{'C' * 40}&dn=b"
    assert provider.get_torrent_magnet_link(AnimeTorrent(name="b", link="", magnet_link=link)) == link
    assert provider.get_torrent_magnet_link(AnimeTorrent(name="c", link="", magnet_link="http://x")) == ""
    assert provider.get_torrent_magnet_link(None) == ""


def test_settings_and_latest(provider):
    assert provider.get_settings() == {
        "canSmartSearch": True,
        "smartSearchFilters": ["episodeNumber", "resolution", "query"],
        "supportsAdult": False,
        "type": "main",
    }
    assert provider.get_latest() == []


def test_performance_metrics_accumulate(provider):
    provider.search("Sousou no Frieren")
    metrics = provider.get_performance_metrics()

    assert metrics.search_time > 0
    assert metrics.parse_time > 0
    assert metrics.cache_misses >= 1
    assert metrics.fuzzy_match_count >= 1


def test_torrent_to_dict_uses_host_keys(provider):
    data = provider.search("Sousou no Frieren")[0].to_dict()
    assert data["magnetLink"].startswith("magnet:?xt=urn:btih:")
    assert data["episodeNumber"] == 7
    assert data["isBatch"] is False
    assert data["formattedSize"] == "N/A"
