import pytest

from darkmahou_app import create_app
from darkmahou_app.search import ResultCache
from sources import reset_provider, set_provider
from sources.darkmahou import DarkMahouProvider


@pytest.fixture
def client(site_session):
    # Keep tests offline: inject a provider backed by canned pages
    set_provider(DarkMahouProvider(cache=ResultCache(), session=site_session))
    app = create_app({"TESTING": True})
    with app.test_client() as client:
        yield client
    reset_provider()


def test_search(client):
    resp = client.get("/api/search", query_string={"q": "Sousou no Frieren"})
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["count"] == 3
    assert data["results"][0]["episodeNumber"] == 7
    assert data["results"][2]["isBatch"] is True


def test_search_requires_query(client):
    resp = client.get("/api/search?q=%20")
    assert resp.status_code == 400
    assert resp.get_json()["code"] == "missing_query"


def test_smart_search_filters(client):
    resp = client.get("/api/search/smart", query_string={
        "q": "Sousou no Frieren", "episode": "8", "resolution": "720",
    })
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["resolution"] == "720p"
    assert [t["episodeNumber"] for t in data["results"]] == [8]


def test_smart_search_batch_flag(client):
    resp = client.get("/api/search/smart?q=Sousou+no+Frieren&batch=true")
    assert [t["isBatch"] for t in resp.get_json()["results"]] == [True]


def test_smart_search_uses_media_title(client):
    resp = client.get("/api/search/smart?romaji=Sousou+no+Frieren")
    assert resp.get_json()["count"] == 3


@pytest.mark.parametrize("params, code", [
    ({"q": "Frieren", "episode": "abc"}, "invalid_episode"),
    ({"q": "Frieren", "episode": "10000"}, "invalid_episode"),
    ({"q": "Frieren", "resolution": "2160p"}, "invalid_resolution"),
    ({"episode": "1"}, "missing_query"),
])
def test_smart_search_validation(client, params, code):
    resp = client.get("/api/search/smart", query_string=params)
    assert resp.status_code == 400
    assert resp.get_json()["code"] == code


def test_resolve(client):
    html = '<a href="https://darkmahou.io/sousou-no-frieren/" title="Sousou no Frieren">x</a>'
    resp = client.post("/api/resolve", json={"html": html, "query": "Sousou no Frieren"})
    assert resp.status_code == 200
    assert resp.get_json()["url"] == "https://darkmahou.io/sousou-no-frieren/"


def test_resolve_without_match(client):
    resp = client.post("/api/resolve", json={"html": "<p></p>", "query": "Frieren"})
    assert resp.get_json()["url"] == ""


def test_resolve_requires_fields(client):
    resp = client.post("/api/resolve", json={"query": "Frieren"})
    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Missing required field: html", "code": "invalid_request"}


def test_parse(client):
    resp = client.post("/api/parse", json={
        "name": "[Erai-raws] Oshi no Ko S02E03 [720p]",
        "magnet_link": "magnet:?xt=urn:btih:" + "F" * 40,
    })
    assert resp.status_code == 200
    assert resp.get_json() == {
        "name": "[Erai-raws] Oshi no Ko S02E03 [720p]",
        "info_hash": "f" * 40,
        "resolution": "720p",
        "is_batch": False,
        "episode_number": 3,
        "release_group": "Erai-raws",
    }


def test_parse_rejects_bad_payload(client):
    assert client.post("/api/parse", json={}).status_code == 400
    assert client.post("/api/parse", json={"name": 5}).status_code == 400
    assert client.post("/api/parse", json={"name": "x", "episode_title": 3}).status_code == 400


def test_settings(client):
    data = client.get("/api/settings").get_json()
    assert data["canSmartSearch"] is True
    assert "episodeNumber" in data["smartSearchFilters"]


def test_metrics(client):
    client.get("/api/search?q=Sousou+no+Frieren")
    data = client.get("/api/metrics").get_json()
    assert set(data) == {
        "search_time_ms", "parse_time_ms", "cache_hits", "cache_misses",
        "fuzzy_match_count", "cache_efficiency",
    }
    assert data["cache_misses"] >= 1


def test_health(client):
    data = client.get("/api/health").get_json()
    assert data["id"] == "darkmahou"
    assert data["status"] == "unknown"


def test_unknown_route(client):
    resp = client.get("/api/nope")
    assert resp.status_code == 404
    assert resp.get_json()["code"] == "not_found"
