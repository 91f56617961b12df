import os
import tempfile
from urllib.parse import quote

import pytest
import requests

# Keep log files out of the source tree
os.environ.setdefault("DARKMAHOU_LOG_DIR", tempfile.mkdtemp(prefix="darkmahou-logs-"))

from darkmahou_app.search import ResultCache  # noqa: E402
from sources.darkmahou import DarkMahouProvider  # noqa: E402


BASE_URL = "https://darkmahou.io"
FRIEREN_URL = f"{BASE_URL}/sousou-no-frieren/"

HASH_EP7 = "A" * 40
HASH_EP8 = "b" * 40
HASH_BATCH = "0123456789abcdef0123456789abcdef01234567"


def magnet(info_hash, name):
    return f"magnet:?xt=urn:btih:{info_hash}&dn={quote(name)}"


def anchor_list(*anchors):
    """Search results page with (url, title) anchors in order."""
    links = "".join(
        f'<article><a href="{url}" title="{title}">{title}</a></article>'
        for url, title in anchors
    )
    return f"<html><body><div class='listupd'>{links}</div></body></html>"


SEARCH_PAGE = anchor_list(
    (f"{BASE_URL}/page/2/", "Próxima"),
    (f"{BASE_URL}/dungeon-meshi/", "Dungeon Meshi"),
    (FRIEREN_URL, "Sousou no Frieren"),
)

ANIME_PAGE = f"""
<html><body>
  <div class="soraddlx">
    <a href="{magnet(HASH_EP7, '[SubsPlease] Sousou no Frieren - 07 (1080p)').replace('&', '&amp;')}">Episódio 07</a>
    <a href="{magnet(HASH_EP8, '[SubsPlease] Sousou no Frieren - 08 (720p)').replace('&', '&amp;')}">Episódio 08</a>
    <a href="{magnet(HASH_BATCH, '[DKB] Sousou no Frieren 01-28 (Batch) [1080p]').replace('&', '&amp;')}">01 ~ 28</a>
    <a href="{magnet(HASH_EP7, '[SubsPlease] Sousou no Frieren - 07 (1080p)').replace('&', '&amp;')}">Episódio 07 (mirror)</a>
  </div>
</body></html>
"""


class FakeResponse:
    def __init__(self, status_code=200, text=""):
        self.status_code = status_code
        self.text = text


class FakeSession:
    """Stands in for requests.Session; unknown URLs answer 404."""

    def __init__(self, pages=None, error=None):
        self.headers = {}
        self.pages = dict(pages or {})
        self.error = error
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        page = self.pages.get(url)
        if page is None:
            return FakeResponse(404, "")
        if isinstance(page, FakeResponse):
            return page
        return FakeResponse(200, page)


def search_url(query):
    return f"{BASE_URL}/?s={quote(query)}"


@pytest.fixture
def site_session():
    return FakeSession({
        search_url("Sousou no Frieren"): SEARCH_PAGE,
        FRIEREN_URL: ANIME_PAGE,
    })


@pytest.fixture
def provider(site_session):
    return DarkMahouProvider(cache=ResultCache(), session=site_session)


@pytest.fixture
def connection_error():
    return requests.ConnectionError("connection refused")
