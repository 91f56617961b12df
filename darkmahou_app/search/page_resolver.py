"""
================================================================================
DarkMahou v1.0 - Anime Page Resolver
================================================================================
Finds the anime detail page that best matches a query on a search results page.

The site's search returns a WordPress listing where every result is an anchor
like:

    <a href="https://darkmahou.io/sousou-no-frieren/" title="Sousou no Frieren">

Each anchor is scored with a ladder of cheap-to-expensive checks:
  1. title equals query                -> 100 (exact)
  2. title contains query              ->  90 (exact)
  3. compound words ("mahou tsukai")   -> >=80 (phonetic)
  4. URL slug fuzzy match              -> >=75 (normalized)
  5. full fuzzy match on normalized    ->  any (fuzzy)

A score of 95 or more ends the scan at once. Otherwise the best candidate
wins, with ties broken by STRATEGY_PREFERENCE.
================================================================================
"""

import logging
import re
from typing import Callable, List, NamedTuple, Optional, Tuple

from bs4 import BeautifulSoup

from darkmahou_app.config import DEFAULT_CONFIG, ProviderConfig
from darkmahou_app.matching import (
    FuzzyScore, FuzzyStringMatcher, MatchConfig, MatchStrategy, ScoreMatch,
    DEFAULT_MATCH_CONFIG, normalize,
)
from .cache import ResultCache, get_cache


logger = logging.getLogger(__name__)

CACHE_PREFIX = "page_extract_"


# =============================================================================
# URL EXCLUSION RULES
# =============================================================================

class UrlRule(NamedTuple):
    """Named predicate; a URL matching any rule is never a detail page."""
    name: str
    test: Callable[[str], bool]


# Listing pages plus a handful of unrelated pages that show up in the sidebar
EXCLUDED_URL_PATTERNS = (
    "/?s=", "/tag/", "/blog/", "/contato", "/az-lists",
    "/em-breve", "/animes-populares", "/categoria", "/genero",
    "/lord-of-mysteries/", "/yofukashi-no-uta", "/zutaboro-reijou",
    "/watari-kun", "/silent-witch", "/tougen-anki", "/arknights",
)

STATIC_ASSET_SUFFIXES = (".jpg", ".png", ".css", ".js")

URL_EXCLUSION_RULES: List[UrlRule] = [
    UrlRule("deny_list", lambda url: any(p in url for p in EXCLUDED_URL_PATTERNS)),
    UrlRule("pagination", lambda url: "/page/" in url),
    UrlRule("search", lambda url: "/search/" in url),
    UrlRule("category", lambda url: "/category/" in url),
    UrlRule("query_string", lambda url: "/?" in url),
    UrlRule("static_asset", lambda url: url.endswith(STATIC_ASSET_SUFFIXES)),
]


def excluded_by(url: str) -> Optional[str]:
    """Name of the first exclusion rule matching url, or None."""
    lower_url = (url or "").lower()
    for rule in URL_EXCLUSION_RULES:
        if rule.test(lower_url):
            return rule.name
    return None


def should_skip_url(url: str) -> bool:
    return excluded_by(url) is not None


# =============================================================================
# COMPOUND WORDS
# =============================================================================

# Titles that write these as one word are expanded before comparing
COMPOUND_EXPANSIONS: List[Tuple[str, str]] = [
    ("mahoutsukai", "mahou tsukai"),
    ("seireitsukai", "seirei tsukai"),
    ("kenshi", "ken shi"),
    ("yuusha", "yuu sha"),
]


def compound_word_score(query: str, title: str) -> int:
    """
    Score query against title treating compound words as equivalent.

    Returns:
        85 if the joined query appears in the title, 80 if the query appears
        in the title after expanding known compounds, min(70, 25 per matched
        word longer than 2 chars) for partial matches, else 0
    """
    query_lower = query.lower()
    query_words = query_lower.split()
    title_lower = title.lower()

    joined_query = "".join(query_words)
    if joined_query and joined_query in title_lower:
        return 85

    expanded_title = title_lower
    for compound, expanded in COMPOUND_EXPANSIONS:
        expanded_title = expanded_title.replace(compound, expanded)
    if query_lower and query_lower in expanded_title:
        return 80

    partial_matches = sum(
        1 for word in query_words
        if len(word) > 2 and word in title_lower
    )
    if partial_matches > 0:
        return min(70, partial_matches * 25)

    return 0


def extract_slug(url: str) -> str:
    """
    Last path segment of url with dashes/underscores as spaces.

    "https://darkmahou.io/sousou-no-frieren/" -> "sousou no frieren"
    """
    match = re.search(r'/([^/]+)/?$', url or "")
    if not match:
        return ""
    return match.group(1).replace("-", " ").replace("_", " ").strip()


# =============================================================================
# RESOLVER
# =============================================================================

class AnimePageResolver:
    """
    Resolves a query to a detail page URL on a search results page.

    Args:
        cache: Shared ResultCache (defaults to the process-wide cache)
        config: Provider thresholds and base URL
        match_config: Fuzzy matcher tuning

    Example:
        resolver = AnimePageResolver()
        url = resolver.resolve_page_url(html, "sousou no frieren")
    """

    def __init__(self, cache: Optional[ResultCache] = None,
                 config: ProviderConfig = DEFAULT_CONFIG,
                 match_config: MatchConfig = DEFAULT_MATCH_CONFIG):
        self.cache = cache if cache is not None else get_cache()
        self.config = config
        self.matcher = FuzzyStringMatcher(match_config, metrics=self.cache.metrics)
        self._page_link = re.compile(
            r'^' + re.escape(config.base_url.rstrip('/')) + r'/[^/]+/$'
        )

    def iter_candidates(self, html: str):
        """Yield (url, title) for every detail-page anchor, in page order."""
        soup = BeautifulSoup(html, 'html.parser')
        for anchor in soup.find_all('a', href=True):
            url = anchor.get('href', '')
            title = anchor.get('title')
            if title is None or not self._page_link.match(url):
                continue
            yield url, title

    def resolve_page_url(self, html: str, query: str) -> str:
        """
        Find the best matching detail page.

        Returns:
            Page URL, or "" when nothing on the page matches
        """
        cache_key = f"{CACHE_PREFIX}{query}"
        cached = self.cache.get(cache_key)
        if cached:
            logger.debug(f"Cache hit for page extraction: {query}")
            return cached

        if not html or not query:
            return ""

        try:
            return self._scan(html, query, cache_key)
        except Exception as e:
            logger.error(f"Error extracting anime page URL for '{query}': {e}")
            return ""

    def _scan(self, html: str, query: str, cache_key: str) -> str:
        candidates: List[ScoreMatch] = []
        processed = 0
        max_processed = self.config.max_fuzzy_candidates * 2

        for url, title in self.iter_candidates(html):
            if should_skip_url(url) or len(title) < self.config.min_title_length:
                continue

            result = self.score_candidate(query, title, url)
            if result.score > 0:
                candidates.append(result)
                logger.debug(
                    f"Found potential match: {title} ({url}) - "
                    f"Score: {result.score} (Strategy: {result.strategy.value})"
                )

                if result.score >= self.config.early_exit_score:
                    logger.debug("Early exit triggered for high-scoring match")
                    self.cache.set(cache_key, result.url)
                    return result.url

            processed += 1
            if processed >= max_processed:
                logger.debug("Limiting fuzzy matching candidates")
                break

        best = self.select_best_match(candidates)
        if best:
            self.cache.set(cache_key, best)
        return best

    def score_candidate(self, query: str, title: str, url: str) -> ScoreMatch:
        """Run the scoring ladder for a single anchor."""
        query_lower = query.lower()
        title_lower = title.lower()

        if query_lower == title_lower:
            return ScoreMatch(url, title, FuzzyScore(100), MatchStrategy.EXACT, normalize(title))

        if query_lower in title_lower:
            return ScoreMatch(url, title, FuzzyScore(90), MatchStrategy.EXACT, normalize(title))

        compound = compound_word_score(query, title)
        if compound >= 80:
            return ScoreMatch(url, title, FuzzyScore(compound), MatchStrategy.PHONETIC, normalize(title))

        slug = extract_slug(url)
        if len(slug) > 3:
            slug_score = self.matcher.match(query, slug)
            if slug_score >= 75:
                return ScoreMatch(url, title, slug_score, MatchStrategy.NORMALIZED, normalize(title))

        normalized_query = self.matcher.normalize(query)
        normalized_title = self.matcher.normalize(title)
        fuzzy_score = self.matcher.match(normalized_query, normalized_title)
        return ScoreMatch(
            url, title, fuzzy_score, MatchStrategy.FUZZY,
            normalized_title if normalized_title else None,
        )

    @staticmethod
    def rank(candidates: List[ScoreMatch]) -> List[ScoreMatch]:
        """Sort by score, then strategy preference (stable for full ties)."""
        return sorted(candidates, key=lambda m: (-int(m.score), -m.preference))

    def select_best_match(self, candidates: List[ScoreMatch]) -> str:
        if not candidates:
            logger.info("No anime page found")
            return ""

        ranked = self.rank(candidates)
        best = ranked[0]
        logger.info(
            f"Best match: {best.title} - {best.url} "
            f"(Score: {best.score}, Strategy: {best.strategy.value})"
        )
        for alternative in ranked[1:3]:
            logger.debug(f"  Alternative: {alternative.title} - Score: {alternative.score} ({alternative.strategy.value})")
        return best.url

