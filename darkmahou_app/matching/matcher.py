"""
================================================================================
DarkMahou v1.0 - Fuzzy Title Matcher
================================================================================
Scores how likely two anime titles refer to the same work.

Problem:
  The user searches "Mahou Tsukai no Yome Season 2", the site lists
  "Mahoutsukai no Yome 2ª temporada". Plain equality fails, plain edit
  distance is too strict for long titles.

Solution:
  Four strategies, cheapest first, each capped by its own weight:
    1. exact       - case-insensitive equality / containment
    2. fuzzy       - Levenshtein similarity on the raw strings
    3. normalized  - equality / containment after normalize() and clean()
    4. phonetic    - equality / containment on a spacing-free phonetic key
  The best score wins; a perfect 100 stops evaluation immediately.
================================================================================
"""

import logging
from typing import Callable, List, Optional

from .distance import LevenshteinCalculator
from .models import DEFAULT_MATCH_CONFIG, FuzzyScore, MatchConfig, NormalizedString, round_half_up
from .normalizer import clean, normalize, to_phonetic


logger = logging.getLogger(__name__)


def _containment_score(query: str, target: str, weight: float,
                       forward: float = 0.8, backward: Optional[float] = 0.7) -> float:
    if query == target:
        return weight
    if query in target:
        return weight * forward
    if backward is not None and target in query:
        return weight * backward
    return 0


class FuzzyStringMatcher:
    """
    Multi-strategy title matcher.

    Args:
        config: Thresholds and weights (defaults to DEFAULT_MATCH_CONFIG)
        metrics: Optional counters object; increment_fuzzy_count() is called
            once per match() call

    Example:
        matcher = FuzzyStringMatcher()
        matcher.match("Frieren", "frieren")        # -> 100
        matcher.match("Frieren", "Sousou no Frieren")  # -> 80
    """

    def __init__(self, config: MatchConfig = DEFAULT_MATCH_CONFIG, metrics=None):
        self.config = config
        self.metrics = metrics
        self.distance_calculator = LevenshteinCalculator()

    def normalize(self, text: str) -> NormalizedString:
        return normalize(text)

    def match(self, query: str, target: str, config: Optional[MatchConfig] = None) -> FuzzyScore:
        """
        Score query against target.

        Returns:
            FuzzyScore in [0, 100]; 0 when either side is empty
        """
        if self.metrics is not None:
            self.metrics.increment_fuzzy_count()

        if not query or not target:
            return FuzzyScore(0)

        config = config or self.config
        weights = config.weights

        strategies: List[Callable[[], float]] = [
            lambda: self._exact_match(query, target, weights.exact),
            lambda: self._fuzzy_match(query, target, config),
            lambda: self._normalized_match(query, target, weights.normalized),
            lambda: self._phonetic_match(query, target, weights.phonetic),
        ]

        best_score = 0.0
        for strategy in strategies:
            score = strategy()
            if score > best_score:
                best_score = score
            if score == 100:
                break

        return FuzzyScore(best_score)

    # =========================================================================
    # STRATEGIES
    # =========================================================================

    def _exact_match(self, query: str, target: str, weight: float) -> float:
        return _containment_score(query.lower().strip(), target.lower().strip(), weight)

    def _fuzzy_match(self, query: str, target: str, config: MatchConfig) -> float:
        distance = self.distance_calculator.calculate(query, target)
        if distance > config.max_edit_distance:
            return 0

        similarity = LevenshteinCalculator.calculate_similarity(query, target, distance)
        if similarity < config.min_similarity:
            return 0

        return round_half_up(similarity * config.weights.fuzzy)

    def _normalized_match(self, query: str, target: str, weight: float) -> float:
        query_norm = normalize(query)
        target_norm = normalize(target)
        if not query_norm or not target_norm:
            return 0

        score = _containment_score(query_norm, target_norm, weight)
        if score:
            return score

        # Second tier: punctuation-free versions at reduced weight
        query_clean = clean(query_norm)
        target_clean = clean(target_norm)
        if not query_clean or not target_clean:
            return 0
        if query_clean == target_clean:
            return weight * 0.6
        if query_clean in target_clean:
            return weight * 0.5
        return 0

    def _phonetic_match(self, query: str, target: str, weight: float) -> float:
        query_key = to_phonetic(query)
        target_key = to_phonetic(target)
        if not query_key or not target_key:
            return 0
        return _containment_score(query_key, target_key, weight, forward=0.7, backward=None)


_default_matcher: Optional[FuzzyStringMatcher] = None


def get_matcher() -> FuzzyStringMatcher:
    """Shared matcher without metrics (lazy initialization)."""
    global _default_matcher
    if _default_matcher is None:
        _default_matcher = FuzzyStringMatcher()
    return _default_matcher


def match(query: str, target: str, config: MatchConfig = DEFAULT_MATCH_CONFIG) -> FuzzyScore:
    """
    Convenience function for a one-off score.

    Counted in the process-wide cache metrics, looked up on every call so a
    reset_cache() in between is honoured.
    """
    from darkmahou_app.search.cache import get_cache  # search imports matching

    get_cache().metrics.increment_fuzzy_count()
    return get_matcher().match(query, target, config)
