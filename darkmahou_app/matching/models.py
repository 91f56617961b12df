"""
================================================================================
DarkMahou v1.0 - Matching Models
================================================================================
Value types shared by the normalizer, the fuzzy matcher and the page resolver.

Scores and normalized strings are small wrapper types: the only way to build a
FuzzyScore is through its clamping constructor, so an out-of-range score can
never leave the matcher.
================================================================================
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional


# =============================================================================
# ENUMS
# =============================================================================

class MatchStrategy(str, Enum):
    """Scoring path that produced a match score."""
    EXACT = "exact"
    FUZZY = "fuzzy"
    NORMALIZED = "normalized"
    PHONETIC = "phonetic"


# Tie-break order used when two candidates share a score.
# fuzzy ranks above normalized here; keep it that way unless the
# page resolver tests are deliberately updated.
STRATEGY_PREFERENCE = {
    MatchStrategy.EXACT: 4,
    MatchStrategy.FUZZY: 3,
    MatchStrategy.NORMALIZED: 2,
    MatchStrategy.PHONETIC: 1,
}


# =============================================================================
# WRAPPER TYPES
# =============================================================================

def round_half_up(value: float) -> int:
    """Round halves up: 72.5 -> 73, 2.5 -> 3."""
    return int(math.floor(value + 0.5))


class FuzzyScore(int):
    """
    Integer confidence in [0, 100].

    The constructor rounds and clamps, so FuzzyScore(120) == 100 and
    FuzzyScore(-3) == 0.
    """

    MIN = 0
    MAX = 100

    def __new__(cls, value: float = 0):
        try:
            number = float(value)
        except (TypeError, ValueError):
            number = 0.0
        if number != number:  # NaN
            number = 0.0
        clamped = round_half_up(max(cls.MIN, min(cls.MAX, number)))
        return super().__new__(cls, clamped)

    def __repr__(self) -> str:
        return f"FuzzyScore({int(self)})"


class NormalizedString(str):
    """A string that has been through normalize()."""


# =============================================================================
# DATA MODELS
# =============================================================================

@dataclass(frozen=True)
class MatchWeights:
    """Per-strategy score ceilings."""
    exact: int = 100
    fuzzy: int = 80
    normalized: int = 70
    phonetic: int = 60


@dataclass(frozen=True)
class MatchConfig:
    """
    Tuning for FuzzyStringMatcher.

    Attributes:
        max_edit_distance: Fuzzy strategy gives up above this distance
        min_similarity: Fuzzy strategy gives up below this similarity (0-1)
        weights: Score ceilings per strategy
    """
    max_edit_distance: int = 5
    min_similarity: float = 0.6
    weights: MatchWeights = MatchWeights()

    def __post_init__(self):
        if self.max_edit_distance < 0:
            raise ValueError("max_edit_distance must be >= 0")
        if not 0.0 <= self.min_similarity <= 1.0:
            raise ValueError("min_similarity must be within [0, 1]")


DEFAULT_MATCH_CONFIG = MatchConfig()


@dataclass(frozen=True)
class ScoreMatch:
    """Candidate detail page found while resolving a search query."""
    url: str
    title: str
    score: FuzzyScore
    strategy: MatchStrategy
    normalized_title: Optional[NormalizedString] = None

    @property
    def preference(self) -> int:
        return STRATEGY_PREFERENCE.get(self.strategy, 0)

    def to_dict(self):
        return {
            "url": self.url,
            "title": self.title,
            "score": int(self.score),
            "strategy": self.strategy.value,
            "normalized_title": self.normalized_title,
        }
