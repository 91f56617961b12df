"""
================================================================================
DarkMahou v1.0 - Title Matching Package
================================================================================
Components:
  - normalizer.py - canonical title forms (diacritics, compound words, markers)
  - distance.py   - Levenshtein distance and similarity
  - matcher.py    - four-strategy fuzzy scorer
  - models.py     - FuzzyScore, MatchConfig, ScoreMatch
================================================================================
"""

from .distance import LevenshteinCalculator, distance, similarity
from .matcher import FuzzyStringMatcher, match
from .models import (
    DEFAULT_MATCH_CONFIG, FuzzyScore, MatchConfig, MatchStrategy, MatchWeights,
    NormalizedString, ScoreMatch, STRATEGY_PREFERENCE,
)
from .normalizer import clean, normalize, to_phonetic

__all__ = [
    'LevenshteinCalculator', 'distance', 'similarity',
    'FuzzyStringMatcher', 'match',
    'DEFAULT_MATCH_CONFIG', 'FuzzyScore', 'MatchConfig', 'MatchStrategy',
    'MatchWeights', 'NormalizedString', 'ScoreMatch', 'STRATEGY_PREFERENCE',
    'clean', 'normalize', 'to_phonetic',
]
