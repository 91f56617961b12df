"""
Edit distance between titles.

Uses rapidfuzz's Levenshtein implementation (unit cost for insertion,
deletion and substitution).
"""

import logging

from rapidfuzz.distance import Levenshtein


logger = logging.getLogger(__name__)


def is_valid_distance(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


class LevenshteinCalculator:
    """Classic Levenshtein distance."""

    def calculate(self, a: str, b: str) -> int:
        """
        Edit distance between a and b.

        Examples:
            calculate("kitten", "sitting") -> 3
            calculate("naruto", "naruto")  -> 0
        """
        distance = Levenshtein.distance(a or "", b or "")
        if not is_valid_distance(distance):
            logger.warning(f"Discarding invalid distance {distance!r} for '{a}' vs '{b}'")
            return 0
        return distance

    @staticmethod
    def calculate_similarity(a: str, b: str, distance: int) -> float:
        """
        Similarity in [0, 1] derived from an edit distance.

        Two empty strings are identical (1.0).
        """
        max_len = max(len(a or ""), len(b or ""))
        if max_len == 0:
            return 1.0
        return max(0.0, (max_len - distance) / max_len)


_default_calculator = LevenshteinCalculator()


def distance(a: str, b: str) -> int:
    """Convenience function for edit distance."""
    return _default_calculator.calculate(a, b)


def similarity(a: str, b: str, dist: int) -> float:
    """Convenience function for distance-based similarity."""
    return LevenshteinCalculator.calculate_similarity(a, b, dist)
