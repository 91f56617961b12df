"""
================================================================================
DarkMahou v1.0 - Title Normalization
================================================================================
Turns anime titles into a comparable form.

Romanized titles are written inconsistently across sites:
  - "Mahou Tsukai" vs "Mahoutsukai"
  - "Shōnen" vs "Shounen" vs "Shonen"
  - "Season 2" vs "S2"

normalize() folds all of these into one spelling. clean() and to_phonetic()
are the looser forms used by the normalized and phonetic match strategies.
================================================================================
"""

import re
from typing import List, Tuple

from .models import NormalizedString


# Diacritics and whitespace variants -> plain ASCII
CHARACTER_NORMALIZATIONS = {
    'á': 'a', 'à': 'a', 'â': 'a', 'ã': 'a', 'ä': 'a',
    'é': 'e', 'è': 'e', 'ê': 'e', 'ë': 'e',
    'í': 'i', 'ì': 'i', 'î': 'i', 'ï': 'i',
    'ó': 'o', 'ò': 'o', 'ô': 'o', 'õ': 'o', 'ö': 'o',
    'ú': 'u', 'ù': 'u', 'û': 'u', 'ü': 'u',
    'ç': 'c', 'ñ': 'n',
    # Japanese romanization (Hepburn macrons)
    'ō': 'o', 'ū': 'u', 'ā': 'a', 'ē': 'e', 'ī': 'i',
    # Full-width space and control whitespace
    '　': ' ',
    '\t': ' ',
    '\n': ' ',
    '\r': ' ',
}

_CHARACTER_TABLE = str.maketrans(CHARACTER_NORMALIZATIONS)

# Applied in order, after lower-casing and diacritic folding
ANIME_TITLE_VARIATIONS: List[Tuple[re.Pattern, str]] = [
    # Compound words written together or apart
    (re.compile(r'mahou\s+tsukai'), 'mahoutsukai'),
    (re.compile(r'maho\s+tsukai'), 'mahotsukai'),
    (re.compile(r'seirei\s+tsukai'), 'seireitsukai'),
    (re.compile(r'ken\s+shi'), 'kenshi'),
    (re.compile(r'yuu\s+sha'), 'yuusha'),
    # Long vowel romanization
    (re.compile(r'ou'), 'o'),
    (re.compile(r'uu'), 'u'),
    (re.compile(r'ei'), 'e'),
    # Season / episode markers
    (re.compile(r'season\s*(\d+)'), r's\1'),
    (re.compile(r'episod[ei]o?\s*(\d+)'), r'e\1'),
]

_LONG_VOWELS: List[Tuple[re.Pattern, str]] = ANIME_TITLE_VARIATIONS[5:8]

_WHITESPACE = re.compile(r'\s+')
_BRACKETS = re.compile(r'[\[\](){}]')
_PUNCTUATION = re.compile(r'[^\w\s-]')
_NON_PHONETIC = re.compile(r'[^a-z0-9\s]')


def _normalize_once(text: str) -> str:
    result = text.lower().strip()
    result = result.translate(_CHARACTER_TABLE)

    for pattern, replacement in ANIME_TITLE_VARIATIONS:
        result = pattern.sub(replacement, result)

    return _WHITESPACE.sub(' ', result).strip()


def normalize(text: str) -> NormalizedString:
    """
    Normalize a title for comparison.

    Steps:
      1. Lower-case and trim
      2. Fold diacritics and macrons ("Shōnen" -> "shonen")
      3. Merge compound words, collapse long vowels, shorten
         season/episode markers ("season 2" -> "s2", "episódio 5" -> "e5")
      4. Collapse whitespace

    The pipeline repeats until the text stops changing, which makes
    normalize(normalize(s)) == normalize(s) hold for every input.

    Examples:
        "Mahou Tsukai no Yome" -> "mahotsukai no yome"
        "Shōjo  Season 2"      -> "shojo s2"
    """
    if not text:
        return NormalizedString("")

    current = text
    while True:
        result = _normalize_once(current)
        if result == current:
            return NormalizedString(result)
        current = result


def clean(text: str) -> str:
    """Strip brackets and punctuation (hyphens survive)."""
    if not text:
        return ""
    result = _BRACKETS.sub('', text)
    result = _PUNCTUATION.sub('', result)
    return _WHITESPACE.sub(' ', result).strip()


def to_phonetic(text: str) -> str:
    """
    Reduce a title to a spacing-insensitive phonetic key.

    "Yuu Sha" and "yusha" both become "yusha".
    """
    if not text:
        return ""
    result = text.lower()
    for pattern, replacement in _LONG_VOWELS:
        result = pattern.sub(replacement, result)
    result = _NON_PHONETIC.sub('', result)
    return _WHITESPACE.sub('', result)
