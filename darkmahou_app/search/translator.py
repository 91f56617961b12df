"""
English -> Portuguese query translation.

DarkMahou titles its pages in Portuguese ("2ª temporada", "filme"), so an
English query is rewritten before it is sent to the site search.
"""

import re
from typing import Callable, List, NamedTuple


ORDINAL_NUMBERS = {
    "first": "1ª",
    "second": "2ª",
    "third": "3ª",
    "fourth": "4ª",
    "fifth": "5ª",
}

TERMS = {
    "movie": "filme",
    "ova": "ova",
    "special": "especial",
}

SEASON_ORDINAL = re.compile(r'\b(\d+)(?:st|nd|rd|th)\s+season\b', re.IGNORECASE)
SEASON_NUMBER = re.compile(r'\bseason\s+(\d+)\b', re.IGNORECASE)
PART_NUMBER = re.compile(r'\bpart\s+(\d+)\b', re.IGNORECASE)


class TranslationRule(NamedTuple):
    name: str
    apply: Callable[[str], str]


def _ordinal_words(query: str) -> str:
    for english, portuguese in ORDINAL_NUMBERS.items():
        query = re.sub(rf'\b{english}\s+season\b', f'{portuguese} temporada', query, flags=re.IGNORECASE)
    return query


def _common_terms(query: str) -> str:
    for english, portuguese in TERMS.items():
        query = re.sub(rf'\b{english}\b', portuguese, query, flags=re.IGNORECASE)
    return query


TRANSLATION_RULES: List[TranslationRule] = [
    TranslationRule("season_ordinal", lambda q: SEASON_ORDINAL.sub(r'\1ª temporada', q)),
    TranslationRule("season_number", lambda q: SEASON_NUMBER.sub(r'\1ª temporada', q)),
    TranslationRule("ordinal_words", _ordinal_words),
    TranslationRule("common_terms", _common_terms),
    TranslationRule("part_numbers", lambda q: PART_NUMBER.sub(r'parte \1', q)),
    TranslationRule("whitespace", lambda q: re.sub(r'\s+', ' ', q).strip()),
]


class PortugueseTranslator:
    """
    Rewrites season, part and media-type terms.

    Examples:
        "Oshi no Ko 2nd Season"      -> "Oshi no Ko 2ª temporada"
        "Spy x Family Season 2"      -> "Spy x Family 2ª temporada"
        "Jujutsu Kaisen 0 Movie"     -> "Jujutsu Kaisen 0 filme"
        "Attack on Titan Part 2"     -> "Attack on Titan parte 2"
    """

    @staticmethod
    def convert_query(query: str) -> str:
        result = query or ""
        for rule in TRANSLATION_RULES:
            result = rule.apply(result)
        return result

    def parse(self, query: str) -> str:
        return self.convert_query(query)
