import pytest

from darkmahou_app.search import PortugueseTranslator
from darkmahou_app.search.translator import TRANSLATION_RULES


@pytest.mark.parametrize("query, expected", [
    ("Oshi no Ko 2nd Season", "Oshi no Ko 2ª temporada"),
    ("Spy x Family Season 2", "Spy x Family 2ª temporada"),
    ("Mushoku Tensei Second Season", "Mushoku Tensei 2ª temporada"),
    ("Jujutsu Kaisen 0 Movie", "Jujutsu Kaisen 0 filme"),
    ("Attack on Titan Part 2", "Attack on Titan parte 2"),
    ("Frieren Special", "Frieren especial"),
    ("Sousou no Frieren", "Sousou no Frieren"),
    ("  Dungeon   Meshi ", "Dungeon Meshi"),
])
def test_convert_query(query, expected):
    assert PortugueseTranslator().parse(query) == expected


def test_empty_query():
    assert PortugueseTranslator.convert_query("") == ""
    assert PortugueseTranslator.convert_query(None) == ""


def test_rule_order():
    assert [rule.name for rule in TRANSLATION_RULES] == [
        "season_ordinal", "season_number", "ordinal_words",
        "common_terms", "part_numbers", "whitespace",
    ]
