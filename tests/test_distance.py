from darkmahou_app.matching import LevenshteinCalculator, distance, similarity


def test_classic_edit_distance():
    assert distance("kitten", "sitting") == 3
    assert distance("naruto", "naruto") == 0
    assert distance("", "abc") == 3


def test_distance_is_symmetric():
    pairs = [("frieren", "freiren"), ("mahou", "maho"), ("", "x"), ("oshi no ko", "oshinoko")]
    for a, b in pairs:
        assert distance(a, b) == distance(b, a)


def test_triangle_inequality():
    a, b, c = "frieren", "frieran", "fern"
    assert distance(a, c) <= distance(a, b) + distance(b, c)


def test_similarity_from_distance():
    assert similarity("abc", "abd", 1) == 2 / 3
    assert similarity("abc", "xyz", 3) == 0.0
    assert similarity("", "", 0) == 1.0


def test_similarity_never_negative():
    assert LevenshteinCalculator.calculate_similarity("ab", "a", 10) == 0.0


def test_calculator_handles_none():
    assert LevenshteinCalculator().calculate(None, "abc") == 3
