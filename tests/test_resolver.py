import pytest

from bavoice.input.registry import normalize_students
from bavoice.input.resolver import normalize_latin, rank, score_korean, score_latin


def _students(*raws):
    return normalize_students(raws)


def test_korean_exact_before_prefix():
    students = _students(
        {"href": "/aru_new_year", "koreanName": "아루_정월"},
        {"href": "/aru", "koreanName": "아루"},
    )
    assert [s.href for s in rank(students, "아루")] == ["/aru", "/aru_new_year"]


def test_korean_substring_ranks_last():
    students = _students(
        {"href": "/x", "koreanName": "카요코_아루"},
        {"href": "/y", "koreanName": "아루_드레스"},
        {"href": "/z", "koreanName": "히나"},
    )
    assert [s.href for s in rank(students, "아루")] == ["/y", "/x"]


def test_korean_base_name_counts():
    students = _students(
        {"href": "/h", "koreanName": "호시노_수영복", "baseKoreanName": "호시노"},
    )
    # exact on the base name beats prefix on the full name
    assert score_korean("호시노", "호시노") == 0
    assert [s.href for s in rank(students, "호시노")] == ["/h"]


def test_score_korean_tiers():
    assert score_korean("아루", "아루") == 0
    assert score_korean("아루_정월", "아루") == 1
    assert score_korean("카요코_아루", "아루") == 2
    assert score_korean("히나", "아루") is None
    assert score_korean(None, "아루") is None


def test_normalize_latin():
    assert normalize_latin("Hoshino_(Swimsuit)") == "hoshino swimsuit"
    assert normalize_latin("  Aru-New  Year ") == "aru new year"


def test_score_latin_tiers():
    assert score_latin("hoshino", "hoshino") == 0
    assert score_latin("hoshino", "hoshi") == 1
    assert score_latin("kuromi hoshino", "hoshi") == 2
    assert score_latin("aru new year", "new ye") == 3
    assert score_latin("mihoshino", "hoshi") is None


def test_latin_token_prefix_ranks_above_later_tiers():
    students = _students(
        {"href": "/w", "englishName": "aru_new_year"},
        {"href": "/t", "englishName": "kuromi_hoshino"},
        {"href": "/p", "englishName": "hoshino"},
        {"href": "/none", "englishName": "mihoshino"},
    )
    assert [s.href for s in rank(students, "hoshi")] == ["/p", "/t"]
    assert [s.href for s in rank(students, "new ye")] == ["/w"]


def test_latin_ties_sort_by_display_name():
    students = _students(
        {"href": "/2", "englishName": "hoshino_swimsuit"},
        {"href": "/3", "englishName": "hoshino_armed"},
        {"href": "/1", "englishName": "hoshino"},
    )
    assert [s.english_name for s in rank(students, "Hoshino")] == [
        "hoshino",
        "hoshino_armed",
        "hoshino_swimsuit",
    ]


def test_latin_matches_wiki_search_name():
    students = _students(
        {"href": "/a", "englishName": "aru_ny", "wikiSearchName": "Aru (New Year)"},
        {"href": "/b", "englishName": "hina"},
    )
    assert [s.href for s in rank(students, "new year")] == ["/a"]


def test_rank_caps_results_and_never_repeats():
    students = _students(*[{"href": f"/s{i}", "englishName": f"student_{i:02d}"} for i in range(40)])
    result = rank(students + students[:5], "student")
    assert len(result) == 15
    assert len({s.href for s in result}) == 15


def test_fuzzy_fallback_recovers_typos():
    students = _students(
        {"href": "/hoshino", "englishName": "hoshino", "koreanName": "호시노"},
        {"href": "/aru", "englishName": "aru", "koreanName": "아루"},
        {"href": "/serika", "englishName": "serika", "koreanName": "세리카"},
    )
    result = rank(students, "hoshnio")
    assert result
    assert result[0].href == "/hoshino"
    assert len({s.href for s in result}) == len(result)


def test_fuzzy_fallback_respects_cutoff():
    students = _students({"href": "/aru", "englishName": "aru"})
    assert rank(students, "zzzzzzzz", fuzzy_cutoff=90) == []


@pytest.mark.parametrize("query", ["", "   ", None])
def test_empty_query_returns_nothing(query):
    students = _students({"href": "/aru", "englishName": "aru"})
    assert rank(students, query) == []
