import pytest

from bavoice.common.utils import (
    deslugify,
    has_hangul,
    normalize_whitespace,
    sanitize_filename,
    split_base_and_variant,
    title_case,
    to_slug,
    unique_preserve_order,
)


def test_normalize_whitespace():
    assert normalize_whitespace("  Hoshino \t (Swimsuit)\n") == "Hoshino (Swimsuit)"
    assert normalize_whitespace(None) == ""
    assert normalize_whitespace("") == ""


def test_has_hangul():
    assert has_hangul("아루")
    assert has_hangul("aru 아루")
    assert not has_hangul("Aru")
    assert not has_hangul(None)
    # Jamo alone are outside the syllable block
    assert not has_hangul("ㅎㅅㄴ")


@pytest.mark.parametrize("title, slug", [
    ("Hoshino (Bunny)", "hoshino_bunny"),
    ("HOSHINO (BUNNY)", "hoshino_bunny"),
    ("Aru (New Year)", "aru_new_year"),
    ("  shiroko -  riding ", "shiroko_riding"),
    ("__mutsuki__", "mutsuki"),
    ("", ""),
])
def test_to_slug(title, slug):
    assert to_slug(title) == slug
    assert to_slug(to_slug(title)) == to_slug(title)


def test_split_base_and_variant():
    assert split_base_and_variant("hoshino_swimsuit") == ("hoshino", "swimsuit")
    assert split_base_and_variant("aru_new_year") == ("aru", "new_year")
    assert split_base_and_variant("hina") == ("hina", None)
    assert split_base_and_variant("") == (None, None)
    assert split_base_and_variant(None) == (None, None)


def test_deslugify_and_title_case():
    assert deslugify("aru_new_year") == "aru new year"
    assert deslugify("shiroko-riding") == "shiroko riding"
    assert title_case("aru new year") == "Aru New Year"
    assert title_case("hoshino (swimsuit)") == "Hoshino (swimsuit)"


def test_unique_preserve_order():
    assert unique_preserve_order(["b", "a", "b", "c", "a"]) == ["b", "a", "c"]


def test_sanitize_filename():
    assert sanitize_filename('Aru: New/Year?') == "Aru__New_Year_"
    assert sanitize_filename("hoshino swimsuit") == "hoshino_swimsuit"
    assert sanitize_filename("") == "unknown"
