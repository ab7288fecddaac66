import pytest

from bavoice.common.config import PACKAGE_DATA_ROOT, NAME_FORMULA_FILE, TYPE_FORMULA_FILE
from bavoice.common.errors import FormulaValidationError
from bavoice.schema.formulas import VariantFormulaTable, derive_student, load_formula_table

from conftest import write_json


NAME_FORMULA = {"baseNameMap": {"hoshino": "호시노", "Aru ": " 아루"}}
TYPE_FORMULA = {
    "englishTypeDisplay": {"swimsuit": "Swimsuit", "new_year": "New  Year"},
    "koreanTypeDisplay": {"swimsuit": "수영복", "new_year": "정월"},
}


def test_table_normalizes_keys_and_values():
    table = VariantFormulaTable.from_json(NAME_FORMULA, TYPE_FORMULA)
    assert table.base_korean_names == {"hoshino": "호시노", "aru": "아루"}
    assert table.english_labels["new_year"] == "New Year"


@pytest.mark.parametrize("name_formula, message", [
    ({"baseNameMap": {"hoshino": "호시노", "Hoshino_swimsuit": "호시노2"}}, "duplicated base key"),
    ({"baseNameMap": {"hoshino": "호시노", "aru": " 호시노 "}}, "duplicated korean value"),
    ({"baseNameMap": {"hoshino": ""}}, "empty korean value"),
    ({"baseNameMap": {"  ": "호시노"}}, "empty base key"),
])
def test_name_formula_rejects_bad_tables(name_formula, message):
    with pytest.raises(FormulaValidationError, match=message):
        VariantFormulaTable.from_json(name_formula, TYPE_FORMULA)


@pytest.mark.parametrize("type_formula, message", [
    ({"englishTypeDisplay": {"swimsuit": "Swimsuit"}, "koreanTypeDisplay": {}}, "missing koreanTypeDisplay"),
    ({"englishTypeDisplay": {}, "koreanTypeDisplay": {"swimsuit": "수영복"}}, "missing englishTypeDisplay"),
    (
        {
            "englishTypeDisplay": {"swimsuit": "Swimsuit", "pool": " Swimsuit"},
            "koreanTypeDisplay": {"swimsuit": "수영복", "pool": "수영장"},
        },
        "duplicated englishTypeDisplay",
    ),
    (
        {
            "englishTypeDisplay": {"swimsuit": "Swimsuit", "pool": "Pool"},
            "koreanTypeDisplay": {"swimsuit": "수영복", "pool": "수영복"},
        },
        "duplicated koreanTypeDisplay",
    ),
])
def test_type_formula_rejects_bad_tables(type_formula, message):
    with pytest.raises(FormulaValidationError, match=message):
        VariantFormulaTable.from_json(NAME_FORMULA, type_formula)


def test_validation_error_is_a_value_error():
    with pytest.raises(ValueError):
        VariantFormulaTable.from_json({"baseNameMap": {"a": ""}}, TYPE_FORMULA)


def test_load_formula_table_missing_file_fails(tmp_path):
    with pytest.raises(FormulaValidationError):
        load_formula_table(tmp_path / "names.json", tmp_path / "types.json")


def test_load_formula_table_from_files(tmp_path):
    names = write_json(tmp_path / "names.json", NAME_FORMULA)
    types = write_json(tmp_path / "types.json", TYPE_FORMULA)
    table = load_formula_table(names, types)
    assert table.korean_base_for("hoshino") == "호시노"


def test_bundled_formula_tables_are_valid():
    table = load_formula_table(PACKAGE_DATA_ROOT / NAME_FORMULA_FILE, PACKAGE_DATA_ROOT / TYPE_FORMULA_FILE)
    assert table.base_korean_names
    assert set(table.english_labels) == set(table.korean_labels)


def test_derive_student_with_variant():
    table = VariantFormulaTable.from_json(NAME_FORMULA, TYPE_FORMULA)
    s = derive_student("Hoshino (Swimsuit)/audio", table)
    assert s.href == "/student-detail/hoshino_swimsuit"
    assert s.english_name == "hoshino_swimsuit"
    assert s.korean_name == "호시노_수영복"
    assert s.base_korean_name == "호시노"
    assert s.variant_key == "swimsuit"
    assert s.english_variant_label == "Swimsuit"
    assert s.korean_variant_label == "수영복"
    assert s.wiki_search_name == "Hoshino (Swimsuit)"


def test_derive_student_base_and_fallback_names():
    table = VariantFormulaTable.from_json(NAME_FORMULA, TYPE_FORMULA)
    assert derive_student("Aru/audio", table).korean_name == "아루"
    mutsuki = derive_student("Mutsuki/audio", table, {"mutsuki": "무츠키"})
    assert mutsuki.korean_name == "무츠키"
    unknown = derive_student("Serika/audio", table)
    assert unknown.korean_name is None
    assert unknown.english_name == "serika"


def test_derive_student_rejects_unknown_variants():
    table = VariantFormulaTable.from_json(NAME_FORMULA, TYPE_FORMULA)
    assert derive_student("Hoshino (Armed)/audio", table) is None
    assert derive_student("/audio", table) is None
