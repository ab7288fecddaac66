"""Variant formula tables: how slugs map to display names.

Two files drive this:
- student-name-formulas.json: {"baseNameMap": {"hoshino": "호시노", ...}}
- student-type-formulas.json: {"englishTypeDisplay": {"swimsuit": "Swimsuit", ...},
                               "koreanTypeDisplay": {"swimsuit": "수영복", ...}}

Validation failures raise FormulaValidationError. Only dataset builds
depend on these tables; lookups never do.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from bavoice.common.cache import read_json
from bavoice.common.errors import DataUnavailable, FormulaValidationError
from bavoice.common.utils import normalize_whitespace, split_base_and_variant, to_slug
from bavoice.schema.student import StudentRecord


NAME_FORMULA_LABEL = "student-name-formulas.json"
TYPE_FORMULA_LABEL = "student-type-formulas.json"


def _base_key(raw_key: str) -> str:
    return normalize_whitespace(raw_key).lower().split("_")[0]


@dataclass(frozen=True)
class VariantFormulaTable:
    english_labels: Dict[str, str] = field(default_factory=dict)
    korean_labels: Dict[str, str] = field(default_factory=dict)
    base_korean_names: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_json(cls, name_formula: Mapping[str, Any], type_formula: Mapping[str, Any]) -> "VariantFormulaTable":
        """Validate both formula documents and build the normalized table."""
        base_map = name_formula.get("baseNameMap") if isinstance(name_formula, Mapping) else None
        english = type_formula.get("englishTypeDisplay") if isinstance(type_formula, Mapping) else None
        korean = type_formula.get("koreanTypeDisplay") if isinstance(type_formula, Mapping) else None
        base_korean = validate_name_formula(base_map or {})
        english_labels, korean_labels = validate_type_formula(english or {}, korean or {})
        return cls(
            english_labels=english_labels,
            korean_labels=korean_labels,
            base_korean_names=base_korean,
        )

    def korean_base_for(self, base_english: Optional[str]) -> Optional[str]:
        if not base_english:
            return None
        return self.base_korean_names.get(_base_key(base_english))


def validate_name_formula(base_name_map: Mapping[str, Any]) -> Dict[str, str]:
    """Check base keys and Korean names are non-empty and unique; return the normalized map."""
    out: Dict[str, str] = {}
    korean_seen = set()
    for raw_key, korean in base_name_map.items():
        key = _base_key(str(raw_key))
        if not key:
            raise FormulaValidationError(f"{NAME_FORMULA_LABEL}: empty base key")
        if key in out:
            raise FormulaValidationError(f'{NAME_FORMULA_LABEL}: duplicated base key "{key}"')
        value = normalize_whitespace(korean if isinstance(korean, str) else "")
        if not value:
            raise FormulaValidationError(f'{NAME_FORMULA_LABEL}: empty korean value for "{raw_key}"')
        if value in korean_seen:
            raise FormulaValidationError(f'{NAME_FORMULA_LABEL}: duplicated korean value "{value}"')
        korean_seen.add(value)
        out[key] = value
    return out


def validate_type_formula(english: Mapping[str, Any], korean: Mapping[str, Any]):
    """Every variant key needs both labels; labels are unique per language."""
    english_labels: Dict[str, str] = {}
    korean_labels: Dict[str, str] = {}
    for label_map, out, lang in ((english, english_labels, "english"), (korean, korean_labels, "korean")):
        for raw_key, raw_value in label_map.items():
            key = normalize_whitespace(str(raw_key))
            if not key:
                raise FormulaValidationError(f"{TYPE_FORMULA_LABEL}: empty {lang} type key")
            if key in out:
                raise FormulaValidationError(f'{TYPE_FORMULA_LABEL}: duplicated {lang} type key "{key}"')
            out[key] = normalize_whitespace(raw_value if isinstance(raw_value, str) else "")

    for key in sorted(set(english_labels) | set(korean_labels)):
        if not english_labels.get(key):
            raise FormulaValidationError(f'{TYPE_FORMULA_LABEL}: missing englishTypeDisplay for "{key}"')
        if not korean_labels.get(key):
            raise FormulaValidationError(f'{TYPE_FORMULA_LABEL}: missing koreanTypeDisplay for "{key}"')

    for out, lang in ((english_labels, "englishTypeDisplay"), (korean_labels, "koreanTypeDisplay")):
        seen = set()
        for value in out.values():
            if value in seen:
                raise FormulaValidationError(f'{TYPE_FORMULA_LABEL}: duplicated {lang} "{value}"')
            seen.add(value)
    return english_labels, korean_labels


def load_formula_table(name_formula_path: Path, type_formula_path: Path) -> VariantFormulaTable:
    """Load and validate both formula files. Missing files are a validation failure too."""
    try:
        name_formula = read_json(name_formula_path)
        type_formula = read_json(type_formula_path)
    except DataUnavailable as e:
        raise FormulaValidationError(str(e)) from e
    return VariantFormulaTable.from_json(name_formula, type_formula)


def derive_student(
    audio_page_title: str,
    table: VariantFormulaTable,
    fallback_korean_bases: Optional[Mapping[str, str]] = None,
) -> Optional[StudentRecord]:
    """Build a dataset entry from a wiki audio page title.

    "Hoshino (Swimsuit)/audio" -> href "/student-detail/hoshino_swimsuit",
    korean name "<base>_<label>". Returns None when the title is empty or
    carries a variant key the table does not know (not a playable student).
    """
    title = normalize_whitespace(audio_page_title)
    if title.lower().endswith("/audio"):
        title = title[: -len("/audio")].strip()
    english_name = to_slug(title)
    if not english_name:
        return None
    base_english, variant_key = split_base_and_variant(english_name)
    if variant_key and variant_key not in table.english_labels:
        return None

    base_korean = table.korean_base_for(base_english)
    if not base_korean and fallback_korean_bases:
        base_korean = fallback_korean_bases.get(base_english or "")
    english_label = table.english_labels.get(variant_key) if variant_key else None
    korean_label = table.korean_labels.get(variant_key) if variant_key else None
    korean_name = None
    if base_korean:
        korean_name = f"{base_korean}_{korean_label}" if korean_label else base_korean

    return StudentRecord.from_raw({
        "href": f"/student-detail/{english_name}",
        "englishName": english_name,
        "koreanName": korean_name,
        "baseEnglishName": base_english,
        "baseKoreanName": base_korean,
        "typeKey": variant_key,
        "englishType": english_label,
        "koreanType": korean_label,
        "wikiSearchName": title,
    })


__all__ = [
    "VariantFormulaTable",
    "validate_name_formula",
    "validate_type_formula",
    "load_formula_table",
    "derive_student",
]
