"""Student records as loaded from the bundled dataset."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from bavoice.common.utils import (
    deslugify,
    normalize_whitespace,
    split_base_and_variant,
    to_slug,
    unique_preserve_order,
)


_ABSOLUTE_URL_RE = re.compile(r"^(https?|data|file):", re.IGNORECASE)


@dataclass(frozen=True)
class StudentRecord:
    """One playable character (or one costume variant of it)."""
    href: str
    english_name: Optional[str] = None
    korean_name: Optional[str] = None
    base_english_name: Optional[str] = None
    base_korean_name: Optional[str] = None
    variant_key: Optional[str] = None
    english_variant_label: Optional[str] = None
    korean_variant_label: Optional[str] = None
    wiki_search_name: str = ""
    image_url: Optional[str] = None
    search_text: str = ""

    @property
    def cache_key(self) -> str:
        """Key used in the link cache: href, else english name, else korean name."""
        return self.href or self.english_name or self.korean_name or ""

    @property
    def display_name(self) -> str:
        return self.english_name or self.korean_name or ""

    @classmethod
    def from_raw(cls, raw: Any, data_root: Optional[Path] = None) -> Optional["StudentRecord"]:
        """Validate one raw dataset entry.

        Returns None for entries without an href or without any name.
        Missing derived fields (base names, variant key, wiki search name)
        are filled in from the names themselves.
        """
        if not isinstance(raw, dict):
            return None
        href = _text(raw, "href")
        english = _text(raw, "englishName")
        korean = _text(raw, "koreanName")
        if not href or not (english or korean):
            return None

        slug_base, slug_variant = split_base_and_variant(to_slug(english)) if english else (None, None)
        base_english = _text(raw, "baseEnglishName") or slug_base
        variant_key = _text(raw, "typeKey", "variantKey") or slug_variant
        base_korean = _text(raw, "baseKoreanName") or (korean.split("_")[0] if korean else None)
        wiki_search_name = (
            _text(raw, "wikiSearchName")
            or (deslugify(english) if english else None)
            or english
            or korean
            or ""
        )
        search_text = " ".join(unique_preserve_order(
            v for v in (korean, english, base_korean, base_english, wiki_search_name) if v
        ))

        return cls(
            href=href,
            english_name=english,
            korean_name=korean,
            base_english_name=base_english,
            base_korean_name=base_korean,
            variant_key=variant_key,
            english_variant_label=_text(raw, "englishType", "englishVariantLabel"),
            korean_variant_label=_text(raw, "koreanType", "koreanVariantLabel"),
            wiki_search_name=wiki_search_name,
            image_url=resolve_image_url(raw.get("imageUrl"), data_root),
            search_text=search_text,
        )

    def to_json(self) -> Dict[str, Any]:
        """Dataset representation (camelCase, same keys the loader reads)."""
        return {
            "href": self.href,
            "englishName": self.english_name,
            "koreanName": self.korean_name,
            "baseEnglishName": self.base_english_name,
            "baseKoreanName": self.base_korean_name,
            "typeKey": self.variant_key,
            "englishType": self.english_variant_label,
            "koreanType": self.korean_variant_label,
            "wikiSearchName": self.wiki_search_name,
            "imageUrl": self.image_url,
        }


def _text(raw: Dict[str, Any], *keys: str) -> Optional[str]:
    """First non-empty string value among keys, whitespace-normalized."""
    for key in keys:
        value = raw.get(key)
        if isinstance(value, str):
            value = normalize_whitespace(value)
            if value:
                return value
    return None


def resolve_image_url(value: Any, data_root: Optional[Path]) -> Optional[str]:
    """Absolute URLs pass through; relative paths become file:// URIs if the file exists."""
    if not isinstance(value, str):
        return None
    value = value.strip()
    if not value:
        return None
    if _ABSOLUTE_URL_RE.match(value):
        return value
    if data_root is None:
        return None
    path = Path(data_root) / value
    if not path.is_file():
        return None
    return path.resolve().as_uri()


__all__ = [
    "StudentRecord",
    "resolve_image_url",
]
