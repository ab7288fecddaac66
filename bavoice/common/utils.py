"""Common text utilities shared across the library."""

import os
import re
from pathlib import Path
from typing import Iterable, List, Optional, Set, Tuple


_DEF_ENV_LOADED = False

_WS_RE = re.compile(r"\s+")
_SLUG_SEP_RE = re.compile(r"[\s-]+")
_SLUG_UNDERSCORES_RE = re.compile(r"_+")
_DESLUG_RE = re.compile(r"[_-]+")


def _load_env_file() -> None:
    """Load environment variables from .env file if present."""
    global _DEF_ENV_LOADED
    if _DEF_ENV_LOADED:
        return
    _DEF_ENV_LOADED = True
    try:
        # Look for .env in the project root or next to the package
        here = Path(__file__).parent
        candidates = [
            here.parent.parent / ".env",  # project root
            here.parent / ".env",
            Path.cwd() / ".env",
        ]
        for p in candidates:
            if not p.exists():
                continue
            for raw in p.read_text(encoding="utf-8", errors="ignore").splitlines():
                line = raw.strip()
                if not line or line.startswith("#"):
                    continue
                if line.startswith("export "):
                    line = line[len("export "):].strip()
                if "=" not in line:
                    continue
                k, v = line.split("=", 1)
                key = k.strip()
                val = v.strip().strip('"').strip("'")
                if key and os.environ.get(key) is None:
                    os.environ[key] = val
    except Exception:
        pass


# Call once on import
_load_env_file()


def normalize_whitespace(text: Optional[str]) -> str:
    """Collapse runs of whitespace to a single space and trim. '' for None."""
    if not text:
        return ""
    return _WS_RE.sub(" ", str(text)).strip()


def is_hangul_char(ch: str) -> bool:
    """Check if a character is a precomposed Hangul syllable (가..힣)."""
    return 0xAC00 <= ord(ch) <= 0xD7A3


def has_hangul(text: Optional[str]) -> bool:
    """Check if text contains any Hangul syllable."""
    return any(is_hangul_char(ch) for ch in (text or ""))


def to_slug(title: Optional[str]) -> str:
    """Turn a wiki title into a stable lower-case identifier.

    "Hoshino (Swimsuit)" -> "hoshino_swimsuit". Applying it twice gives
    the same result.
    """
    text = normalize_whitespace(title)
    text = text.replace("(", " ").replace(")", " ")
    text = _SLUG_SEP_RE.sub("_", text)
    text = _SLUG_UNDERSCORES_RE.sub("_", text)
    return text.strip("_").lower()


def split_base_and_variant(slug: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """Split "hoshino_swimsuit" into ("hoshino", "swimsuit").

    Returns (None, None) for an empty slug and (base, None) when there is
    no variant suffix.
    """
    tokens = [t for t in normalize_whitespace(slug).split("_") if t]
    if not tokens:
        return None, None
    variant = "_".join(tokens[1:]) if len(tokens) > 1 else None
    return tokens[0], variant


def deslugify(name: Optional[str]) -> str:
    """Replace underscore/hyphen runs with spaces ("hoshino_swimsuit" -> "hoshino swimsuit")."""
    return normalize_whitespace(_DESLUG_RE.sub(" ", name or ""))


def title_case(name: Optional[str]) -> str:
    """Capitalize each space-separated word, keeping the rest of the word as is."""
    words = normalize_whitespace(name).split(" ")
    return " ".join(w[:1].upper() + w[1:] for w in words if w)


def unique_preserve_order(items: Iterable[str]) -> List[str]:
    """Return unique items while preserving order."""
    seen: Set[str] = set()
    ordered: List[str] = []
    for item in items:
        if item not in seen:
            seen.add(item)
            ordered.append(item)
    return ordered


def sanitize_filename(name: str) -> str:
    """Sanitize a string for use as a file or folder name.

    Replaces invalid characters and whitespace with underscores.
    """
    cleaned = re.sub(r'[<>:"/\\|?*]', "_", name or "unknown")
    return re.sub(r"\s+", "_", cleaned).strip() or "unknown"


def ensure_dir(path: Path) -> None:
    """Create directory if it doesn't exist."""
    path.mkdir(parents=True, exist_ok=True)
