"""Rank known students against a typed name.

Two passes:
1. Tiered exact/prefix/substring scoring, so well-formed queries give
   predictable top results. Korean queries (any Hangul) compare against
   the Korean names, everything else against the English/wiki names.
2. Only when pass 1 finds nothing: rapidfuzz over the combined name text,
   to recover from typos and odd romanizations.
"""

import re
from typing import Iterable, List, Optional, Sequence, Tuple

from rapidfuzz import fuzz, process, utils

from bavoice.common.config import MAX_SEARCH_RESULTS
from bavoice.common.utils import has_hangul, normalize_whitespace
from bavoice.schema.student import StudentRecord


DEFAULT_FUZZY_CUTOFF = 60.0

_LATIN_SEP_RE = re.compile(r"[_\-()]+")


def normalize_latin(value: Optional[str]) -> str:
    """Lower-case, turn _ - ( ) into spaces, collapse whitespace."""
    return normalize_whitespace(_LATIN_SEP_RE.sub(" ", (value or "").lower()))


def score_korean(candidate: Optional[str], query: str) -> Optional[int]:
    """0 exact, 1 prefix, 2 substring, None otherwise."""
    if not candidate:
        return None
    if candidate == query:
        return 0
    if candidate.startswith(query):
        return 1
    if query in candidate:
        return 2
    return None


def score_latin(candidate: Optional[str], query: str) -> Optional[int]:
    """0 exact, 1 prefix, 2 token prefix, 3 word-boundary match, None otherwise.

    Both arguments must already be normalized with normalize_latin.
    """
    if not candidate:
        return None
    if candidate == query:
        return 0
    if candidate.startswith(query):
        return 1
    if any(token.startswith(query) for token in candidate.split(" ")):
        return 2
    if re.search(r"(^|\s)" + re.escape(query), candidate):
        return 3
    return None


def score_student(student: StudentRecord, query: str, korean_mode: bool) -> Optional[int]:
    """Best (lowest) score over the student's candidate fields, None if nothing matched."""
    if korean_mode:
        scores = [score_korean(f, query) for f in (student.korean_name, student.base_korean_name)]
    else:
        fields = (student.english_name, student.base_english_name, student.wiki_search_name)
        scores = [score_latin(normalize_latin(f), query) for f in fields]
    scores = [s for s in scores if s is not None]
    return min(scores) if scores else None


def _primary_rank(students: Iterable[StudentRecord], query: str) -> List[StudentRecord]:
    korean_mode = has_hangul(query)
    q = query if korean_mode else normalize_latin(query)
    if not q:
        return []
    scored: List[Tuple[int, str, StudentRecord]] = []
    seen = set()
    for student in students:
        if student.href in seen:
            continue
        score = score_student(student, q, korean_mode)
        if score is None:
            continue
        seen.add(student.href)
        scored.append((score, student.display_name, student))
    scored.sort(key=lambda t: (t[0], t[1]))
    return [s for _, _, s in scored]


def fuzzy_rank(
    students: Sequence[StudentRecord],
    query: str,
    limit: int = MAX_SEARCH_RESULTS,
    score_cutoff: float = DEFAULT_FUZZY_CUTOFF,
) -> List[StudentRecord]:
    """Typo-tolerant match over search_text, in rapidfuzz's score order."""
    if not query or not students:
        return []
    matches = process.extract(
        query,
        [s.search_text for s in students],
        scorer=fuzz.WRatio,
        processor=utils.default_process,
        limit=None,
        score_cutoff=score_cutoff,
    )
    out: List[StudentRecord] = []
    seen = set()
    for _choice, _score, idx in matches:
        student = students[idx]
        if student.href in seen:
            continue
        seen.add(student.href)
        out.append(student)
        if len(out) >= limit:
            break
    return out


def rank(
    students: Sequence[StudentRecord],
    query: Optional[str],
    limit: int = MAX_SEARCH_RESULTS,
    fuzzy_cutoff: float = DEFAULT_FUZZY_CUTOFF,
) -> List[StudentRecord]:
    """Best match first, at most `limit` entries, no repeated hrefs."""
    q = normalize_whitespace(query)
    if not q:
        return []
    students = list(students)
    ranked = _primary_rank(students, q)
    if not ranked:
        ranked = fuzzy_rank(students, q, limit=limit, score_cutoff=fuzzy_cutoff)
    return ranked[:limit]
